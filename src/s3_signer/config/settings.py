from __future__ import annotations

from pydantic import Field
from pydantic import SecretStr
from pydantic import field_validator
from pydantic import model_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from s3_signer.domain.models import DEFAULT_SERVICE
from s3_signer.domain.models import MAX_PRESIGN_EXPIRES_SECONDS
from s3_signer.domain.models import Credentials
from s3_signer.domain.models import Expiration
from s3_signer.domain.models import Region
from s3_signer.domain.models import RegionName
from s3_signer.domain.models import SignerConfig
from s3_signer.domain.models import SigningVersion


class _SettingsBase(BaseSettings):
    """Common settings configuration."""

    model_config = SettingsConfigDict(
            env_prefix="S3_SIGNER_",
            env_file=".env",
            env_file_encoding="utf-8",
            case_sensitive=False,
            extra="ignore",
    )


class CredentialsSettings(_SettingsBase):
    """Access credentials."""

    access_key: str | None = Field(default=None, max_length=300)
    secret_key: SecretStr | None = Field(default=None)
    security_token: SecretStr | None = Field(default=None)


class RegionSettings(_SettingsBase):
    """Endpoint and region settings."""

    region: RegionName = Field(default=RegionName.US_EAST_1)
    host_name: str | None = Field(default=None, max_length=255)
    use_tls: bool = Field(default=True)


class SigningSettings(_SettingsBase):
    """Signing behaviour settings."""

    signing_version: SigningVersion = Field(default=SigningVersion.V4)
    service: str = Field(default=DEFAULT_SERVICE, min_length=1, max_length=100)
    default_bucket: str | None = Field(default=None, max_length=63)
    presign_expires_seconds: int = Field(default=15 * 60, ge=1, le=MAX_PRESIGN_EXPIRES_SECONDS)


class LoggingSettings(_SettingsBase):
    """Python logging settings."""

    log_level: str = Field(default="INFO", min_length=1, max_length=50)


class Settings(
        CredentialsSettings,
        RegionSettings,
        SigningSettings,
        LoggingSettings,
):
    """
    Application settings.

    Values are loaded from environment variables prefixed with ``S3_SIGNER_``.

    :param access_key: Access key id.
    :param secret_key: Secret access key.
    :param security_token: Optional session token.
    :param region: Region identifier used in the credential scope.
    :param host_name: Optional custom endpoint host (e.g. ``127.0.0.1:9000`` for MinIO).
    :param use_tls: Whether the endpoint uses https.
    :param signing_version: ``v4`` (default) or ``v2``.
    :param service: Service name in the credential scope.
    :param default_bucket: Bucket used by V2 canonical resources.
    :param presign_expires_seconds: Default presigned URL lifetime in seconds.
    :param log_level: Root Python logging level.
    :raises ValueError: If environment values are invalid.
    """

    @field_validator("region", mode="before")
    def _normalize_region(cls, v: object) -> object:
        if isinstance(v, RegionName):
            return v
        if isinstance(v, str):
            return RegionName.parse(v)
        return v

    @field_validator("signing_version", mode="before")
    def _normalize_version(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("service", "log_level")
    def _strip_required(cls, v: str) -> str:
        val: str = v.strip()
        if not val:
            raise ValueError("Value must be non-empty.")
        return val

    @field_validator("access_key", "host_name", "default_bucket")
    def _strip_optional(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("secret_key", "security_token")
    def _drop_empty_secret(cls, v: SecretStr | None) -> SecretStr | None:
        if v is None or not v.get_secret_value():
            return None
        return v

    @model_validator(mode="after")
    def _validate_credentials_pair(self) -> "Settings":
        if self.security_token is not None and (self.access_key is None or self.secret_key is None):
            raise ValueError("security_token requires access_key and secret_key.")
        return self

    def credentials(self) -> Credentials:
        """
        Build credentials from the configured keys.

        :return: Credentials.
        :raises ValueError: If the access or secret key is missing.
        """
        if self.access_key is None or self.secret_key is None:
            raise ValueError("S3_SIGNER_ACCESS_KEY and S3_SIGNER_SECRET_KEY must be set.")
        return Credentials(
                access_key=self.access_key,
                secret_key=self.secret_key,
                security_token=self.security_token,
        )

    def region_config(self) -> Region:
        return Region(name=self.region, host_name=self.host_name, use_tls=self.use_tls)

    def presign_expiration(self) -> Expiration:
        return Expiration.custom(self.presign_expires_seconds)

    def signer_config(self) -> SignerConfig:
        """
        Build the signer configuration.

        :return: SignerConfig.
        :raises ValueError: If credentials are missing or invalid.
        """
        return SignerConfig(
                credentials=self.credentials(),
                region=self.region_config(),
                version=self.signing_version,
                service=self.service,
                default_bucket=self.default_bucket,
        )


settings: Settings = Settings()
