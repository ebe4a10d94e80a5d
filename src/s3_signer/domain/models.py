from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import SecretStr
from pydantic import field_validator

from s3_signer.domain.errors import UnknownRegionError

DEFAULT_SERVICE: Final[str] = "s3"
MAX_PRESIGN_EXPIRES_SECONDS: Final[int] = 7 * 24 * 60 * 60


class SigningVersion(str, Enum):
    """
    Request authentication scheme.

    :cvar V2: Legacy Signature Version 2 (HMAC-SHA1).
    :cvar V4: Signature Version 4 (HMAC-SHA256).
    """

    V2 = "v2"
    V4 = "v4"


class HTTPMethod(str, Enum):
    """HTTP methods used against S3."""

    DELETE = "DELETE"
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"


def method_name(method: HTTPMethod | str) -> str:
    """
    Normalize an HTTP method to its upper-case verb.

    :param method: Method enum member or verb string.
    :return: Upper-case verb.
    :raises ValueError: If the verb is empty.
    """
    raw: str = method.value if isinstance(method, HTTPMethod) else str(method)
    verb: str = raw.strip().upper()
    if not verb:
        raise ValueError("HTTP method must be non-empty.")
    return verb


class RegionName(str, Enum):
    """Known AWS region identifiers."""

    US_EAST_1 = "us-east-1"
    US_EAST_2 = "us-east-2"
    US_WEST_1 = "us-west-1"
    US_WEST_2 = "us-west-2"
    CA_CENTRAL_1 = "ca-central-1"
    EU_CENTRAL_1 = "eu-central-1"
    EU_WEST_1 = "eu-west-1"
    EU_WEST_2 = "eu-west-2"
    EU_WEST_3 = "eu-west-3"
    EU_NORTH_1 = "eu-north-1"
    EU_SOUTH_1 = "eu-south-1"
    AP_EAST_1 = "ap-east-1"
    AP_NORTHEAST_1 = "ap-northeast-1"
    AP_NORTHEAST_2 = "ap-northeast-2"
    AP_NORTHEAST_3 = "ap-northeast-3"
    AP_SOUTHEAST_1 = "ap-southeast-1"
    AP_SOUTHEAST_2 = "ap-southeast-2"
    AP_SOUTH_1 = "ap-south-1"
    SA_EAST_1 = "sa-east-1"
    ME_SOUTH_1 = "me-south-1"
    AF_SOUTH_1 = "af-south-1"
    US_GOV_WEST_1 = "us-gov-west-1"
    US_GOV_EAST_1 = "us-gov-east-1"
    CN_NORTH_1 = "cn-north-1"
    CN_NORTHWEST_1 = "cn-northwest-1"

    @classmethod
    def parse(cls, value: RegionName | str) -> RegionName:
        """
        Decode a region identifier.

        :param value: Region identifier, e.g. ``us-east-1``.
        :return: RegionName member.
        :raises UnknownRegionError: If the identifier is not a known region.
        """
        raw: str = (value.value if isinstance(value, RegionName) else str(value)).strip().lower()
        try:
            return cls(raw)
        except ValueError as e:
            raise UnknownRegionError(str(value)) from e


class Region(BaseModel):
    """
    Region a request is signed for.

    A custom ``host_name`` (e.g. a MinIO endpoint) still needs a region name for the
    credential scope; ``us-east-1`` is the usual choice.

    :param name: Region identifier.
    :param host_name: Optional custom host, may include a port (``127.0.0.1:9000``).
    :param use_tls: Whether the endpoint is served over https.
    :raises ValueError: If the name is unknown or the host is not a bare host.
    """

    model_config = ConfigDict(frozen=True)
    name: RegionName = Field(default=RegionName.US_EAST_1)
    host_name: str | None = Field(default=None, max_length=255)
    use_tls: bool = True

    @field_validator("host_name")
    @classmethod
    def _validate_host_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        host: str = v.strip().rstrip("/")
        if not host:
            return None
        if "://" in host or "/" in host:
            raise ValueError("host_name must be a bare host without scheme or path.")
        return host

    @classmethod
    def from_name(cls, name: RegionName | str, host_name: str | None = None, use_tls: bool = True) -> Region:
        """
        Build a region from its identifier.

        :param name: Region identifier.
        :param host_name: Optional custom host.
        :param use_tls: Whether the endpoint uses https.
        :return: Region.
        :raises UnknownRegionError: If the identifier is unknown.
        """
        return cls(name=RegionName.parse(name), host_name=host_name, use_tls=use_tls)

    @property
    def host(self) -> str:
        return self.host_name or f"s3.{self.name.value}.amazonaws.com"

    @property
    def scheme(self) -> str:
        return "https" if self.use_tls else "http"

    @property
    def host_url(self) -> str:
        return f"{self.scheme}://{self.host}"

    @property
    def is_virtual_hosted(self) -> bool:
        """Whether bucket names are addressed in the host name (AWS endpoints only)."""
        return self.host_name is None


class Credentials(BaseModel):
    """
    Access credentials. Secret values never appear in ``repr`` or dumps.

    :param access_key: Access key id.
    :param secret_key: Secret access key.
    :param security_token: Optional session token for temporary credentials.
    """

    model_config = ConfigDict(frozen=True)
    access_key: str = Field(min_length=1, max_length=300)
    secret_key: SecretStr
    security_token: SecretStr | None = None

    @field_validator("access_key")
    @classmethod
    def _validate_access_key(cls, v: str) -> str:
        key: str = v.strip()
        if not key:
            raise ValueError("access_key must be non-empty.")
        return key

    @field_validator("secret_key")
    @classmethod
    def _validate_secret_key(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("secret_key must be non-empty.")
        return v

    @field_validator("security_token")
    @classmethod
    def _drop_empty_token(cls, v: SecretStr | None) -> SecretStr | None:
        if v is None or not v.get_secret_value().strip():
            return None
        return v

    @property
    def token(self) -> str | None:
        if self.security_token is None:
            return None
        return self.security_token.get_secret_value()


@dataclass(frozen=True, slots=True)
class Expiration:
    """
    Lifetime of a presigned URL.

    :param seconds: Validity in seconds, between 1 and 7 days.
    :raises ValueError: If the value is out of range.
    """

    seconds: int

    def __post_init__(self) -> None:
        if isinstance(self.seconds, bool) or not isinstance(self.seconds, int):
            raise ValueError("Expiration seconds must be an integer.")
        if self.seconds < 1:
            raise ValueError("Expiration seconds must be >= 1.")
        if self.seconds > MAX_PRESIGN_EXPIRES_SECONDS:
            raise ValueError(f"Expiration seconds must be <= {MAX_PRESIGN_EXPIRES_SECONDS}.")

    @classmethod
    def fifteen_minutes(cls) -> Expiration:
        return cls(15 * 60)

    @classmethod
    def thirty_minutes(cls) -> Expiration:
        return cls(30 * 60)

    @classmethod
    def one_hour(cls) -> Expiration:
        return cls(60 * 60)

    @classmethod
    def three_hours(cls) -> Expiration:
        return cls(3 * 60 * 60)

    @classmethod
    def custom(cls, seconds: int) -> Expiration:
        return cls(seconds)


@dataclass(frozen=True, slots=True)
class SignerConfig:
    """
    Signer configuration.

    :param credentials: Access credentials.
    :param region: Default region for requests.
    :param version: Signing version.
    :param service: Service name in the credential scope.
    :param default_bucket: Bucket used by V2 canonical resources when a call passes none.
    """

    credentials: Credentials
    region: Region
    version: SigningVersion = SigningVersion.V4
    service: str = DEFAULT_SERVICE
    default_bucket: str | None = None

    def __post_init__(self) -> None:
        if not self.service.strip():
            raise ValueError("service must be non-empty.")
