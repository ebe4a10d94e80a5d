from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping

from s3_signer.config.settings import Settings
from s3_signer.config.settings import settings as default_settings
from s3_signer.domain.dates import Clock
from s3_signer.domain.dates import Dates
from s3_signer.domain.dates import SystemClock
from s3_signer.domain.models import Expiration
from s3_signer.domain.models import HTTPMethod
from s3_signer.domain.models import Region
from s3_signer.domain.models import SignerConfig
from s3_signer.domain.models import method_name
from s3_signer.domain.payload import Payload
from s3_signer.signing.canonical import HeaderInput
from s3_signer.signing.canonical import signed_headers
from s3_signer.signing.headers import HeaderSigner
from s3_signer.signing.presign import PresignedURLSigner
from s3_signer.utils.logging import LOGGER_NAME
from s3_signer.utils.logging import configure_logging
from s3_signer.utils.url import RequestTarget
from s3_signer.utils.url import parse_request_url


class S3Signer:
    """
    Signs S3 requests with the configured credentials.

    The signer holds immutable configuration only and may be shared between threads.
    To rotate credentials, build a new signer.

    :param cfg: Signer configuration.
    :param clock: Source of the signing instant (read once per call).
    :param logger: Optional logger.
    """

    def __init__(
            self,
            cfg: SignerConfig,
            *,
            clock: Clock | None = None,
            logger: logging.Logger | None = None,
    ) -> None:
        self._cfg: SignerConfig = cfg
        self._clock: Clock = clock or SystemClock()
        self._logger: logging.Logger = logger or logging.getLogger(LOGGER_NAME)
        self._header_signer: HeaderSigner = HeaderSigner(cfg, logger=self._logger)
        self._presigner: PresignedURLSigner = PresignedURLSigner(cfg, logger=self._logger)

    @property
    def config(self) -> SignerConfig:
        return self._cfg

    def _dates(self) -> Dates:
        instant: datetime = self._clock.now()
        return Dates.from_instant(instant)

    def headers(
            self,
            method: HTTPMethod | str,
            url: str,
            *,
            headers: HeaderInput | None = None,
            payload: Payload | None = None,
            region: Region | None = None,
            bucket: str | None = None,
    ) -> dict[str, str]:
        """
        Sign a request with the ``Authorization`` header.

        :param method: HTTP method.
        :param url: Request URL; a host-less target (``/key``) uses the region host.
        :param headers: Caller headers (mapping or name/value pairs), included in the signature.
            Repeated names are merged with ``,``.
        :param payload: Request body; defaults to an empty body.
        :param region: Region override; defaults to the configured region.
        :param bucket: Bucket name for the V2 canonical resource.
        :return: Complete outbound headers, including ``Authorization``.
        :raises MalformedURLError: If the URL cannot be parsed.
        :raises InvalidEncodingError: If the path, query, a header or a secret cannot be encoded.
        """
        verb: str = method_name(method)
        target: RequestTarget = parse_request_url(url)
        rgn: Region = region or self._cfg.region
        signed: dict[str, str] = self._header_signer.sign(
                method=verb,
                target=target,
                headers=headers or {},
                payload=payload or Payload.none(),
                dates=self._dates(),
                region=rgn,
                bucket=bucket,
        )
        self._logger.debug(
                f"Signed request method={verb} host={target.host or rgn.host} "
                f"version={self._cfg.version.value} signed_headers={signed_headers(signed)}"
        )
        return signed

    def presigned_url(
            self,
            method: HTTPMethod | str,
            url: str,
            expiration: Expiration | int,
            *,
            region: Region | None = None,
            headers: Mapping[str, str] | None = None,
    ) -> str:
        """
        Build a presigned URL.

        :param method: HTTP method.
        :param url: Request URL.
        :param expiration: URL lifetime (an Expiration or a number of seconds).
        :param region: Region override; defaults to the configured region.
        :param headers: Extra headers the URL's user must send.
        :return: Presigned URL.
        :raises FeatureUnavailableError: Under V2 signing.
        :raises MalformedURLError: If the URL cannot be parsed.
        :raises ValueError: If the expiration is out of range.
        """
        verb: str = method_name(method)
        target: RequestTarget = parse_request_url(url)
        rgn: Region = region or self._cfg.region
        expires: Expiration = expiration if isinstance(expiration, Expiration) else Expiration.custom(expiration)
        presigned: str = self._presigner.presign(
                method=verb,
                target=target,
                expiration=expires,
                dates=self._dates(),
                region=rgn,
                headers=headers,
        )
        self._logger.debug(
                f"Presigned request method={verb} host={target.host or rgn.host} "
                f"version={self._cfg.version.value} expires={expires.seconds}"
        )
        return presigned


def create_signer(
        settings: Settings | None = None,
        *,
        clock: Clock | None = None,
        configure_logs: bool = False,
) -> S3Signer:
    """
    Create a signer from environment-backed settings.

    :param settings: Settings object; defaults to the settings loaded at import.
    :param clock: Optional clock override.
    :param configure_logs: Also configure root logging at the settings log level.
    :return: S3Signer.
    :raises ValueError: If credentials or the region are missing or invalid.
    """
    cfg_source: Settings = settings or default_settings
    if configure_logs:
        configure_logging(cfg_source.log_level)
    return S3Signer(cfg_source.signer_config(), clock=clock)
