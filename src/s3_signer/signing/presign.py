from __future__ import annotations

import logging
from typing import Final
from typing import Mapping

from s3_signer.domain.dates import Dates
from s3_signer.domain.errors import FeatureUnavailableError
from s3_signer.domain.models import Expiration
from s3_signer.domain.models import Region
from s3_signer.domain.models import SignerConfig
from s3_signer.domain.models import SigningVersion
from s3_signer.domain.payload import UNSIGNED_PAYLOAD
from s3_signer.signing.canonical import CanonicalRequest
from s3_signer.signing.canonical import build_canonical_request
from s3_signer.signing.canonical import signed_headers
from s3_signer.signing.encoding import encode_path
from s3_signer.signing.encoding import encode_query_component
from s3_signer.signing.engine import ALGORITHM
from s3_signer.signing.engine import SigV4Signature
from s3_signer.signing.engine import sign_canonical_request
from s3_signer.signing.keys import credential_scope
from s3_signer.utils.logging import LOGGER_NAME
from s3_signer.utils.logging import redact
from s3_signer.utils.url import RequestTarget


class PresignedURLSigner:
    """
    AWS Signature V4 presigner (query-string authentication).

    The body is never signed: the payload field of the canonical request is always
    ``UNSIGNED-PAYLOAD``. Auth parameter names are emitted in lower case.

    :param cfg: Signer configuration.
    """

    _PARAM_ALGORITHM: Final[str] = "x-amz-algorithm"
    _PARAM_CREDENTIAL: Final[str] = "x-amz-credential"
    _PARAM_DATE: Final[str] = "x-amz-date"
    _PARAM_EXPIRES: Final[str] = "x-amz-expires"
    _PARAM_SIGNED_HEADERS: Final[str] = "x-amz-signedheaders"
    _PARAM_SECURITY_TOKEN: Final[str] = "x-amz-security-token"
    _PARAM_SIGNATURE: Final[str] = "x-amz-signature"

    def __init__(self, cfg: SignerConfig, logger: logging.Logger | None = None) -> None:
        self._cfg: SignerConfig = cfg
        self._logger: logging.Logger = logger or logging.getLogger(LOGGER_NAME)

    def auth_query_items(self, dates: Dates, expiration: Expiration, region: Region, headers: Mapping[str, str]) -> list[tuple[str, str]]:
        """
        Build the authentication query items in their fixed order.

        :param dates: Dates of the signing instant.
        :param expiration: URL lifetime.
        :param region: Region of the request.
        :param headers: Headers that will be signed.
        :return: Ordered (name, value) pairs, decoded.
        """
        scope: str = credential_scope(dates.short, region.name.value, self._cfg.service)
        items: list[tuple[str, str]] = [
            (self._PARAM_ALGORITHM, ALGORITHM),
            (self._PARAM_CREDENTIAL, f"{self._cfg.credentials.access_key}/{scope}"),
            (self._PARAM_DATE, dates.long),
            (self._PARAM_EXPIRES, str(expiration.seconds)),
            (self._PARAM_SIGNED_HEADERS, signed_headers(headers)),
        ]
        token: str | None = self._cfg.credentials.token
        if token is not None:
            items.append((self._PARAM_SECURITY_TOKEN, token))
        return items

    def presign(
            self,
            method: str,
            target: RequestTarget,
            expiration: Expiration,
            dates: Dates,
            region: Region,
            headers: Mapping[str, str] | None = None,
    ) -> str:
        """
        Build a presigned URL.

        :param method: Upper-case HTTP method.
        :param target: Request target.
        :param expiration: URL lifetime.
        :param dates: Dates of the signing instant.
        :param region: Region of the request.
        :param headers: Extra headers the URL's user must send (signed).
        :return: URL with ``x-amz-signature`` as the final query parameter.
        :raises FeatureUnavailableError: Under V2 signing.
        :raises InvalidEncodingError: If the path or query cannot be encoded.
        """
        if self._cfg.version != SigningVersion.V4:
            raise FeatureUnavailableError("Presigned URL")

        host: str = target.host or region.host
        signed: dict[str, str] = {k: v for k, v in (headers or {}).items() if k.lower() != "host"}
        signed["Host"] = host

        query_items: list[tuple[str, str | None]] = [
            *self.auth_query_items(dates, expiration, region, signed),
            *target.query_items(),
        ]
        canonical: CanonicalRequest = build_canonical_request(
                method=method,
                path=target.path,
                query_items=query_items,
                headers=signed,
                payload_hash=UNSIGNED_PAYLOAD,
        )
        self._logger.debug(redact(f"Canonical request:\n{canonical}"))
        sig: SigV4Signature = sign_canonical_request(
                canonical,
                dates,
                secret_key=self._cfg.credentials.secret_key.get_secret_value(),
                region_name=region.name.value,
                service=self._cfg.service,
        )

        final_query: str = "&".join(
                [
                    *(
                        encode_query_component(k) if v is None else f"{encode_query_component(k)}={encode_query_component(v)}"
                        for (k, v) in query_items
                    ),
                    f"{self._PARAM_SIGNATURE}={sig.signature}",
                ]
        )
        base: str = target.origin(region.scheme, host)
        return f"{base}{encode_path(target.path)}?{final_query}"
