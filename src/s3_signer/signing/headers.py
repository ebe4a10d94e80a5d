from __future__ import annotations

import logging
import mimetypes
from typing import Final
from typing import Mapping

from s3_signer.domain.dates import Dates
from s3_signer.domain.models import DEFAULT_SERVICE
from s3_signer.domain.models import Region
from s3_signer.domain.models import SignerConfig
from s3_signer.domain.models import SigningVersion
from s3_signer.domain.payload import UNSIGNED_PAYLOAD
from s3_signer.domain.payload import Payload
from s3_signer.signing.canonical import CanonicalRequest
from s3_signer.signing.canonical import HeaderInput
from s3_signer.signing.canonical import build_canonical_request
from s3_signer.signing.canonical import header_items
from s3_signer.signing.canonical import unfold_header_value
from s3_signer.signing.engine import SigV4Signature
from s3_signer.signing.engine import authorization_value
from s3_signer.signing.engine import sign_canonical_request
from s3_signer.signing.legacy import LegacySigner
from s3_signer.utils.logging import LOGGER_NAME
from s3_signer.utils.logging import redact
from s3_signer.utils.url import RequestTarget

DEFAULT_CONTENT_TYPE: Final[str] = "text/plain"


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    """Set a header, replacing any existing entry whose name differs only by case."""
    wanted: str = name.lower()
    for key in [k for k in headers if k.lower() == wanted]:
        del headers[key]
    headers[name] = value


def _has_header(headers: Mapping[str, str], name: str) -> bool:
    wanted: str = name.lower()
    return any(k.lower() == wanted for k in headers)


def _collect_headers(headers: HeaderInput) -> dict[str, str]:
    """Copy caller headers into a dict, merging repeated names (any case) with ``,``."""
    collected: dict[str, str] = {}
    spelled: dict[str, str] = {}
    for name, value in header_items(headers):
        wanted: str = name.strip().lower()
        if wanted not in spelled:
            spelled[wanted] = name
            collected[name] = value
            continue
        first: str = spelled[wanted]
        collected[first] = f"{unfold_header_value(collected[first])},{unfold_header_value(value)}"
    return collected


def guess_content_type(extension: str) -> str:
    """
    Best-effort media type for a file extension.

    :param extension: Extension without the dot.
    :return: Media type, ``text/plain`` when unknown.
    """
    guessed: str | None = mimetypes.types_map.get(f".{extension.lower()}")
    return guessed or DEFAULT_CONTENT_TYPE


class HeaderSigner:
    """
    Produces the outbound header set for a request, including ``Authorization``.

    No network I/O happens here; the same inputs always give the same headers.

    :param cfg: Signer configuration.
    """

    def __init__(self, cfg: SignerConfig, logger: logging.Logger | None = None) -> None:
        self._cfg: SignerConfig = cfg
        self._legacy: LegacySigner = LegacySigner(cfg.credentials)
        self._logger: logging.Logger = logger or logging.getLogger(LOGGER_NAME)

    def base_headers(
            self,
            target: RequestTarget,
            headers: HeaderInput,
            payload_hash: str,
            dates: Dates,
            region: Region,
    ) -> dict[str, str]:
        """
        Inject the date, host, content hash and session token headers.

        :param target: Request target.
        :param headers: Caller-supplied headers; repeated names are merged with ``,``.
        :param payload_hash: Payload hash (``UNSIGNED-PAYLOAD`` for unsigned bodies).
        :param dates: Dates of the signing instant.
        :param region: Region of the request.
        :return: Updated header mapping.
        """
        updated: dict[str, str] = _collect_headers(headers)
        _set_header(updated, "x-amz-date", dates.long)
        if not _has_header(updated, "Host"):
            updated["Host"] = target.host or region.host
        if (
                self._cfg.version == SigningVersion.V4
                and self._cfg.service == DEFAULT_SERVICE
                and payload_hash != UNSIGNED_PAYLOAD
        ):
            _set_header(updated, "x-amz-content-sha256", payload_hash)
        token: str | None = self._cfg.credentials.token
        if token is not None:
            _set_header(updated, "x-amz-security-token", token)
        return updated

    def payload_headers(self, method: str, target: RequestTarget, payload: Payload, headers: dict[str, str]) -> None:
        """
        Inject body headers for uploads (``PUT`` only).

        :param method: Upper-case HTTP method.
        :param target: Request target.
        :param payload: Request payload.
        :param headers: Header mapping updated in place.
        """
        if method != "PUT":
            return
        _set_header(headers, "Content-Length", payload.size())
        if payload.is_concrete():
            _set_header(headers, "Content-MD5", payload.md5_base64())
        extension: str = target.extension
        if extension and not _has_header(headers, "Content-Type"):
            headers["Content-Type"] = guess_content_type(extension)

    def signature_v4(
            self,
            method: str,
            target: RequestTarget,
            headers: Mapping[str, str],
            payload_hash: str,
            dates: Dates,
            region: Region,
    ) -> SigV4Signature:
        canonical: CanonicalRequest = build_canonical_request(
                method=method,
                path=target.path,
                query_items=target.query_items(),
                headers=headers,
                payload_hash=payload_hash,
        )
        self._logger.debug(redact(f"Canonical request:\n{canonical}"))
        return sign_canonical_request(
                canonical,
                dates,
                secret_key=self._cfg.credentials.secret_key.get_secret_value(),
                region_name=region.name.value,
                service=self._cfg.service,
        )

    def authorization(
            self,
            method: str,
            target: RequestTarget,
            headers: Mapping[str, str],
            payload_hash: str,
            dates: Dates,
            region: Region,
            bucket: str | None = None,
    ) -> str:
        """
        Compute the ``Authorization`` value for the configured signing version.

        :param method: Upper-case HTTP method.
        :param target: Request target.
        :param headers: Complete outbound headers (any ``Authorization`` entry is ignored).
        :param payload_hash: Payload hash field (V4 only).
        :param dates: Dates of the signing instant.
        :param region: Region of the request.
        :param bucket: Bucket name for the V2 canonical resource.
        :return: Header value.
        :raises InvalidEncodingError: If the path or query cannot be encoded.
        """
        if self._cfg.version == SigningVersion.V2:
            return self._legacy.authorization(method, target, headers, region, bucket or self._cfg.default_bucket)
        sig: SigV4Signature = self.signature_v4(method, target, headers, payload_hash, dates, region)
        return authorization_value(self._cfg.credentials.access_key, sig)

    def sign(
            self,
            method: str,
            target: RequestTarget,
            headers: HeaderInput,
            payload: Payload,
            dates: Dates,
            region: Region,
            bucket: str | None = None,
    ) -> dict[str, str]:
        """
        Build the full signed header set.

        :param method: Upper-case HTTP method.
        :param target: Request target.
        :param headers: Caller-supplied headers.
        :param payload: Request payload.
        :param dates: Dates of the signing instant.
        :param region: Region of the request.
        :param bucket: Bucket name for the V2 canonical resource.
        :return: Headers to attach to the outbound request.
        """
        payload_hash: str = payload.hash() if self._cfg.version == SigningVersion.V4 else ""
        signed: dict[str, str] = self.base_headers(target, headers, payload_hash, dates, region)
        self.payload_headers(method, target, payload, signed)
        auth: str = self.authorization(method, target, signed, payload_hash, dates, region, bucket)
        _set_header(signed, "Authorization", auth)
        return signed
