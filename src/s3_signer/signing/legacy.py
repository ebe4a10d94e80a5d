from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Final

from s3_signer.domain.errors import InvalidEncodingError
from s3_signer.domain.models import Credentials
from s3_signer.domain.models import Region
from s3_signer.signing.canonical import HeaderInput
from s3_signer.signing.canonical import header_items
from s3_signer.signing.canonical import merge_headers
from s3_signer.signing.encoding import encode_path
from s3_signer.utils.url import RequestTarget

# Query parameters that are part of the signed resource under V2.
SUBRESOURCES: Final[frozenset[str]] = frozenset(
        {
            "acl",
            "lifecycle",
            "location",
            "logging",
            "notification",
            "partnumber",
            "policy",
            "requestpayment",
            "torrent",
            "uploadid",
            "uploads",
            "versionid",
            "versioning",
            "versions",
            "website",
            "response-content-type",
            "response-content-language",
            "response-expires",
            "response-cache-control",
            "response-content-disposition",
            "response-content-encoding",
        }
)


def _header_value(headers: HeaderInput, name: str) -> str:
    wanted: str = name.lower()
    found: str = ""
    for key, value in header_items(headers):
        if key.strip().lower() == wanted:
            found = value
    return found


def canonical_amz_headers(headers: HeaderInput) -> str:
    """
    Canonicalize ``x-amz-*`` headers for V2.

    :param headers: Request headers.
    :return: ``name:value`` lines, each newline-terminated, sorted by name.
    """
    merged: dict[str, str] = merge_headers(headers, include="x-amz")
    return "".join(f"{name}:{value}\n" for name, value in merged.items())


def canonical_resource(target: RequestTarget, region: Region, bucket: str | None) -> str:
    """
    Build the V2 canonicalized resource.

    The bucket root always canonicalizes to ``/bucket/``. Otherwise ``/bucket`` is prefixed
    only for virtual-hosted AWS endpoints, where the bucket is not part of the path.

    :param target: Request target.
    :param region: Region of the endpoint.
    :param bucket: Bucket name, if known.
    :return: Canonicalized resource.
    """
    bucket_name: str = (bucket or "").strip("/")
    resource: str
    if bucket_name and target.path in ("", "/"):
        resource = f"/{bucket_name}/"
    else:
        prefix: str = f"/{bucket_name}" if bucket_name and region.is_virtual_hosted else ""
        resource = prefix + encode_path(target.path)

    subresources: list[tuple[str, str | None]] = sorted(
            ((name, value) for name, value in target.query_items() if name.lower() in SUBRESOURCES),
            key=lambda item: item[0].lower(),
    )
    if subresources:
        rendered: list[str] = [name if value is None else f"{name}={value}" for name, value in subresources]
        resource = f"{resource}?{'&'.join(rendered)}"
    return resource


class LegacySigner:
    """
    AWS Signature Version 2 signer for endpoints that still require it.

    :param credentials: Access credentials.
    """

    _ALGO: Final[str] = "AWS"

    def __init__(self, credentials: Credentials) -> None:
        self._credentials: Credentials = credentials

    def string_to_sign(
            self,
            method: str,
            target: RequestTarget,
            headers: HeaderInput,
            region: Region,
            bucket: str | None,
    ) -> str:
        """
        Build the V2 string-to-sign.

        :param method: Upper-case HTTP method.
        :param target: Request target.
        :param headers: Outbound headers.
        :param region: Region of the endpoint.
        :param bucket: Bucket name, if known.
        :return: String-to-sign.
        """
        return (
            f"{method}\n"
            f"{_header_value(headers, 'Content-MD5')}\n"
            f"{_header_value(headers, 'Content-Type')}\n"
            f"{_header_value(headers, 'Date')}\n"
            f"{canonical_amz_headers(headers)}"
            f"{canonical_resource(target, region, bucket)}"
        )

    def signature(self, to_sign: str) -> str:
        try:
            secret: bytes = self._credentials.secret_key.get_secret_value().encode("utf-8")
            msg: bytes = to_sign.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidEncodingError("string to sign") from e
        digest: bytes = hmac.new(secret, msg, hashlib.sha1).digest()
        return base64.b64encode(digest).decode("ascii")

    def authorization(
            self,
            method: str,
            target: RequestTarget,
            headers: HeaderInput,
            region: Region,
            bucket: str | None,
    ) -> str:
        """
        Compute the V2 ``Authorization`` header value.

        :return: ``AWS <access_key>:<signature>``.
        """
        to_sign: str = self.string_to_sign(method, target, headers, region, bucket)
        return f"{self._ALGO} {self._credentials.access_key}:{self.signature(to_sign)}"
