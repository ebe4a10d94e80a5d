from __future__ import annotations

import hashlib
import hmac
from typing import Final

from s3_signer.domain.errors import InvalidEncodingError
from s3_signer.domain.models import DEFAULT_SERVICE

SCOPE_TERMINATOR: Final[str] = "aws4_request"


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def credential_scope(short_date: str, region_name: str, service: str = DEFAULT_SERVICE) -> str:
    """
    Build the credential scope binding a signature to a day, region and service.

    :param short_date: ``YYYYMMDD`` date stamp.
    :param region_name: Region identifier.
    :param service: Service name.
    :return: ``date/region/service/aws4_request``.
    """
    return "/".join((short_date, region_name, service, SCOPE_TERMINATOR))


def derive_signing_key(
        secret_key: str,
        short_date: str,
        region_name: str,
        service: str = DEFAULT_SERVICE,
) -> bytes:
    """
    Derive the per-request signing key (kSecret -> kDate -> kRegion -> kService -> kSigning).

    :param secret_key: Secret access key.
    :param short_date: ``YYYYMMDD`` date stamp.
    :param region_name: Region identifier.
    :param service: Service name.
    :return: 32-byte signing key.
    :raises InvalidEncodingError: If the secret, region or service cannot be encoded as UTF-8.
    """
    try:
        k_date: bytes = _hmac_sha256(("AWS4" + secret_key).encode("utf-8"), short_date)
        k_region: bytes = _hmac_sha256(k_date, region_name)
        k_service: bytes = _hmac_sha256(k_region, service)
    except UnicodeEncodeError as e:
        raise InvalidEncodingError("signing key input") from e
    return _hmac_sha256(k_service, SCOPE_TERMINATOR)
