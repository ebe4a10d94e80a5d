from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import Final

from s3_signer.domain.dates import Dates
from s3_signer.domain.errors import InvalidEncodingError
from s3_signer.domain.models import DEFAULT_SERVICE
from s3_signer.signing.canonical import CanonicalRequest
from s3_signer.signing.keys import credential_scope
from s3_signer.signing.keys import derive_signing_key

ALGORITHM: Final[str] = "AWS4-HMAC-SHA256"


@dataclass(frozen=True, slots=True)
class SigV4Signature:
    """
    Result of one V4 signing computation. Holds no key material.

    :param canonical_request: Canonical request that was signed.
    :param string_to_sign: String-to-sign.
    :param credential_scope: Credential scope.
    :param signature: Lowercase hex signature.
    """

    canonical_request: CanonicalRequest
    string_to_sign: str
    credential_scope: str
    signature: str

    @property
    def signed_headers(self) -> str:
        return self.canonical_request.signed_headers


def string_to_sign(canonical_request: CanonicalRequest | str, dates: Dates, scope: str) -> str:
    try:
        canonical_hash: str = hashlib.sha256(str(canonical_request).encode("utf-8")).hexdigest()
    except UnicodeEncodeError as e:
        raise InvalidEncodingError("canonical request") from e
    return "\n".join((ALGORITHM, dates.long, scope, canonical_hash))


def compute_signature(signing_key: bytes, to_sign: str) -> str:
    try:
        msg: bytes = to_sign.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidEncodingError("string to sign") from e
    return hmac.new(signing_key, msg, hashlib.sha256).hexdigest()


def sign_canonical_request(
        canonical_request: CanonicalRequest,
        dates: Dates,
        secret_key: str,
        region_name: str,
        service: str = DEFAULT_SERVICE,
) -> SigV4Signature:
    """
    Sign a canonical request.

    The signing key is derived for this call only and is not retained.

    :param canonical_request: Canonical request.
    :param dates: Dates of the signing instant.
    :param secret_key: Secret access key.
    :param region_name: Region identifier.
    :param service: Service name.
    :return: SigV4Signature with every intermediate value.
    """
    scope: str = credential_scope(dates.short, region_name, service)
    to_sign: str = string_to_sign(canonical_request, dates, scope)
    signature: str = compute_signature(derive_signing_key(secret_key, dates.short, region_name, service), to_sign)
    return SigV4Signature(
            canonical_request=canonical_request,
            string_to_sign=to_sign,
            credential_scope=scope,
            signature=signature,
    )


def authorization_value(access_key: str, sig: SigV4Signature) -> str:
    return (
        f"{ALGORITHM} Credential={access_key}/{sig.credential_scope}, "
        f"SignedHeaders={sig.signed_headers}, Signature={sig.signature}"
    )
