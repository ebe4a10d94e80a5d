from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Final

UNSIGNED_PAYLOAD: Final[str] = "UNSIGNED-PAYLOAD"


class PayloadKind(str, Enum):
    """
    Request body classification.

    :cvar BYTES: Concrete body bytes.
    :cvar NONE: No body; hashed as zero-length bytes.
    :cvar UNSIGNED: Body excluded from the signature.
    """

    BYTES = "bytes"
    NONE = "none"
    UNSIGNED = "unsigned"


@dataclass(frozen=True, slots=True)
class Payload:
    """
    Request body descriptor.

    :param kind: Payload kind.
    :param data: Body bytes (always empty unless ``kind`` is ``BYTES``).
    """

    kind: PayloadKind
    data: bytes = b""

    def __post_init__(self) -> None:
        if self.kind != PayloadKind.BYTES and self.data:
            raise ValueError(f"Payload of kind {self.kind.value!r} must not carry data.")

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | str) -> Payload:
        """
        Build a concrete payload.

        :param data: Body bytes; strings are encoded as UTF-8.
        :return: Payload of kind ``BYTES``.
        """
        raw: bytes = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        return cls(kind=PayloadKind.BYTES, data=raw)

    @classmethod
    def none(cls) -> Payload:
        return cls(kind=PayloadKind.NONE)

    @classmethod
    def unsigned(cls) -> Payload:
        return cls(kind=PayloadKind.UNSIGNED)

    @property
    def is_unsigned(self) -> bool:
        return self.kind == PayloadKind.UNSIGNED

    def is_concrete(self) -> bool:
        """
        Whether the payload has a computable, finite size.

        :return: True for ``BYTES`` and ``NONE``.
        """
        return self.kind != PayloadKind.UNSIGNED

    def hash(self) -> str:
        """
        Payload hash for the canonical request.

        :return: Hex SHA-256 of the body, or ``UNSIGNED-PAYLOAD``.
        """
        if self.is_unsigned:
            return UNSIGNED_PAYLOAD
        return hashlib.sha256(self.data).hexdigest()

    def size(self) -> str:
        """
        Payload size for ``Content-Length``.

        :return: Decimal byte count, or ``UNSIGNED-PAYLOAD``.
        """
        if self.is_unsigned:
            return UNSIGNED_PAYLOAD
        return str(len(self.data))

    def md5_base64(self) -> str:
        """
        Base64 MD5 digest used for ``Content-MD5``.

        :return: Encoded digest.
        :raises ValueError: For unsigned payloads.
        """
        if self.is_unsigned:
            raise ValueError("Unsigned payload has no digest.")
        digest: bytes = hashlib.md5(self.data, usedforsecurity=False).digest()
        return base64.b64encode(digest).decode("ascii")
