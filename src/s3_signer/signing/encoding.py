from __future__ import annotations

from typing import Final
from urllib.parse import quote
from urllib.parse import unquote_to_bytes

from s3_signer.domain.errors import InvalidEncodingError

# quote() never escapes ASCII letters, digits and "_.-~"; these are the extra safe characters.
QUERY_SAFE: Final[str] = "-_.~"


def _aws_quote(val: str, safe: str) -> str:
    try:
        return quote(val, safe=safe, encoding="utf-8", errors="strict")
    except UnicodeEncodeError as e:
        raise InvalidEncodingError(val) from e


def _requote_segment(segment: str) -> str:
    try:
        return quote(unquote_to_bytes(segment), safe=QUERY_SAFE)
    except UnicodeEncodeError as e:
        raise InvalidEncodingError(segment) from e


def encode_query_component(val: str) -> str:
    """
    Percent-encode a query key or value against the unreserved set ``A-Za-z0-9-._~``.

    :param val: Decoded component.
    :return: Encoded component with upper-case hex escapes.
    :raises InvalidEncodingError: If the value cannot be encoded as UTF-8.
    """
    return _aws_quote(val, QUERY_SAFE)


def encode_path(path: str) -> str:
    """
    Canonicalize a raw URL path.

    Each segment is percent-decoded and re-encoded against the unreserved set, so
    ``/test$file.text`` becomes ``/test%24file.text`` and already-escaped paths are not
    double encoded. ``/`` separators are preserved.

    :param path: Raw URL path.
    :return: Encoded path, ``/`` for an empty path.
    :raises InvalidEncodingError: If a segment cannot be encoded as UTF-8.
    """
    if not path:
        return "/"
    segments: list[str] = [_requote_segment(seg) for seg in path.split("/")]
    return "/".join(segments)
