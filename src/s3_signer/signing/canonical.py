from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable
from typing import Mapping

from s3_signer.domain.errors import InvalidEncodingError
from s3_signer.signing.encoding import encode_path
from s3_signer.signing.encoding import encode_query_component

HeaderInput = Mapping[str, str] | Iterable[tuple[str, str]]
QueryItems = Iterable[tuple[str, str | None]]

_EXCLUDED_HEADERS: frozenset[str] = frozenset({"authorization"})


def header_items(headers: HeaderInput) -> list[tuple[str, str]]:
    """
    Flatten a header mapping or pair sequence into ordered pairs.

    :param headers: Mapping or iterable of (name, value) pairs.
    :return: List of (name, value) pairs in input order.
    """
    if isinstance(headers, Mapping):
        return [(str(k), str(v)) for k, v in headers.items()]
    return [(str(k), str(v)) for k, v in headers]


def unfold_header_value(value: str) -> str:
    """
    Unfold a header value spread over several lines.

    Each line is trimmed and the lines are joined with a single space.

    :param value: Raw header value.
    :return: Single-line trimmed value.
    """
    lines: list[str] = [line.strip() for line in value.splitlines()]
    return " ".join(line for line in lines if line).strip()


def merge_headers(headers: HeaderInput, *, include: str | None = None) -> dict[str, str]:
    """
    Lower-case header names and merge repeated names with ``,``.

    ``Authorization`` is always dropped.

    :param headers: Mapping or iterable of (name, value) pairs.
    :param include: Optional lower-case name prefix; other headers are dropped.
    :return: Mapping of lower-case name to merged value, sorted by name.
    :raises InvalidEncodingError: If a header name or value cannot be encoded as UTF-8.
    """
    merged: dict[str, list[str]] = {}
    for name, value in header_items(headers):
        key: str = name.strip().lower()
        if not key or key in _EXCLUDED_HEADERS:
            continue
        if include is not None and not key.startswith(include):
            continue
        unfolded: str = unfold_header_value(value)
        try:
            f"{key}:{unfolded}".encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidEncodingError(key) from e
        merged.setdefault(key, []).append(unfolded)
    return {key: ",".join(merged[key]) for key in sorted(merged)}


def canonical_uri(path: str) -> str:
    return encode_path(path)


def canonical_query_string(items: QueryItems) -> str:
    """
    Build the canonical query string.

    :param items: Decoded (name, value) pairs; ``None`` values serialize as ``name=``.
    :return: Encoded pairs sorted by key then value and joined with ``&``.
    """
    encoded: list[tuple[str, str]] = [
        (encode_query_component(k), encode_query_component(v or "")) for (k, v) in items
    ]
    encoded.sort()
    return "&".join(f"{k}={v}" for (k, v) in encoded)


def canonical_headers(headers: HeaderInput) -> str:
    merged: dict[str, str] = merge_headers(headers)
    return "".join(f"{name}:{value}\n" for name, value in merged.items())


def signed_headers(headers: HeaderInput) -> str:
    return ";".join(merge_headers(headers).keys())


@dataclass(frozen=True, slots=True)
class CanonicalRequest:
    """
    The six canonical request fields.

    :param method: Upper-case HTTP method.
    :param uri: Canonical URI.
    :param query: Canonical query string.
    :param headers: Canonical headers block, newline-terminated.
    :param signed_headers: ``;``-joined signed header names.
    :param payload_hash: Payload hash or ``UNSIGNED-PAYLOAD``.
    """

    method: str
    uri: str
    query: str
    headers: str
    signed_headers: str
    payload_hash: str

    def __str__(self) -> str:
        return "\n".join((self.method, self.uri, self.query, self.headers, self.signed_headers, self.payload_hash))


def build_canonical_request(
        method: str,
        path: str,
        query_items: QueryItems,
        headers: HeaderInput,
        payload_hash: str,
) -> CanonicalRequest:
    """
    Assemble a canonical request.

    :param method: HTTP method.
    :param path: Raw URL path.
    :param query_items: Decoded query items.
    :param headers: Headers to sign (``Authorization`` is ignored).
    :param payload_hash: Payload hash field.
    :return: CanonicalRequest.
    :raises InvalidEncodingError: If the path or query cannot be encoded.
    """
    pairs: list[tuple[str, str]] = header_items(headers)
    return CanonicalRequest(
            method=method.upper(),
            uri=canonical_uri(path),
            query=canonical_query_string(query_items),
            headers=canonical_headers(pairs),
            signed_headers=signed_headers(pairs),
            payload_hash=payload_hash,
    )
