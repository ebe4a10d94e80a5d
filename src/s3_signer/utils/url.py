from __future__ import annotations

import posixpath
from dataclasses import dataclass
from urllib.parse import SplitResult
from urllib.parse import unquote
from urllib.parse import urlsplit

from s3_signer.domain.errors import MalformedURLError


@dataclass(frozen=True, slots=True)
class RequestTarget:
    """
    Parsed request URL.

    :param scheme: ``http``/``https``, or empty for host-less targets.
    :param host: Host including a non-default port, or empty if the URL carries none.
    :param path: Raw (still percent-encoded) path.
    :param query: Raw query string without the leading ``?``.
    """

    scheme: str
    host: str
    path: str
    query: str

    def query_items(self) -> list[tuple[str, str | None]]:
        """
        Decode the raw query into ordered items.

        ``+`` is kept literally; only percent-escapes are decoded. Items without ``=`` have
        a ``None`` value.

        :return: Ordered (name, value) pairs.
        """
        items: list[tuple[str, str | None]] = []
        if not self.query:
            return items
        for part in self.query.split("&"):
            if not part:
                continue
            name, sep, value = part.partition("=")
            items.append((unquote(name), unquote(value) if sep else None))
        return items

    @property
    def extension(self) -> str:
        """File extension of the last path segment, without the dot (empty if none)."""
        segment: str = unquote(self.path.rsplit("/", 1)[-1])
        return posixpath.splitext(segment)[1].lstrip(".")

    def origin(self, fallback_scheme: str, fallback_host: str) -> str:
        scheme: str = self.scheme or fallback_scheme
        host: str = self.host or fallback_host
        return f"{scheme}://{host}"


def parse_request_url(url: str) -> RequestTarget:
    """
    Parse and validate a request URL.

    Accepts absolute http(s) URLs and host-less targets (``/bucket/key?acl``); the signer
    resolves a missing host from the region.

    :param url: URL string.
    :return: RequestTarget.
    :raises MalformedURLError: If the string does not parse as a request URL.
    """
    raw: str = str(url)
    if not raw.strip():
        raise MalformedURLError(raw, "empty")
    if any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in raw):
        raise MalformedURLError(raw, "contains whitespace or control characters")

    parsed: SplitResult
    try:
        parsed = urlsplit(raw)
        # .port validates the numeric port lazily.
        _ = parsed.port
    except ValueError as e:
        raise MalformedURLError(raw, str(e)) from e

    scheme: str = parsed.scheme.lower()
    if scheme not in ("", "http", "https"):
        raise MalformedURLError(raw, f"unsupported scheme {parsed.scheme!r}")
    if scheme and not parsed.netloc:
        raise MalformedURLError(raw, "missing host")
    if not scheme and parsed.netloc:
        raise MalformedURLError(raw, "missing scheme")
    if not scheme and raw[0] not in ("/", "?"):
        raise MalformedURLError(raw, "relative target must start with '/'")

    host: str = parsed.netloc.rpartition("@")[2]
    return RequestTarget(scheme=scheme, host=host, path=parsed.path, query=parsed.query)
