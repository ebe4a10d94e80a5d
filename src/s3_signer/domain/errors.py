from __future__ import annotations

from typing import ClassVar


class SigningError(Exception):
    """
    Base error for signing operations.

    Every error kind exposes a stable serialized ``code`` and a human-readable ``reason``.
    A failed signing call produces no headers or URL.
    """

    code: ClassVar[str] = "s3.signing_error"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason: str = reason


class MalformedURLError(SigningError, ValueError):
    """The input string does not parse as a request URL."""

    code: ClassVar[str] = "s3.bad_url"

    def __init__(self, url: str, detail: str | None = None) -> None:
        msg: str = f"Invalid URL: {url!r}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
        self.url: str = url


class UnknownRegionError(SigningError, ValueError):
    """A region identifier does not map to a known region."""

    code: ClassVar[str] = "s3.unknown_region"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown region: {name!r}")
        self.name: str = name


class InvalidEncodingError(SigningError):
    """Percent-encoding of a request component failed."""

    code: ClassVar[str] = "s3.invalid_encoding"

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid encoding for value {value!r}")
        self.value: str = value


class FeatureUnavailableError(SigningError):
    """The requested feature is not available with the configured signing version."""

    code: ClassVar[str] = "s3.not_available_on_v2_signing"

    def __init__(self, feature: str) -> None:
        super().__init__(f"{feature} is not available on V2 signing")
        self.feature: str = feature
