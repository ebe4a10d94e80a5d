from __future__ import annotations

import logging
import re
from typing import Final

_REDACTED: Final[str] = "***"

_SECRET_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"(Signature=)[0-9a-fA-F]+"),
    re.compile(r"(x-amz-signature=)[^&\s]+", re.IGNORECASE),
    re.compile(r"(x-amz-security-token[:=])[^&\s]+", re.IGNORECASE),
    re.compile(r"(?<![-\w])(Credential=)[^/\s,&]+"),
    re.compile(r"(x-amz-credential=)[^%&\s/]+", re.IGNORECASE),
    re.compile(r"(AWS [^:\s]+:)[A-Za-z0-9+/=]+"),
)


def redact(message: str) -> str:
    """
    Mask signatures, session tokens and access key ids in a log message.

    :param message: Rendered log message.
    :return: Message with secret values replaced by ``***``.
    """
    out: str = message
    for pattern in _SECRET_PATTERNS:
        out = pattern.sub(rf"\g<1>{_REDACTED}", out)
    return out


class _RedactSigningSecretsFilter(logging.Filter):
    """
    Rewrite records so that signing material never reaches a handler.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith(LOGGER_NAME):
            return True

        rendered: str = record.getMessage()
        masked: str = redact(rendered)
        if masked != rendered:
            record.msg = masked
            record.args = None
        return True


def configure_logging(level: str) -> None:
    """
    Configure application logging.

    :param level: Logging level (e.g. ``INFO``).
    :return: None
    """
    root: logging.Logger = logging.getLogger()
    lvl: str = level.upper()

    if root.handlers:
        root.setLevel(lvl)
        for h in root.handlers:
            if not any(isinstance(f, _RedactSigningSecretsFilter) for f in h.filters):
                h.addFilter(_RedactSigningSecretsFilter())
        return

    formatter: logging.Formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    handler: logging.StreamHandler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler.addFilter(_RedactSigningSecretsFilter())

    root.setLevel(lvl)
    root.addHandler(handler)


LOGGER_NAME: Final[str] = "s3_signer"
