from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
from typing import Final
from typing import Protocol

LONG_DATE_FORMAT: Final[str] = "%Y%m%dT%H%M%SZ"
SHORT_DATE_FORMAT: Final[str] = "%Y%m%d"


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


class Clock(Protocol):
    """Source of the signing instant."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Clock frozen at a single instant.

    :param instant: Instant returned by every ``now()`` call. Naive values are treated as UTC.
    """

    def __init__(self, instant: datetime) -> None:
        self._instant: datetime = _as_utc(instant)

    def now(self) -> datetime:
        return self._instant


@dataclass(frozen=True, slots=True)
class Dates:
    """
    The two timestamp representations used by one signing call.

    Both fields always come from the same instant; build values through ``from_instant``
    or ``from_long`` rather than the constructor.

    :param long: ISO8601 basic timestamp, ``YYYYMMDD'T'HHMMSS'Z'``.
    :param short: Date stamp, ``YYYYMMDD``.
    """

    long: str
    short: str

    @classmethod
    def from_instant(cls, instant: datetime) -> Dates:
        """
        Format an instant in UTC.

        :param instant: Instant to format. Naive values are treated as UTC.
        :return: Dates for the instant.
        """
        utc: datetime = _as_utc(instant)
        return cls(long=utc.strftime(LONG_DATE_FORMAT), short=utc.strftime(SHORT_DATE_FORMAT))

    @classmethod
    def from_long(cls, long_date: str) -> Dates:
        """
        Rebuild Dates from a long timestamp such as ``20130524T000000Z``.

        :param long_date: Long timestamp.
        :return: Dates for the parsed instant.
        :raises ValueError: If the value is not a long timestamp.
        """
        parsed: datetime = datetime.strptime(long_date.strip(), LONG_DATE_FORMAT)
        return cls.from_instant(parsed)


def format_instant(instant: datetime) -> Dates:
    return Dates.from_instant(instant)
