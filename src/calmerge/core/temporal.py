"""ICS date/time and duration codec.

Only the three value grammars the product actually stores are accepted:

* ``YYYYMMDDTHHMMSSZ`` -> ``utc``
* ``YYYYMMDDTHHMMSS``  -> ``floating`` (wall clock, no zone)
* ``YYYYMMDD``         -> ``date_only`` (all-day)

Durations keep the unit they were written in so that ``PT60M`` formats back to
``PT60M`` while still comparing equal to ``PT1H``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

from .errors import ParseError

InstantKind = Literal["utc", "floating", "date_only"]
DurationUnit = Literal["seconds", "minutes", "hours", "days"]

INSTANT_KINDS: tuple[InstantKind, ...] = ("utc", "floating", "date_only")

SECONDS_PER_UNIT: dict[DurationUnit, int] = {
    "seconds": 1,
    "minutes": 60,
    "hours": 3600,
    "days": 86400,
}
_UNIT_SUFFIX: dict[DurationUnit, str] = {"hours": "H", "minutes": "M", "seconds": "S"}

_DATE_LENGTH = 8
_DATE_TIME_LENGTH = 15

_DURATION_RE = re.compile(
    r"(?P<sign>[+-])?P"
    r"(?:(?P<weeks>\d+)W)?"
    r"(?:(?P<days>\d+)D)?"
    r"(?P<time>T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?",
    re.ASCII,
)


@dataclass(frozen=True)
class Instant:
    """A point in time tagged with how it was written.

    ``moment`` is always naive; for ``utc`` it holds the UTC wall clock, for
    ``date_only`` it holds midnight of the day.
    """

    kind: InstantKind
    moment: datetime

    def __post_init__(self) -> None:
        if self.kind not in INSTANT_KINDS:
            raise ValueError(f"unknown instant kind: {self.kind!r}")
        if self.moment.tzinfo is not None:
            raise ValueError("Instant.moment must be naive; use Instant.from_datetime")
        moment = self.moment.replace(microsecond=0)
        if self.kind == "date_only":
            moment = moment.replace(hour=0, minute=0, second=0)
        if moment != self.moment:
            object.__setattr__(self, "moment", moment)

    @classmethod
    def utc(
        cls, year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0
    ) -> Instant:
        return cls("utc", datetime(year, month, day, hour, minute, second))

    @classmethod
    def floating(
        cls, year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0
    ) -> Instant:
        return cls("floating", datetime(year, month, day, hour, minute, second))

    @classmethod
    def date_only(cls, year: int, month: int, day: int) -> Instant:
        return cls("date_only", datetime(year, month, day))

    @classmethod
    def from_datetime(cls, value: datetime) -> Instant:
        """Aware datetimes become ``utc``, naive ones ``floating``."""
        if value.tzinfo is not None:
            return cls("utc", value.astimezone(UTC).replace(tzinfo=None))
        return cls("floating", value)

    @classmethod
    def now(cls) -> Instant:
        return cls.from_datetime(datetime.now(UTC))

    @property
    def is_date_only(self) -> bool:
        return self.kind == "date_only"

    def promoted(self, kind: InstantKind) -> Instant:
        """Return a ``date_only`` instant as midnight of ``kind``; other kinds are unchanged."""
        if self.kind == "date_only" and kind != "date_only":
            return Instant(kind, self.moment)
        return self

    def comparable_with(self, other: Instant) -> bool:
        return self.kind == other.kind or "date_only" in (self.kind, other.kind)

    def _moments(self, other: object) -> tuple[datetime, datetime]:
        if not isinstance(other, Instant):
            raise TypeError(f"cannot compare Instant with {type(other).__name__}")
        if not self.comparable_with(other):
            raise TypeError(f"cannot compare {self.kind} instant with {other.kind} instant")
        return self.moment, other.moment

    def __lt__(self, other: object) -> bool:
        left, right = self._moments(other)
        return left < right

    def __le__(self, other: object) -> bool:
        left, right = self._moments(other)
        return left <= right

    def __gt__(self, other: object) -> bool:
        left, right = self._moments(other)
        return left > right

    def __ge__(self, other: object) -> bool:
        left, right = self._moments(other)
        return left >= right

    def __str__(self) -> str:
        return format_instant(self)


@dataclass(frozen=True, eq=False)
class Duration:
    """A non-negative magnitude in one unit plus a sign flag.

    Equality and hashing use the signed length in seconds.
    """

    value: int
    unit: DurationUnit = "minutes"
    negative: bool = False

    def __post_init__(self) -> None:
        if self.unit not in SECONDS_PER_UNIT:
            raise ValueError(f"unknown duration unit: {self.unit!r}")
        if self.value < 0:
            raise ValueError("Duration.value must be non-negative; set negative=True instead")

    @property
    def total_seconds(self) -> int:
        seconds = self.value * SECONDS_PER_UNIT[self.unit]
        return -seconds if self.negative else seconds

    def as_timedelta(self) -> timedelta:
        return timedelta(seconds=self.total_seconds)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.total_seconds == other.total_seconds

    def __hash__(self) -> int:
        return hash(self.total_seconds)

    def __str__(self) -> str:
        return format_duration(self)


def parse_instant(text: str, *, field: str = "value") -> Instant:
    length = len(text)
    if length == _DATE_TIME_LENGTH + 1 and text.endswith("Z"):
        kind: InstantKind = "utc"
        body = text[:_DATE_TIME_LENGTH]
    elif length == _DATE_TIME_LENGTH:
        kind = "floating"
        body = text
    elif length == _DATE_LENGTH:
        kind = "date_only"
        body = text
    else:
        raise ParseError(
            field, text, "expected YYYYMMDD, YYYYMMDDTHHMMSS or YYYYMMDDTHHMMSSZ"
        )

    if kind == "date_only":
        digits = body
    else:
        if body[_DATE_LENGTH] != "T":
            raise ParseError(field, text, "missing 'T' date/time separator")
        digits = body[:_DATE_LENGTH] + body[_DATE_LENGTH + 1 :]
    if not (digits.isascii() and digits.isdigit()):
        raise ParseError(field, text, "non-digit character")

    year, month, day = int(digits[0:4]), int(digits[4:6]), int(digits[6:8])
    hour = minute = second = 0
    if kind != "date_only":
        hour, minute, second = int(digits[8:10]), int(digits[10:12]), int(digits[12:14])

    for name, value, low, high in (
        ("month", month, 1, 12),
        ("day", day, 1, 31),
        ("hour", hour, 0, 23),
        ("minute", minute, 0, 59),
        ("second", second, 0, 59),
    ):
        if not low <= value <= high:
            raise ParseError(field, text, f"{name} {value} out of range {low}-{high}")

    try:
        moment = datetime(year, month, day, hour, minute, second)
    except ValueError as exc:
        raise ParseError(field, text, str(exc)) from None
    return Instant(kind, moment)


def format_instant(instant: Instant) -> str:
    m = instant.moment
    day = f"{m.year:04d}{m.month:02d}{m.day:02d}"
    if instant.kind == "date_only":
        return day
    clock = f"{day}T{m.hour:02d}{m.minute:02d}{m.second:02d}"
    return f"{clock}Z" if instant.kind == "utc" else clock


def parse_duration(text: str, *, field: str = "value") -> Duration:
    """Parse an ISO 8601 duration as written in ICS files.

    Multi-component values from third-party producers (``P1DT2H``) are folded
    into their finest populated unit, so no magnitude is lost.
    """
    match = _DURATION_RE.fullmatch(text)
    if match is None:
        raise ParseError(field, text, "expected [-]P[nW][nD][T[nH][nM][nS]]")

    populated: list[tuple[DurationUnit, int]] = []
    if match.group("weeks") is not None:
        populated.append(("days", int(match.group("weeks")) * 7))
    for unit in ("days", "hours", "minutes", "seconds"):
        raw = match.group(unit)
        if raw is not None:
            populated.append((unit, int(raw)))

    if match.group("time") == "T":
        raise ParseError(field, text, "'T' must be followed by a time component")
    if not populated:
        raise ParseError(field, text, "no duration component")

    finest = min((unit for unit, _ in populated), key=SECONDS_PER_UNIT.__getitem__)
    total = sum(amount * SECONDS_PER_UNIT[unit] for unit, amount in populated)
    return Duration(
        value=total // SECONDS_PER_UNIT[finest],
        unit=finest,
        negative=match.group("sign") == "-",
    )


def format_duration(duration: Duration) -> str:
    sign = "-" if duration.negative else ""
    if duration.unit == "days":
        return f"{sign}P{duration.value}D"
    return f"{sign}PT{duration.value}{_UNIT_SUFFIX[duration.unit]}"


def add_duration(instant: Instant, duration: Duration, *, field: str = "DURATION") -> Instant:
    """Shift ``instant`` by ``duration``.

    Raises ``ParseError`` for ``field`` when the result leaves the year 1-9999 range.
    """
    try:
        if instant.kind == "date_only":
            if duration.unit == "days":
                days = -duration.value if duration.negative else duration.value
                return Instant("date_only", instant.moment + timedelta(days=days))
            instant = instant.promoted("floating")
        return Instant(instant.kind, instant.moment + duration.as_timedelta())
    except OverflowError:
        reason = f"{format_instant(instant)} plus duration is out of range"
        raise ParseError(field, format_duration(duration), reason) from None
