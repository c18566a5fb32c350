"""
Parsing of metadata timestamp strings into millisecond instants.

The metadata tools are asked to print dates in the fixed shape
``YYYY-MM-DDTHH:MM:SS[.fff][+HHMM]``. Anything else is treated as
unparseable so that the resolver can move on to the next field.
"""

import re
from typing import Iterable, NamedTuple, Optional

TIMESTAMP_PATTERN = re.compile(
    r"""
    (?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})
    T
    (?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})
    (?:\.(?P<fraction>\d*))?        # may be present but empty
    (?P<tz_hour>[+-]\d{2})?
    (?P<tz_minute>\d{2})?
    """,
    re.VERBOSE | re.ASCII,
)

SECONDS_PER_DAY = 86400


class ParsedInstant(NamedTuple):
    """Outcome of parsing one timestamp line."""
    valid: bool
    millis: int


INVALID = ParsedInstant(valid=False, millis=0)


def days_from_civil(year: int, month: int, day: int) -> int:
    """Days between 1970-01-01 and the given proleptic Gregorian date.

    Month and day are not range checked: month 13 rolls into the next year
    and day 0 is the last day of the previous month, which matches what
    ``timegm`` does with a denormalized ``struct tm``.
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1

    # Shift the year to start in March so the leap day is the last day.
    if month <= 2:
        year -= 1
    era = year // 400
    year_of_era = year - era * 400
    day_of_year = (153 * (month + (-3 if month > 2 else 9)) + 2) // 5 + day - 1
    day_of_era = year_of_era * 365 + year_of_era // 4 - year_of_era // 100 + day_of_year
    return era * 146097 + day_of_era - 719468


def _fraction_to_millis(fraction: Optional[str]) -> int:
    if not fraction:
        return 0
    return int(fraction.ljust(3, "0")[:3])


def _offset_seconds(tz_hour: Optional[str], tz_minute: Optional[str]) -> int:
    # An hour without minutes still matches the shape but carries no offset.
    if tz_hour is None or tz_minute is None:
        return 0
    sign = -1 if tz_hour[0] == "-" else 1
    return sign * (int(tz_hour[1:]) * 3600 + int(tz_minute) * 60)


def parse_timestamp(raw: str) -> ParsedInstant:
    """
    Convert one metadata line into a millisecond instant.

    Args:
        raw: A line such as ``2025-12-25T16:07:57.123-0700``. The fraction may
            be missing or empty and the UTC offset may be missing.

    Returns:
        ``ParsedInstant(True, millis)`` on success, ``INVALID`` otherwise.
        The calendar fields are taken as plain integers, so an impossible date
        like month 13 still produces an instant.
    """
    if not isinstance(raw, str):
        return INVALID

    match = TIMESTAMP_PATTERN.fullmatch(raw.strip())
    if match is None:
        return INVALID

    days = days_from_civil(
        int(match.group("year")), int(match.group("month")), int(match.group("day"))
    )
    seconds = (
        days * SECONDS_PER_DAY
        + int(match.group("hour")) * 3600
        + int(match.group("minute")) * 60
        + int(match.group("second"))
    )
    seconds -= _offset_seconds(match.group("tz_hour"), match.group("tz_minute"))

    return ParsedInstant(True, seconds * 1000 + _fraction_to_millis(match.group("fraction")))


def first_valid_timestamp(candidates: Iterable[str]) -> Optional[int]:
    """Return the first candidate that parses to a positive instant, if any."""
    for raw in candidates:
        if not raw:
            continue
        parsed = parse_timestamp(raw)
        # A parse landing exactly on the epoch is treated as missing data.
        if parsed.valid and parsed.millis > 0:
            return parsed.millis
    return None


def resolve_timestamp(candidates: Iterable[str], fallback: int) -> int:
    """
    Pick the instant for one file from its candidate lines.

    Candidates are tried in the order given, which is the field priority
    chosen by the metadata source. ``fallback`` is returned unchanged when
    nothing qualifies.
    """
    resolved = first_valid_timestamp(candidates)
    return fallback if resolved is None else resolved
