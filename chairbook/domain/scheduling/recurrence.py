"""
Recurrence rule interpreter.

Turns the declarative rule stored on an appointment
({"freq", "interval", "byweekday", "until", "count"}) into a rule object
that enumerates occurrence start instants inside a window. Evaluation
happens in the appointment's own timezone so the local time of day is kept
across DST changes; instants are returned as aware UTC datetimes.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional, Union
from zoneinfo import ZoneInfo

from dateutil.parser import isoparse
from dateutil.rrule import DAILY, MONTHLY, WEEKLY, rrule

from ...shared.timeutils import as_utc, get_zone

FREQUENCIES = {"DAILY": DAILY, "WEEKLY": WEEKLY, "MONTHLY": MONTHLY}

# Python weekday(): Monday=0 .. Sunday=6, same numbering dateutil uses
WEEKDAYS = range(7)


class RecurrenceRule:
    """Enumerates occurrence instants of one recurring appointment"""

    def __init__(self, rule: rrule, zone: ZoneInfo, until: Optional[datetime] = None):
        self._rule = rule
        self.zone = zone
        self.until = until

    def between(self, window_start: datetime, window_end: datetime) -> List[datetime]:
        """All start instants within [window_start, window_end], both bounds inclusive"""
        start = as_utc(window_start).astimezone(self.zone)
        end = as_utc(window_end).astimezone(self.zone)
        if self.until is not None and self.until < end:
            end = self.until
        if end < start:
            return []
        return [as_utc(instant) for instant in self._rule.between(start, end, inc=True)]


@dataclass(frozen=True)
class RuleResult:
    """Either a usable rule or the reason it could not be built"""

    rule: Optional[RecurrenceRule] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.rule is not None

    @classmethod
    def success(cls, rule: RecurrenceRule) -> "RuleResult":
        return cls(rule=rule)

    @classmethod
    def failure(cls, reason: str) -> "RuleResult":
        return cls(error=reason)


def _parse_until(value: Union[str, date, datetime, None], zone: ZoneInfo) -> Optional[datetime]:
    """
    Resolve the rule's end bound. A date-only value covers that whole local
    day; naive datetimes are local wall-clock time.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            value = date.fromisoformat(text)
        else:
            value = isoparse(text)
    if not isinstance(value, date):
        raise ValueError(f"until must be a date or datetime, got {value!r}")
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=zone)
        return value.astimezone(zone)
    return datetime.combine(value, time.max, tzinfo=zone)


def _parse_positive_int(value: Any, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an integer, got {value!r}") from None
    if isinstance(value, float) and value != number:
        raise ValueError(f"{field} must be an integer, got {value!r}")
    if number < 1:
        raise ValueError(f"{field} must be at least 1, got {number}")
    return number


def _parse_weekdays(value: Any) -> Optional[List[int]]:
    if not value:
        # Absent or empty: dateutil falls back to the anchor's weekday for WEEKLY
        return None
    weekdays = set()
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int) or item not in WEEKDAYS:
            raise ValueError(f"byweekday values must be 0 (Monday) to 6 (Sunday), got {item!r}")
        weekdays.add(item)
    return sorted(weekdays)


def validate_description(description: Optional[dict]) -> Optional[str]:
    """Return the reason a rule description is unusable, or None if it is valid"""
    if not description:
        return "missing recurrence rule"
    freq_name = str(description.get("freq") or "").upper()
    if freq_name not in FREQUENCIES:
        return f"unsupported frequency {description.get('freq')!r}"
    try:
        if description.get("interval") is not None:
            _parse_positive_int(description["interval"], "interval")
        if description.get("count") is not None:
            _parse_positive_int(description["count"], "count")
        _parse_weekdays(description.get("byweekday"))
        _parse_until(description.get("until"), get_zone(None))
    except ValueError as e:
        return str(e)
    return None


def build_rule(
    description: Optional[dict], anchor: datetime, tz_name: Optional[str] = None
) -> RuleResult:
    """
    Build the rule for a recurring appointment anchored at `anchor`.

    Never raises for bad input: malformed descriptions come back as a
    failed RuleResult so callers can report them.
    """
    reason = validate_description(description)
    if reason:
        return RuleResult.failure(reason)

    zone = get_zone(tz_name)
    dtstart = as_utc(anchor).astimezone(zone)
    until = _parse_until(description.get("until"), zone)
    count = description.get("count")

    kwargs = {
        "dtstart": dtstart,
        "interval": _parse_positive_int(description.get("interval") or 1, "interval"),
        "byweekday": _parse_weekdays(description.get("byweekday")),
    }
    # dateutil rejects until+count together; count goes to the rule and
    # until is applied as a window clip in RecurrenceRule.between
    if count is not None:
        kwargs["count"] = _parse_positive_int(count, "count")
    elif until is not None:
        if until < dtstart:
            until = dtstart - timedelta(microseconds=1)
        kwargs["until"] = until

    rule = rrule(FREQUENCIES[str(description["freq"]).upper()], **kwargs)
    return RuleResult.success(RecurrenceRule(rule, zone, until))
