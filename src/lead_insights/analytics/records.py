"""Lead records and the shared primitives every analyzer builds on.

A ``LeadRecord`` is one prospect intake entry as supplied by the Lead Store.
Records are immutable; the engine never mutates or re-orders the caller's
record set.  Timestamps are normalised to timezone-aware UTC so that window
arithmetic against ``now`` is well defined.

The helpers here keep the rate math uniform across modules: every rate is a
percentage in [0, 100] that is exactly ``0.0`` when its denominator is zero.
``interest_level`` is expected to be 1-5 but is not clamped; out-of-range
values flow through the averages unchanged.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from pydantic import TypeAdapter, ValidationError

UNKNOWN_REP = "Unknown"
DAY = timedelta(days=1)
WINDOW_DAYS = 30

_DATETIME = TypeAdapter(datetime)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _parse_timestamp(val) -> datetime | None:
    """Parse an ISO-8601 string, date or datetime into an aware UTC datetime.

    Postgres trims trailing zeros from fractional seconds (``.12345``);
    pydantic's parser accepts those where ``fromisoformat`` may not.
    """
    if val is None:
        return None
    if isinstance(val, datetime):
        return _to_utc(val)
    if isinstance(val, date):
        return datetime(val.year, val.month, val.day, tzinfo=timezone.utc)
    s = str(val).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return _to_utc(datetime.fromisoformat(s))
    except ValueError:
        pass
    try:
        return _to_utc(_DATETIME.validate_python(s))
    except ValidationError:
        pass
    for fmt in ("%Y/%m/%d", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S"):
        try:
            return _to_utc(datetime.strptime(s, fmt))
        except ValueError:
            continue
    return None


def coerce_bool(val, field_name: str) -> bool:
    """Strict boolean: bools, 0/1 and the strings "true"/"false" only."""
    if isinstance(val, bool):
        return val
    if isinstance(val, int) and val in (0, 1):
        return bool(val)
    if isinstance(val, str) and val.strip().lower() in ("true", "false"):
        return val.strip().lower() == "true"
    raise ValueError(f"{field_name} must be a boolean, got {val!r}")


def _coerce_int(val, field_name: str) -> int:
    if isinstance(val, bool):
        raise ValueError(f"{field_name} must be an integer, got {val!r}")
    if isinstance(val, int):
        return val
    if isinstance(val, float) and val.is_integer():
        return int(val)
    try:
        return int(str(val).strip())
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be an integer, got {val!r}") from None


def _optional_str(val) -> str | None:
    if val is None:
        return None
    return str(val)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeadRecord:
    """One lead/submission record."""
    id: int | str | None
    owner_name: str
    interest_level: int  # expected 1-5, not clamped
    signed_up: bool
    package_seen: bool
    timestamp: datetime
    decision_makers: str | None = None
    username: str | None = None
    territory: str | None = None
    specific_needs: str | None = None

    def __post_init__(self):
        if not isinstance(self.timestamp, datetime):
            raise TypeError(f"timestamp must be a datetime, got {type(self.timestamp).__name__}")
        object.__setattr__(self, "timestamp", _to_utc(self.timestamp))

    @property
    def rep(self) -> str:
        """Owning rep group key; missing usernames group under ``"Unknown"``."""
        return self.username or UNKNOWN_REP

    @classmethod
    def from_dict(cls, data: Mapping) -> LeadRecord:
        """Build a record from a Lead Store payload (camelCase or snake_case keys)."""
        if not isinstance(data, Mapping):
            raise TypeError(f"lead record must be a mapping, got {type(data).__name__}")

        def pick(camel: str, snake: str, default=None):
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        raw_ts = pick("timestamp", "timestamp")
        if raw_ts is None:
            raw_ts = pick("createdAt", "created_at")
        ts = _parse_timestamp(raw_ts)
        if ts is None:
            raise ValueError(f"lead record has a missing or unparseable timestamp: {raw_ts!r}")

        for camel, snake in (("interestLevel", "interest_level"), ("signedUp", "signed_up"), ("packageSeen", "package_seen")):
            if camel not in data and snake not in data:
                raise ValueError(f"lead record is missing required field {camel!r}")

        return cls(
            id=pick("id", "id"),
            owner_name=str(pick("ownerName", "owner_name", "") or ""),
            interest_level=_coerce_int(pick("interestLevel", "interest_level"), "interestLevel"),
            signed_up=coerce_bool(pick("signedUp", "signed_up"), "signedUp"),
            package_seen=coerce_bool(pick("packageSeen", "package_seen"), "packageSeen"),
            timestamp=ts,
            decision_makers=_optional_str(pick("decisionMakers", "decision_makers")),
            username=_optional_str(pick("username", "username")),
            territory=_optional_str(pick("territoryId", "territory_id") or pick("territory", "territory")),
            specific_needs=_optional_str(pick("specificNeeds", "specific_needs")),
        )


@dataclass(frozen=True)
class EstimatedMetric:
    """A placeholder figure that is not computed from the record set.

    ``kind`` is ``"estimated"`` for fixed business assumptions and
    ``"unmeasured"`` for values the data cannot supply yet.
    """
    value: float
    kind: str
    note: str
    measured: bool = False


def estimated(value: float, note: str) -> EstimatedMetric:
    return EstimatedMetric(value=value, kind="estimated", note=note)


def unmeasured(note: str) -> EstimatedMetric:
    return EstimatedMetric(value=0.0, kind="unmeasured", note=note)


# ---------------------------------------------------------------------------
# Input guards
# ---------------------------------------------------------------------------


def load_records(rows: Iterable[Mapping]) -> list[LeadRecord]:
    """Convert Lead Store payload rows into ``LeadRecord`` objects."""
    return [LeadRecord.from_dict(row) for row in rows]


def ensure_records(records) -> list[LeadRecord]:
    """Return *records* as a list, failing fast on anything that is not a LeadRecord."""
    if records is None or isinstance(records, (str, bytes, Mapping)):
        raise TypeError(f"records must be a sequence of LeadRecord, got {type(records).__name__}")
    try:
        items = list(records)
    except TypeError:
        raise TypeError(f"records must be a sequence of LeadRecord, got {type(records).__name__}") from None
    for item in items:
        if not isinstance(item, LeadRecord):
            raise TypeError(f"expected LeadRecord, got {type(item).__name__}")
    return items


def ensure_now(now) -> datetime:
    """Validate the reference instant and normalise it to UTC."""
    if not isinstance(now, datetime):
        raise TypeError(f"now must be a datetime, got {type(now).__name__}")
    return _to_utc(now)


# ---------------------------------------------------------------------------
# Rate and window math
# ---------------------------------------------------------------------------


def safe_div(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 for a zero denominator."""
    if not denominator:
        return 0.0
    return numerator / denominator


def rate(numerator: float, denominator: float) -> float:
    """Percentage of numerator over denominator; 0.0 when the denominator is 0."""
    return safe_div(numerator, denominator) * 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def days_since(ts: datetime, now: datetime) -> int:
    """Whole days elapsed from *ts* to *now* (floored)."""
    return math.floor((now - ts) / DAY)


def date_range_in_days(records: list[LeadRecord]) -> int:
    """Span between the oldest and newest record in whole days, at least 1."""
    if not records:
        return 1
    stamps = [r.timestamp for r in records]
    span = (max(stamps) - min(stamps)) / DAY
    return max(1, math.ceil(span))


def avg_interest(records: list[LeadRecord]) -> float:
    return safe_div(sum(r.interest_level for r in records), len(records))


def conversion_rate(records: list[LeadRecord]) -> float:
    return rate(sum(1 for r in records if r.signed_up), len(records))


def window_counts(
    records: list[LeadRecord],
    now: datetime,
    predicate: Callable[[LeadRecord], bool] | None = None,
    window_days: int = WINDOW_DAYS,
) -> tuple[int, int]:
    """Count records in ``[now-w, now)`` and ``[now-2w, now-w)``.

    Returns (recent, previous).  Records at or after ``now`` fall in neither.
    """
    recent_start = now - timedelta(days=window_days)
    previous_start = now - timedelta(days=2 * window_days)
    recent = previous = 0
    for r in records:
        if predicate is not None and not predicate(r):
            continue
        if recent_start <= r.timestamp < now:
            recent += 1
        elif previous_start <= r.timestamp < recent_start:
            previous += 1
    return recent, previous


def growth_rate(
    records: list[LeadRecord],
    now: datetime,
    predicate: Callable[[LeadRecord], bool] | None = None,
) -> float:
    """Percent change of the trailing 30 days over the 30 days before it.

    Defined as 0.0 when the earlier window is empty.
    """
    recent, previous = window_counts(records, now, predicate)
    if previous == 0:
        return 0.0
    return (recent - previous) / previous * 100
