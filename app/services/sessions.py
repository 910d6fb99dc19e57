from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from functools import reduce
from zoneinfo import ZoneInfo

from app.models import AttendanceStatus
from app.services.ingestion import AttendanceRow

_TIME_OF_DAY_RE = re.compile(r"^(\d{1,2}):(\d{1,2})(?::(\d{1,2})(?:\.\d+)?)?$")

CHECK_IN = AttendanceStatus.CHECK_IN.value
CHECK_OUT = AttendanceStatus.CHECK_OUT.value
MAX_SESSION_MILLIS = 24 * 60 * 60 * 1000


@dataclass(frozen=True, slots=True)
class AttendanceEvent:
    timestamp_millis: int
    type: str
    time: str
    store_name: str


@dataclass(frozen=True, slots=True)
class WorkSession:
    store_name: str
    store_province: str | None
    check_in_time: str
    check_in_timestamp: int
    check_out_time: str = ""
    check_out_timestamp: int = 0

    @property
    def is_closed(self) -> bool:
        return bool(self.check_out_time) and self.check_out_timestamp > 0

    @property
    def duration_millis(self) -> int:
        """Positive duration only; unclosed or clock-skewed sessions count as zero."""
        if not self.is_closed:
            return 0
        return max(0, self.check_out_timestamp - self.check_in_timestamp)

    @property
    def duration_minutes(self) -> int:
        return self.duration_millis // 60_000


@dataclass(frozen=True, slots=True)
class GroupedEvents:
    events_by_day: dict[date, tuple[AttendanceEvent, ...]]
    discarded: int = 0


@dataclass(frozen=True, slots=True)
class _SessionFold:
    open_session: WorkSession | None = None
    completed: tuple[WorkSession, ...] = field(default_factory=tuple)
    dropped_checkouts: int = 0


def parse_time_of_day(value: str | None) -> time | None:
    if not value:
        return None
    match = _TIME_OF_DAY_RE.match(value.strip())
    if match is None:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour=hour, minute=minute, second=second)


def format_hhmm(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def to_epoch_millis(day: date, time_of_day: time, tz: ZoneInfo) -> int:
    local_dt = datetime.combine(day, time_of_day, tzinfo=tz)
    return round(local_dt.timestamp() * 1000)


def group_day_events(
    rows: Iterable[AttendanceRow],
    *,
    employee_name: str,
    tz: ZoneInfo,
    store_name: str | None = None,
    dates: Collection[date] | None = None,
) -> GroupedEvents:
    target_name = employee_name.strip()
    buckets: dict[date, list[AttendanceEvent]] = {}
    discarded = 0

    for row in rows:
        if row.employee_name.strip() != target_name:
            continue
        if store_name and row.store_name != store_name:
            continue
        if dates is not None and row.date not in dates:
            continue
        if row.status not in (CHECK_IN, CHECK_OUT):
            discarded += 1
            continue
        time_of_day = parse_time_of_day(row.time)
        if time_of_day is None:
            discarded += 1
            continue

        buckets.setdefault(row.date, []).append(
            AttendanceEvent(
                timestamp_millis=to_epoch_millis(row.date, time_of_day, tz),
                type=row.status,
                time=format_hhmm(time_of_day),
                store_name=row.store_name,
            )
        )

    return GroupedEvents(
        events_by_day={day: tuple(events) for day, events in buckets.items()},
        discarded=discarded,
    )


def _event_sort_key(event: AttendanceEvent) -> tuple[int, int, str]:
    # A checkout at the same instant as a check-in closes the earlier session first.
    type_rank = 0 if event.type == CHECK_OUT else 1
    return event.timestamp_millis, type_rank, event.store_name


def _apply_event(state: _SessionFold, event: AttendanceEvent) -> _SessionFold:
    if event.type == CHECK_IN:
        completed = state.completed
        if state.open_session is not None:
            completed = (*completed, state.open_session)
        return _SessionFold(
            open_session=WorkSession(
                store_name=event.store_name,
                store_province=None,
                check_in_time=event.time,
                check_in_timestamp=event.timestamp_millis,
            ),
            completed=completed,
            dropped_checkouts=state.dropped_checkouts,
        )

    if state.open_session is None:
        return replace(state, dropped_checkouts=state.dropped_checkouts + 1)

    closed = replace(
        state.open_session,
        check_out_time=event.time,
        check_out_timestamp=event.timestamp_millis,
    )
    return _SessionFold(
        open_session=None,
        completed=(*state.completed, closed),
        dropped_checkouts=state.dropped_checkouts,
    )


def reconstruct_sessions(
    events: Iterable[AttendanceEvent],
    store_provinces: Mapping[str, str | None] | None = None,
) -> list[WorkSession]:
    """Pair one day's events into sessions ordered by check-in.

    Consecutive check-ins close the previous session without a checkout, a
    checkout with nothing open is dropped and a trailing check-in is kept as
    an unclosed session.
    """
    final_state = reduce(_apply_event, sorted(events, key=_event_sort_key), _SessionFold())
    sessions = list(final_state.completed)
    if final_state.open_session is not None:
        sessions.append(final_state.open_session)

    lookup = store_provinces or {}
    return [replace(item, store_province=lookup.get(item.store_name)) for item in sessions]


def reconstruct_day_sessions(
    grouped: GroupedEvents,
    store_provinces: Mapping[str, str | None] | None = None,
) -> dict[date, list[WorkSession]]:
    return {
        day: reconstruct_sessions(events, store_provinces)
        for day, events in sorted(grouped.events_by_day.items())
    }
