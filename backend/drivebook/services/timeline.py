"""
Timeline classification for appointment views.

Pure functions over appointments with their slot loaded; no database access.
Each item lands in one bucket relative to ``now``:

- ``cancelled``: status cancelled
- ``completed``: status completed, or the slot already ended
- ``current``: ``now`` falls within ``[start, end)``
- ``next``: the earliest upcoming item
- ``upcoming``: everything else in the future
"""

from datetime import datetime
from typing import Iterable, List, Sequence, Tuple

from ..core.constants import (
    TIMELINE_MAX_ITEMS,
    TIMELINE_RECENT_CANCELLED,
    TIMELINE_RECENT_COMPLETED,
    TIMELINE_UPCOMING,
)
from ..core.enums import TimelineKind
from ..models.appointment import Appointment, AppointmentStatus

TimelineEntry = Tuple[Appointment, TimelineKind]


def classify(appointment: Appointment, now: datetime) -> TimelineKind:
    status = appointment.status
    if status == AppointmentStatus.CANCELLED.value:
        return TimelineKind.CANCELLED
    if status == AppointmentStatus.COMPLETED.value:
        return TimelineKind.COMPLETED
    start, end = appointment.slot.start_time, appointment.slot.end_time
    if start <= now < end:
        return TimelineKind.CURRENT
    if start < now:
        return TimelineKind.COMPLETED
    return TimelineKind.UPCOMING


def build_timeline(appointments: Iterable[Appointment], now: datetime) -> List[TimelineEntry]:
    """Classify and sort ascending by slot start; the first upcoming item becomes ``next``."""
    ordered = sorted(appointments, key=lambda a: (a.slot.start_time, a.id))
    entries: List[TimelineEntry] = []
    seen_upcoming = False
    for appointment in ordered:
        kind = classify(appointment, now)
        if kind == TimelineKind.UPCOMING and not seen_upcoming:
            kind = TimelineKind.NEXT
            seen_upcoming = True
        entries.append((appointment, kind))
    return entries


def _of_kind(entries: Sequence[TimelineEntry], *kinds: TimelineKind) -> List[TimelineEntry]:
    return [entry for entry in entries if entry[1] in kinds]


def condense_instructor_timeline(entries: Sequence[TimelineEntry], now: datetime) -> List[TimelineEntry]:
    """
    Reduce an instructor's timeline to what the "today" view shows.

    Cancellations of lessons that have not started yet are dropped, then the
    view keeps the last few completed lessons, every current one, the next
    few upcoming ones and the most recent cancellation, capped overall.
    """
    visible = [
        (appointment, kind)
        for appointment, kind in entries
        if kind != TimelineKind.CANCELLED or appointment.slot.start_time < now
    ]
    completed = _of_kind(visible, TimelineKind.COMPLETED)[-TIMELINE_RECENT_COMPLETED:]
    current = _of_kind(visible, TimelineKind.CURRENT)
    upcoming = _of_kind(visible, TimelineKind.NEXT, TimelineKind.UPCOMING)[:TIMELINE_UPCOMING]
    cancelled = _of_kind(visible, TimelineKind.CANCELLED)[-TIMELINE_RECENT_CANCELLED:]
    return (completed + current + upcoming + cancelled)[:TIMELINE_MAX_ITEMS]
