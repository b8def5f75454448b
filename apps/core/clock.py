"""
Slot clock: conversions between wall-clock times and slot indices.

A day is divided into SLOTS_PER_DAY fixed units of SLOT_MINUTES each.
Index 0 is 00:00-00:30, index 47 is 23:30-24:00. Everything here is pure.
"""
import math
import re

from apps.core.exceptions import InvalidTimeFormat, SlotOutOfRange

SLOT_MINUTES = 30
SLOTS_PER_DAY = 48
MINUTES_PER_DAY = SLOT_MINUTES * SLOTS_PER_DAY

_HHMM_RE = re.compile(r'^(\d{1,2}):(\d{2})$')


# ── Minutes helpers ───────────────────────────────────────────────────────────

def time_to_minutes(hhmm: str) -> int:
    """'09:30' -> 570. Raises InvalidTimeFormat for anything not HH:MM."""
    if not isinstance(hhmm, str):
        raise InvalidTimeFormat(f"Expected an HH:MM string, got {hhmm!r}.")
    match = _HHMM_RE.match(hhmm.strip())
    if not match:
        raise InvalidTimeFormat(f"Invalid time {hhmm!r}; expected HH:MM.")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(f"Invalid time {hhmm!r}; expected HH:MM.")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """570 -> '09:30'. 1440 renders as '24:00' (end of day)."""
    if minutes < 0 or minutes > MINUTES_PER_DAY:
        raise SlotOutOfRange(f"{minutes} minutes is outside a single day.")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


# ── Slot conversions ──────────────────────────────────────────────────────────

def time_to_slot(hhmm: str, strict: bool = False) -> int:
    """
    Convert HH:MM to the slot that contains it.

    Non-strict mode rounds down ('09:45' -> 19). Strict mode only accepts
    times on a slot boundary (minutes 00 or 30).
    """
    minutes = time_to_minutes(hhmm)
    if strict and minutes % SLOT_MINUTES:
        raise InvalidTimeFormat(
            f"Time {hhmm!r} is not on a {SLOT_MINUTES}-minute slot boundary."
        )
    return minutes // SLOT_MINUTES


def slot_to_time(index: int) -> str:
    """Start time of a slot. Raises SlotOutOfRange outside 0..47."""
    if not isinstance(index, int) or index < 0 or index >= SLOTS_PER_DAY:
        raise SlotOutOfRange(f"Slot index {index!r} must be between 0 and {SLOTS_PER_DAY - 1}.")
    return minutes_to_time(index * SLOT_MINUTES)


def slot_boundary_time(index: int) -> str:
    """Like slot_to_time, but also accepts 48 ('24:00') for range ends."""
    if not isinstance(index, int) or index < 0 or index > SLOTS_PER_DAY:
        raise SlotOutOfRange(f"Slot boundary {index!r} must be between 0 and {SLOTS_PER_DAY}.")
    return minutes_to_time(index * SLOT_MINUTES)


def add_slots(index: int, count: int) -> int:
    # No wraparound: callers compare the result against SLOTS_PER_DAY.
    return index + count


# ── Duration helpers ──────────────────────────────────────────────────────────

def duration_to_slots(minutes) -> int:
    """Number of slots needed to cover a duration, rounded up."""
    if minutes is None or minutes <= 0:
        raise ValueError(f"Duration must be positive, got {minutes!r}.")
    return math.ceil(minutes / SLOT_MINUTES)


def slots_to_duration(slots: int) -> int:
    return slots * SLOT_MINUTES


def is_valid_slot_range(start: int, end: int) -> bool:
    """True for a non-empty half-open range [start, end) inside one day."""
    return 0 <= start < end <= SLOTS_PER_DAY


def group_consecutive_slots(indices) -> list:
    """
    Collapse slot indices into half-open runs.

    >>> group_consecutive_slots([18, 19, 20, 24, 25])
    [(18, 21), (24, 26)]
    """
    runs = []
    for index in sorted(set(indices)):
        if runs and runs[-1][1] == index:
            runs[-1] = (runs[-1][0], index + 1)
        else:
            runs.append((index, index + 1))
    return runs
