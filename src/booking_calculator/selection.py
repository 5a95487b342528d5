"""Two-click date range selection on the availability calendar."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

import structlog

from .availability import Records, check_range_availability, index_records, is_date_available
from .date_window import BookingWindow, compute_duration
from .errors import DateOutOfWindow
from .models import DateRangeSelection, RangeConflict

LOGGER = structlog.get_logger(__name__)


class SelectionState(str, Enum):
    EMPTY = "empty"
    START_SELECTED = "start_selected"
    RANGE_COMPLETE = "range_complete"


@dataclass(frozen=True)
class SelectionResult:
    """Selection after a click, plus any conflict warning raised by it."""

    selection: DateRangeSelection
    conflict: Optional[RangeConflict] = None
    changed: bool = True


def selection_state(selection: DateRangeSelection) -> SelectionState:
    if selection.start_date is None:
        return SelectionState.EMPTY
    if selection.end_date is None:
        return SelectionState.START_SELECTED
    return SelectionState.RANGE_COMPLETE


def clear_selection() -> DateRangeSelection:
    return DateRangeSelection.empty()


def select_date(
    value: date,
    current: DateRangeSelection,
    records: Records,
    window: Optional[BookingWindow] = None,
) -> SelectionResult:
    """
    Apply a calendar click to the current selection.

    - empty or complete range: the clicked day becomes the new start.
    - start only: a day on or after the start completes the range, an
      earlier day restarts the selection from it.

    Clicks outside ``window`` or on unavailable days leave the selection
    unchanged. A completed range covering unavailable days is kept, with the
    offending dates reported in ``conflict``.
    """
    indexed = index_records(records)

    if window is not None:
        try:
            window.ensure_contains(value)
        except DateOutOfWindow:
            LOGGER.debug("selection.ignored", date=value.isoformat(), reason="out_of_window")
            return SelectionResult(selection=current, changed=False)
    if not is_date_available(value, indexed):
        LOGGER.debug("selection.ignored", date=value.isoformat(), reason="unavailable")
        return SelectionResult(selection=current, changed=False)

    state = selection_state(current)
    if state is not SelectionState.START_SELECTED or value < current.start_date:
        return SelectionResult(selection=DateRangeSelection(start_date=value))

    start = current.start_date
    selection = DateRangeSelection(start_date=start, end_date=value, duration=compute_duration(start, value))
    available, conflicts = check_range_availability(start, value, indexed)
    if available:
        return SelectionResult(selection=selection)

    LOGGER.warning(
        "selection.range_conflict",
        start=start.isoformat(),
        end=value.isoformat(),
        conflicts=conflicts,
    )
    return SelectionResult(selection=selection, conflict=RangeConflict(conflicts=tuple(conflicts)))
