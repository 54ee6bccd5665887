"""
Drag-and-drop reordering of the timeline with contiguous re-timing.

The day keeps the start time of its first step; every step starts when the
previous one ends. While an item is dragged the new times are only computed
as a preview, the committed order changes on drop once persistence succeeded.
"""
import enum
import logging
from typing import Any, Awaitable, Callable, Iterable, List, NamedTuple, Optional

from pydantic import BaseModel

from jourj.utils.helpers import calculate_end_time, format_time, from_minutes, to_minutes

logger = logging.getLogger(__name__)


class DragState(str, enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"


class TimelineSlot(NamedTuple):
    id: int
    time: str
    duration: int
    sort_order: Optional[int] = None


class PreviewSlot(BaseModel):
    id: int
    position: int
    start_time: str
    end_time: str


class ReorderResult(BaseModel):
    source_index: int
    target_index: int
    order: List[int]
    slots: List[PreviewSlot]
    changed: List[PreviewSlot]


class ReorderStateError(ValueError):
    """Transition not allowed from the current drag state, or index out of range"""


class ReorderPersistError(Exception):
    """Saving a drop failed; `attempted` holds the order the user asked for"""

    def __init__(self, attempted: ReorderResult, message: str = "Failed to save the new timeline order"):
        super().__init__(message)
        self.attempted = attempted


def move(sequence: List[Any], source: int, target: int) -> List[Any]:
    """Remove the element at `source` and insert it at `target` (on a copy)"""
    result = list(sequence)
    moved = result.pop(source)
    result.insert(target, moved)
    return result


def retime(slots: List[TimelineSlot], anchor: Optional[str] = None) -> List[PreviewSlot]:
    """Chain start times back to back from `anchor` (default: first slot's start)"""
    if not slots:
        return []
    cursor = to_minutes(anchor or slots[0].time)
    timed = []
    for position, slot in enumerate(slots):
        start = from_minutes(cursor)
        timed.append(PreviewSlot(
            id=slot.id,
            position=position,
            start_time=start,
            end_time=calculate_end_time(start, slot.duration),
        ))
        cursor += slot.duration
    return timed


class TimelineReorderSession:
    """
    Idle -> Dragging(source) -> Hovering(target) -> Dropped | Cancelled -> Idle
    """

    def __init__(self, items: Iterable[Any]):
        self._committed: List[TimelineSlot] = [
            TimelineSlot(item.id, format_time(item.time), item.duration, getattr(item, "sort_order", position))
            for position, item in enumerate(items)
        ]
        self._reset()

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.source_index: Optional[int] = None
        self.target_index: Optional[int] = None
        self.preview: Optional[List[PreviewSlot]] = None

    @property
    def committed(self) -> List[TimelineSlot]:
        return list(self._committed)

    @property
    def order(self) -> List[int]:
        return [slot.id for slot in self._committed]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._committed):
            raise ReorderStateError(f"Index {index} out of range for {len(self._committed)} timeline items")

    def _compute(self, target: int) -> ReorderResult:
        reordered = move(self._committed, self.source_index, target)
        anchor = self._committed[0].time
        slots = retime(reordered, anchor)
        before = {
            slot.id: (position if slot.sort_order is None else slot.sort_order, slot.time)
            for position, slot in enumerate(self._committed)
        }
        changed = [s for s in slots if before[s.id] != (s.position, s.start_time)]
        return ReorderResult(
            source_index=self.source_index,
            target_index=target,
            order=[s.id for s in slots],
            slots=slots,
            changed=changed,
        )

    def drag_start(self, index: int) -> None:
        if self.state != DragState.IDLE:
            raise ReorderStateError(f"Cannot start a drag while {self.state.value}")
        self._check_index(index)
        self.state = DragState.DRAGGING
        self.source_index = index

    def drag_over(self, index: int) -> List[PreviewSlot]:
        if self.state == DragState.IDLE:
            raise ReorderStateError("No drag in progress")
        self._check_index(index)
        self.state = DragState.HOVERING
        self.target_index = index
        self.preview = self._compute(index).slots
        return self.preview

    def preview_for(self, item_id: int) -> Optional[PreviewSlot]:
        if not self.preview:
            return None
        return next((s for s in self.preview if s.id == item_id), None)

    async def drop(
        self,
        index: int,
        persist: Callable[[List[PreviewSlot]], Awaitable[Any]],
    ) -> ReorderResult:
        """
        Commit the move. `persist` receives only the slots whose time or
        position changed; if it raises, the committed order is kept and
        ReorderPersistError carries the attempted result.
        """
        if self.state == DragState.IDLE:
            raise ReorderStateError("No drag in progress")
        self._check_index(index)
        result = self._compute(index)

        if result.changed:
            try:
                await persist(result.changed)
            except Exception as e:
                logger.error(f"Timeline reorder {result.source_index}->{index} not saved: {e}")
                self._reset()
                raise ReorderPersistError(result) from e

        durations = {slot.id: slot.duration for slot in self._committed}
        self._committed = [TimelineSlot(s.id, s.start_time, durations[s.id], s.position) for s in result.slots]
        logger.info(
            f"Timeline reordered {result.source_index}->{index}, "
            f"{len(result.changed)} item(s) re-timed"
        )
        self._reset()
        return result

    def drag_end(self) -> None:
        """Drag released outside a drop target: discard the preview"""
        self._reset()
