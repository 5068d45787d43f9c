"""
Drag Controller

Turns pointer-drag gestures into annotation mutations.

- Horizontal levels move vertically: the pointer y is inverted through the
  live value scale on every move.
- Text markers move horizontally and snap to timeline entries: the pixel
  delta since pointer-down becomes a whole data-index delta.

Hit testing on pointer-down qualifies candidates in data units (value span
for levels, timeline indices for markers) and breaks ties in pixels, with
horizontal levels taking priority unless a marker is clearly closer.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .annotation_model import AnnotationStore
from .config import ChartConfig, DragAxis, DragState
from .models import Annotation, HorizontalLevel, TextMarker
from .scale import ChartLayout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragSession:
    """Live drag between pointer-down and pointer-up/leave."""
    target_id: str
    axis: DragAxis
    origin_pixel: float
    origin_value: float     # Level value (VALUE axis) or timeline index (TIME axis)


@dataclass(frozen=True)
class DragCandidate:
    """An annotation within tolerance of a pointer-down."""
    annotation_id: str
    axis: DragAxis
    pixel_distance: float
    origin_value: float


class DragController:
    """Drag state machine: IDLE <-> DRAGGING."""

    def __init__(self, store: AnnotationStore, config: Optional[ChartConfig] = None):
        self._store = store
        self.config = config or ChartConfig.default()
        self._layout = ChartLayout()
        self.session: Optional[DragSession] = None

    @property
    def state(self) -> DragState:
        return DragState.DRAGGING if self.session else DragState.IDLE

    @property
    def is_dragging(self) -> bool:
        return self.session is not None

    def set_layout(self, layout: ChartLayout) -> None:
        self._layout = layout

    # ------------------------------------------------------------------
    # Hit testing
    # ------------------------------------------------------------------

    def value_tolerance(self) -> Optional[float]:
        """Qualifying distance for horizontal levels, in value units."""
        scale = self._layout.value_scale
        if scale is None or not scale.is_invertible():
            return None
        return abs(scale.domain_span) * self.config.horizontal_tolerance_fraction

    def index_tolerance(self) -> float:
        """Qualifying distance for text markers, in timeline indices."""
        return max(
            float(self.config.min_vertical_tolerance_points),
            len(self._layout.timeline) * self.config.vertical_tolerance_fraction,
        )

    def _horizontal_candidates(self, y: float) -> List[DragCandidate]:
        tolerance = self.value_tolerance()
        if tolerance is None:
            return []
        scale = self._layout.value_scale
        pointer_value = scale.to_domain(y)
        if pointer_value is None:
            return []

        candidates = []
        for annotation in self._store.model:
            if not isinstance(annotation, HorizontalLevel):
                continue
            if abs(pointer_value - annotation.value) <= tolerance:
                candidates.append(DragCandidate(
                    annotation_id=annotation.annotation_id,
                    axis=DragAxis.VALUE,
                    pixel_distance=abs(y - scale.to_range(annotation.value)),
                    origin_value=annotation.value,
                ))
        return candidates

    def _vertical_candidates(self, x: float) -> List[DragCandidate]:
        scale = self._layout.time_scale
        if scale is None:
            return []
        pointer_index = scale.to_domain(x)
        if pointer_index is None:
            return []
        tolerance = self.index_tolerance()

        candidates = []
        for annotation in self._store.model:
            if not isinstance(annotation, TextMarker):
                continue
            index = self._layout.index_of(annotation.timestamp)
            if index is None:
                continue
            if abs(pointer_index - index) <= tolerance:
                candidates.append(DragCandidate(
                    annotation_id=annotation.annotation_id,
                    axis=DragAxis.TIME,
                    pixel_distance=abs(x - scale.to_range(index)),
                    origin_value=float(index),
                ))
        return candidates

    def hit_test(self, x: float, y: float) -> Optional[DragCandidate]:
        """
        Pick the annotation a pointer-down at (x, y) should grab.

        Returns:
            The winning candidate, or None if nothing is within tolerance.
        """
        horizontal = _closest(self._horizontal_candidates(y))
        vertical = _closest(self._vertical_candidates(x))

        if horizontal and vertical:
            ratio = self.config.vertical_priority_ratio
            if horizontal.pixel_distance > 0 and vertical.pixel_distance * ratio <= horizontal.pixel_distance:
                return vertical
            return horizontal
        return horizontal or vertical

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> Optional[DragSession]:
        """
        Start a drag if the pointer is on an annotation.

        Returns None (state stays IDLE) when nothing qualifies; the click
        should then fall through to the interaction controller.
        """
        candidate = self.hit_test(x, y)
        if candidate is None:
            return None

        origin_pixel = y if candidate.axis == DragAxis.VALUE else x
        self.session = DragSession(
            target_id=candidate.annotation_id,
            axis=candidate.axis,
            origin_pixel=origin_pixel,
            origin_value=candidate.origin_value,
        )
        logger.debug(f"Drag start {candidate.annotation_id} along {candidate.axis.value}")
        return self.session

    def pointer_move(self, x: float, y: float) -> Optional[Annotation]:
        """
        Move the drag target.

        Ticks where the scale cannot be inverted are skipped. A target that
        was deleted mid-drag turns every tick into a no-op.
        """
        if self.session is None:
            return None
        if self.session.axis == DragAxis.VALUE:
            patch = self._value_patch(y)
        else:
            patch = self._time_patch(x)
        if patch is None:
            return None
        return self._store.update(self.session.target_id, patch)

    def _value_patch(self, y: float) -> Optional[dict]:
        scale = self._layout.value_scale
        if scale is None:
            return None
        value = scale.to_domain(y)
        if value is None:
            return None
        return {'value': value}

    def _time_patch(self, x: float) -> Optional[dict]:
        scale = self._layout.time_scale
        timeline = self._layout.timeline
        if scale is None or not timeline or not scale.is_invertible():
            return None
        pixels_per_index = scale.range_span / scale.domain_span
        delta = round((x - self.session.origin_pixel) / pixels_per_index)
        index = _clamp_index(int(self.session.origin_value) + delta, len(timeline))
        point = timeline[index]
        return {'timestamp': point.timestamp, 'time_label': point.label}

    def pointer_up(self) -> bool:
        """End the drag. Returns True if a drag was in progress."""
        if self.session is None:
            return False
        logger.debug(f"Drag end {self.session.target_id}")
        self.session = None
        return True

    def pointer_leave(self) -> bool:
        return self.pointer_up()


def _closest(candidates: List[DragCandidate]) -> Optional[DragCandidate]:
    """Smallest pixel distance; the first one wins ties."""
    best = None
    for candidate in candidates:
        if best is None or candidate.pixel_distance < best.pixel_distance:
            best = candidate
    return best


def _clamp_index(index: int, length: int) -> int:
    return max(0, min(length - 1, index))
