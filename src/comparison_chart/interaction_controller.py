"""
Interaction Controller

State machine behind click-to-create annotation workflows and the
edit/delete modal.

States:
- IDLE: no annotation mode active
- MODE_SELECTED: a mode is armed, waiting for a chart click
- AWAITING_SECOND_POINT: percentage mode, first point captured
- PENDING_SAVE: draft built, waiting for the text-entry modal to save/cancel
- EDITING: modal open on an existing text marker or horizontal level

Percentage measurements skip the modal: the second click commits them.
Escape or a mode switch discards any in-flight draft unconditionally.
"""

import dataclasses
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .annotation_model import AnnotationStore
from .config import AnnotationMode, ChartConfig, InteractionState
from .errors import InvalidInputError, InvalidTransitionError
from .models import Annotation, HorizontalLevel, PercentageMeasurement, TextMarker
from .scale import ChartLayout
from .types import DataPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartClick:
    """A click on the plot area with the nearest data point, if any."""
    x: float
    y: float
    data_point: Optional[DataPoint] = None


def parse_level_value(text: str) -> float:
    """
    Parse a horizontal-level value typed into the edit modal.

    Raises:
        InvalidInputError: If the text is not a finite number
    """
    try:
        value = float(text.strip())
    except (AttributeError, ValueError):
        raise InvalidInputError(f"Level value must be numeric, got {text!r}")
    if not math.isfinite(value):
        raise InvalidInputError(f"Level value must be finite, got {text!r}")
    return value


class InteractionController:
    """Annotation-mode state machine operating on a shared AnnotationStore."""

    def __init__(self, store: AnnotationStore, config: Optional[ChartConfig] = None):
        """
        Initialize controller.

        Args:
            store: Session-owned annotation store
            config: Chart configuration (uses defaults if None)
        """
        self._store = store
        self.config = config or ChartConfig.default()
        self._layout = ChartLayout()

        self.state = InteractionState.IDLE
        self.mode: Optional[AnnotationMode] = None
        self.first_point: Optional[DataPoint] = None
        self.draft: Optional[Annotation] = None
        self.editing: Optional[Annotation] = None

    def set_layout(self, layout: ChartLayout) -> None:
        """Receive the scales computed by the latest layout pass."""
        self._layout = layout

    def _transition(self, state: InteractionState) -> None:
        if state != self.state:
            logger.debug(f"Interaction {self.state.value} -> {state.value}")
        self.state = state

    def _discard(self) -> None:
        self.mode = None
        self.first_point = None
        self.draft = None
        self.editing = None

    # ------------------------------------------------------------------
    # Mode selection and cancellation
    # ------------------------------------------------------------------

    def select_mode(self, mode: Optional[AnnotationMode]) -> None:
        """Arm an annotation mode. Any in-flight draft is discarded."""
        self._discard()
        if mode is None:
            self._transition(InteractionState.IDLE)
            return
        self.mode = mode
        self._transition(InteractionState.MODE_SELECTED)

    def reset(self) -> None:
        """Return to IDLE, discarding drafts and pending first points."""
        self._discard()
        self._transition(InteractionState.IDLE)

    def escape(self) -> None:
        self.reset()

    # ------------------------------------------------------------------
    # Click-to-create
    # ------------------------------------------------------------------

    def click(self, click: ChartClick) -> Optional[Annotation]:
        """
        Handle a chart click.

        Returns:
            The new draft (PENDING_SAVE), the committed measurement (second
            percentage click), or None when the click was not consumed.
        """
        if self.state == InteractionState.MODE_SELECTED:
            if self.mode == AnnotationMode.HORIZONTAL:
                return self._start_horizontal_draft(click)
            if click.data_point is None:
                return None
            if self.mode == AnnotationMode.TEXT:
                point = click.data_point
                self.draft = TextMarker(
                    annotation_id="draft",
                    timestamp=point.timestamp,
                    value=point.value,
                    time_label=point.time_label,
                )
                self._transition(InteractionState.PENDING_SAVE)
                return self.draft
            if self.mode == AnnotationMode.PERCENTAGE:
                self.first_point = click.data_point
                self._transition(InteractionState.AWAITING_SECOND_POINT)
                return None

        if self.state == InteractionState.AWAITING_SECOND_POINT:
            if click.data_point is None:
                return None
            return self._complete_measurement(click.data_point)

        return None

    def _start_horizontal_draft(self, click: ChartClick) -> HorizontalLevel:
        timeline = self._layout.timeline
        if timeline:
            anchor = timeline[len(timeline) // 2]
            timestamp, time_label = anchor.timestamp, anchor.label
        else:
            timestamp, time_label = int(time.time()), ""

        self.draft = HorizontalLevel(
            annotation_id="draft",
            timestamp=timestamp,
            value=self._level_value_at(click.y),
            time_label=time_label,
        )
        self._transition(InteractionState.PENDING_SAVE)
        return self.draft

    def _level_value_at(self, y: float) -> float:
        """Invert a y pixel through the value scale, clamped into its padded domain."""
        scale = self._layout.value_scale
        if scale is None:
            return 0.0
        value = scale.to_domain(y)
        if value is None:
            # Degenerate domain: every pixel maps to the single domain value
            return scale.domain_min
        return scale.clamp_domain(value)

    def _complete_measurement(self, end: DataPoint) -> PercentageMeasurement:
        start = self.first_point
        measurement = PercentageMeasurement.create(
            start_timestamp=start.timestamp,
            start_value=start.value,
            end_timestamp=end.timestamp,
            end_value=end.value,
            start_time_label=start.time_label,
            end_time_label=end.time_label,
        )
        self._store.create(measurement)
        logger.debug(f"Measurement {measurement.annotation_id}: {measurement.percentage_delta:+.2f}pp")
        self.reset()
        return measurement

    # ------------------------------------------------------------------
    # Modal: save / cancel / delete
    # ------------------------------------------------------------------

    def _modal_target(self) -> Optional[Annotation]:
        if self.state == InteractionState.PENDING_SAVE:
            return self.draft
        if self.state == InteractionState.EDITING:
            return self.editing
        return None

    def can_save(self, text: str = "", value_text: Optional[str] = None) -> bool:
        """Whether the modal's save action is enabled for this input."""
        target = self._modal_target()
        if target is None:
            return False
        if isinstance(target, HorizontalLevel) and value_text is not None:
            try:
                parse_level_value(value_text)
            except InvalidInputError:
                return False
        return True

    def save(self, text: str = "", value_text: Optional[str] = None) -> Annotation:
        """
        Save the modal.

        Args:
            text: User label for the annotation
            value_text: Optional typed value for a horizontal level

        Returns:
            The created or updated annotation

        Raises:
            InvalidTransitionError: If no modal is open
            InvalidInputError: If value_text is not a finite number; the
                state is left unchanged and nothing is created
        """
        target = self._modal_target()
        if target is None:
            raise InvalidTransitionError(f"Cannot save in state {self.state.value}")

        patch: Dict[str, Any] = {'label': (text or "").strip()}
        if isinstance(target, HorizontalLevel) and value_text is not None and value_text.strip():
            patch['value'] = parse_level_value(value_text)

        if self.state == InteractionState.PENDING_SAVE:
            finished = type(target).create(
                timestamp=target.timestamp,
                value=patch.get('value', target.value),
                label=patch['label'],
                time_label=target.time_label,
            )
            self._store.create(finished)
            logger.info(f"Created {finished.kind} annotation {finished.annotation_id}")
        else:
            finished = self._store.update(target.annotation_id, patch)
            if finished is None:
                logger.debug(f"Edited annotation {target.annotation_id} no longer exists")
                finished = dataclasses.replace(target, **patch)

        self.reset()
        return finished

    def cancel(self) -> None:
        """Close the modal without changes."""
        if self.state in (InteractionState.PENDING_SAVE, InteractionState.EDITING):
            self.reset()

    def delete(self) -> Optional[str]:
        """
        Delete the annotation open in the edit modal.

        Raises:
            InvalidTransitionError: If not editing
        """
        if self.state != InteractionState.EDITING:
            raise InvalidTransitionError(f"Cannot delete in state {self.state.value}")
        annotation_id = self.editing.annotation_id
        self._store.delete(annotation_id)
        self.reset()
        return annotation_id

    def double_click(self, annotation_id: str) -> Optional[Annotation]:
        """
        Handle a double-click on an existing annotation.

        Text markers and horizontal levels open the edit modal. Percentage
        measurements are deleted immediately, without confirmation.
        """
        annotation = self._store.model.get(annotation_id)
        if annotation is None:
            return None

        if isinstance(annotation, PercentageMeasurement):
            self._store.delete(annotation_id)
            logger.info(f"Deleted measurement {annotation_id}")
            return annotation

        self._discard()
        self.editing = annotation
        self._transition(InteractionState.EDITING)
        return annotation

    def clear_all(self, confirmed: bool) -> bool:
        """Delete every annotation once the user has confirmed."""
        if not confirmed:
            return False
        self._store.clear()
        self.reset()
        return True

