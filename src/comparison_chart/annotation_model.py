"""
Annotation Model

Ordered, immutable collection of annotations with pure CRUD operations.
Every operation returns a new collection; an update or delete against an
unknown id returns the input collection unchanged, so a stale drag callback
or a race with a delete is a no-op rather than an error.

AnnotationStore is the single mutable holder a session owns and passes by
reference to its controllers.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .models import Annotation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotationModel:
    """Immutable ordered annotation collection."""
    annotations: Tuple[Annotation, ...] = ()

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self.annotations)

    def __len__(self) -> int:
        return len(self.annotations)

    def __contains__(self, annotation_id: object) -> bool:
        return any(a.annotation_id == annotation_id for a in self.annotations)

    def ids(self) -> List[str]:
        return [a.annotation_id for a in self.annotations]

    def get(self, annotation_id: str) -> Optional[Annotation]:
        """Find an annotation by ID."""
        for a in self.annotations:
            if a.annotation_id == annotation_id:
                return a
        return None

    def create(self, annotation: Annotation) -> 'AnnotationModel':
        """
        Append an annotation.

        Raises:
            ValueError: If the annotation ID is already in the collection
        """
        if annotation.annotation_id in self:
            raise ValueError(f"Duplicate annotation id: {annotation.annotation_id}")
        return AnnotationModel(self.annotations + (annotation,))

    def update(self, annotation_id: str, patch: Dict[str, Any]) -> 'AnnotationModel':
        """
        Replace fields on one annotation.

        Unknown IDs leave the collection unchanged. Unknown field names raise
        TypeError (a programming error, not a referential one).
        """
        for i, a in enumerate(self.annotations):
            if a.annotation_id == annotation_id:
                updated = dataclasses.replace(a, **patch)
                return AnnotationModel(
                    self.annotations[:i] + (updated,) + self.annotations[i + 1:]
                )
        logger.debug(f"Update ignored for unknown annotation {annotation_id}")
        return self

    def delete(self, annotation_id: str) -> 'AnnotationModel':
        """Remove one annotation, preserving the order of the rest."""
        remaining = tuple(a for a in self.annotations if a.annotation_id != annotation_id)
        if len(remaining) == len(self.annotations):
            logger.debug(f"Delete ignored for unknown annotation {annotation_id}")
            return self
        return AnnotationModel(remaining)

    def clear(self) -> 'AnnotationModel':
        """Return an empty collection."""
        return AnnotationModel()

    def to_list(self) -> List[Annotation]:
        return list(self.annotations)


class AnnotationStore:
    """
    Mutable holder of the current AnnotationModel.

    Controllers apply model operations through the store; listeners are
    notified after every change (used to schedule persistence).
    """

    def __init__(self, model: Optional[AnnotationModel] = None):
        self._model = model or AnnotationModel()
        self._listeners: List[Callable[[AnnotationModel], None]] = []

    @property
    def model(self) -> AnnotationModel:
        return self._model

    def add_listener(self, listener: Callable[[AnnotationModel], None]) -> None:
        self._listeners.append(listener)

    def replace(self, model: AnnotationModel) -> None:
        """Swap in a new model and notify listeners if it changed."""
        if model is self._model:
            return
        self._model = model
        for listener in self._listeners:
            listener(model)

    def create(self, annotation: Annotation) -> Annotation:
        self.replace(self._model.create(annotation))
        return annotation

    def update(self, annotation_id: str, patch: Dict[str, Any]) -> Optional[Annotation]:
        """Apply a patch; returns the updated annotation, or None if unknown."""
        self.replace(self._model.update(annotation_id, patch))
        return self._model.get(annotation_id)

    def delete(self, annotation_id: str) -> bool:
        """Delete by ID; returns True if something was removed."""
        before = self._model
        self.replace(self._model.delete(annotation_id))
        return self._model is not before

    def clear(self) -> None:
        if len(self._model):
            self.replace(self._model.clear())
