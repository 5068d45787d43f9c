"""
Comparison Chart Module

Engine behind the multi-ticker comparison chart: aligns per-ticker close
series onto a common percent-change timeline and manages the annotations
users place on it.

Key components:
- align_series / build_alignment: Intersection alignment and normalization
- LinearScale: Data <-> pixel mapping with explicit-failure inverse
- AnnotationModel: Immutable annotation collection
- InteractionController: Click-to-create and edit state machine
- DragController: Pointer-drag repositioning with hit tolerance
- ComparisonSession: Owns one chart's state and wires the pieces together
"""

from .aligner import align_series, build_alignment
from .scale import LinearScale
from .annotation_model import AnnotationModel, AnnotationStore
from .interaction_controller import InteractionController
from .drag_controller import DragController
from .session import ComparisonSession

__all__ = [
    'align_series',
    'build_alignment',
    'LinearScale',
    'AnnotationModel',
    'AnnotationStore',
    'InteractionController',
    'DragController',
    'ComparisonSession',
]
