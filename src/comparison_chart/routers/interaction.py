"""
Interaction router for the Comparison Chart.

Forwards UI events to the session's interaction and drag controllers:
- GET /api/interaction/state - Current interaction and drag state
- POST /api/interaction/mode - Select annotation mode
- POST /api/interaction/layout - Report plot area, returns scales
- POST /api/interaction/click - Chart click
- POST /api/interaction/pointer/{down,move,up,leave} - Drag gestures
- POST /api/interaction/double-click - Edit (or delete a measurement)
- POST /api/interaction/draft/{save,cancel,delete} - Modal actions
- POST /api/interaction/escape - Discard any in-flight creation
"""

from typing import Optional

from fastapi import APIRouter, HTTPException

from ..config import AnnotationMode
from ..errors import InvalidInputError, InvalidTransitionError
from ..models import Annotation
from ..scale import LinearScale, PlotArea
from ..schemas import (
    ClickRequest,
    DataPointResponse,
    DoubleClickRequest,
    DraftSaveRequest,
    InteractionStateResponse,
    LayoutRequest,
    LayoutResponse,
    ModeRequest,
    PointerRequest,
    ScaleResponse,
)

router = APIRouter(prefix="/api/interaction", tags=["interaction"])


def _state_response(annotation: Optional[Annotation] = None) -> InteractionStateResponse:
    from ..api import get_state, annotation_response

    session = get_state().session
    interaction = session.interaction
    drag = session.drag.session
    first = interaction.first_point

    return InteractionStateResponse(
        state=interaction.state.value,
        mode=interaction.mode.value if interaction.mode else None,
        first_point=DataPointResponse(
            index=first.index,
            timestamp=first.timestamp,
            time_label=first.time_label,
            value=first.value,
        ) if first else None,
        draft=annotation_response(interaction.draft) if interaction.draft else None,
        editing=annotation_response(interaction.editing) if interaction.editing else None,
        dragging=drag is not None,
        drag_target=drag.target_id if drag else None,
        drag_axis=drag.axis.value if drag else None,
        annotation=annotation_response(annotation) if annotation else None,
    )


def _scale_response(scale: Optional[LinearScale]) -> Optional[ScaleResponse]:
    if scale is None:
        return None
    return ScaleResponse(
        domain_min=scale.domain_min,
        domain_max=scale.domain_max,
        range_min=scale.range_min,
        range_max=scale.range_max,
    )


@router.get("/state", response_model=InteractionStateResponse)
async def get_interaction_state():
    """Current interaction and drag state."""
    return _state_response()


@router.post("/mode", response_model=InteractionStateResponse)
async def select_mode(request: ModeRequest):
    """Select an annotation mode; null returns to idle."""
    from ..api import get_state

    s = get_state()
    try:
        mode = AnnotationMode(request.mode) if request.mode else None
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown mode {request.mode!r}")
    s.session.on_mode_select(mode)
    return _state_response()


@router.post("/layout", response_model=LayoutResponse)
async def apply_layout(request: LayoutRequest):
    """Rebuild scales for the rendered plot area."""
    from ..api import get_state

    s = get_state()
    layout = s.session.apply_layout(PlotArea(
        left=request.left,
        right=request.right,
        top=request.top,
        bottom=request.bottom,
    ))
    return LayoutResponse(
        value_scale=_scale_response(layout.value_scale),
        time_scale=_scale_response(layout.time_scale),
        timeline_length=len(layout.timeline),
    )


@router.post("/click", response_model=InteractionStateResponse)
async def chart_click(request: ClickRequest):
    """Chart click. Returns the draft or completed measurement, if any."""
    from ..api import get_state

    s = get_state()
    data_point = s.session.data_point_at(request.index) if request.index is not None else None
    annotation = s.session.on_chart_click(request.x, request.y, data_point)
    return _state_response(annotation)


@router.post("/pointer/down", response_model=InteractionStateResponse)
async def pointer_down(request: PointerRequest):
    """Pointer down; starts a drag when on an annotation."""
    from ..api import get_state

    get_state().session.on_pointer_down(request.x, request.y)
    return _state_response()


@router.post("/pointer/move", response_model=InteractionStateResponse)
async def pointer_move(request: PointerRequest):
    """Pointer move; moves the drag target."""
    from ..api import get_state

    annotation = get_state().session.on_pointer_move(request.x, request.y)
    return _state_response(annotation)


@router.post("/pointer/up", response_model=InteractionStateResponse)
async def pointer_up():
    """Pointer up; ends a drag."""
    from ..api import get_state

    get_state().session.on_pointer_up()
    return _state_response()


@router.post("/pointer/leave", response_model=InteractionStateResponse)
async def pointer_leave():
    """Pointer left the document; ends a drag."""
    from ..api import get_state

    get_state().session.on_pointer_leave()
    return _state_response()


@router.post("/double-click", response_model=InteractionStateResponse)
async def double_click(request: DoubleClickRequest):
    """Open the edit modal, or delete a percentage measurement."""
    from ..api import get_state

    annotation = get_state().session.on_annotation_double_click(request.annotation_id)
    return _state_response(annotation)


@router.post("/draft/save", response_model=InteractionStateResponse)
async def save_draft(request: DraftSaveRequest):
    """Save the modal: creates the draft or updates the edited annotation."""
    from ..api import get_state

    s = get_state()
    try:
        annotation = s.session.on_save_draft(request.text, request.value_text)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _state_response(annotation)


@router.post("/draft/cancel", response_model=InteractionStateResponse)
async def cancel_draft():
    """Close the modal without changes."""
    from ..api import get_state

    get_state().session.on_cancel_draft()
    return _state_response()


@router.post("/draft/delete", response_model=InteractionStateResponse)
async def delete_from_modal():
    """Delete the annotation open in the edit modal."""
    from ..api import get_state

    try:
        get_state().session.on_delete_annotation()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _state_response()


@router.post("/escape", response_model=InteractionStateResponse)
async def escape():
    """Discard any draft or pending first point."""
    from ..api import get_state

    get_state().session.on_escape()
    return _state_response()
