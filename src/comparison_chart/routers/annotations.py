"""
Annotations router for the Comparison Chart.

Provides endpoints for the annotation collection:
- GET /api/annotations - List annotations in creation order
- DELETE /api/annotations/{annotation_id} - Delete an annotation
- POST /api/annotations/clear - Delete all annotations (requires confirmation)

Annotations are created through the interaction endpoints.
"""

from typing import List

from fastapi import APIRouter, HTTPException

from ..schemas import AnnotationResponse, ClearRequest, ClearResponse

router = APIRouter(prefix="/api/annotations", tags=["annotations"])


@router.get("", response_model=List[AnnotationResponse])
async def list_annotations():
    """List all annotations."""
    from ..api import get_state, annotation_response

    s = get_state()
    return [annotation_response(a) for a in s.session.current_annotations()]


@router.post("/clear", response_model=ClearResponse)
async def clear_annotations(request: ClearRequest):
    """Delete every annotation once confirmed."""
    from ..api import get_state

    s = get_state()
    count = len(s.session.store.model)
    cleared = s.session.on_clear_all(request.confirmed)
    return ClearResponse(cleared=cleared, removed=count if cleared else 0)


@router.delete("/{annotation_id}")
async def delete_annotation(annotation_id: str):
    """Delete an annotation by ID."""
    from ..api import get_state

    s = get_state()
    if not s.session.delete_annotation(annotation_id):
        raise HTTPException(status_code=404, detail="Annotation not found")
    return {"status": "ok", "annotation_id": annotation_id}
