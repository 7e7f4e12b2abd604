"""
Bulk course update API router.
"""
from fastapi import APIRouter, Depends, HTTPException

from backend.api.models import BulkUpdateRequest
from backend.api.security import require_api_key

from pupitre.material_lists import summarize_bulk

from .listas import get_component

router = APIRouter(tags=["Material Lists Bulk"])


@router.patch("/api/listas/bulk-update", dependencies=[Depends(require_api_key)])
def bulk_update(request: BulkUpdateRequest):
    """
    Apply the same course-level patch to many courses.

    Per-course failures are reported in the results and never abort
    the rest of the batch.
    """
    if not request.ids:
        raise HTTPException(status_code=400, detail="No course ids given")

    patch = request.model_dump(exclude_unset=True)
    patch.pop("ids", None)
    results = get_component("bulk").apply_bulk(request.ids, patch)
    return {
        "success": all(r.success for r in results),
        "results": [r.to_dict() for r in results],
        "summary": summarize_bulk(results),
    }
