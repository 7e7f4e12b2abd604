"""
Material lists API router.

Course-level operations on the latest material list version: read, add,
edit, delete, replace, approve and availability checks.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from backend.api.models import (
    AddMaterialRequest,
    ApproveListRequest,
    ApproveMaterialRequest,
    EditMaterialRequest,
    ReplaceMaterialsRequest,
)
from backend.core.config import settings
from backend.core.strapi import StrapiBookCatalog, StrapiClient
from backend.core.woocommerce import WooCommerceClient

from pupitre.material_lists import (
    ApprovalWorkflow,
    AvailabilityReconciler,
    BulkOperationCoordinator,
    ConcurrentModificationError,
    InvalidMaterialError,
    InvalidQueryError,
    MaterialEditor,
    MaterialListError,
    NothingToApproveError,
    NotFoundError,
    NoVersionError,
    SearchIndexer,
    VersionStore,
    format_console,
    load_config,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Material Lists"])

# Global state for the engine (built on first use)
_listas_state = {
    "config": None,
    "store": None,
    "versions": None,
    "editor": None,
    "approval": None,
    "reconciler": None,
    "bulk": None,
    "search": None,
    "initialized": False,
}


def build_listas(store, catalog=None, internal=None, config=None):
    """Wire engine components around the given collaborators."""
    config = config or load_config()
    versions = VersionStore(store, config)
    _listas_state.update({
        "config": config,
        "store": store,
        "versions": versions,
        "editor": MaterialEditor(versions, catalog, config),
        "approval": ApprovalWorkflow(versions),
        "reconciler": AvailabilityReconciler(versions, catalog, internal, config),
        "bulk": BulkOperationCoordinator(versions),
        "search": SearchIndexer(store, config),
        "initialized": True,
    })


def _init_listas():
    """Initialize engine components against Strapi and WooCommerce if not already done."""
    if _listas_state["initialized"]:
        return

    config = load_config(settings.ENGINE_CONFIG_PATH) if settings.ENGINE_CONFIG_PATH else load_config()
    store = StrapiClient()
    catalog = WooCommerceClient()
    if not catalog.is_configured:
        logger.warning("WooCommerce is not configured; availability checks use the internal catalog only")
        catalog = None
    build_listas(store, catalog, StrapiBookCatalog(store), config)


def get_component(name: str):
    _init_listas()
    return _listas_state[name]


def http_error(e: MaterialListError) -> HTTPException:
    """Translate an engine error into an HTTP error."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConcurrentModificationError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (NoVersionError, NothingToApproveError, InvalidQueryError, InvalidMaterialError)):
        return HTTPException(status_code=400, detail=str(e))
    logger.error(f"Material list operation failed: {e}")
    return HTTPException(status_code=500, detail=str(e))


def _load(curso_id: str):
    return get_component("versions").load_curso(curso_id)


def _outcome_dict(outcome) -> dict:
    return {
        "material_id": outcome.material_id,
        "nombre": outcome.nombre,
        "disponibilidad": outcome.disponibilidad.value if outcome.disponibilidad else None,
        "source": outcome.source,
        "matched_name": outcome.matched_name,
        "skipped": outcome.skipped,
        "error": outcome.error,
    }


@router.get("/api/listas/{curso_id}")
def get_latest_list(curso_id: str):
    """Latest material list version of a course."""
    try:
        curso = _load(curso_id)
        version = get_component("versions").get_latest_version(curso)
    except MaterialListError as e:
        raise http_error(e)
    return {
        "curso_id": curso.key,
        "estado_revision": curso.estado_revision,
        "total_versiones": len(curso.versiones_materiales),
        "version": version.to_dict(),
    }


@router.post("/api/listas/{curso_id}/productos")
def add_material(curso_id: str, request: AddMaterialRequest):
    """Insert a new item into the latest version."""
    try:
        curso = _load(curso_id)
        item = get_component("editor").add_material(curso, request.model_dump(exclude_none=True))
    except MaterialListError as e:
        raise http_error(e)
    return {"success": True, "material": item.to_dict()}


@router.put("/api/listas/{curso_id}/productos/{material_id}")
def edit_material(curso_id: str, material_id: str, request: EditMaterialRequest):
    """
    Partially update one item.

    Catalog-linked fields are pushed to the product catalog first; a failed
    push is reported per product and does not block the local edit.
    """
    patch = request.model_dump(exclude_unset=True)
    patch.update(patch.pop("extra", None) or {})
    try:
        curso = _load(curso_id)
        result = get_component("editor").edit(curso, material_id, patch)
    except MaterialListError as e:
        raise http_error(e)
    return {
        "success": True,
        "material": result.material.to_dict(),
        "catalog_updates": result.catalog_updates,
    }


@router.delete("/api/listas/{curso_id}/productos/{material_id}")
def delete_material(
    curso_id: str,
    material_id: str,
    nombre: Optional[str] = Query(None),
    index: Optional[int] = Query(None),
):
    """Remove one item, by id with name and position fallbacks."""
    try:
        curso = _load(curso_id)
        removed = get_component("editor").delete_material(curso, material_id, nombre=nombre, index=index)
    except MaterialListError as e:
        raise http_error(e)
    return {"success": True, "material": removed.to_dict()}


@router.put("/api/listas/{curso_id}/materiales")
def replace_materials(curso_id: str, request: ReplaceMaterialsRequest):
    """Replace every item of the latest version."""
    try:
        curso = _load(curso_id)
        version = get_component("editor").replace_all_materials(curso, request.materiales)
    except MaterialListError as e:
        raise http_error(e)
    return {"success": True, "version": version.to_dict()}


@router.post("/api/listas/{curso_id}/aprobar-producto")
def approve_material(curso_id: str, request: ApproveMaterialRequest):
    """Approve or unapprove a single item."""
    try:
        curso = _load(curso_id)
        result = get_component("approval").approve_material(
            curso,
            material_id=request.material_id,
            aprobado=request.aprobado,
            nombre=request.nombre,
            index=request.index,
        )
    except MaterialListError as e:
        raise http_error(e)
    return {
        "success": True,
        "approved": result.approved,
        "total": len(result.version.materiales),
        "estado_revision": result.estado_revision,
        "revision_updated": result.revision_updated,
    }


@router.post("/api/listas/aprobar-lista")
def approve_list(request: ApproveListRequest):
    """Approve every item of a course's latest version."""
    try:
        curso = _load(request.curso_id)
        result = get_component("approval").approve_all(curso)
    except MaterialListError as e:
        raise http_error(e)
    return {
        "success": True,
        "approved": result.approved,
        "newly_approved": result.newly_approved,
        "estado_revision": result.estado_revision,
        "revision_updated": result.revision_updated,
    }


@router.post("/api/listas/{curso_id}/verificar-disponibilidad")
def verify_availability(curso_id: str, formato: str = Query("json")):
    """Reconcile every item against the product catalogs. formato=texto returns a console report."""
    budget = settings.RECONCILE_BUDGET_SECONDS or None
    try:
        curso = _load(curso_id)
        result = get_component("reconciler").verify_availability(curso, deadline=budget)
    except MaterialListError as e:
        raise http_error(e)
    if formato == "texto":
        return PlainTextResponse(format_console(result, show_skipped=True))
    return {
        "success": True,
        "persisted": result.persisted,
        "summary": result.summary,
        "items": [_outcome_dict(o) for o in result.outcomes],
        "materiales": [item.to_dict() for item in result.items],
    }
