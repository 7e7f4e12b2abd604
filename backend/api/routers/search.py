"""
Cross-list product search and by-school listing API router.
"""
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import Response

from pupitre.material_lists import MaterialListError
from pupitre.material_lists.report import export_csv, generate_report_filename

from .listas import get_component, http_error

router = APIRouter(tags=["Material Search"])


def _search(q: str):
    try:
        return get_component("search").search_across_lists(q)
    except MaterialListError as e:
        raise http_error(e)


@router.get("/api/listas/buscar-producto")
def search_product(q: str = Query("")):
    """Find a product across the latest list of every course."""
    result = _search(q)
    return {
        "query": result.query,
        "resultados": [m.to_dict() for m in result.matches],
        "totales": result.totals,
        "cursos_revisados": result.scanned,
    }


@router.get("/api/listas/buscar-producto/export")
def export_search(q: str = Query("")):
    """Cross-list search results as a CSV download."""
    result = _search(q)
    return Response(
        content=export_csv(result),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{generate_report_filename(result.query)}"'},
    )


@router.get("/api/listas/por-colegio")
def list_by_school(
    anio: Optional[str] = Query(None),
    colegio_id: Optional[str] = Query(None, alias="colegioId"),
):
    """Schools with their courses that have material lists."""
    listings = get_component("search").list_by_school(anio=anio, colegio_id=colegio_id)
    return {
        "colegios": [listing.to_dict() for listing in listings],
        "total": len(listings),
    }
