"""
Report Generator - Format results for human consumption.

Console output for availability reconciliation, CSV export for
cross-list search results.
"""

import csv
import io
from datetime import datetime
from typing import TextIO

from .availability import ReconcileResult
from .models import Disponibilidad
from .search import SearchResult


def format_console(result: ReconcileResult, show_skipped: bool = False) -> str:
    """
    Format a reconciliation result for console display.

    Groups items by availability, unavailable and missing first.

    Args:
        result: Outcome of verify_availability
        show_skipped: Whether to list duplicates and short names

    Returns:
        Formatted string for console output
    """
    if not result.outcomes:
        return "No materials to report.\n"

    lines = []
    groups = [
        (Disponibilidad.NO_ENCONTRADO, "NOT FOUND", "Not in any catalog"),
        (Disponibilidad.NO_DISPONIBLE, "OUT OF STOCK", "Found, no stock"),
        (Disponibilidad.DISPONIBLE, "AVAILABLE", "Found, in stock"),
    ]
    reconciled = [o for o in result.outcomes if o.skipped is None]

    for disponibilidad, title, subtitle in groups:
        group = [o for o in reconciled if o.disponibilidad == disponibilidad]
        if not group:
            continue
        lines.append(f"\n{title} ({len(group)}) - {subtitle}")
        lines.append("-" * 70)
        lines.append(f"{'ID':<15} {'MATERIAL':<30} {'SOURCE':<10} {'MATCHED AS':<15}")
        lines.append("-" * 70)
        for o in group:
            source = o.source or ("error" if o.error else "")
            matched = (o.matched_name or "")[:15]
            lines.append(f"{str(o.material_id)[:15]:<15} {o.nombre[:30]:<30} {source:<10} {matched}")

    skipped = [o for o in result.outcomes if o.skipped is not None]
    if show_skipped and skipped:
        lines.append(f"\nSKIPPED ({len(skipped)})")
        lines.append("-" * 70)
        for o in skipped:
            lines.append(f"{str(o.material_id)[:15]:<15} {o.nombre[:30]:<30} {o.skipped}")

    summary = result.summary
    lines.append("\n" + "=" * 70)
    lines.append("SUMMARY")
    lines.append(f"  Total items:     {summary['total']}")
    lines.append(f"  Unique checked:  {summary['unique']}")
    lines.append(f"  Available:       {summary['disponible']}")
    lines.append(f"  Out of stock:    {summary['no_disponible']}")
    lines.append(f"  Not found:       {summary['no_encontrado']}")
    lines.append(f"  Duplicates:      {summary['duplicates_skipped']}")
    if summary.get("partial"):
        lines.append("  PARTIAL: stopped before every item was checked")
    lines.append("=" * 70)

    return "\n".join(lines)


def export_csv(result: SearchResult, output: TextIO | None = None) -> str:
    """
    Export cross-list search matches to CSV.

    Args:
        result: Outcome of search_across_lists
        output: Optional file handle to write to

    Returns:
        CSV string (also writes to output if provided)
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    writer.writerow([
        "colegio",
        "rbd",
        "comuna",
        "curso",
        "nivel",
        "anio",
        "matricula",
        "material",
        "tipo",
        "isbn",
        "marca",
        "asignatura",
        "cantidad",
        "total_productos",
    ])

    for match in result.matches:
        colegio, curso, item = match.colegio, match.curso, match.material
        writer.writerow([
            colegio.nombre,
            colegio.rbd or "",
            colegio.comuna or "",
            curso.nombre_curso,
            curso.nivel or "",
            str(curso.anio) if curso.anio is not None else "",
            str(curso.matricula),
            item.nombre,
            item.tipo.value,
            item.isbn or "",
            item.marca or "",
            item.asignatura or "",
            str(item.cantidad),
            str(match.total_productos),
        ])

    csv_content = buffer.getvalue()

    if output:
        output.write(csv_content)

    return csv_content


def generate_report_filename(query: str | None = None, extension: str = "csv") -> str:
    """
    Generate a filename for an export.

    Returns:
        Filename like "busqueda_cuaderno_universitario_2026-03-02.csv"
    """
    date_str = datetime.now().strftime("%Y-%m-%d")
    if query:
        slug = "_".join(query.lower().split())[:40]
        return f"busqueda_{slug}_{date_str}.{extension}"
    return f"busqueda_{date_str}.{extension}"
