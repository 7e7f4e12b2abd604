"""
Search Indexer - Free-text product search across every course's latest list.

Courses are read with a single bulk query capped at
search.page_size_ceiling (1000 by default). Courses past the ceiling are
not searched; this is a scale limit, not paginated around.

Only the latest version of each course is scanned. An item matches when
the normalized query is a substring of its nombre, isbn, marca,
asignatura or descripcion, or, for multi-word queries, when every word
appears somewhere in those fields.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .adapters import DocumentStore
from .config import Config
from .errors import InvalidQueryError
from .mapping import curso_from_entity
from .matching import fields_match, normalize_text, tokenize
from .models import Colegio, Curso, MaterialItem
from .versions import CURSO_POPULATE, CURSOS, find_latest_version

logger = logging.getLogger(__name__)


@dataclass
class SearchMatch:
    """One matching item with its course and school."""
    colegio: Colegio
    curso: Curso
    material: MaterialItem
    total_productos: int

    def to_dict(self) -> dict:
        return {
            "colegio": {
                "id": self.colegio.id,
                "documentId": self.colegio.document_id,
                "nombre": self.colegio.nombre,
                "rbd": self.colegio.rbd,
                "comuna": self.colegio.comuna,
            },
            "curso": {
                "id": self.curso.id,
                "documentId": self.curso.document_id,
                "nombre_curso": self.curso.nombre_curso,
                "nivel": self.curso.nivel,
                "grado": self.curso.grado,
                "anio": self.curso.anio,
                "matricula": self.curso.matricula,
            },
            "material": self.material.to_dict(),
            "total_productos": self.total_productos,
        }


@dataclass
class SearchResult:
    query: str
    matches: list[SearchMatch] = field(default_factory=list)
    total_colegios: int = 0
    total_cursos: int = 0
    total_estudiantes: int = 0
    total_productos: int = 0
    scanned: int = 0

    @property
    def totals(self) -> dict:
        return {
            "colegios": self.total_colegios,
            "cursos": self.total_cursos,
            "estudiantes": self.total_estudiantes,
            "productos": self.total_productos,
        }


def item_matches(item: MaterialItem, normalized_query: str, tokens: list[str]) -> bool:
    return fields_match(
        [item.nombre, item.isbn, item.marca, item.asignatura, item.descripcion],
        normalized_query,
        tokens,
    )


def courses_by_school(cursos: list[Curso]) -> dict[str, list[Curso]]:
    """
    Group courses by school key.

    Courses without a school, or without any list content, are left out.
    """
    grouped: dict[str, list[Curso]] = {}
    for curso in cursos:
        if curso.colegio is None or not curso.has_list_content():
            continue
        grouped.setdefault(curso.colegio.key, []).append(curso)
    return grouped


@dataclass
class SchoolListing:
    """A school with its courses that have list content."""
    colegio: Colegio
    cursos: list[Curso] = field(default_factory=list)

    @property
    def total_matriculados(self) -> int:
        return sum(c.matricula for c in self.cursos)

    @property
    def cantidad_listas(self) -> int:
        return sum(len(c.versiones_materiales) for c in self.cursos)

    def to_dict(self) -> dict:
        cursos = []
        for curso in self.cursos:
            latest = find_latest_version(curso)
            cursos.append({
                "id": curso.id,
                "documentId": curso.document_id,
                "nombre_curso": curso.nombre_curso,
                "nivel": curso.nivel,
                "grado": curso.grado,
                "anio": curso.anio,
                "matricula": curso.matricula,
                "estado_revision": curso.estado_revision,
                "cantidad_versiones": len(curso.versiones_materiales),
                "cantidad_productos": len(latest.materiales) if latest else 0,
                "pdf_url": latest.pdf_url if latest else None,
            })
        return {
            "colegio": {
                "id": self.colegio.id,
                "documentId": self.colegio.document_id,
                "nombre": self.colegio.nombre,
                "rbd": self.colegio.rbd,
                "comuna": self.colegio.comuna,
            },
            "cursos": cursos,
            "total_matriculados": self.total_matriculados,
            "cantidad_cursos": len(self.cursos),
            "cantidad_listas": self.cantidad_listas,
        }


class SearchIndexer:
    """
    Read-only search over all courses.

    Usage:
        indexer = SearchIndexer(store)
        result = indexer.search_across_lists("cuaderno universitario")
    """

    def __init__(self, store: DocumentStore, config: Optional[Config] = None):
        self.store = store
        self.config = config or Config()

    def load_cursos(self) -> list[Curso]:
        """All courses, in one read capped at the page size ceiling."""
        ceiling = self.config.search.page_size_ceiling
        entities = self.store.find(CURSOS, None, page=1, page_size=ceiling, populate=CURSO_POPULATE)
        if len(entities) >= ceiling:
            logger.warning(f"Course read hit the page size ceiling ({ceiling}); later courses are not searched")
        return [curso_from_entity(e) for e in entities]

    def search_across_lists(self, query: Any) -> SearchResult:
        """
        Find items matching `query` in every course's latest version.

        Raises:
            InvalidQueryError: If the query is shorter than the minimum length
        """
        text = str(query or "").strip()
        min_length = self.config.search.min_query_length
        if len(text) < min_length:
            raise InvalidQueryError(text, min_length)

        normalized = normalize_text(text)
        tokens = tokenize(normalized)
        cursos = self.load_cursos()

        result = SearchResult(query=text, scanned=len(cursos))
        colegios: set[str] = set()
        matched_cursos: dict[str, Curso] = {}

        for curso in cursos:
            if curso.colegio is None:
                continue
            latest = find_latest_version(curso)
            if latest is None:
                continue
            for item in latest.materiales:
                if not item_matches(item, normalized, tokens):
                    continue
                total = curso.matricula * (item.cantidad or 1)
                result.matches.append(SearchMatch(curso.colegio, curso, item, total))
                result.total_productos += total
                colegios.add(curso.colegio.key)
                matched_cursos.setdefault(curso.key, curso)

        result.total_colegios = len(colegios)
        result.total_cursos = len(matched_cursos)
        result.total_estudiantes = sum(c.matricula for c in matched_cursos.values())
        logger.info(
            f"Search '{text}': {len(result.matches)} match(es) in "
            f"{result.total_cursos} course(s) of {result.total_colegios} school(s)"
        )
        return result

    def list_by_school(self, anio: Any = None, colegio_id: Any = None) -> list[SchoolListing]:
        """
        Courses with list content grouped by school.

        Args:
            anio: Only courses of this year
            colegio_id: Only this school, by documentId or numeric id
        """
        cursos = self.load_cursos()
        if anio not in (None, ""):
            cursos = [c for c in cursos if str(c.anio) == str(anio).strip()]
        if colegio_id not in (None, ""):
            wanted = str(colegio_id).strip()
            cursos = [
                c for c in cursos
                if c.colegio is not None and wanted in (str(c.colegio.document_id), str(c.colegio.id))
            ]

        listings = [
            SchoolListing(colegio=group[0].colegio, cursos=group)
            for group in courses_by_school(cursos).values()
        ]
        logger.info(f"Listed {len(listings)} school(s) with material lists")
        return listings
