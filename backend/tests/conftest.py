"""
Test configuration and fixtures for the material lists API test suite.

Provides:
- In-memory document store and fake catalogs wired into the routers
- FastAPI TestClient fixture
- Factory functions for creating test data
"""
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from pupitre.material_lists import (
    InMemoryDocumentStore,
    InMemoryInternalCatalog,
    InMemoryProductCatalog,
    default_config,
)


# ---------------------------------------------------------------------------
# Factory functions
# ---------------------------------------------------------------------------

COLEGIO = {"id": 10, "documentId": "col-10", "colegio_nombre": "Liceo Los Andes", "rbd": "9876"}


def create_item(item_id: str, nombre: str, **fields) -> dict:
    """Raw material item as stored inside a version."""
    item = {"id": item_id, "nombre": nombre, "tipo": "util", "cantidad": 1, "obligatorio": True}
    item.update(fields)
    return item


def create_curso(curso_id: int, document_id: str, materiales: list, **fields) -> dict:
    """Raw course entity with a single version holding `materiales`."""
    curso = {
        "id": curso_id,
        "documentId": document_id,
        "nombre_curso": f"{curso_id}° Básico A",
        "nivel": "Basica",
        "anio": 2025,
        "matricula": 25,
        "colegio": dict(COLEGIO),
        "versiones_materiales": [
            {"fecha_subida": "2025-03-01T12:00:00.000Z", "materiales": materiales},
        ],
    }
    curso.update(fields)
    return curso


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Document store with one school, two courses and an empty one."""
    return InMemoryDocumentStore({
        "colegios": [dict(COLEGIO), {"id": 11, "documentId": "col-11", "colegio_nombre": "Escuela Río Claro"}],
        "cursos": [
            create_curso(1, "curso-1", [
                create_item("producto-1", "Cuaderno college 80 hojas", tipo="cuaderno", cantidad=4),
                create_item("producto-2", "Tijeras punta roma"),
                create_item("producto-3", "Ciencias Naturales 3° Básico", tipo="libro", woocommerce_id=301),
            ]),
            create_curso(2, "curso-2", [
                create_item("producto-1", "Cuaderno college 100 hojas", tipo="cuaderno"),
            ], matricula=30),
            create_curso(3, "curso-3", [], versiones_materiales=[]),
        ],
    })


@pytest.fixture
def catalog() -> InMemoryProductCatalog:
    return InMemoryProductCatalog([
        {"id": 301, "name": "Ciencias Naturales 3° Básico", "price": "17990", "stock_quantity": 6, "images": []},
    ])


@pytest.fixture
def internal() -> InMemoryInternalCatalog:
    return InMemoryInternalCatalog([
        {"id": 4, "nombre_libro": "Tijeras punta roma escolares", "stock_quantity": 0, "precio": 1290},
    ])


@pytest.fixture
def engine(store, catalog, internal):
    """Route handlers bound to the in-memory collaborators."""
    from backend.api.routers.listas import _listas_state, build_listas

    build_listas(store, catalog, internal, default_config())
    yield _listas_state
    _listas_state["initialized"] = False


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def client(engine):
    """
    Provide a FastAPI TestClient with the engine wired to in-memory stores.

    Skips the lifespan initialization so no Strapi client is built.
    """
    from backend.api.main import app

    with patch("backend.api.main._init_listas"):
        with TestClient(app) as c:
            yield c
