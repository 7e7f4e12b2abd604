"""
Shared fixtures for material list engine tests.

Courses are built as raw store entities (the shape the document store
returns) so every test also goes through the boundary mapping.
"""

import pytest

from pupitre.material_lists.adapters import (
    InMemoryDocumentStore,
    InMemoryInternalCatalog,
    InMemoryProductCatalog,
)
from pupitre.material_lists.config import load_config
from pupitre.material_lists.versions import VersionStore


def make_item(item_id, nombre, **fields) -> dict:
    item = {"id": item_id, "nombre": nombre, "tipo": "util", "cantidad": 1, "obligatorio": True}
    item.update(fields)
    return item


def make_version(fecha_subida, materiales, fecha_actualizacion=None, **fields) -> dict:
    version = {"fecha_subida": fecha_subida, "materiales": materiales}
    if fecha_actualizacion is not None:
        version["fecha_actualizacion"] = fecha_actualizacion
    version.update(fields)
    return version


def make_curso(curso_id, document_id, versiones, matricula=30, colegio=None, **fields) -> dict:
    curso = {
        "id": curso_id,
        "documentId": document_id,
        "nombre_curso": fields.pop("nombre_curso", f"Curso {curso_id}"),
        "nivel": "Basica",
        "grado": 1,
        "anio": 2025,
        "matricula": matricula,
        "colegio": colegio,
        "versiones_materiales": versiones,
    }
    curso.update(fields)
    return curso


COLEGIO = {"id": 10, "documentId": "col-10", "colegio_nombre": "Colegio San Martín", "rbd": "12345"}


def latest_materials() -> list[dict]:
    return [
        make_item(
            "producto-1", "Cuaderno universitario 100 hojas",
            tipo="cuaderno", cantidad=2, coordenadas={"pagina": 1, "x": 10, "y": 20},
        ),
        make_item("producto-2", "Lápiz grafito", cantidad=3, marca="Faber"),
        make_item(
            "producto-3", "Matemática 1° Básico",
            tipo="libro", isbn="978-956-15-1234-5", woocommerce_id=501, precio=15990,
        ),
    ]


@pytest.fixture
def factories():
    """Builders for raw entities: items, versions and courses."""
    class Factories:
        item = staticmethod(make_item)
        version = staticmethod(make_version)
        curso = staticmethod(make_curso)
        colegio = COLEGIO
    return Factories


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def store():
    """
    Document store with one school and one course.

    The course's latest version is listed second, so selection by
    timestamp and selection by position disagree.
    """
    old = make_version("2025-01-01T00:00:00.000Z", [make_item("producto-1", "Goma de borrar")])
    latest = make_version("2025-02-01T10:00:00.000Z", latest_materials())
    return InMemoryDocumentStore({
        "colegios": [dict(COLEGIO)],
        "cursos": [make_curso(1, "doc-a", [old, latest], colegio=dict(COLEGIO))],
    })


@pytest.fixture
def versions(store, config):
    return VersionStore(store, config)


@pytest.fixture
def curso(versions):
    return versions.load_curso("doc-a")


@pytest.fixture
def catalog():
    return InMemoryProductCatalog([
        {
            "id": 501, "name": "Matemática 1° Básico", "price": "15990",
            "stock_quantity": 4, "images": [{"src": "https://tienda.test/mate1.jpg"}],
        },
        {
            "id": 502, "name": "Cuaderno Universitario 100 Hojas Cuadro", "price": "2490",
            "stock_quantity": 0, "images": [],
        },
    ])


@pytest.fixture
def internal():
    return InMemoryInternalCatalog([
        {
            "id": 7,
            "attributes": {
                "nombre_libro": "Lenguaje 1° Básico",
                "isbn_libro": "9789561512346",
                "stock_quantity": 12,
                "precio": 14990,
                "woocommerce_id": 777,
                "portada_libro": {"data": {"attributes": {"url": "/uploads/lenguaje1.jpg"}}},
            },
        },
    ])
