"""
Tests for boundary mapping of raw store and catalog entities.

Run with: pytest pupitre/material_lists/tests/test_mapping.py -v
"""

from pupitre.material_lists.mapping import (
    catalog_hit_from_book,
    catalog_hit_from_product,
    colegio_from_entity,
    curso_from_entity,
    unwrap,
    versions_to_payload,
)
from pupitre.material_lists.models import TipoMaterial


class TestUnwrap:

    def test_flat_entity_unchanged(self):
        assert unwrap({"id": 1, "nombre": "x"}) == {"id": 1, "nombre": "x"}

    def test_attributes_flattened(self):
        entity = {"id": 1, "documentId": "d1", "attributes": {"nombre": "x"}}
        assert unwrap(entity) == {"id": 1, "documentId": "d1", "nombre": "x"}

    def test_data_relation(self):
        assert unwrap({"data": {"id": 3, "attributes": {"url": "/a.jpg"}}}) == {"id": 3, "url": "/a.jpg"}

    def test_empty_relation(self):
        assert unwrap({"data": None}) == {}
        assert unwrap(None) == {}


class TestCursoFromEntity:

    def test_wrapped_course_with_wrapped_school(self):
        entity = {
            "id": 4,
            "documentId": "doc-4",
            "attributes": {
                "nombre_curso": "2° Medio B",
                "matricula": "35",
                "año": 2025,
                "colegio": {"data": {"id": 9, "attributes": {"colegio_nombre": "Liceo Sur", "rbd": 777}}},
                "versiones_materiales": [
                    {"fecha_subida": "2025-01-01T00:00:00Z", "materiales": [
                        {"id": "p1", "nombre": "Atlas", "tipo": "LIBRO", "cantidad": 0},
                    ]},
                ],
            },
        }

        curso = curso_from_entity(entity)

        assert curso.key == "doc-4"
        assert curso.matricula == 35
        assert curso.anio == 2025
        assert curso.colegio.nombre == "Liceo Sur"
        assert curso.colegio.rbd == "777"
        item = curso.versiones_materiales[0].materiales[0]
        assert item.tipo == TipoMaterial.LIBRO
        assert item.cantidad == 1

    def test_non_list_versions_treated_as_empty(self):
        curso = curso_from_entity({"id": 1, "versiones_materiales": "corrupt"})
        assert curso.versiones_materiales == []
        assert curso.colegio is None
        assert curso.key == "1"

    def test_payload_round_trip_keeps_unknown_keys(self):
        entity = {"id": 1, "versiones_materiales": [
            {"fecha_subida": "2025-01-01T00:00:00Z", "origen": "pdf", "materiales": [
                {"id": "p1", "nombre": "Atlas", "relacion_orden": "1 Lenguaje"},
            ]},
        ]}
        payload = versions_to_payload(curso_from_entity(entity))

        assert payload[0]["origen"] == "pdf"
        assert payload[0]["materiales"][0]["relacion_orden"] == "1 Lenguaje"
        assert "fecha_actualizacion" not in payload[0]


class TestColegioFromEntity:

    def test_comuna_relation(self):
        colegio = colegio_from_entity({"id": 2, "nombre": "Escuela", "comuna": {"comuna_nombre": "Maipú"}})
        assert colegio.comuna == "Maipú"
        assert colegio.key == "2"


class TestCatalogHits:

    def test_from_product(self):
        hit = catalog_hit_from_product({
            "id": 5, "name": "Regla", "price": "990", "stock_quantity": None,
            "images": [{"src": "https://tienda.test/regla.jpg"}],
        })
        assert (hit.source, hit.product_id, hit.price, hit.stock_quantity, hit.image) == (
            "catalog", 5, 990.0, None, "https://tienda.test/regla.jpg",
        )

    def test_from_book_with_media_base(self):
        hit = catalog_hit_from_book(
            {"nombre_libro": "Atlas", "precio_venta": "12990", "portada_libro": {"url": "/uploads/atlas.jpg"}, "wooId": 3},
            media_base_url="https://media.test/",
        )
        assert hit.image == "https://media.test/uploads/atlas.jpg"
        assert hit.price == 12990.0
        assert hit.product_id == 3
        assert hit.stock_quantity == 0
