"""
Smoke tests for the material lists API.

These verify that every endpoint responds correctly with basic happy-path
and error-path scenarios using an in-memory document store and catalogs.
"""
from backend.core.config import settings


def latest_materials(store, document_id):
    curso = store.raw("cursos", document_id)
    return curso["versiones_materiales"][-1]["materiales"]


# ============================================================================
# GET /api/health
# ============================================================================

class TestHealth:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


# ============================================================================
# GET /api/listas/{curso_id}
# ============================================================================

class TestLatestList:

    def test_returns_latest_version(self, client):
        resp = client.get("/api/listas/curso-1")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_versiones"] == 1
        assert [m["id"] for m in data["version"]["materiales"]] == ["producto-1", "producto-2", "producto-3"]

    def test_numeric_id_lookup(self, client):
        resp = client.get("/api/listas/2")
        assert resp.status_code == 200
        assert resp.json()["curso_id"] == "curso-2"

    def test_unknown_course_is_404(self, client):
        assert client.get("/api/listas/nope").status_code == 404

    def test_course_without_versions_is_400(self, client):
        assert client.get("/api/listas/curso-3").status_code == 400


# ============================================================================
# Item editing
# ============================================================================

class TestEditing:

    def test_add_material_at_position(self, client, store):
        resp = client.post("/api/listas/curso-1/productos", json={"nombre": "Pegamento en barra", "orden": 1})
        assert resp.status_code == 200
        material = resp.json()["material"]
        assert material["id"] == "producto-4"
        assert material["aprobado"] is False

        stored = latest_materials(store, "curso-1")
        assert stored[0]["nombre"] == "Pegamento en barra"
        assert [m["orden"] for m in stored] == [1, 2, 3, 4]

    def test_add_material_requires_name(self, client):
        resp = client.post("/api/listas/curso-1/productos", json={"nombre": "   "})
        assert resp.status_code == 400

    def test_edit_material_pushes_catalog_fields(self, client, store, catalog):
        resp = client.put("/api/listas/curso-1/productos/producto-3", json={"precio": 18990})
        assert resp.status_code == 200
        data = resp.json()
        assert data["material"]["precio"] == 18990
        assert data["catalog_updates"][0]["success"] is True
        assert catalog.get_product(301)["regular_price"] == "18990.0"
        assert latest_materials(store, "curso-1")[2]["precio"] == 18990

    def test_edit_unknown_material_is_404(self, client):
        resp = client.put("/api/listas/curso-1/productos/producto-99", json={"cantidad": 2})
        assert resp.status_code == 404

    def test_edit_unknown_tipo_is_400(self, client, store):
        resp = client.put("/api/listas/curso-1/productos/producto-1", json={"tipo": "cuadernos"})
        assert resp.status_code == 400
        assert latest_materials(store, "curso-1")[0]["tipo"] == "cuaderno"

    def test_delete_by_name_fallback(self, client, store):
        resp = client.delete("/api/listas/curso-1/productos/missing", params={"nombre": "tijeras punta roma"})
        assert resp.status_code == 200
        assert resp.json()["material"]["id"] == "producto-2"
        assert [m["id"] for m in latest_materials(store, "curso-1")] == ["producto-1", "producto-3"]

    def test_replace_materials_creates_first_version(self, client, store):
        resp = client.put(
            "/api/listas/curso-3/materiales",
            json={"materiales": [{"nombre": "Block de dibujo"}, {"nombre": "Témperas 12 colores"}]},
        )
        assert resp.status_code == 200
        assert len(store.raw("cursos", "curso-3")["versiones_materiales"]) == 1
        assert [m["id"] for m in latest_materials(store, "curso-3")] == ["producto-1", "producto-2"]


# ============================================================================
# Approval
# ============================================================================

class TestApproval:

    def test_approve_list(self, client, store):
        resp = client.post("/api/listas/aprobar-lista", json={"curso_id": "curso-1"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["approved"] == 3
        assert data["newly_approved"] == 3
        assert data["estado_revision"] == "revisado"
        assert all(m["aprobado"] for m in latest_materials(store, "curso-1"))

    def test_approve_single_item(self, client, store):
        resp = client.post("/api/listas/curso-2/aprobar-producto", json={"material_id": "producto-1"})
        assert resp.status_code == 200
        assert resp.json()["estado_revision"] == "revisado"
        assert latest_materials(store, "curso-2")[0]["fecha_aprobacion"]

    def test_approve_empty_course_is_400(self, client):
        resp = client.post("/api/listas/aprobar-lista", json={"curso_id": "curso-3"})
        assert resp.status_code == 400


# ============================================================================
# Availability
# ============================================================================

class TestAvailability:

    def test_verify_availability(self, client, store):
        resp = client.post("/api/listas/curso-1/verificar-disponibilidad")
        assert resp.status_code == 200
        data = resp.json()
        assert data["persisted"] is True
        assert data["summary"]["disponible"] == 1
        assert data["summary"]["no_disponible"] == 1
        assert data["summary"]["no_encontrado"] == 1

        by_id = {o["material_id"]: o for o in data["items"]}
        assert by_id["producto-2"]["source"] == "internal"
        assert by_id["producto-3"]["source"] == "catalog"

        stored = {m["id"]: m for m in latest_materials(store, "curso-1")}
        assert stored["producto-3"]["disponibilidad"] == "disponible"
        assert stored["producto-3"]["stock_quantity"] == 6

    def test_text_report(self, client):
        resp = client.post("/api/listas/curso-1/verificar-disponibilidad", params={"formato": "texto"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert "NOT FOUND (1)" in resp.text
        assert "AVAILABLE (1)" in resp.text


# ============================================================================
# Search
# ============================================================================

class TestSearch:

    def test_search_across_courses(self, client):
        resp = client.get("/api/listas/buscar-producto", params={"q": "cuaderno college"})
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["resultados"]) == 2
        assert data["totales"] == {"colegios": 1, "cursos": 2, "estudiantes": 55, "productos": 130}

    def test_short_query_is_400(self, client):
        assert client.get("/api/listas/buscar-producto", params={"q": "a"}).status_code == 400

    def test_export_csv(self, client):
        resp = client.get("/api/listas/buscar-producto/export", params={"q": "cuaderno college"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "busqueda_cuaderno_college_" in resp.headers["content-disposition"]
        assert len(resp.text.strip().splitlines()) == 3

    def test_list_by_school(self, client):
        resp = client.get("/api/listas/por-colegio")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        colegio = data["colegios"][0]
        assert colegio["colegio"]["documentId"] == "col-10"
        assert [c["documentId"] for c in colegio["cursos"]] == ["curso-1", "curso-2"]
        assert colegio["total_matriculados"] == 55

    def test_list_by_school_filters(self, client):
        assert client.get("/api/listas/por-colegio", params={"colegioId": "col-11"}).json()["total"] == 0
        assert client.get("/api/listas/por-colegio", params={"anio": "2025"}).json()["total"] == 1


# ============================================================================
# PATCH /api/listas/bulk-update
# ============================================================================

class TestBulkUpdate:

    def test_partial_failure_is_reported_per_id(self, client, store):
        resp = client.patch("/api/listas/bulk-update", json={"ids": ["curso-1", "nope", 2], "activo": False})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is False
        assert data["summary"] == {"total": 3, "successful": 2, "failed": 1}
        assert data["results"][1] == {"id": "nope", "success": False, "error": "not found"}
        assert store.raw("cursos", "curso-1")["activo"] is False
        assert store.raw("cursos", "curso-2")["activo"] is False

    def test_colegio_resolved_from_document_id(self, client, store):
        resp = client.patch("/api/listas/bulk-update", json={"ids": ["curso-2"], "colegio_id": "col-11"})
        assert resp.status_code == 200
        assert store.raw("cursos", "curso-2")["colegio"] == {"connect": [11]}

    def test_original_key_spellings(self, client, store):
        resp = client.patch("/api/listas/bulk-update", json={"ids": ["curso-2"], "colegioId": "col-11", "año": 2031})
        assert resp.status_code == 200
        curso = store.raw("cursos", "curso-2")
        assert curso["colegio"] == {"connect": [11]}
        assert curso["anio"] == 2031

    def test_unknown_patch_key_rejected(self, client, store):
        resp = client.patch("/api/listas/bulk-update", json={"ids": ["curso-2"], "activa": False})
        assert resp.status_code == 422
        assert store.writes == []

    def test_empty_ids_is_400(self, client):
        assert client.patch("/api/listas/bulk-update", json={"ids": []}).status_code == 400

    def test_api_key_required_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "API_KEY", "secret")
        body = {"ids": ["curso-1"], "activo": True}

        assert client.patch("/api/listas/bulk-update", json=body).status_code == 401
        resp = client.patch("/api/listas/bulk-update", json=body, headers={"X-API-Key": "secret"})
        assert resp.status_code == 200
