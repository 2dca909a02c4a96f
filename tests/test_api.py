"""
Produccion API — Endpoint Tests
===============================

What:  Cross-cutting HTTP behaviour: health, API key gate, login, request ids,
       the /peso endpoint and fixture (mock) mode.
How:   httpx AsyncClient over ASGITransport; no server process needed.
"""

import logging
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from produccion.main import create_app
from produccion.models import ProgramacionProduccionControl, ProgramacionProduccionDetalle
from produccion.services.fixture_store import FixtureDataStore

from conftest import fetch_one, make_settings


PESO_BODY = {
    "Consecutivo": 1,
    "ProductoTerminado": "PT-001",
    "Secuencia": 1,
    "Ingrediente": "1",
    "Tara": 1.0,
    "Peso": 70.0,
}


class TestHealth:

    @pytest.mark.asyncio
    async def test_fixture_mode(self, fixture_client):
        response = await fixture_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["dbConnected"] is False
        assert body["mode"] == "fixture"
        assert "version" in body

    @pytest.mark.asyncio
    async def test_live_mode(self, live_client):
        body = (await live_client.get("/health")).json()

        assert body["dbConnected"] is True
        assert body["mode"] == "live"


class TestApiKey:
    """x-api-key gate, installed only when API_KEY is configured."""

    @pytest.fixture
    def app(self, tmp_path):
        return create_app(
            make_settings(tmp_path, database_url=None, api_key="s3creto"),
            store=FixtureDataStore(),
        )

    @pytest.mark.asyncio
    async def test_missing_key_rejected(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/Clientes/activos")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_wrong_key_rejected(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/Clientes/activos", headers={"x-api-key": "otra"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_matching_key_accepted(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/Clientes/activos", headers={"x-api-key": "s3creto"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_and_docs_exempt(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            health = await client.get("/health")
            openapi = await client.get("/openapi.json")

        assert health.status_code == 200
        assert openapi.status_code == 200

    @pytest.mark.asyncio
    async def test_no_key_configured_means_open(self, fixture_client):
        response = await fixture_client.get("/api/Clientes/activos")
        assert response.status_code == 200


class TestLogin:

    @pytest.mark.asyncio
    async def test_valid_credentials(self, live_client):
        response = await live_client.post(
            "/login", json={"Username": "operador", "Password": "secreto"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "Nombre": "Operador Uno",
            "Correo": "operador@planta.test",
            "PlanActivo": True,
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [
        ("operador", "incorrecta"),
        ("nadie", "secreto"),
        ("baja", "secreto"),
    ])
    async def test_rejected_with_same_message(self, live_client, username, password):
        response = await live_client.post(
            "/login", json={"Username": username, "Password": password}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Credenciales inválidas"

    @pytest.mark.asyncio
    async def test_missing_password(self, live_client):
        response = await live_client.post("/login", json={"Username": "operador"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_fixture_user(self, fixture_client):
        response = await fixture_client.post("/login", json={"Username": "demo", "Password": "demo"})
        assert response.status_code == 200


class TestPesoEndpoint:

    @pytest.mark.asyncio
    async def test_created(self, live_client):
        response = await live_client.post("/peso", json=PESO_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["remaining"] == 2
        assert body["completed"] is False
        assert body["next"]["Secuencia"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["Consecutivo", "ProductoTerminado", "Secuencia", "Ingrediente", "Tara", "Peso"])
    async def test_missing_field(self, live_client, manager, missing):
        body = {k: v for k, v in PESO_BODY.items() if k != missing}

        response = await live_client.post("/peso", json=body)

        assert response.status_code == 400
        assert response.json()["details"]["errors"][0]["field"] == missing
        line = await fetch_one(manager, ProgramacionProduccionDetalle, Consecutivo=1, Secuencia=1)
        assert line.TiempoDePesado is None
        control = await fetch_one(manager, ProgramacionProduccionControl, Consecutivo=1)
        assert control.ProduccionInicio is None

    @pytest.mark.asyncio
    async def test_no_matching_line(self, live_client):
        response = await live_client.post("/peso", json={**PESO_BODY, "Secuencia": 7})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_access_log_names_batch(self, live_client, caplog):
        caplog.set_level(logging.INFO, logger="produccion.access")

        await live_client.post("/peso", json=PESO_BODY, headers={"X-Request-ID": "pesa-1"})

        [record] = [r for r in caplog.records if r.name == "produccion.access"]
        assert record.consecutivo == "1"
        assert record.request_id == "pesa-1"
        assert "lote=1" in record.getMessage()

    @pytest.mark.asyncio
    async def test_bad_photo(self, live_client):
        response = await live_client.post("/peso", json={**PESO_BODY, "FotoBase64": "%%%"})
        assert response.status_code == 400


class TestFixtureMode:
    """One fixed record per entity; writes validated but not persisted."""

    @pytest.mark.asyncio
    async def test_listings_return_one_record(self, fixture_client):
        for path in (
            "/api/Clientes/activos",
            "/api/Categorias/listado",
            "/api/Proveedores/listado",
            "/api/UnidadesMedida/activas",
            "/api/Ingredientes/listado",
            "/api/ProductosTerminados/listado",
            "/lotesprogramados/pendientes",
        ):
            response = await fixture_client.get(path)
            assert response.status_code == 200, path
            assert len(response.json()) == 1, path

    @pytest.mark.asyncio
    async def test_weigh_fixture_line_completes(self, fixture_client):
        response = await fixture_client.post("/peso", json=PESO_BODY)

        assert response.status_code == 201
        assert response.json()["completed"] is True
        assert response.json()["next"] is None

    @pytest.mark.asyncio
    async def test_writes_not_persisted(self, fixture_client):
        created = await fixture_client.post(
            "/api/Ingredientes/nuevo",
            json={"Nombre": "Levadura", "CategoriaId": 1, "Activo": True},
        )
        listado = await fixture_client.get("/api/Ingredientes/listado")

        assert created.status_code == 201
        assert [i["Nombre"] for i in listado.json()] == ["Harina de trigo"]


class TestRequestId:

    @pytest.mark.asyncio
    async def test_generated_and_echoed(self, fixture_client):
        generated = await fixture_client.get("/health")
        echoed = await fixture_client.get("/health", headers={"X-Request-ID": "abc123"})

        assert generated.headers["X-Request-ID"]
        assert echoed.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, fixture_client):
        response = await fixture_client.get(
            "/api/ProductosTerminados/NOPE", headers={"X-Request-ID": "req-42"}
        )

        assert response.status_code == 404
        assert response.json()["request_id"] == "req-42"

    @pytest.mark.asyncio
    async def test_unexpected_error_keeps_request_id_header(self, tmp_path):
        store = FixtureDataStore()
        app = create_app(make_settings(tmp_path, database_url=None), store=store)
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        with patch.object(store, "list_active_clients", side_effect=RuntimeError("boom")):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get(
                    "/api/Clientes/activos", headers={"X-Request-ID": "req-500"}
                )

        assert response.status_code == 500
        assert response.json()["error"] == "internal_server_error"
        assert response.json()["request_id"] == "req-500"
        assert response.headers["X-Request-ID"] == "req-500"
