"""
Produccion API — Finished Product Tests
=======================================

What:  Finished product listing, lookup, registration and edit.

What we test:
    ✅ Header + recipe written together with 1-based Secuencia in caller order
    ✅ Duplicate Codigo → 409, unknown Codigo → 404
    ✅ Edit replaces the whole recipe
    ✅ Invalid recipes (empty, non-positive percentage, unknown ingredient) → 400
"""

import pytest
from sqlalchemy import select

from produccion.exceptions import ConflictError, NotFoundError, ValidationError
from produccion.models import ProductoTerminado, ProductoTerminadoDetalle
from produccion.schemas.producto import ProductoRequest, ProductoUpdateRequest

from conftest import count_rows, fetch_one


def producto_body(**fields) -> dict:
    body = {
        "Codigo": "PT-100",
        "Nombre": "Mezcla Pizza",
        "Descripcion": "Premezcla para pizza",
        "ClienteId": 2,
        "Activo": True,
        "Ingredientes": [
            {"IngredienteId": 2, "Porcentaje": 10.0},
            {"IngredienteId": 1, "Porcentaje": 90.0},
        ],
    }
    body.update(fields)
    return body


async def recipe(manager, codigo: str):
    session = manager.session()
    try:
        result = await session.execute(
            select(ProductoTerminadoDetalle.Secuencia, ProductoTerminadoDetalle.IngredienteId)
            .where(ProductoTerminadoDetalle.CodigoProducto == codigo)
            .order_by(ProductoTerminadoDetalle.Secuencia)
        )
        return [tuple(row) for row in result.all()]
    finally:
        await session.close()


class TestProductStore:
    """LiveDataStore finished-product operations."""

    @pytest.mark.asyncio
    async def test_register_writes_header_and_lines(self, store, manager):
        created = await store.register_product(ProductoRequest.model_validate(producto_body()))

        assert created.codigo == "PT-100"
        header = await fetch_one(manager, ProductoTerminado, Codigo="PT-100")
        assert header.Nombre == "Mezcla Pizza"
        assert await recipe(manager, "PT-100") == [(1, 2), (2, 1)]

    @pytest.mark.asyncio
    async def test_register_duplicate_code(self, store, manager):
        with pytest.raises(ConflictError):
            await store.register_product(
                ProductoRequest.model_validate(producto_body(Codigo="PT-001"))
            )
        assert await recipe(manager, "PT-001") == [(1, 1), (2, 2), (3, 3)]

    @pytest.mark.asyncio
    async def test_register_unknown_ingredient_writes_nothing(self, store, manager):
        body = producto_body(Ingredientes=[{"IngredienteId": 77, "Porcentaje": 100}])

        with pytest.raises(ValidationError):
            await store.register_product(ProductoRequest.model_validate(body))

        assert await fetch_one(manager, ProductoTerminado, Codigo="PT-100") is None

    @pytest.mark.asyncio
    async def test_update_replaces_recipe(self, store, manager):
        body = producto_body(Nombre="Mezcla Pan Integral", Ingredientes=[
            {"IngredienteId": 2, "Porcentaje": 100.0},
        ])

        await store.update_product("PT-001", ProductoUpdateRequest.model_validate(body))

        header = await fetch_one(manager, ProductoTerminado, Codigo="PT-001")
        assert header.Nombre == "Mezcla Pan Integral"
        assert await recipe(manager, "PT-001") == [(1, 2)]

    @pytest.mark.asyncio
    async def test_update_unknown_code(self, store):
        with pytest.raises(NotFoundError):
            await store.update_product(
                "NOPE", ProductoUpdateRequest.model_validate(producto_body())
            )

    @pytest.mark.asyncio
    async def test_get_product_with_recipe(self, store):
        producto = await store.get_product("PT-001")

        assert producto.cliente_id == 1
        assert [(l.secuencia, l.ingrediente) for l in producto.detalle] == [
            (1, "Harina de trigo"),
            (2, "Azúcar"),
            (3, "Sal"),
        ]

    @pytest.mark.asyncio
    async def test_list_filters(self, store):
        assert [p.codigo for p in await store.list_products()] == ["PT-002", "PT-001"]
        assert [p.codigo for p in await store.list_products(cliente_id=1)] == ["PT-001"]
        assert [p.codigo for p in await store.list_products(activo=False)] == ["PT-002"]
        assert [p.codigo for p in await store.list_products(nombre="pan")] == ["PT-001"]


class TestProductEndpoints:
    """HTTP surface of /api/ProductosTerminados."""

    @pytest.mark.asyncio
    async def test_nuevo_created(self, live_client):
        response = await live_client.post("/api/ProductosTerminados/nuevo", json=producto_body())

        assert response.status_code == 201
        assert response.json()["codigo"] == "PT-100"

    @pytest.mark.asyncio
    async def test_nuevo_without_ingredients(self, live_client):
        response = await live_client.post(
            "/api/ProductosTerminados/nuevo", json=producto_body(Ingredientes=[])
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_nuevo_zero_percentage(self, live_client):
        body = producto_body(Ingredientes=[{"IngredienteId": 1, "Porcentaje": 0}])
        response = await live_client.post("/api/ProductosTerminados/nuevo", json=body)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_nuevo_duplicate(self, live_client):
        response = await live_client.post(
            "/api/ProductosTerminados/nuevo", json=producto_body(Codigo="PT-001")
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_get_by_code(self, live_client):
        response = await live_client.get("/api/ProductosTerminados/PT-001")

        assert response.status_code == 200
        body = response.json()
        assert body["Codigo"] == "PT-001"
        assert [d["Secuencia"] for d in body["Detalle"]] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_get_unknown_code(self, live_client):
        response = await live_client.get("/api/ProductosTerminados/NOPE")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_listado_not_captured_as_code(self, live_client):
        response = await live_client.get(
            "/api/ProductosTerminados/listado", params={"clienteId": 2}
        )

        assert response.status_code == 200
        assert [p["Codigo"] for p in response.json()] == ["PT-002"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["Codigo", "Nombre", "Ingredientes"])
    async def test_nuevo_missing_field_writes_nothing(self, live_client, manager, missing):
        body = producto_body()
        body.pop(missing)

        response = await live_client.post("/api/ProductosTerminados/nuevo", json=body)

        assert response.status_code == 400
        assert await count_rows(manager, ProductoTerminado) == 2
        assert await recipe(manager, "PT-100") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"Nombre": "X"},
        {"Ingredientes": [{"IngredienteId": 1, "Porcentaje": 100.0}]},
        {"Nombre": "X", "Ingredientes": [{"IngredienteId": 1}]},
    ])
    async def test_actualizar_missing_fields_leaves_product(self, live_client, manager, body):
        response = await live_client.put("/api/ProductosTerminados/actualizar/PT-001", json=body)

        assert response.status_code == 400
        header = await fetch_one(manager, ProductoTerminado, Codigo="PT-001")
        assert header.Nombre == "Mezcla Pan"
        assert await recipe(manager, "PT-001") == [(1, 1), (2, 2), (3, 3)]

    @pytest.mark.asyncio
    async def test_actualizar(self, live_client):
        body = producto_body()
        body.pop("Codigo")
        response = await live_client.put("/api/ProductosTerminados/actualizar/PT-001", json=body)

        assert response.status_code == 200
        detalle = (await live_client.get("/api/ProductosTerminados/PT-001")).json()["Detalle"]
        assert [d["IngredienteId"] for d in detalle] == [2, 1]
