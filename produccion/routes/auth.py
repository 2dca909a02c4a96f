"""
Produccion API — Login Route
============================

What:  POST /login checks a username/password against the Usuarios table.
How:   Delegates to DataStore.authenticate. Unknown user and wrong password
       answer the same 401 so callers cannot probe usernames.
"""

from fastapi import APIRouter, Depends

from produccion.dependencies import get_store
from produccion.schemas.catalogo import LoginRequest, LoginResponse
from produccion.schemas.common import ErrorResponse
from produccion.services.store_base import DataStore

router = APIRouter(tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing Username or Password", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Authenticate a user",
)
async def login(
    body: LoginRequest,
    store: DataStore = Depends(get_store),
) -> LoginResponse:
    return await store.authenticate(body.username, body.password)
