# Routes package init
"""
Produccion API — Route Modules
==============================

One APIRouter per resource, mounted by main.create_app():
    health        GET  /health
    auth          POST /login
    clientes      /api/Clientes/*
    catalogo      /api/Categorias, /api/Proveedores, /api/UnidadesMedida
    ingredientes  /api/Ingredientes/*
    productos     /api/ProductosTerminados/*
    lotes         /lotesprogramados/*
    peso          POST /peso

Handlers stay thin: parse the request, call one DataStore method, return
its schema. Errors are raised as ProduccionError and mapped in main.py.
"""
