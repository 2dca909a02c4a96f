"""
Produccion API — Application Package Initializer
================================================

What:  Marks the `produccion` directory as a Python package.
Who:   Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The service follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     DataStore (Business Logic)      │  ← live SQL or fixture records
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy mappings + Pydantic
    ├─────────────────────────────────────┤
    │   ConnectionManager / UnitOfWork    │  ← pooled engine, transactions
    └─────────────────────────────────────┘

    Routes never touch SQL. They receive a DataStore chosen once at startup
    (live when database credentials are configured, fixture otherwise).
"""

__version__ = "1.0.0"
