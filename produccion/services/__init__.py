# Services package init
"""
Produccion API — Services Layer
===============================

What:  Data access and business rules sitting between routes (HTTP) and the
       plant database.
How:   Routes receive a DataStore through the `get_store` dependency and call
       one method per request; the store returns response schemas.

Service Inventory:
    - DataStore (abstract): Every operation the HTTP layer needs
    - LiveDataStore: SQL Server implementation over UnitOfWork transactions
    - FixtureDataStore: Fixed sample records when no database is configured
    - register_weight: The POST /peso weighing transaction
    - create_data_store: Picks live or fixture mode once at startup
    - security: Salted SHA-256 password verification for /login
"""
