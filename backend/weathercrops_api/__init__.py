"""
WeatherCrops API - Application Package Initializer
===================================================

What: Marks the `weathercrops_api` directory as a Python package.
Who:  Used by uvicorn (`uvicorn weathercrops_api.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered the same way for every endpoint:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Rules & Storage)  │  ← Validation, hashing, queries
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
