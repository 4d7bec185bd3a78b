"""
LocalBiz Directory Backend — Application Package
=================================================

What: REST backend for a local-business directory. Consumers browse, search
      and favorite businesses; business owners register, manage profiles and
      message consumers; an analytics log ranks businesses by interest.
Who:  Imported by uvicorn (`localbiz.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Validation, aggregation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
