"""
IdeaVerse Backend — Application Package Initializer
=====================================================

What: Marks the `ideaverse` directory as a Python package.
Who:  Imported by uvicorn (`ideaverse.main:app`), Alembic, the seed CLI and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Auth dependency  │  Services       │  ← identity, toggle, ownership gate
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
