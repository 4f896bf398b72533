"""
FTW Community Backend — Application Package Initializer
=======================================================

What: Marks the `ftw_community` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is layered:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Business Logic)         │  ← Identity store, scope resolver,
    │                                     │    community + content orchestration
    ├─────────────────────────────────────┤
    │   Repositories (Data Access)        │  ← Scoped queries over the ORM
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The scope resolver decides WHICH records an actor may see; repositories
    decide HOW to fetch them. Routes never touch either directly, they go
    through the services wired in `ftw_community.container`.
"""

__version__ = "1.0.0"
