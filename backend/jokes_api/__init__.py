"""
Jokes API Backend — Application Package Initializer
====================================================

What: Marks the `jokes_api` directory as a Python package.
Why:  Enables module imports like `from jokes_api.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The request pipeline is layered the same way for every resource:

    ┌─────────────────────────────────────┐
    │   Routes + Authorization Guard      │  ← HTTP concerns, bearer token check
    ├─────────────────────────────────────┤
    │         Validation Layer            │  ← Input-shape predicates (no DB access)
    ├─────────────────────────────────────┤
    │   Services (Resource Handlers)      │  ← Ownership rules, query composition
    ├─────────────────────────────────────┤
    │  Error Translator + Database handle │  ← Constraint codes → client categories
    └─────────────────────────────────────┘

    Validation and authorization failures are raised before a session touches the
    store; store failures are translated exactly once inside the service layer.
"""

__version__ = "1.0.0"
