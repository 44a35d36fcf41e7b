"""
SnipKeep Backend — Application Package Initializer
==================================================

What: Marks the `snipkeep` directory as a Python package.
Who:  Imported by uvicorn (`snipkeep.main:app`), pytest, and the services.

Architecture Note:
    The backend follows the same layered shape throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (Repository, Auth, Sess.) │  ← Ownership, validation
    ├─────────────────────────────────────┤
    │          Schemas (Pydantic)         │  ← API contracts
    ├─────────────────────────────────────┤
    │     Record Store (JSON documents)   │  ← Whole-collection persistence
    └─────────────────────────────────────┘

    Routes translate HTTP into service calls; services never see a Request.
"""

__version__ = "1.0.0"
