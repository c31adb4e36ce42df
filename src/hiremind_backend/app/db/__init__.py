# src/hiremind_backend/app/db/__init__.py

"""
Lightweight DB package init.

Models are not re-exported here to avoid circular imports;
import them from hiremind_backend.app.db.models.
"""

from .session import engine, Base, get_db, init_models, make_engine

__all__ = ["engine", "Base", "get_db", "init_models", "make_engine"]
