"""
Database module exports.
"""

from .session import create_engine, create_session_factory, get_session, init_db
from .utils import apply_dict_updates, atomic

__all__ = ["apply_dict_updates", "atomic", "create_engine", "create_session_factory", "get_session", "init_db"]
