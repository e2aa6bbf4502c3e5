"""Database configuration and utilities."""

from .session import SessionLocal, get_db
from .unit_of_work import atomic

__all__ = ["get_db", "SessionLocal", "atomic"]
