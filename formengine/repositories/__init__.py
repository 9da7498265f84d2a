"""
Repositories Package - Form Scoring & Access Engine
formengine/repositories/__init__.py

Data access layer for the Snowflake remote store.
"""

from formengine.repositories.base import BaseRepository, JsonTableRepository, RemoteTable
from formengine.repositories.form_repository import FormRepository
from formengine.repositories.response_repository import ResponseRepository

__all__ = [
    "BaseRepository",
    "JsonTableRepository",
    "RemoteTable",
    "FormRepository",
    "ResponseRepository",
]
