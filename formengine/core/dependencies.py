"""
Dependencies - Form Scoring & Access Engine
formengine/core/dependencies.py

FastAPI dependency injection for repositories and the synchronizer.
"""

from functools import lru_cache

from formengine.repositories.form_repository import FormRepository
from formengine.repositories.response_repository import ResponseRepository
from formengine.services.cache import get_cache
from formengine.services.form_synchronizer import FormStateSynchronizer, FormStore
from formengine.services.webhook import WebhookDispatcher


@lru_cache()
def get_form_repository() -> FormRepository:
    """Get cached FormRepository instance."""
    return FormRepository()


@lru_cache()
def get_response_repository() -> ResponseRepository:
    """Get cached ResponseRepository instance."""
    return ResponseRepository()


@lru_cache()
def get_form_store() -> FormStore:
    """Process-wide FormStore owned by the synchronizer."""
    return FormStore()


@lru_cache()
def get_synchronizer() -> FormStateSynchronizer:
    """Get cached FormStateSynchronizer wired to Snowflake and Redis."""
    return FormStateSynchronizer(
        store=get_form_store(),
        forms_table=get_form_repository(),
        responses_table=get_response_repository(),
        cache=get_cache(),
        webhook=WebhookDispatcher(),
    )
