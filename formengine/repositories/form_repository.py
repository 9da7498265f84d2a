"""
Form Repository - Form Scoring & Access Engine
formengine/repositories/form_repository.py
"""

from formengine.config import settings
from formengine.repositories.base import JsonTableRepository


class FormRepository(JsonTableRepository):
    """Remote table of form definitions."""

    entity_type = "Form"

    def __init__(self, table_name: str = None):
        self.table_name = table_name or settings.FORMS_TABLE
