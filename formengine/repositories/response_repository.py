"""
Response Repository - Form Scoring & Access Engine
formengine/repositories/response_repository.py
"""

from formengine.config import settings
from formengine.repositories.base import JsonTableRepository


class ResponseRepository(JsonTableRepository):
    """Remote table of submitted responses, one row per submission."""

    entity_type = "Response"

    def __init__(self, table_name: str = None):
        self.table_name = table_name or settings.RESPONSES_TABLE
