# tests/conftest.py

"""
Pytest Fixtures - Shared doubles, sample forms and the API client

The remote store and the local cache are replaced by in-memory doubles so the
suite never needs Snowflake or Redis:
- InMemoryTable  - RemoteTable with a `fail` switch (raises DatabaseConnectionException)
- InMemoryCache  - LocalCache with an `accept` hook to simulate quota exhaustion
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from formengine.core.dependencies import get_synchronizer
from formengine.core.exceptions import (
    DatabaseConnectionException,
    EntityNotFoundException,
    StorageQuotaExceededException,
)
from formengine.main import app
from formengine.models.form import FormDefinition
from formengine.services.form_synchronizer import FormStateSynchronizer, FormStore
from formengine.services.scoring_service import SubmissionScoringService
from formengine.scoring.score_aggregator import ScoreAggregator


# =============================================================================
# TEST DOUBLES
# =============================================================================

class InMemoryTable:
    """RemoteTable double. Set `fail = True` to simulate an outage."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.fail = False
        self.calls: List[str] = []

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if self.fail:
            raise DatabaseConnectionException("remote store offline")

    def insert(self, row):
        self._check("insert")
        self.rows[row["id"]] = json.loads(json.dumps(row))
        return row

    def update(self, record_id, changes):
        self._check("update")
        if record_id not in self.rows:
            raise EntityNotFoundException("Record", record_id)
        self.rows[record_id] = {**self.rows[record_id], **json.loads(json.dumps(changes))}
        return self.rows[record_id]

    def delete(self, record_id):
        self._check("delete")
        self.rows.pop(record_id, None)

    def select(self, filters=None):
        self._check("select")
        return [
            dict(row) for row in self.rows.values()
            if all(str(row.get(k)) == str(v) for k, v in (filters or {}).items())
        ]

    def select_one(self, record_id):
        self._check("select_one")
        row = self.rows.get(record_id)
        return dict(row) if row else None


class InMemoryCache:
    """
    LocalCache double. `accept(key, value)` returning False makes set()
    raise StorageQuotaExceededException, like Redis at maxmemory.
    """

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.accept: Callable[[str, str], bool] = lambda key, value: True

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        if not self.accept(key, value):
            raise StorageQuotaExceededException(key)
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def load(self, key: str) -> Any:
        return json.loads(self.data[key])


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@pytest.fixture
def run():
    """Run a synchronizer coroutine to completion."""
    return asyncio.run


@pytest.fixture
def forms_table():
    return InMemoryTable()


@pytest.fixture
def responses_table():
    return InMemoryTable()


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def store():
    return FormStore()


@pytest.fixture
def synchronizer(store, forms_table, responses_table, cache):
    """Synchronizer over in-memory doubles, no webhook dispatcher."""
    return FormStateSynchronizer(
        store=store,
        forms_table=forms_table,
        responses_table=responses_table,
        cache=cache,
        scoring=SubmissionScoringService(ScoreAggregator(["true", "yes", "sí", "si"])),
        public_base_url="https://forms.example.com/",
        response_cache_limit=50,
        key_prefix="test",
    )


# =============================================================================
# FORM FIXTURES
# =============================================================================

@pytest.fixture
def owner_email():
    return "owner@example.com"


@pytest.fixture
def scored_fields():
    """One field of every contributing kind plus a free-text field."""
    return [
        {
            "id": "q_check",
            "type": "checkbox",
            "label": "Pick any",
            "has_numeric_values": True,
            "options": [
                {"id": "o1", "label": "A", "value": "a", "numeric_value": 1},
                {"id": "o2", "label": "B", "value": "b", "numeric_value": 2},
                {"id": "o3", "label": "C", "value": "c", "numeric_value": 4},
            ],
        },
        {
            "id": "q_yes",
            "type": "yesno",
            "label": "Agree?",
            "has_numeric_values": True,
            "options": [
                {"id": "y", "label": "Yes", "value": "yes", "numeric_value": 10},
                {"id": "n", "label": "No", "value": "no", "numeric_value": 0},
            ],
        },
        {
            "id": "q_radio",
            "type": "radio",
            "label": "Pick one",
            "has_numeric_values": True,
            "options": [
                {"id": "r1", "label": "Low", "value": "low", "numeric_value": 1},
                {"id": "r2", "label": "High", "value": "high", "numeric_value": 5},
            ],
        },
        {
            "id": "q_stars",
            "type": "star-rating",
            "label": "Rate us",
            "has_numeric_values": True,
        },
        {
            "id": "q_name",
            "type": "text",
            "label": "Your name",
            "required": True,
        },
    ]


@pytest.fixture
def score_ranges():
    return [
        {"min": 0, "max": 9, "message": "Low"},
        {"min": 10, "max": 19, "message": "Medium"},
        {"min": 20, "max": 100, "message": "High"},
    ]


@pytest.fixture
def scored_form_data(scored_fields, score_ranges):
    """Create payload for a public, scored form."""
    return {
        "title": "Customer check-in",
        "fields": scored_fields,
        "show_total_score": True,
        "score_ranges": score_ranges,
        "collaborators": ["Editor@Example.com "],
    }


@pytest.fixture
def private_form_data(scored_fields):
    return {
        "title": "Staff survey",
        "fields": scored_fields,
        "is_private": True,
        "allowed_users": ["invitee@example.com"],
        "collaborators": ["editor@example.com"],
    }


@pytest.fixture
def scored_form(scored_form_data, owner_email) -> FormDefinition:
    """Standalone FormDefinition (not stored) for pure scoring tests."""
    return FormDefinition(owner_id=owner_email, **scored_form_data)


@pytest.fixture
def full_answers():
    """Answers worth 2 + 4 + 10 + 5 + 3 = 24."""
    return {
        "q_check": ["b", "c"],
        "q_yes": "Yes",
        "q_radio": "high",
        "q_stars": "3",
        "q_name": "Ada",
    }


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture
def client(synchronizer):
    """TestClient wired to the in-memory synchronizer (startup hooks not run)."""
    app.dependency_overrides[get_synchronizer] = lambda: synchronizer
    yield TestClient(app)
    app.dependency_overrides.clear()
