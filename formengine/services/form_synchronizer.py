"""
Form State Synchronizer - Form Scoring & Access Engine
formengine/services/form_synchronizer.py

Keeps the remote store and the local cache consistent.

Per-form state machine:

    unsynced  --remote write ok-->  persisted  --remote read fails-->  stale

Writes always land in the FormStore first, so a remote failure never loses
data: the record stays `unsynced` and the caller gets a warning. Reads fall
back to the last cached snapshot and mark everything `stale`.

Every write validates embedded data before touching state:
  - score ranges    not a list -> rejected; malformed entries dropped
  - emails          malformed -> rejected; blanks/duplicates dropped
  - overlap         overlapping ranges -> warning only (first match wins)
  - webhook url     unparseable or not http(s) -> rejected
"""

import asyncio
import json
from dataclasses import dataclass, field as dc_field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

import redis
import structlog
from pydantic import ValidationError

from formengine.access.tokens import build_access_url, generate_access_token, tokens_match
from formengine.config import settings
from formengine.core.exceptions import (
    AccessListException,
    EmptyResponseSetException,
    EntityNotFoundException,
    FormNotFoundException,
    MissingRequiredAnswersException,
    RemoteStoreUnavailableException,
    RepositoryException,
    ResponseNotFoundException,
    ResubmissionNotAllowedException,
    ScoreRangeValidationException,
    StorageQuotaExceededException,
    ValidationException,
)
from formengine.core.validation import normalize_emails, validate_score_ranges, validate_webhook_url
from formengine.models.enumerations import FieldType, SyncState
from formengine.models.form import FormCreate, FormDefinition, FormUpdate, HttpConfig, ScoreRange
from formengine.models.response import FormResponse
from formengine.repositories.base import RemoteTable
from formengine.scoring.range_resolver import find_overlapping_ranges
from formengine.services.cache import (
    ACCESS_TOKENS_KEY,
    ALLOWED_USERS_KEY,
    FORMS_KEY,
    RESPONSES_KEY,
    LocalCache,
    cache_key,
)
from formengine.services.scoring_service import SubmissionScoringService
from formengine.services.webhook import WebhookDispatcher

logger = structlog.get_logger(__name__)

# Field types that never take an answer, even when flagged required
_NON_ANSWERABLE = {FieldType.WELCOME}


@dataclass
class FormStore:
    """In-memory state owned by one synchronizer."""
    forms: Dict[str, FormDefinition] = dc_field(default_factory=dict)
    states: Dict[str, SyncState] = dc_field(default_factory=dict)
    responses: List[FormResponse] = dc_field(default_factory=list)
    allowed_users: Dict[str, List[str]] = dc_field(default_factory=dict)
    access_tokens: Dict[str, str] = dc_field(default_factory=dict)
    remote_ids: Set[str] = dc_field(default_factory=set)


@dataclass
class SyncOutcome:
    form: FormDefinition
    state: SyncState
    warnings: List[str] = dc_field(default_factory=list)


@dataclass
class SubmissionOutcome:
    response: FormResponse
    warnings: List[str] = dc_field(default_factory=list)
    webhook_status: Optional[int] = None


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower() or None


def _is_blank(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str):
        return not answer.strip()
    if isinstance(answer, (list, tuple, dict, set)):
        return len(answer) == 0
    return False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormStateSynchronizer:
    """
    Owns a FormStore, two remote tables and an optional local cache.

    Remote calls are blocking and run through asyncio.to_thread; everything
    else is synchronous and runs on the event loop.
    """

    def __init__(
        self,
        store: FormStore,
        forms_table: RemoteTable,
        responses_table: RemoteTable,
        cache: Optional[LocalCache] = None,
        scoring: Optional[SubmissionScoringService] = None,
        webhook: Optional[WebhookDispatcher] = None,
        public_base_url: Optional[str] = None,
        response_cache_limit: Optional[int] = None,
        key_prefix: Optional[str] = None,
    ):
        self.store = store
        self.forms_table = forms_table
        self.responses_table = responses_table
        self.cache = cache
        self.scoring = scoring or SubmissionScoringService()
        self.webhook = webhook
        self.public_base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")
        self.response_cache_limit = response_cache_limit or settings.RESPONSE_CACHE_LIMIT
        self.key_prefix = key_prefix or settings.CACHE_KEY_PREFIX

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _prepare_ranges(raw: Any) -> Tuple[List[ScoreRange], List[str]]:
        if raw is None:
            raw = []
        if not isinstance(raw, (list, tuple)):
            raise ScoreRangeValidationException()

        ranges, dropped = validate_score_ranges(raw)
        warnings = []
        if dropped:
            warnings.append(f"Dropped {dropped} invalid score range(s)")
        for i, j in find_overlapping_ranges(ranges):
            warnings.append(
                f"Score ranges {i} and {j} overlap; the first matching range is used"
            )
        return ranges, warnings

    @staticmethod
    def _prepare_http_config(config: Optional[HttpConfig]) -> Optional[HttpConfig]:
        if config is None:
            return None
        return config.model_copy(update={"url": validate_webhook_url(config.url)})

    @staticmethod
    def _refresh_field_ranges(form: FormDefinition) -> None:
        """Mirror the canonical ranges onto every scored field."""
        for f in form.fields:
            if f.has_numeric_values:
                f.score_ranges = [r.model_copy() for r in form.score_ranges]
            else:
                f.score_ranges = []

    @staticmethod
    def _migrate_legacy_ranges(form: FormDefinition) -> None:
        """Adopt per-field ranges on records that predate form-level ranges."""
        if form.score_ranges:
            return
        for f in form.fields:
            if f.score_ranges:
                form.score_ranges = [r.model_copy() for r in f.score_ranges]
                logger.info("legacy_score_ranges_migrated", form_id=form.id, field_id=f.id)
                return

    # ------------------------------------------------------------------
    # Local store / cache
    # ------------------------------------------------------------------

    def _index(self, form: FormDefinition) -> None:
        self.store.allowed_users[form.id] = list(form.allowed_users)
        self.store.access_tokens[form.id] = form.access_token

    def _rebuild_indexes(self) -> None:
        self.store.allowed_users = {}
        self.store.access_tokens = {}
        for form in self.store.forms.values():
            self._index(form)

    def _cache_write(self, name: str, payload: Any) -> None:
        self.cache.set(cache_key(name, self.key_prefix), json.dumps(payload, default=str))

    def _persist_snapshot(self) -> List[str]:
        if self.cache is None:
            return []
        try:
            self._cache_write(FORMS_KEY, [f.model_dump(mode="json") for f in self.store.forms.values()])
            self._cache_write(ALLOWED_USERS_KEY, self.store.allowed_users)
            self._cache_write(ACCESS_TOKENS_KEY, self.store.access_tokens)
        except StorageQuotaExceededException as e:
            logger.warning("snapshot_quota_exceeded", key=e.key)
            return ["Local cache is full; form snapshot not saved"]
        except redis.RedisError as e:
            logger.warning("snapshot_write_failed", error=str(e))
        return []

    def _persist_responses(self) -> List[str]:
        """
        Write the response cache. Over quota, keep only the most recent
        response_cache_limit records; if even that fails, drop the key.
        """
        if self.cache is None:
            return []

        records = self.store.responses
        try:
            self._cache_write(RESPONSES_KEY, [r.model_dump(mode="json") for r in records])
            return []
        except StorageQuotaExceededException:
            recent = records[-self.response_cache_limit:]
            logger.warning(
                "response_cache_trimmed",
                total=len(records),
                kept=len(recent),
            )
        except redis.RedisError as e:
            logger.warning("response_cache_write_failed", error=str(e))
            return []

        try:
            self._cache_write(RESPONSES_KEY, [r.model_dump(mode="json") for r in recent])
            return []
        except StorageQuotaExceededException:
            key = cache_key(RESPONSES_KEY, self.key_prefix)
            try:
                self.cache.delete(key)
            except redis.RedisError as e:
                logger.warning("response_cache_delete_failed", error=str(e))
            logger.error("response_cache_dropped", key=key)
            return ["Local cache is full; cached responses were cleared"]
        except redis.RedisError as e:
            logger.warning("response_cache_write_failed", error=str(e))
            return []

    def _cache_read(self, name: str) -> Optional[Any]:
        if self.cache is None:
            return None
        try:
            raw = self.cache.get(cache_key(name, self.key_prefix))
        except redis.RedisError as e:
            logger.warning("cache_read_failed", key=name, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=name)
            return None

    def _read_form_snapshot(self) -> Optional[List[FormDefinition]]:
        rows = self._cache_read(FORMS_KEY)
        if not isinstance(rows, list):
            return None
        return self._parse_forms(rows)

    def _read_response_snapshot(self) -> List[FormResponse]:
        rows = self._cache_read(RESPONSES_KEY)
        if not isinstance(rows, list):
            return []
        return self._parse_responses(rows)

    # ------------------------------------------------------------------
    # Parsing remote / cached rows
    # ------------------------------------------------------------------

    def _parse_forms(self, rows: List[Mapping[str, Any]]) -> List[FormDefinition]:
        forms = []
        for row in rows:
            try:
                form = FormDefinition.model_validate(row)
            except ValidationError as e:
                logger.warning("form_row_skipped", form_id=(row or {}).get("id"), error=str(e))
                continue
            self._migrate_legacy_ranges(form)
            self._refresh_field_ranges(form)
            forms.append(form)
        return forms

    @staticmethod
    def _parse_responses(rows: List[Mapping[str, Any]]) -> List[FormResponse]:
        responses = []
        for row in rows:
            try:
                responses.append(FormResponse.model_validate(row))
            except ValidationError as e:
                logger.warning("response_row_skipped", response_id=(row or {}).get("id"), error=str(e))
        return responses

    # ------------------------------------------------------------------
    # Remote writes
    # ------------------------------------------------------------------

    async def _push_form(self, form: FormDefinition) -> Optional[str]:
        """
        Write a form remotely. Returns a warning on failure.

        Ids in remote_ids are updated; an update that finds no row (an id
        seeded from a snapshot that never reached the remote) becomes an insert.
        """
        row = form.model_dump(mode="json")
        try:
            if form.id in self.store.remote_ids:
                try:
                    await asyncio.to_thread(self.forms_table.update, form.id, row)
                except EntityNotFoundException:
                    await asyncio.to_thread(self.forms_table.insert, row)
            else:
                await asyncio.to_thread(self.forms_table.insert, row)
        except RepositoryException as e:
            self.store.states[form.id] = SyncState.UNSYNCED
            logger.warning("form_push_failed", form_id=form.id, error=str(e))
            return f"Form saved locally but not synced to the remote store: {e}"

        self.store.remote_ids.add(form.id)
        self.store.states[form.id] = SyncState.PERSISTED
        return None

    # ------------------------------------------------------------------
    # Form operations
    # ------------------------------------------------------------------

    async def create_form(
        self,
        data: Union[FormCreate, Mapping[str, Any]],
        owner_email: Optional[str],
    ) -> SyncOutcome:
        """
        Create a form owned by owner_email.

        Raises:
            ValidationException: Score ranges are not a list, an email is malformed
                or the webhook URL cannot be parsed.
        """
        if not isinstance(data, FormCreate):
            try:
                data = FormCreate.model_validate(data)
            except ValidationError as e:
                raise ValidationException(str(e))

        ranges, warnings = self._prepare_ranges(data.score_ranges)
        collaborators, _ = normalize_emails(data.collaborators, "collaborators")
        allowed_users, _ = normalize_emails(data.allowed_users, "allowed_users")
        http_config = self._prepare_http_config(data.http_config)

        base = data.model_dump(exclude={"score_ranges", "collaborators", "allowed_users", "http_config"})
        form = FormDefinition(
            **base,
            owner_id=_normalize_email(owner_email),
            collaborators=collaborators,
            allowed_users=allowed_users,
            score_ranges=ranges,
            http_config=http_config,
        )
        self._refresh_field_ranges(form)

        self.store.forms[form.id] = form
        self.store.states[form.id] = SyncState.UNSYNCED
        self._index(form)

        warning = await self._push_form(form)
        if warning:
            warnings.append(warning)
        warnings.extend(self._persist_snapshot())

        logger.info("form_created", form_id=form.id, state=self.store.states[form.id].value)
        return SyncOutcome(form=form, state=self.store.states[form.id], warnings=warnings)

    async def update_form(
        self,
        form_id: str,
        changes: Union[FormUpdate, Mapping[str, Any]],
    ) -> SyncOutcome:
        """
        Merge partial changes into a form, write it remotely and reload.

        Raises:
            FormNotFoundException: Unknown form id.
            ValidationException: Invalid changes; nothing is modified.
        """
        current = self.get_form(form_id)

        if not isinstance(changes, FormUpdate):
            try:
                changes = FormUpdate.model_validate(changes)
            except ValidationError as e:
                raise ValidationException(str(e))

        patch = {
            k: v
            for k, v in changes.model_dump(exclude_unset=True).items()
            if v is not None or k == "http_config"
        }

        warnings: List[str] = []
        if "score_ranges" in patch:
            ranges, warnings = self._prepare_ranges(patch["score_ranges"])
            patch["score_ranges"] = [r.model_dump() for r in ranges]
        if "collaborators" in patch:
            patch["collaborators"], _ = normalize_emails(patch["collaborators"], "collaborators")
        if "allowed_users" in patch:
            patch["allowed_users"], _ = normalize_emails(patch["allowed_users"], "allowed_users")
        if patch.get("http_config") is not None:
            patch["http_config"]["url"] = validate_webhook_url(patch["http_config"].get("url"))

        merged_data = {**current.model_dump(), **patch}
        merged_data.update(id=current.id, created_at=current.created_at, updated_at=_utcnow())
        try:
            merged = FormDefinition.model_validate(merged_data)
        except ValidationError as e:
            raise ValidationException(str(e))
        self._refresh_field_ranges(merged)

        self.store.forms[form_id] = merged
        self.store.states[form_id] = SyncState.UNSYNCED
        self._index(merged)

        warning = await self._push_form(merged)
        if warning:
            warnings.append(warning)
            warnings.extend(self._persist_snapshot())
        else:
            # Remote is authoritative once it has accepted the write
            warnings.extend(self._persist_snapshot())
            try:
                await self.load_all()
            except RepositoryException as e:
                logger.warning("reload_after_update_failed", form_id=form_id, error=str(e))
                warnings.append(f"Form saved but reload failed: {e}")

            if self.store.states.get(form_id) == SyncState.STALE:
                # Reload fell back to the snapshot; the accepted write still wins
                self.store.forms[form_id] = merged
                self.store.states[form_id] = SyncState.PERSISTED
                self.store.remote_ids.add(form_id)
                self._index(merged)
                self._persist_snapshot()
                warnings.append("Form saved, but the reload failed; other forms may be out of date")

        form = self.store.forms.get(form_id, merged)
        state = self.store.states.get(form_id, SyncState.UNSYNCED)
        logger.info("form_updated", form_id=form_id, state=state.value, changed=sorted(patch))
        return SyncOutcome(form=form, state=state, warnings=warnings)

    async def delete_form(self, form_id: str) -> None:
        """
        Remove a form locally with every derived index. The remote delete is
        best effort: its errors are logged, never raised.

        Raises:
            FormNotFoundException: Unknown form id.
        """
        self.get_form(form_id)

        self.store.forms.pop(form_id, None)
        self.store.states.pop(form_id, None)
        self.store.allowed_users.pop(form_id, None)
        self.store.access_tokens.pop(form_id, None)
        self.store.responses = [r for r in self.store.responses if r.form_id != form_id]
        was_remote = form_id in self.store.remote_ids
        self.store.remote_ids.discard(form_id)

        self._persist_snapshot()
        self._persist_responses()

        if was_remote:
            try:
                await asyncio.to_thread(self.forms_table.delete, form_id)
            except RepositoryException as e:
                logger.error("remote_delete_failed", form_id=form_id, error=str(e))

        logger.info("form_deleted", form_id=form_id)

    async def load_all(self) -> List[FormDefinition]:
        """
        Refresh every form from the remote store.

        Records still `unsynced` locally survive a successful reload. When the
        remote store is down the cached snapshot is used and marked `stale`.

        Raises:
            RemoteStoreUnavailableException: Remote failed and no snapshot exists.
        """
        try:
            rows = await asyncio.to_thread(self.forms_table.select)
        except RepositoryException as e:
            logger.warning("remote_load_failed", error=str(e))
            self._fall_back_to_snapshot()
            return self.list_forms()

        unsynced = {
            form_id: form
            for form_id, form in self.store.forms.items()
            if self.store.states.get(form_id) == SyncState.UNSYNCED
        }

        forms: Dict[str, FormDefinition] = {}
        states: Dict[str, SyncState] = {}
        for form in self._parse_forms(rows or []):
            forms[form.id] = form
            states[form.id] = SyncState.PERSISTED
        remote_ids = set(forms)

        for form_id, form in unsynced.items():
            forms[form_id] = form
            states[form_id] = SyncState.UNSYNCED

        self.store.forms = forms
        self.store.states = states
        self.store.remote_ids = remote_ids
        self._rebuild_indexes()
        self._persist_snapshot()

        await self._load_responses()

        logger.info("forms_loaded", count=len(forms), unsynced=len(unsynced))
        return self.list_forms()

    def _fall_back_to_snapshot(self) -> None:
        snapshot = self._read_form_snapshot()
        if snapshot is None:
            raise RemoteStoreUnavailableException()

        forms: Dict[str, FormDefinition] = {}
        states: Dict[str, SyncState] = {}
        for form in snapshot:
            forms[form.id] = form
            states[form.id] = SyncState.STALE
        for form_id, form in self.store.forms.items():
            if self.store.states.get(form_id) == SyncState.UNSYNCED:
                forms[form_id] = form
                states[form_id] = SyncState.UNSYNCED

        # Snapshot forms are assumed to exist remotely so later writes update
        # and deletes reach the remote store
        self.store.remote_ids |= {
            form_id for form_id, state in states.items() if state == SyncState.STALE
        }
        self.store.forms = forms
        self.store.states = states
        self._rebuild_indexes()
        if not self.store.responses:
            self.store.responses = self._read_response_snapshot()

        logger.warning("using_cached_snapshot", count=len(forms))

    async def _load_responses(self) -> None:
        try:
            rows = await asyncio.to_thread(self.responses_table.select)
        except RepositoryException as e:
            logger.warning("remote_response_load_failed", error=str(e))
            if not self.store.responses:
                self.store.responses = self._read_response_snapshot()
            return

        remote = self._parse_responses(rows or [])
        for r in remote:
            r.sync_state = SyncState.PERSISTED
        remote_ids = {r.id for r in remote}
        pending = [
            r for r in self.store.responses
            if r.sync_state == SyncState.UNSYNCED and r.id not in remote_ids
        ]
        self.store.responses = [r for r in remote if r.form_id in self.store.forms] + pending
        self._persist_responses()

    async def flush_unsynced(self) -> Dict[str, SyncState]:
        """Retry the remote write of every `unsynced` form."""
        results: Dict[str, SyncState] = {}
        for form_id, state in list(self.store.states.items()):
            if state != SyncState.UNSYNCED:
                continue
            await self._push_form(self.store.forms[form_id])
            results[form_id] = self.store.states[form_id]

        if results:
            self._persist_snapshot()
        logger.info(
            "unsynced_flushed",
            attempted=len(results),
            persisted=sum(1 for s in results.values() if s == SyncState.PERSISTED),
        )
        return results

    async def flush_unsynced_responses(self) -> Dict[str, SyncState]:
        """Retry the remote insert of every `unsynced` response."""
        results: Dict[str, SyncState] = {}
        for record in self.store.responses:
            if record.sync_state != SyncState.UNSYNCED:
                continue
            try:
                await asyncio.to_thread(self.responses_table.insert, record.model_dump(mode="json"))
                record.sync_state = SyncState.PERSISTED
            except RepositoryException as e:
                logger.warning("response_push_failed", response_id=record.id, error=str(e))
            results[record.id] = record.sync_state

        if results:
            self._persist_responses()
        logger.info(
            "unsynced_responses_flushed",
            attempted=len(results),
            persisted=sum(1 for s in results.values() if s == SyncState.PERSISTED),
        )
        return results

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_form(self, form_id: str) -> FormDefinition:
        form = self.store.forms.get(form_id)
        if form is None:
            raise FormNotFoundException(form_id)
        return form

    def get_state(self, form_id: str) -> SyncState:
        self.get_form(form_id)
        return self.store.states.get(form_id, SyncState.UNSYNCED)

    def list_forms(self) -> List[FormDefinition]:
        return list(self.store.forms.values())

    def list_responses(
        self,
        form_id: str,
        submitted_by: Optional[str] = None,
    ) -> List[FormResponse]:
        self.get_form(form_id)
        email = _normalize_email(submitted_by)
        return [
            r for r in self.store.responses
            if r.form_id == form_id and (email is None or r.submitted_by == email)
        ]

    def get_response(self, response_id: str) -> FormResponse:
        for r in self.store.responses:
            if r.id == response_id:
                return r
        raise ResponseNotFoundException(response_id)

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    async def submit_response(
        self,
        form_id: str,
        responses: Mapping[str, Any],
        submitted_by: Optional[str] = None,
    ) -> SubmissionOutcome:
        """
        Validate, score and store one submission.

        Raises:
            FormNotFoundException: Unknown form id.
            EmptyResponseSetException: No answers at all.
            MissingRequiredAnswersException: Required fields left blank.
        """
        return await self._submit(self.get_form(form_id), responses, submitted_by)

    async def resubmit_response(
        self,
        response_id: str,
        responses: Mapping[str, Any],
        submitted_by: Optional[str],
    ) -> SubmissionOutcome:
        """
        Submit a replacement for an earlier response. The original record is
        kept; the new one points at it through `supersedes`.

        Raises:
            ResponseNotFoundException: Unknown response id.
            ResubmissionNotAllowedException: Editing is off or caller is not the submitter.
        """
        original = self.get_response(response_id)
        form = self.get_form(original.form_id)

        if not form.allow_edit_own_responses:
            raise ResubmissionNotAllowedException("This form does not allow editing responses")
        email = _normalize_email(submitted_by)
        if email is None or email != original.submitted_by:
            raise ResubmissionNotAllowedException("Only the original submitter may edit this response")

        return await self._submit(form, responses, email, supersedes=original.id)

    async def _submit(
        self,
        form: FormDefinition,
        responses: Mapping[str, Any],
        submitted_by: Optional[str],
        supersedes: Optional[str] = None,
    ) -> SubmissionOutcome:
        if not responses:
            raise EmptyResponseSetException()

        missing = [
            f.id for f in form.fields
            if f.required and f.type not in _NON_ANSWERABLE and _is_blank(responses.get(f.id))
        ]
        if missing:
            raise MissingRequiredAnswersException(missing)

        scored = self.scoring.score_submission(form, responses)
        record = FormResponse(
            form_id=form.id,
            responses=dict(responses),
            submitted_by=_normalize_email(submitted_by),
            total_score=scored.total_score,
            question_scores=scored.question_scores,
            feedback=scored.feedback,
            supersedes=supersedes,
        )
        self.store.responses.append(record)

        warnings: List[str] = []
        try:
            await asyncio.to_thread(self.responses_table.insert, record.model_dump(mode="json"))
            record.sync_state = SyncState.PERSISTED
        except RepositoryException as e:
            logger.warning("response_push_failed", response_id=record.id, error=str(e))
            warnings.append(f"Response saved locally but not synced to the remote store: {e}")

        warnings.extend(self._persist_responses())

        webhook_status = None
        if self.webhook is not None:
            webhook_status = await self.webhook.dispatch(form, record)

        logger.info(
            "response_submitted",
            form_id=form.id,
            response_id=record.id,
            total_score=record.total_score,
            supersedes=supersedes,
            state=record.sync_state.value,
        )
        return SubmissionOutcome(response=record, warnings=warnings, webhook_status=webhook_status)

    # ------------------------------------------------------------------
    # Access links and allow-lists
    # ------------------------------------------------------------------

    async def generate_access_link(self, form_id: str) -> str:
        """Return the form's access token, minting one if it has none."""
        form = self.get_form(form_id)
        token = self.store.access_tokens.get(form_id) or form.access_token
        if token:
            return token

        token = generate_access_token()
        form.access_token = token
        form.updated_at = _utcnow()
        self._index(form)
        await self._push_form(form)
        self._persist_snapshot()
        logger.info("access_token_minted", form_id=form_id)
        return token

    def build_access_url(self, form_id: str, token: str) -> str:
        return build_access_url(self.public_base_url, form_id, token)

    def validate_access_token(self, form_id: str, token: Optional[str]) -> bool:
        form = self.store.forms.get(form_id)
        if form is None:
            return False
        expected = self.store.access_tokens.get(form_id) or form.access_token
        return tokens_match(expected, token)

    @staticmethod
    def _require_private(form: FormDefinition) -> None:
        if not form.is_private:
            raise AccessListException(
                "Allowed users can only be managed on private forms",
                field="allowed_users",
            )

    @staticmethod
    def _single_email(email: Optional[str]) -> str:
        clean, _ = normalize_emails([email] if email else [], "allowed_users")
        if not clean:
            raise ValidationException("An email address is required", field="allowed_users")
        return clean[0]

    async def add_allowed_user(self, form_id: str, email: str) -> SyncOutcome:
        form = self.get_form(form_id)
        self._require_private(form)
        email = self._single_email(email)

        if email in form.allowed_users:
            return SyncOutcome(form=form, state=self.get_state(form_id))
        return await self.update_form(form_id, FormUpdate(allowed_users=[*form.allowed_users, email]))

    async def remove_allowed_user(self, form_id: str, email: str) -> SyncOutcome:
        form = self.get_form(form_id)
        self._require_private(form)
        email = self._single_email(email)

        if email not in form.allowed_users:
            return SyncOutcome(form=form, state=self.get_state(form_id))
        remaining = [e for e in form.allowed_users if e != email]
        return await self.update_form(form_id, FormUpdate(allowed_users=remaining))
