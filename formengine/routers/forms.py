"""
Forms Router - Form Scoring & Access Engine
formengine/routers/forms.py

Form CRUD, access links, allow-lists and submissions. Every route resolves
the caller's permissions first; denials are 403 before any write.

Identity comes from the identity provider as headers:
    X-User-Email      caller's email (absent for anonymous callers)
    X-User-Standing   admin | authenticated | anonymous
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, status
from fastapi.exceptions import HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from formengine.access.permission_resolver import resolve
from formengine.config import settings
from formengine.core.dependencies import get_synchronizer
from formengine.core.exceptions import (
    AccessListException,
    EntityNotFoundException,
    RemoteStoreUnavailableException,
    RepositoryException,
    ResubmissionNotAllowedException,
    ValidationException,
)
from formengine.models.enumerations import Standing, SyncState
from formengine.models.form import (
    EDITOR_ONLY_FIELDS,
    ErrorResponse,
    FormCreate,
    FormDefinition,
    FormUpdate,
    FormView,
)
from formengine.models.principal import Permissions, Principal
from formengine.models.response import FormResponse, ResponseSubmit
from formengine.scoring.range_resolver import should_show_score_card
from formengine.services.form_synchronizer import (
    FormStateSynchronizer,
    SubmissionOutcome,
    SyncOutcome,
)

router = APIRouter(prefix=f"{settings.API_V1_PREFIX}/forms", tags=["Forms"])



#  Schemas


class FormResult(BaseModel):
    form: FormDefinition
    state: SyncState
    warnings: List[str] = Field(default_factory=list)


class FormListResponse(BaseModel):
    items: List[FormView]
    total: int


class SubmissionResult(BaseModel):
    response: FormResponse
    show_score_card: bool
    warnings: List[str] = Field(default_factory=list)


class ResponseListResponse(BaseModel):
    items: List[FormResponse]
    total: int


class AccessLinkResponse(BaseModel):
    token: str
    url: str


class TokenValidationResponse(BaseModel):
    valid: bool


class AllowedUserRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)


class SyncReport(BaseModel):
    states: Dict[str, SyncState]
    responses: Dict[str, SyncState] = Field(default_factory=dict)



#  Exception Helpers


def _error_body(error_code: str, message: str, details: Optional[dict] = None) -> dict:
    return ErrorResponse(
        error_code=error_code,
        message=message,
        details=details,
        timestamp=datetime.now(timezone.utc),
    ).model_dump(mode="json")


def raise_error(status_code: int, error_code: str, message: str):
    raise HTTPException(status_code=status_code, detail=_error_body(error_code, message))


def raise_forbidden(action: str):
    raise_error(status.HTTP_403_FORBIDDEN, "FORBIDDEN", f"Not allowed to {action} this form")


def raise_authentication_required():
    raise_error(status.HTTP_401_UNAUTHORIZED, "AUTHENTICATION_REQUIRED", "A signed-in user is required")


async def validation_exception_handler(request: Request, exc: ValidationException):
    if isinstance(exc, ResubmissionNotAllowedException):
        code, error_code = status.HTTP_403_FORBIDDEN, "RESUBMISSION_NOT_ALLOWED"
    elif isinstance(exc, AccessListException):
        code, error_code = status.HTTP_409_CONFLICT, "ACCESS_LIST_CONFLICT"
    else:
        code, error_code = status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR"
    return JSONResponse(
        status_code=code,
        content=_error_body(error_code, exc.message, {"field": exc.field} if exc.field else None),
    )


async def repository_exception_handler(request: Request, exc: RepositoryException):
    if isinstance(exc, EntityNotFoundException):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=_error_body(f"{exc.entity_type.upper()}_NOT_FOUND", str(exc)),
        )
    error_code = (
        "REMOTE_STORE_UNAVAILABLE"
        if isinstance(exc, RemoteStoreUnavailableException)
        else "REPOSITORY_ERROR"
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(error_code, str(exc)),
    )



#  Dependencies


def get_principal(
    x_user_email: Optional[str] = Header(default=None),
    x_user_standing: Optional[str] = Header(default=None),
) -> Principal:
    """Caller as asserted by the identity provider headers."""
    try:
        standing = Standing((x_user_standing or "").strip().lower())
    except ValueError:
        standing = Standing.AUTHENTICATED if x_user_email else Standing.ANONYMOUS
    return Principal(email=x_user_email, standing=standing)


def _view(form: FormDefinition, permissions: Permissions) -> FormView:
    """Editors get the whole form; everyone else gets it without EDITOR_ONLY_FIELDS."""
    if permissions.can_edit:
        return FormView.model_validate(form.model_dump())
    return FormView.model_validate(form.model_dump(exclude=EDITOR_ONLY_FIELDS))


def _visible_forms(forms: List[FormDefinition], principal: Principal) -> FormListResponse:
    items = []
    for form in forms:
        permissions = resolve(principal, form)
        if permissions.can_view:
            items.append(_view(form, permissions))
    return FormListResponse(items=items, total=len(items))


def _outcome(outcome: SyncOutcome) -> FormResult:
    return FormResult(form=outcome.form, state=outcome.state, warnings=outcome.warnings)


def _submission(form: FormDefinition, outcome: SubmissionOutcome) -> SubmissionResult:
    return SubmissionResult(
        response=outcome.response,
        show_score_card=should_show_score_card(form),
        warnings=outcome.warnings,
    )



#  Routes


@router.get(
    "",
    response_model=FormListResponse,
    response_model_exclude_unset=True,
    summary="List forms visible to the caller",
)
async def list_forms(
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> FormListResponse:
    return _visible_forms(sync.list_forms(), principal)


@router.post(
    "",
    response_model=FormResult,
    status_code=status.HTTP_201_CREATED,
    summary="Create a form owned by the caller",
)
async def create_form(
    payload: FormCreate,
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> FormResult:
    if not principal.email:
        raise_authentication_required()
    return _outcome(await sync.create_form(payload, principal.email))


@router.get(
    "/{form_id}",
    response_model=FormView,
    response_model_exclude_unset=True,
    summary="Get a form",
    description="The access token, member lists and webhook config are returned to editors only.",
)
async def get_form(
    form_id: str,
    token: Optional[str] = Query(default=None, description="Access token from a shared link"),
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> FormView:
    form = sync.get_form(form_id)
    permissions = resolve(principal, form, token)
    if not permissions.can_view:
        raise_forbidden("view")
    return _view(form, permissions)


@router.patch(
    "/{form_id}",
    response_model=FormResult,
    summary="Update a form",
)
async def update_form(
    form_id: str,
    changes: FormUpdate,
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> FormResult:
    if not resolve(principal, sync.get_form(form_id)).can_edit:
        raise_forbidden("edit")
    return _outcome(await sync.update_form(form_id, changes))


@router.delete(
    "/{form_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a form and its responses",
)
async def delete_form(
    form_id: str,
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> None:
    if not resolve(principal, sync.get_form(form_id)).can_edit:
        raise_forbidden("delete")
    await sync.delete_form(form_id)


@router.get(
    "/{form_id}/permissions",
    response_model=Permissions,
    summary="Caller's capabilities on a form",
)
async def get_permissions(
    form_id: str,
    token: Optional[str] = Query(default=None),
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> Permissions:
    return resolve(principal, sync.get_form(form_id), token)


@router.post(
    "/{form_id}/access-link",
    response_model=AccessLinkResponse,
    summary="Get or mint the form's shareable access link",
)
async def generate_access_link(
    form_id: str,
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> AccessLinkResponse:
    if not resolve(principal, sync.get_form(form_id)).can_edit:
        raise_forbidden("share")
    token = await sync.generate_access_link(form_id)
    return AccessLinkResponse(token=token, url=sync.build_access_url(form_id, token))


@router.get(
    "/{form_id}/access/{token}",
    response_model=TokenValidationResponse,
    summary="Check an access token",
)
async def validate_access_token(
    form_id: str,
    token: str,
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> TokenValidationResponse:
    return TokenValidationResponse(valid=sync.validate_access_token(form_id, token))


@router.post(
    "/{form_id}/allowed-users",
    response_model=FormResult,
    summary="Allow a user to respond to a private form",
)
async def add_allowed_user(
    form_id: str,
    body: AllowedUserRequest,
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> FormResult:
    if not resolve(principal, sync.get_form(form_id)).can_edit:
        raise_forbidden("manage access to")
    return _outcome(await sync.add_allowed_user(form_id, body.email))


@router.delete(
    "/{form_id}/allowed-users/{email}",
    response_model=FormResult,
    summary="Revoke a user's access to a private form",
)
async def remove_allowed_user(
    form_id: str,
    email: str,
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> FormResult:
    if not resolve(principal, sync.get_form(form_id)).can_edit:
        raise_forbidden("manage access to")
    return _outcome(await sync.remove_allowed_user(form_id, email))


@router.post(
    "/{form_id}/responses",
    response_model=SubmissionResult,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a response",
)
async def submit_response(
    form_id: str,
    payload: ResponseSubmit,
    token: Optional[str] = Query(default=None),
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> SubmissionResult:
    form = sync.get_form(form_id)
    if not resolve(principal, form, token).can_respond:
        raise_forbidden("respond to")
    outcome = await sync.submit_response(form_id, payload.responses, principal.email)
    return _submission(form, outcome)


@router.put(
    "/{form_id}/responses/{response_id}",
    response_model=SubmissionResult,
    status_code=status.HTTP_201_CREATED,
    summary="Resubmit (edit) one of the caller's responses",
)
async def resubmit_response(
    form_id: str,
    response_id: str,
    payload: ResponseSubmit,
    token: Optional[str] = Query(default=None),
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> SubmissionResult:
    form = sync.get_form(form_id)
    if sync.get_response(response_id).form_id != form_id:
        raise_error(status.HTTP_404_NOT_FOUND, "RESPONSE_NOT_FOUND", "Response not found on this form")
    if not resolve(principal, form, token).can_respond:
        raise_forbidden("respond to")
    outcome = await sync.resubmit_response(response_id, payload.responses, principal.email)
    return _submission(form, outcome)


@router.get(
    "/{form_id}/responses",
    response_model=ResponseListResponse,
    summary="List responses",
    description="Editors see every response; other callers see their own when the form allows it.",
)
async def list_responses(
    form_id: str,
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> ResponseListResponse:
    form = sync.get_form(form_id)
    permissions = resolve(principal, form)
    if permissions.can_edit:
        items = sync.list_responses(form_id)
    elif form.allow_view_own_responses and principal.email and permissions.can_view:
        items = sync.list_responses(form_id, submitted_by=principal.email)
    else:
        raise_forbidden("read responses of")
    return ResponseListResponse(items=items, total=len(items))


@router.post(
    "/sync/reload",
    response_model=FormListResponse,
    response_model_exclude_unset=True,
    summary="Reload every form from the remote store",
)
async def reload_forms(
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> FormListResponse:
    if not principal.email:
        raise_authentication_required()
    return _visible_forms(await sync.load_all(), principal)


@router.post(
    "/sync/flush",
    response_model=SyncReport,
    summary="Retry remote writes of unsynced forms and responses",
)
async def flush_unsynced(
    principal: Principal = Depends(get_principal),
    sync: FormStateSynchronizer = Depends(get_synchronizer),
) -> SyncReport:
    if not principal.email:
        raise_authentication_required()
    return SyncReport(
        states=await sync.flush_unsynced(),
        responses=await sync.flush_unsynced_responses(),
    )
