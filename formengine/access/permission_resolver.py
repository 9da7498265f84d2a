"""
Permission Resolver - Form Scoring & Access Engine
formengine/access/permission_resolver.py

Decides what a principal may do with a form. Rules, in priority order:

    1. edit     principal email == owner_id, or email in collaborators
    2. public   view/respond for everyone, anonymous included
    3. private  view/respond iff can edit, email in allowed_users, or the
                presented token equals form.access_token (token access needs
                no principal and never grants edit)
    4. admin    administrator preview may view any form, never respond

All email comparisons are case-insensitive. Resolution never raises; a
principal matching nothing gets every capability false.
"""

import logging
from typing import Optional

from formengine.access.tokens import tokens_match
from formengine.models.enumerations import PrincipalRole
from formengine.models.form import FormDefinition
from formengine.models.principal import Permissions, Principal

logger = logging.getLogger(__name__)


def _normalize(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    email = email.strip().lower()
    return email or None


def _email_of(principal: Optional[Principal]) -> Optional[str]:
    return _normalize(principal.email) if principal is not None else None


def _in_list(email: Optional[str], emails) -> bool:
    if email is None:
        return False
    return any(_normalize(e) == email for e in emails or ())


def derive_role(principal: Optional[Principal], form: FormDefinition) -> PrincipalRole:
    """Role by comparison against owner, collaborators and allow-list."""
    email = _email_of(principal)
    if email is None:
        return PrincipalRole.ANONYMOUS
    if email == _normalize(form.owner_id):
        return PrincipalRole.OWNER
    if _in_list(email, form.collaborators):
        return PrincipalRole.COLLABORATOR
    if _in_list(email, form.allowed_users):
        return PrincipalRole.INVITED_USER
    return PrincipalRole.ANONYMOUS


def can_edit(principal: Optional[Principal], form: FormDefinition) -> bool:
    return derive_role(principal, form) in (PrincipalRole.OWNER, PrincipalRole.COLLABORATOR)


def is_user_allowed(form: FormDefinition, email: Optional[str]) -> bool:
    """Whether an email may respond, ignoring tokens and admin preview."""
    return resolve(Principal(email=email) if email else None, form).can_respond


def resolve(
    principal: Optional[Principal],
    form: FormDefinition,
    access_token: Optional[str] = None,
) -> Permissions:
    """
    Args:
        principal: Caller, or None for an anonymous request.
        form: The form being accessed.
        access_token: Token presented with the request, if any.

    Returns:
        Permissions with can_view, can_edit, can_respond and the derived role.
    """
    try:
        role = derive_role(principal, form)
        editor = role in (PrincipalRole.OWNER, PrincipalRole.COLLABORATOR)

        if not form.is_private:
            participant = True
        else:
            participant = (
                editor
                or role == PrincipalRole.INVITED_USER
                or tokens_match(form.access_token, access_token)
            )

        permissions = Permissions(
            can_view=participant,
            can_edit=editor,
            can_respond=participant,
            role=role,
        )

        if principal is not None and principal.is_admin_preview:
            permissions.can_view = True
            permissions.can_respond = False

        return permissions
    except Exception as e:
        logger.warning(f"Permission resolution failed for form {getattr(form, 'id', None)}: {e}")
        return Permissions()
