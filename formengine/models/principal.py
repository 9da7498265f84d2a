from pydantic import BaseModel, Field, field_validator
from typing import Optional

from formengine.models.enumerations import PrincipalRole, Standing


class Principal(BaseModel):
    """
    The caller as reported by the identity provider. Only the email is used
    for role derivation; credentials are never seen here.
    """

    email: Optional[str] = None
    standing: Standing = Standing.ANONYMOUS

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        return v or None

    @property
    def is_admin_preview(self) -> bool:
        return self.standing == Standing.ADMIN


class Permissions(BaseModel):
    """
    Capabilities of one principal on one form.
    """

    can_view: bool = False
    can_edit: bool = False
    can_respond: bool = False
    role: PrincipalRole = Field(default=PrincipalRole.ANONYMOUS)
