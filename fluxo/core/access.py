# fluxo/core/access.py
"""Controle de acesso por papel.

O papel vem da aba de usuários autorizados da planilha. Essa checagem só
esconde ações do cliente; a planilha não aplica nenhuma regra própria.
"""
import logging
from enum import Enum
from typing import Iterable, Optional

from fluxo.core.errors import PermissionDenied
from fluxo.core.models import AuthorizedUser, Role
from fluxo.utils.text_utils import normalize_email

logger = logging.getLogger(__name__)


class AccessState(str, Enum):
    UNKNOWN = "unknown"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class Permission(str, Enum):
    EDIT_LEDGER = "edit_ledger"          # transações e notas
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_DESCRIPTIONS = "manage_descriptions"
    MANAGE_ESTABLISHMENTS = "manage_establishments"
    MANAGE_USERS = "manage_users"


ROLE_PERMISSIONS = {
    Role.ADMIN: frozenset(Permission),
    Role.FINANCEIRO: frozenset({
        Permission.EDIT_LEDGER,
        Permission.MANAGE_SETTINGS,
        Permission.MANAGE_DESCRIPTIONS,
    }),
    Role.CONVIDADO: frozenset(),
}


def resolve_role(users: Iterable[AuthorizedUser], email: str) -> Optional[Role]:
    """Papel do e-mail na lista de autorizados (sem diferenciar maiúsculas e espaços)."""
    key = normalize_email(email)
    if not key:
        return None
    for user in users:
        if normalize_email(user.email) == key:
            return user.role
    return None


class AccessGate:
    def __init__(self):
        self.state = AccessState.UNKNOWN
        self.role: Optional[Role] = None

    @property
    def is_authorized(self) -> Optional[bool]:
        """None enquanto nenhuma sincronização resolveu o acesso."""
        if self.state == AccessState.UNKNOWN:
            return None
        return self.state == AccessState.AUTHORIZED

    def reset(self) -> None:
        self.state = AccessState.UNKNOWN
        self.role = None

    def grant_local_admin(self) -> None:
        """Modo local (sem planilha): acesso total."""
        self.state = AccessState.AUTHORIZED
        self.role = Role.ADMIN

    def resolve(self, users: Iterable[AuthorizedUser], email: str) -> AccessState:
        """Chamado somente após uma sincronização que trouxe a lista de usuários."""
        role = resolve_role(users, email)
        if role is None:
            self.state = AccessState.DENIED
            self.role = None
            logger.warning("E-mail %s não está na lista de usuários autorizados.", email)
        else:
            self.state = AccessState.AUTHORIZED
            self.role = role
        return self.state

    def can(self, permission: Permission) -> bool:
        if self.state != AccessState.AUTHORIZED or self.role is None:
            return False
        return permission in ROLE_PERMISSIONS[self.role]

    def require(self, permission: Permission, action: str) -> None:
        if not self.can(permission):
            raise PermissionDenied(action, self.role)
