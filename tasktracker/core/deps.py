"""Request dependencies: authentication and role gates."""
from dataclasses import dataclass
from typing import Optional

from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tasktracker.core.errors import Forbidden, MissingToken, PrincipalNotFound
from tasktracker.core.tokens import TokenVault
from tasktracker.db.base import get_db
from tasktracker.models.user import User, UserRole
from tasktracker.services.notifications import Notifier
from tasktracker.stores.credentials import CredentialStore

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user: User
    token: str


def get_token_vault(request: Request) -> TokenVault:
    return request.app.state.token_vault


def get_notifier(request: Request, background_tasks: BackgroundTasks) -> Notifier:
    return Notifier(request.app.state.notification_sink, background_tasks)


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    vault: TokenVault = Depends(get_token_vault),
) -> AuthContext:
    """Resolve the bearer token to a live principal.

    The role used for every later decision is the one stored now, not the
    role claim signed into the token.
    """
    if credentials is None or not credentials.credentials:
        raise MissingToken()

    claims = vault.validate(credentials.credentials)

    user = CredentialStore(db).get(claims.principal_id)
    if user is None:
        raise PrincipalNotFound()

    return AuthContext(user=user, token=credentials.credentials)


def get_current_user(context: AuthContext = Depends(get_auth_context)) -> User:
    return context.user


def require_role(roles):
    allowed = set(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise Forbidden(
                f"Role '{current_user.role.value}' is not allowed to access this route"
            )
        return current_user

    return role_checker
