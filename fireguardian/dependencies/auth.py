from collections.abc import Callable
from enum import Enum
from typing import Annotated

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fireguardian.core.config import Settings, get_settings


class UserType(str, Enum):
    """Account types known to the platform."""

    ADMIN = "admin"
    VENDOR = "vendor"
    CLIENT = "client"


class User:
    """Authenticated platform user."""

    def __init__(self, user_id: int, user_type: UserType):
        self.user_id = user_id
        self.user_type = user_type

    def is_type(self, user_type: UserType) -> bool:
        return self.user_type == user_type


bearer_scheme = HTTPBearer(auto_error=False)


def _parse_identity(identity: str) -> User:
    user_id, _, user_type = identity.partition(":")
    return User(user_id=int(user_id), user_type=UserType(user_type))


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """Resolve a bearer token against the configured token map.

    Tokens map to ``"<user_id>:<user_type>"``. Issuing and verifying real tokens
    belongs to the platform's identity service.
    """

    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    identity = settings.auth_tokens.get(credentials.credentials)
    if identity is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")
    try:
        return _parse_identity(identity)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials") from exc


def user_type_required(user_type: UserType) -> Callable[[User], User]:
    """Dependency factory ensuring the current user has the requested account type."""

    async def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if not user.is_type(user_type):
            raise HTTPException(status_code=403, detail=f"{user_type.value.title()} access required")
        return user

    return dependency


CurrentUser = Annotated[User, Depends(get_current_user)]
