"""Request dependencies: bearer-token authentication and role guards."""

from typing import Annotated, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from uniport.core.auth import resolve_token
from uniport.db.users_repository import UserRecord

bearer_scheme = HTTPBearer(auto_error=False)


def get_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Bearer token of the request."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_current_user(token: Annotated[str, Depends(get_token)]) -> UserRecord:
    """User owning the bearer token."""
    user = resolve_token(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_role(*roles: str) -> Callable[[UserRecord], UserRecord]:
    """Dependency factory allowing only the given roles."""

    def guard(user: Annotated[UserRecord, Depends(get_current_user)]) -> UserRecord:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This endpoint requires role: {' or '.join(roles)}",
            )
        return user

    return guard


TokenDep = Annotated[str, Depends(get_token)]
CurrentUser = Annotated[UserRecord, Depends(get_current_user)]
StudentUser = Annotated[UserRecord, Depends(require_role("student"))]
StaffUser = Annotated[UserRecord, Depends(require_role("admin", "lecturer"))]
AdminUser = Annotated[UserRecord, Depends(require_role("admin"))]
