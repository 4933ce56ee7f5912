from __future__ import annotations
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session, joinedload
from jose import jwt, JWTError
from pydantic import ValidationError

from fieldportal.db.session import get_db
from fieldportal.models.user import User
from fieldportal.core.config import SECRET_KEY, ALGORITHM
from fieldportal.core.security import TokenPayload

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")

_UNAUTHORIZED = {"WWW-Authenticate": "Bearer"}


def decode_access_token(token: str) -> TokenPayload:
    try:
        data = TokenPayload(**jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM]))
    except (JWTError, ValidationError):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token", headers=_UNAUTHORIZED)
    if data.type != "access":
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Access token required", headers=_UNAUTHORIZED)
    return data


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """
    The token only names the user; role and active flag are read from the
    database on every request, so an admin's changes apply to tokens already
    handed out.
    """
    data = decode_access_token(token)
    user = db.get(User, int(data.sub), options=[joinedload(User.role)])
    if user is None or not user.is_active:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Email not authorized", headers=_UNAUTHORIZED)
    return user


def require_roles(*role_names: str):
    """
    Dependency factory: 403 unless the current user's role is one of ``role_names``.

        @router.delete("/{year}/{month}", dependencies=[Depends(require_roles(ADMIN))])
    """
    allowed = frozenset(role_names)

    def _checker(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role_name not in allowed:
            raise HTTPException(status.HTTP_403_FORBIDDEN, "Insufficient role")
        return current_user
    return _checker
