from __future__ import annotations
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from fieldportal.core.config import ACCESS_TOKEN_EXPIRE_MINUTES
from fieldportal.core.deps import get_current_user
from fieldportal.core.security import verify_password, create_access_token
from fieldportal.db.seed import get_setting
from fieldportal.db.session import get_db
from fieldportal.models.setting import MASTER_PASSWORD_KEY
from fieldportal.models.user import User
from fieldportal.schemas.user import UserLogin, UserRead, TokenResponse
from fieldportal.utils.strings import norm_email

logger = logging.getLogger("fieldportal.auth")

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: UserLogin, db: Session = Depends(get_db)):
    email = norm_email(payload.email)
    user = (
        db.query(User)
        .options(joinedload(User.role))
        .filter(User.email == email)
        .first()
    )
    # The allow-list check comes first: an unknown email fails whatever the password
    if not user or not user.is_active:
        logger.info("Login refused for %s: not in allow-list", email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Email not authorized")

    master = get_setting(db, MASTER_PASSWORD_KEY)
    if not master or not verify_password(payload.password, master.value):
        logger.info("Login refused for %s: wrong password", email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    token = create_access_token(user.id, user.email)
    return TokenResponse(
        access_token=token,
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserRead.model_validate(user),
    )


@router.get("/auth/me", response_model=UserRead)
def get_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user
