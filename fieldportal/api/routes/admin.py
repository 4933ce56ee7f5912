from __future__ import annotations
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from fieldportal.core.deps import require_roles
from fieldportal.db.session import get_db
from fieldportal.core.security import hash_password
from fieldportal.db.seed import set_setting
from fieldportal.models.role import Role, ADMIN
from fieldportal.models.setting import MASTER_PASSWORD_KEY
from fieldportal.models.user import User
from fieldportal.schemas.role import RoleRead, RoleCreate
from fieldportal.schemas.user import UserCreate, UserRead, SetRoleRequest, MasterPasswordChange
from fieldportal.utils.strings import norm_email

logger = logging.getLogger("fieldportal.admin")

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_roles(ADMIN))],
)


def _role_by_name(db: Session, name: str) -> Role:
    role = db.query(Role).filter(Role.name == name.strip().lower()).first()
    if not role:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Role '{name}' not found")
    return role


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id, options=[joinedload(User.role)])
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/users", response_model=list[UserRead])
def list_users(db: Session = Depends(get_db)):
    # Eager-load roles so Pydantic can serialize UserRead.role cleanly
    return (
        db.query(User)
        .options(joinedload(User.role))
        .order_by(User.email.asc())
        .all()
    )


@router.post("/users", response_model=UserRead, status_code=201)
def add_user(payload: UserCreate, db: Session = Depends(get_db)):
    email = norm_email(payload.email)
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail=f"'{email}' is already in the allow-list")
    role = _role_by_name(db, payload.role)
    user = User(
        email=email,
        full_name=payload.full_name,
        phone=payload.phone,
        city=payload.city,
        role_id=role.id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    logger.info("Added %s to the allow-list as %s", email, role.name)
    return _get_user(db, user.id)


@router.patch("/users/{user_id}/role", response_model=UserRead)
def set_user_role(user_id: int, body: SetRoleRequest, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    role = _role_by_name(db, body.role)
    user.role_id = role.id
    db.commit()
    db.expire(user)
    return _get_user(db, user_id)


@router.delete("/users/{user_id}", response_model=UserRead)
def deactivate_user(user_id: int, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    user.is_active = False
    db.commit()
    logger.info("Deactivated %s", user.email)
    return _get_user(db, user_id)


@router.put("/master-password", response_model=dict)
def change_master_password(body: MasterPasswordChange, db: Session = Depends(get_db)):
    set_setting(db, MASTER_PASSWORD_KEY, hash_password(body.new_password))
    db.commit()
    logger.info("Master password changed")
    return {"ok": True}


@router.get("/roles", response_model=list[RoleRead])
def list_roles(db: Session = Depends(get_db)):
    return db.query(Role).order_by(Role.name).all()


@router.post("/roles", response_model=RoleRead, status_code=201)
def create_role(payload: RoleCreate, db: Session = Depends(get_db)):
    name = payload.name.strip().lower()
    if db.query(Role).filter(Role.name == name).first():
        raise HTTPException(status_code=400, detail="Role already exists")
    role = Role(name=name, description=payload.description)
    db.add(role)
    db.commit()
    db.refresh(role)
    return role
