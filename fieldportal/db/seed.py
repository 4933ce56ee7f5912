from __future__ import annotations
import logging

from sqlalchemy.orm import Session

from fieldportal.core.config import settings
from fieldportal.core.security import hash_password
from fieldportal.models.role import Role, ADMIN, STAFF
from fieldportal.models.setting import Setting, MASTER_PASSWORD_KEY
from fieldportal.models.user import User
from fieldportal.utils.strings import norm_email

logger = logging.getLogger("fieldportal.seed")


def get_or_create_role(db: Session, name: str, desc: str | None = None) -> Role:
    role = db.query(Role).filter(Role.name == name).first()
    if not role:
        role = Role(name=name, description=desc)
        db.add(role)
        db.flush()  # get role.id
    return role


def get_setting(db: Session, key: str) -> Setting | None:
    return db.query(Setting).filter(Setting.key == key).first()


def set_setting(db: Session, key: str, value: str) -> Setting:
    row = get_setting(db, key)
    if row:
        row.value = value
    else:
        row = Setting(key=key, value=value)
        db.add(row)
    return row


def seed_defaults(db: Session) -> None:
    """
    - Seed roles (admin/staff)
    - Ensure the first admin user from ADMIN_EMAIL
    - Add APPROVED_EMAILS to the allow-list as staff
    - Store the master password hash if none is set
    Idempotent; existing rows are never overwritten.
    """
    admin_role = get_or_create_role(db, ADMIN, "Can manage users, schedules and lookups")
    staff_role = get_or_create_role(db, STAFF, "Default role for office and field staff")

    admin_email = norm_email(settings.admin_email)
    if admin_email and not db.query(User).filter(User.email == admin_email).first():
        db.add(User(email=admin_email, full_name="Admin", role_id=admin_role.id, is_active=True))
        logger.info("Seeded admin user %s", admin_email)

    added = 0
    for email in settings.approved_emails:
        if email == admin_email:
            continue
        if not db.query(User).filter(User.email == email).first():
            db.add(User(email=email, role_id=staff_role.id, is_active=True))
            added += 1
    if added:
        logger.info("Added %d approved emails to the allow-list", added)

    if not get_setting(db, MASTER_PASSWORD_KEY):
        set_setting(db, MASTER_PASSWORD_KEY, hash_password(settings.master_password))
        logger.info("Master password has been set")

    db.commit()
