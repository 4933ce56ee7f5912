# fieldportal/admin.py
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import select
from sqlalchemy.orm import joinedload

from fieldportal.core.config import settings
from fieldportal.core.security import verify_password
from fieldportal.db.seed import get_setting
from fieldportal.db.session import engine, SessionLocal
from fieldportal.models.commessa import Commessa
from fieldportal.models.piezometer import Piezometer
from fieldportal.models.receipt import Receipt
from fieldportal.models.role import Role, ADMIN
from fieldportal.models.sampling_event import SamplingEvent
from fieldportal.models.schedule import ScheduleData
from fieldportal.models.setting import MASTER_PASSWORD_KEY
from fieldportal.models.site import Site
from fieldportal.models.user import User
from fieldportal.models.waste_log import WasteLog
from fieldportal.utils.strings import norm_email


# --- Auth backend: admin-role user + shared master password ---
class AdminAuth(AuthenticationBackend):
    async def login(self, request):
        form = await request.form()
        email = norm_email(form.get("username"))
        password = form.get("password") or ""
        db = SessionLocal()
        try:
            user = db.execute(
                select(User)
                .join(Role, User.role_id == Role.id)
                .where(
                    User.email == email,
                    User.is_active == True,  # noqa: E712
                    Role.name == ADMIN,
                )
            ).scalar_one_or_none()
            master = get_setting(db, MASTER_PASSWORD_KEY)

            if user and master and verify_password(password, master.value):
                request.session["authenticated"] = True
                request.session["admin_user_id"] = user.id
                return True
            return False
        finally:
            db.close()

    async def authenticate(self, request):
        # Re-checked per request: deactivation or demotion ends the session
        user_id = request.session.get("admin_user_id")
        if not request.session.get("authenticated") or not user_id:
            return False
        db = SessionLocal()
        try:
            user = db.get(User, user_id, options=[joinedload(User.role)])
            allowed = bool(user and user.is_active and user.role_name == ADMIN)
        finally:
            db.close()
        if not allowed:
            request.session.clear()
        return allowed

    async def logout(self, request):
        request.session.clear()
        return True


# --- Users ---
class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"
    category = "Access"
    column_list = [
        User.id, User.email, User.full_name, User.role_id,
        User.is_active, User.last_login, User.created_at,
    ]
    column_searchable_list = [User.email, User.full_name]
    column_sortable_list = [User.id, User.email, User.last_login]
    column_formatters = {
        User.role_id: lambda m, a: f"{m.role_id} ({getattr(m.role, 'name', '')})"
    }


# --- Roles ---
class RoleAdmin(ModelView, model=Role):
    name = "Role"
    name_plural = "Roles"
    icon = "fa-solid fa-users"
    category = "Access"
    column_list = [Role.id, Role.name, Role.description]


# --- Commesse ---
class CommessaAdmin(ModelView, model=Commessa):
    name = "Commessa"
    name_plural = "Commesse"
    icon = "fa-solid fa-briefcase"
    category = "Expenses"
    column_list = [Commessa.id, Commessa.code, Commessa.description, Commessa.wbs_element]
    column_searchable_list = [Commessa.code, Commessa.description]
    column_sortable_list = [Commessa.id, Commessa.code]


# --- Receipts (read-only, commessa is a snapshot) ---
class ReceiptAdmin(ModelView, model=Receipt):
    name = "Receipt"
    name_plural = "Receipts"
    icon = "fa-solid fa-receipt"
    category = "Expenses"
    column_list = [
        Receipt.id, Receipt.date, Receipt.amount, Receipt.text,
        Receipt.created_by_id, Receipt.created_at,
    ]
    column_sortable_list = [Receipt.id, Receipt.date, Receipt.amount]
    column_details_exclude_list = [Receipt.image_data]
    column_formatters = {
        Receipt.created_by_id: lambda m, a: f"{m.created_by_id} ({getattr(m.created_by, 'email', '')})"
    }
    can_create = False
    can_edit = False


# --- Schedules ---
class ScheduleAdmin(ModelView, model=ScheduleData):
    name = "Schedule"
    name_plural = "Schedules"
    icon = "fa-regular fa-calendar"
    column_list = [ScheduleData.id, ScheduleData.year, ScheduleData.month, ScheduleData.file_name, ScheduleData.uploaded_at]
    column_sortable_list = [ScheduleData.year, ScheduleData.month, ScheduleData.uploaded_at]
    column_details_exclude_list = [ScheduleData.csv_content]
    can_create = False
    can_edit = False


# --- Sites ---
class SiteAdmin(ModelView, model=Site):
    name = "Site"
    name_plural = "Sites"
    icon = "fa-solid fa-map-location-dot"
    category = "Monitoring"
    column_list = [Site.id, Site.name, Site.client, Site.address, Site.latitude, Site.longitude]
    column_searchable_list = [Site.name, Site.client]
    column_sortable_list = [Site.id, Site.name]
    form_excluded_columns = ["piezometers"]
    can_delete = False


# --- Piezometers ---
class PiezometerAdmin(ModelView, model=Piezometer):
    name = "Piezometer"
    name_plural = "Piezometers"
    icon = "fa-solid fa-location-dot"
    category = "Monitoring"
    column_list = [
        Piezometer.id, Piezometer.name, Piezometer.site_id,
        Piezometer.latitude, Piezometer.longitude, Piezometer.depth,
    ]
    column_searchable_list = [Piezometer.name]
    column_sortable_list = [Piezometer.id, Piezometer.site_id, Piezometer.name]
    column_formatters = {
        Piezometer.site_id: lambda m, a: f"{m.site_id} ({getattr(m.site, 'name', '')})"
    }
    can_delete = False


# --- Sampling events ---
class SamplingEventAdmin(ModelView, model=SamplingEvent):
    name = "Sampling Event"
    name_plural = "Sampling Events"
    icon = "fa-solid fa-vial"
    category = "Monitoring"
    column_list = [
        SamplingEvent.id, SamplingEvent.piezometer_id, SamplingEvent.date,
        SamplingEvent.depth_to_water, SamplingEvent.ph, SamplingEvent.conductivity,
        SamplingEvent.temperature,
    ]
    column_sortable_list = [SamplingEvent.id, SamplingEvent.date, SamplingEvent.piezometer_id]
    column_formatters = {
        SamplingEvent.piezometer_id: lambda m, a: f"{m.piezometer_id} ({getattr(m.piezometer, 'name', '')})"
    }


# --- Waste logs ---
class WasteLogAdmin(ModelView, model=WasteLog):
    name = "Waste Log"
    name_plural = "Waste Logs"
    icon = "fa-solid fa-dumpster"
    category = "Monitoring"
    column_list = [
        WasteLog.id, WasteLog.site_id, WasteLog.date_generated, WasteLog.waste_type,
        WasteLog.eer_code, WasteLog.quantity, WasteLog.unit, WasteLog.status,
    ]
    column_searchable_list = [WasteLog.eer_code, WasteLog.description]
    column_sortable_list = [WasteLog.id, WasteLog.date_generated, WasteLog.status]


VIEWS = [
    UserAdmin,
    RoleAdmin,
    CommessaAdmin,
    ReceiptAdmin,
    ScheduleAdmin,
    SiteAdmin,
    PiezometerAdmin,
    SamplingEventAdmin,
    WasteLogAdmin,
]


def mount_admin(app) -> Admin:
    # Use default SQLAdmin templates by NOT passing templates_dir
    auth_backend = AdminAuth(secret_key=settings.admin_session_secret)
    admin = Admin(
        app=app,
        engine=engine,
        authentication_backend=auth_backend,
    )
    for view in VIEWS:
        admin.add_view(view)
    return admin
