"""ORM model registry. Importing this package registers every table on ``Base.metadata``."""

from visitor_api.models.app_setting import AppSetting
from visitor_api.models.app_user import AppUser, UserRole
from visitor_api.models.audit_log import AuditLog
from visitor_api.models.base import Base
from visitor_api.models.error_log import ErrorLog
from visitor_api.models.visitor_record import ConsentType, VisitorRecord, VisitorStatus, VisitorType

__all__ = [
    "AppSetting",
    "AppUser",
    "AuditLog",
    "Base",
    "ConsentType",
    "ErrorLog",
    "UserRole",
    "VisitorRecord",
    "VisitorStatus",
    "VisitorType",
]
