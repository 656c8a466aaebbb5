"""Database models package."""

from app.models.admin import AdminUser
from app.models.answer_key import AnswerKey
from app.models.audit import AuditAction, AuditLog
from app.models.portal_setting import PortalSetting, SettingKey
from app.models.student import ExamResult, PostCode, Student

__all__ = [
    # Admin
    "AdminUser",
    # Student
    "Student",
    "ExamResult",
    "PostCode",
    # Answer keys
    "AnswerKey",
    # Settings
    "PortalSetting",
    "SettingKey",
    # Audit
    "AuditLog",
    "AuditAction",
]
