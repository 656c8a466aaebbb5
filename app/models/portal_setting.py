"""Runtime portal settings stored as key/value rows."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import utcnow


class SettingKey(str, enum.Enum):
    """Known global visibility flags."""

    OMR_PUBLIC = "omrPublic"
    RESULTS_PUBLIC = "resultsPublic"


class PortalSetting(Base):
    """Global boolean flag."""

    __tablename__ = "portal_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PortalSetting(key={self.key}, value={self.value})>"
