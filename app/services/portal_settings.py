"""Global visibility flags backed by the database."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.portal_setting import PortalSetting, SettingKey
from app.schemas.settings import VisibilitySettings, VisibilityUpdate

logger = logging.getLogger(__name__)


class PortalSettingsService:
    """
    Typed access to the portal's runtime flags.

    Values are read from the store on every call so a flag flip applies to
    sessions that were established before it.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_flag(self, key: SettingKey) -> bool:
        result = self.db.execute(
            select(PortalSetting.value).where(PortalSetting.key == key.value)
        )
        value = result.scalar_one_or_none()
        return bool(value) if value is not None else False

    def set_flag(self, key: SettingKey, value: bool) -> None:
        setting = self.db.get(PortalSetting, key.value)
        if setting is None:
            setting = PortalSetting(key=key.value, value=value)
            self.db.add(setting)
        else:
            setting.value = value
        self.db.flush()
        logger.info(f"[SETTINGS] {key.value} set to {value}")

    def is_omr_public(self) -> bool:
        return self.get_flag(SettingKey.OMR_PUBLIC)

    def is_results_public(self) -> bool:
        return self.get_flag(SettingKey.RESULTS_PUBLIC)

    def get_visibility(self) -> VisibilitySettings:
        return VisibilitySettings(
            omr_public=self.is_omr_public(),
            results_public=self.is_results_public(),
        )

    def update_visibility(self, request: VisibilityUpdate) -> VisibilitySettings:
        if request.omr_public is not None:
            self.set_flag(SettingKey.OMR_PUBLIC, request.omr_public)
        if request.results_public is not None:
            self.set_flag(SettingKey.RESULTS_PUBLIC, request.results_public)
        return self.get_visibility()
