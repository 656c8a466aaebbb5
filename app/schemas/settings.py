"""Portal visibility settings schemas."""

from app.schemas.common import BaseSchema


class VisibilitySettings(BaseSchema):
    """Current global visibility flags."""

    omr_public: bool
    results_public: bool


class VisibilityUpdate(BaseSchema):
    """Partial update of the visibility flags."""

    omr_public: bool | None = None
    results_public: bool | None = None
