from typing import Any, Dict, Optional

from pydantic import ConfigDict, Field

from auralis.core.utils.enums import NotificationTypeEnum, RelatedTypeEnum, SeverityEnum
from auralis.schemas.base import CamelModel, UtcDateTime


class NotificationCreateRequest(CamelModel):
    model_config = ConfigDict(use_enum_values=True)

    type: NotificationTypeEnum
    severity: SeverityEnum = SeverityEnum.INFO.value
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    related_id: Optional[str] = None
    related_type: Optional[RelatedTypeEnum] = None
    action_required: bool = False
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    expires_at: Optional[UtcDateTime] = None


class NotificationResponse(CamelModel):
    id: int
    type: str
    severity: str
    title: str
    message: str
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    is_read: bool
    action_required: bool
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="extra_metadata")
    created_at: UtcDateTime
    expires_at: Optional[UtcDateTime] = None
