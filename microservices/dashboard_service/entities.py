"""
Dashboard Draft Entities

Each dashboard section is a draft aggregate that owns its review lifecycle:
DRAFT -> PENDING -> APPROVED | REJECTED, with REJECTED drafts editable and
resubmittable and APPROVED drafts frozen.
"""

import json
from datetime import datetime
from typing import Any, ClassVar, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import (
    ApprovalStatus,
    DashboardEntityType,
    ENTITY_DISPLAY_NAMES,
    new_id,
    utc_now,
)
from .protocols import DashboardConflictError, DashboardValidationError


def _is_filled(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class SubmittableEntity(BaseModel):
    """Base class for dashboard drafts that go through review"""
    model_config = ConfigDict(validate_assignment=True)

    entity_type: ClassVar[DashboardEntityType]
    # Fields a submitter may edit
    content_fields: ClassVar[Tuple[str, ...]] = ()
    # Fields that count towards has_content()
    text_fields: ClassVar[Tuple[str, ...]] = ()

    id: str = Field(default_factory=new_id)
    campaign_id: str = Field(..., min_length=1)
    status: ApprovalStatus = ApprovalStatus.DRAFT
    submitted_at: Optional[datetime] = None
    submitted_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(cls, campaign_id: Optional[str], **content: Any) -> "SubmittableEntity":
        """New draft for a campaign; always starts in DRAFT"""
        if not campaign_id or not str(campaign_id).strip():
            raise DashboardValidationError("Campaign ID is required", field="campaign_id")
        cls._check_fields(content)
        now = utc_now()
        return cls(
            campaign_id=campaign_id,
            status=ApprovalStatus.DRAFT,
            created_at=now,
            updated_at=now,
            **content,
        )

    @classmethod
    def _check_fields(cls, values: Dict[str, Any]) -> None:
        unknown = sorted(set(values) - set(cls.content_fields))
        if unknown:
            raise DashboardValidationError(
                f"Unknown fields for {ENTITY_DISPLAY_NAMES[cls.entity_type]}: {', '.join(unknown)}"
            )

    @property
    def display_name(self) -> str:
        return ENTITY_DISPLAY_NAMES[self.entity_type]

    def content(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.content_fields}

    def update(self, **changes: Any) -> "SubmittableEntity":
        if self.status == ApprovalStatus.APPROVED:
            raise DashboardConflictError(
                f"Cannot update approved {self.display_name.lower()}",
                current_status=self.status,
            )
        self._check_fields(changes)
        for name, value in changes.items():
            setattr(self, name, value)
        self.updated_at = utc_now()
        return self

    def has_content(self) -> bool:
        return any(_is_filled(getattr(self, name)) for name in self.text_fields)

    def submit(self, user_id: str) -> "SubmittableEntity":
        if self.status == ApprovalStatus.APPROVED:
            raise DashboardConflictError("Cannot submit already approved entity", current_status=self.status)
        if not self.has_content():
            raise DashboardValidationError("Entity needs content before submission")
        now = utc_now()
        self.status = ApprovalStatus.PENDING
        self.submitted_by = user_id
        self.submitted_at = now
        self.updated_at = now
        return self

    def approve(self, admin_id: str, comment: Optional[str] = None) -> "SubmittableEntity":
        if self.status == ApprovalStatus.APPROVED:
            raise DashboardConflictError("Entity is already approved", current_status=self.status)
        self._mark_reviewed(ApprovalStatus.APPROVED, admin_id, comment)
        return self

    def reject(self, admin_id: str, comment: Optional[str]) -> "SubmittableEntity":
        if not comment or not comment.strip():
            raise DashboardValidationError("Comment is required when rejecting", field="comment")
        if self.status == ApprovalStatus.APPROVED:
            raise DashboardConflictError("Cannot reject approved entity", current_status=self.status)
        self._mark_reviewed(ApprovalStatus.REJECTED, admin_id, comment)
        return self

    def _mark_reviewed(self, status: ApprovalStatus, admin_id: str, comment: Optional[str]) -> None:
        now = utc_now()
        self.status = status
        self.reviewed_by = admin_id
        self.reviewed_at = now
        self.comment = comment
        self.updated_at = now

    def can_edit(self, user_id: str) -> bool:
        """Only the submitter may touch a draft while it waits for review"""
        return self.status == ApprovalStatus.PENDING and self.submitted_by == user_id

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING


class DashboardCampaignInfo(SubmittableEntity):
    entity_type: ClassVar[DashboardEntityType] = DashboardEntityType.CAMPAIGN_INFO
    content_fields: ClassVar[Tuple[str, ...]] = (
        "milestones", "investor_pitch", "is_show_pitch", "investor_pitch_title",
    )
    text_fields: ClassVar[Tuple[str, ...]] = ("milestones", "investor_pitch", "investor_pitch_title")

    milestones: Optional[str] = None
    investor_pitch: Optional[str] = None
    is_show_pitch: bool = False
    investor_pitch_title: Optional[str] = None

    @field_validator("milestones", mode="before")
    @classmethod
    def serialize_milestones(cls, v):
        """Milestones are stored as JSON text"""
        if isinstance(v, (list, dict)):
            return json.dumps(v)
        return v

    @field_validator("is_show_pitch", mode="before")
    @classmethod
    def default_show_pitch(cls, v):
        return False if v is None else v

    def has_content(self) -> bool:
        return super().has_content() or self.is_show_pitch is True


class DashboardCampaignSummary(SubmittableEntity):
    entity_type: ClassVar[DashboardEntityType] = DashboardEntityType.CAMPAIGN_SUMMARY
    content_fields: ClassVar[Tuple[str, ...]] = ("summary", "tag_line")
    text_fields: ClassVar[Tuple[str, ...]] = ("summary", "tag_line")

    summary: Optional[str] = None
    tag_line: Optional[str] = None


class DashboardSocials(SubmittableEntity):
    entity_type: ClassVar[DashboardEntityType] = DashboardEntityType.SOCIALS
    content_fields: ClassVar[Tuple[str, ...]] = (
        "linked_in", "twitter", "instagram", "facebook", "tiktok", "yelp",
    )
    text_fields: ClassVar[Tuple[str, ...]] = content_fields

    linked_in: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    tiktok: Optional[str] = None
    yelp: Optional[str] = None


class DashboardOwner(SubmittableEntity):
    entity_type: ClassVar[DashboardEntityType] = DashboardEntityType.OWNERS
    content_fields: ClassVar[Tuple[str, ...]] = ("name", "position", "description", "owner_id")
    # owner_id links a platform user and is not content
    text_fields: ClassVar[Tuple[str, ...]] = ("name", "position", "description")

    name: Optional[str] = None
    position: Optional[str] = None
    description: Optional[str] = None
    owner_id: Optional[str] = None


ENTITY_CLASSES: Dict[DashboardEntityType, Type[SubmittableEntity]] = {
    DashboardEntityType.CAMPAIGN_INFO: DashboardCampaignInfo,
    DashboardEntityType.CAMPAIGN_SUMMARY: DashboardCampaignSummary,
    DashboardEntityType.SOCIALS: DashboardSocials,
    DashboardEntityType.OWNERS: DashboardOwner,
}

# Sections with many drafts per campaign
MULTI_ENTITY_TYPES = frozenset({DashboardEntityType.OWNERS})


def entity_class_for(entity_type: DashboardEntityType) -> Type[SubmittableEntity]:
    return ENTITY_CLASSES[entity_type]


__all__ = [
    "SubmittableEntity",
    "DashboardCampaignInfo",
    "DashboardCampaignSummary",
    "DashboardSocials",
    "DashboardOwner",
    "ENTITY_CLASSES",
    "MULTI_ENTITY_TYPES",
    "entity_class_for",
]
