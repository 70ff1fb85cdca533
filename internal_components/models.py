"""
Data model for the Internal Components Mapper

Source documents come in, InternalComponents records come out. Everything
here is immutable once built.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class PublishingStatus(Enum):
    """Outcome of the eligibility check"""

    VALID = "valid"
    INELIGIBLE = "ineligible"
    DELETED = "deleted"


class SourceCode(Enum):
    """Provenance tag of a source document"""

    FT = "FT"
    CONTENT_PLACEHOLDER = "ContentPlaceholder"
    DYNAMIC_CONTENT = "DynamicContent"

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional["SourceCode"]:
        """Return the matching source code, or None for unknown values"""
        for member in cls:
            if member.value == (value or "").strip():
                return member
        return None


class TransformationMode(Enum):
    """Whether the document is mapped for publishing or for preview"""

    PUBLISH = "publish"
    PREVIEW = "preview"


class ImageLabel(Enum):
    """Lead image crops, declared in output order"""

    SQUARE = "square"
    STANDARD = "standard"
    WIDE = "wide"


@dataclass(frozen=True)
class SourceDocument:
    """A legacy CMS document as received from the ingestion layer"""

    uuid: str
    type: str
    value: bytes
    attributes: str
    workflow_status: str
    web_url: Optional[str] = None


@dataclass(frozen=True)
class Design:
    theme: str
    layout: str


@dataclass(frozen=True)
class TableOfContents:
    sequence: str
    label_type: str


@dataclass(frozen=True)
class Topper:
    headline: str
    standfirst: str
    background_colour: str
    layout: str


@dataclass(frozen=True)
class Image:
    id: str
    type: ImageLabel


@dataclass(frozen=True)
class Block:
    key: str
    value_xml: str
    type: str = "html-block"


@dataclass(frozen=True)
class Summary:
    display_position: Optional[str] = None


@dataclass(frozen=True)
class InternalComponents:
    """The mapped representation handed to downstream publishing services"""

    uuid: str
    publish_reference: str
    last_modified: datetime
    design: Design
    table_of_contents: Optional[TableOfContents] = None
    topper: Optional[Topper] = None
    lead_images: Tuple[Image, ...] = field(default_factory=tuple)
    unpublished_content_description: Optional[str] = None
    body_xml: Optional[str] = None
    blocks: Optional[Tuple[Block, ...]] = None
    summary: Optional[Summary] = None
    push_notifications_cohort: Optional[str] = None
    push_notifications_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render the record with the JSON field names used downstream"""
        result: Dict[str, Any] = {
            "uuid": self.uuid,
            "publishReference": self.publish_reference,
            "lastModified": _format_timestamp(self.last_modified),
            "design": {"theme": self.design.theme, "layout": self.design.layout},
            "leadImages": [
                {"id": image.id, "type": image.type.value} for image in self.lead_images
            ],
        }

        if self.table_of_contents is not None:
            result["tableOfContents"] = {
                "sequence": self.table_of_contents.sequence,
                "labelType": self.table_of_contents.label_type,
            }

        if self.topper is not None:
            result["topper"] = {
                "headline": self.topper.headline,
                "standfirst": self.topper.standfirst,
                "backgroundColour": self.topper.background_colour,
                "layout": self.topper.layout,
            }

        if self.blocks is not None:
            result["blocks"] = [
                {"key": block.key, "valueXML": block.value_xml, "type": block.type}
                for block in self.blocks
            ]

        if self.summary is not None:
            summary = {}
            if self.summary.display_position is not None:
                summary["displayPosition"] = self.summary.display_position
            result["summary"] = summary

        optional_fields = {
            "unpublishedContentDescription": self.unpublished_content_description,
            "bodyXML": self.body_xml,
            "pushNotificationsCohort": self.push_notifications_cohort,
            "pushNotificationsText": self.push_notifications_text,
        }
        for key, value in optional_fields.items():
            if value is not None:
                result[key] = value

        return result


def _format_timestamp(value: datetime) -> str:
    # Naive timestamps are treated as UTC
    if value.tzinfo is None:
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
    return value.isoformat()
