"""Pydantic models shared by the API client, rewriter and orchestrator."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BacklinkFlag(str, Enum):
    """Relation kinds reported by the backlink API."""

    LINK = "link"
    REDIRECT = "redirect"
    FILE = "file"
    INCLUDE = "include"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        return cls.OTHER


class BacklinkEntry(BaseModel):
    """A single document returned by the backlink API."""

    document: str = Field(description="Title of the linking document")
    flags: BacklinkFlag = Field(BacklinkFlag.OTHER, description="Relation kind")

    @field_validator('flags', mode='before')
    @classmethod
    def coerce_flags(cls, v):
        return BacklinkFlag(v) if v is not None else BacklinkFlag.OTHER

    @property
    def is_link(self) -> bool:
        return self.flags == BacklinkFlag.LINK


class Discussion(BaseModel):
    """A discussion thread attached to a document."""

    slug: str = Field("", description="Thread identifier")
    topic: str = Field("", description="Thread topic")
    updated_date: int = Field(0, description="Last update as a unix timestamp")
    status: str = Field("", description="Thread status; 'normal' means open")

    @property
    def is_open(self) -> bool:
        return self.status == "normal"


class PageSnapshot(BaseModel):
    """Document body paired with the single-use token needed to edit it."""

    title: str
    body: str
    edit_token: str
    exists: bool = True


class RenameJob(BaseModel):
    """An old/new title pair plus the policy for bare links."""

    model_config = ConfigDict(frozen=True)

    old_title: str = Field(description="Title the links currently point at")
    new_title: str = Field(description="Title the links should point at")
    keep_display_text: bool = Field(False, description="Keep the old title visible on bare links")
    log_template: str = Field("{old} -> {new}", description="Edit summary template")

    @field_validator('old_title', 'new_title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title cannot be empty")
        return v.strip()

    @property
    def log_message(self) -> str:
        """Edit summary with {old} and {new} substituted."""
        return self.log_template.replace("{old}", self.old_title).replace("{new}", self.new_title)


class LinkOccurrence(BaseModel):
    """A matched link inside a body."""

    start: int = Field(description="Offset of the opening brackets")
    end: int = Field(description="Offset just past the closing brackets")
    display_text: Optional[str] = Field(None, description="Text after the pipe, if any")


class DocumentStatus(str, Enum):
    """Outcome of processing a single document."""

    EDITED = "edited"
    UNCHANGED = "unchanged"
    PERMISSION_DENIED = "permission_denied"
    FETCH_FAILED = "fetch_failed"
    SUBMIT_FAILED = "submit_failed"
    DRY_RUN = "dry_run"
    HALTED = "halted"


class DocumentOutcome(BaseModel):
    """What happened to one document during a run."""

    title: str
    index: int = Field(description="1-based position in the document set")
    total: int
    status: DocumentStatus
    replacements: int = 0
    error: Optional[str] = None

    @property
    def progress(self) -> str:
        return f"({self.index}/{self.total})"

    @property
    def submitted(self) -> bool:
        return self.status in (DocumentStatus.EDITED, DocumentStatus.SUBMIT_FAILED)


class RenameReport(BaseModel):
    """Summary of a complete rename run."""

    job: RenameJob
    documents: List[str] = Field(default_factory=list)
    outcomes: List[DocumentOutcome] = Field(default_factory=list)
    failed_namespaces: Dict[str, str] = Field(default_factory=dict)
    halted: bool = False

    def count(self, status: DocumentStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def edited(self) -> int:
        return self.count(DocumentStatus.EDITED)

    @property
    def unchanged(self) -> int:
        return self.count(DocumentStatus.UNCHANGED)

    @property
    def failed(self) -> int:
        return sum(
            1 for outcome in self.outcomes
            if outcome.status in (
                DocumentStatus.PERMISSION_DENIED,
                DocumentStatus.FETCH_FAILED,
                DocumentStatus.SUBMIT_FAILED,
            )
        )
