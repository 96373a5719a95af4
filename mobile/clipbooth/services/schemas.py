"""Pydantic schemas for the submission endpoint contract."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SOURCE_RECORD = "record"
SOURCE_UPLOAD = "upload"


class SubmissionForm(BaseModel):
    """Metadata typed by the submitter next to the clip."""

    full_name: str = Field(min_length=1)
    email: Optional[str] = None
    title: str = Field(min_length=1)
    category: str = Field(min_length=1)
    description: str = ""
    duration_ms: Optional[float] = None
    source: str = SOURCE_RECORD

    @field_validator("full_name", "title", "category", mode="before")
    @classmethod
    def _strip_required(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    def to_fields(self) -> Dict[str, str]:
        """Form fields in the names the endpoint reads."""
        fields = {
            "fullName": self.full_name,
            "title": self.title,
            "category": self.category,
            "description": self.description or "",
            "source": self.source,
        }
        if self.email:
            fields["email"] = self.email
        if self.duration_ms is not None:
            fields["durationMs"] = str(int(self.duration_ms))
        return fields


class SubmissionReceipt(BaseModel):
    ok: bool = False
    id: Optional[str] = None
    error: Optional[str] = None


class LibraryItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    file_url: Optional[str] = None
    type: str = "audio"
    status: str = "Approved"
    created_at: Optional[str] = None
    duration_ms: Optional[int] = None
    source: Optional[str] = None
    plays: Optional[int] = 0
