from typing import Any, Optional

from pydantic import BaseModel, Field


class Attachment(BaseModel):
    """Metadata of an uploaded file; the bytes stay with the web layer."""

    filename: str
    size: int = Field(ge=0)
    content_type: Optional[str] = None


class SubmissionResult(BaseModel):
    """Outcome of a public form submission."""

    success: bool
    item_id: Optional[int] = None
    message: Optional[str] = None
    errors: dict[str, str] = Field(default_factory=dict)
    form_data: dict[str, Any] = Field(default_factory=dict)
    spam: bool = False
