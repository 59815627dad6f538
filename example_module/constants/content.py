"""
Content Constants

Allowed values for content items and the public submission form.
"""

from enum import Enum


class ContentStatus(str, Enum):
    """Lifecycle status of a content item."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


CONTENT_STATUSES = tuple(s.value for s in ContentStatus)

# Statuses a public submitter may pick
SUBMISSION_STATUSES = (ContentStatus.ACTIVE.value, ContentStatus.DRAFT.value)

# Public form "Content Type" options (value → label)
DATA_TYPES: dict[str, str] = {
    "general": "General Content",
    "tutorial": "Tutorial",
    "news": "News",
    "announcement": "Announcement",
    "other": "Other",
}

PRIORITIES: dict[str, str] = {
    "normal": "Normal",
    "high": "High",
    "low": "Low",
}

DEFAULT_DATA_TYPE = "general"
DEFAULT_TITLE = "Untitled"

# Seeded by the installer when sample data is requested
SAMPLE_DATA: list[dict[str, str]] = [
    {
        "title": "Welcome Example",
        "content": "This is sample data created during module installation.",
        "data_type": "welcome",
        "status": "active",
    },
    {
        "title": "Getting Started",
        "content": "Learn how to use this module by exploring its features.",
        "data_type": "tutorial",
        "status": "active",
    },
    {
        "title": "Admin Guide",
        "content": "Administrative features are available in the admin panel.",
        "data_type": "admin",
        "status": "active",
    },
    {
        "title": "Widget Example",
        "content": "This shows how widgets work in the Example Module.",
        "data_type": "demo",
        "status": "active",
    },
    {
        "title": "Form Submission Test",
        "content": "Test the form submission functionality with this sample.",
        "data_type": "test",
        "status": "active",
    },
]
