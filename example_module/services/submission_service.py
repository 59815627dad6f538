"""
Submission Service

Validates the public content form and stores accepted submissions.

Order of checks: honeypot, CSRF, rate limit, field validation. A filled
honeypot is reported as success without storing anything so bots get no
signal. CSRF and rate-limit failures raise; field errors are collected and
returned together with the echoed form values.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from example_module.constants.content import DATA_TYPES, DEFAULT_DATA_TYPE, PRIORITIES, SUBMISSION_STATUSES
from example_module.exceptions import CSRFError, RateLimitExceededError
from example_module.schemas.submission import Attachment, SubmissionResult
from example_module.services.audit_service import ACTION_SUBMISSION, AuditService
from example_module.services.content_data_service import ContentDataService
from example_module.utils.context import CSRFTokens, RequestContext
from example_module.utils.formatting import format_file_size
from example_module.utils.sanitize import (
    file_extension,
    is_valid_email,
    parse_tags,
    sanitize_email,
    sanitize_filename,
    sanitize_plain_text,
    sanitize_textarea,
)
from example_module.utils.settings_validator import coerce_bool

logger = logging.getLogger(__name__)

HONEYPOT_FIELD = "website"
TITLE_MAX_LENGTH = 255
AUTHOR_NAME_MAX_LENGTH = 100

SUCCESS_MESSAGE = "Thank you! Your content has been submitted."

# Fields echoed back to the form after a failed submission
ECHO_FIELDS = ("title", "content", "data_type", "tags", "priority", "status", "author_name", "author_email", "terms_accepted")


class SubmissionService:
    def __init__(self, db: AsyncSession, settings: Mapping[str, Any], tokens: Optional[CSRFTokens] = None):
        self.db = db
        self.settings = settings
        self.tokens = tokens or CSRFTokens()
        self.content = ContentDataService(db)
        self.audit = AuditService(db)

    def clean(self, form: Mapping[str, Any]) -> dict[str, Any]:
        """Sanitize the raw form into the values used for validation and echo."""
        return {
            "title": sanitize_plain_text(form.get("title")),
            "content": sanitize_textarea(form.get("content")),
            "data_type": sanitize_plain_text(form.get("data_type")) or DEFAULT_DATA_TYPE,
            "tags": sanitize_plain_text(form.get("tags")),
            "priority": sanitize_plain_text(form.get("priority")) or "normal",
            "status": sanitize_plain_text(form.get("status")) or SUBMISSION_STATUSES[0],
            "author_name": sanitize_plain_text(form.get("author_name"))[:AUTHOR_NAME_MAX_LENGTH],
            "author_email": sanitize_email(form.get("author_email")),
            "terms_accepted": "1" if coerce_bool(form.get("terms_accepted")) else "",
        }

    def validate(self, data: Mapping[str, Any], attachment: Optional[Attachment] = None) -> dict[str, str]:
        """Return field → message for every rule the cleaned data breaks."""
        errors: dict[str, str] = {}
        max_length = self.settings["max_content_length"]

        if not data["title"]:
            errors["title"] = "Title is required."
        elif len(data["title"]) > TITLE_MAX_LENGTH:
            errors["title"] = f"Title must be {TITLE_MAX_LENGTH} characters or less."

        if not data["content"]:
            errors["content"] = "Content is required."
        elif len(data["content"]) > max_length:
            errors["content"] = f"Content must be {max_length} characters or less."

        if data["data_type"] not in DATA_TYPES:
            errors["data_type"] = "Please select a valid content type."

        if data["priority"] not in PRIORITIES:
            errors["priority"] = "Please select a valid priority."

        if data["status"] not in SUBMISSION_STATUSES:
            errors["status"] = "Please select a valid status."

        if data["author_email"] and not is_valid_email(data["author_email"]):
            errors["author_email"] = "Please enter a valid email address."

        if not data["terms_accepted"]:
            errors["terms"] = "You must accept the terms to submit content."

        if attachment is not None:
            error = self._check_attachment(attachment)
            if error:
                errors["attachment"] = error

        return errors

    def _check_attachment(self, attachment: Attachment) -> Optional[str]:
        if not self.settings["allow_uploads"]:
            return "File uploads are not allowed."

        allowed = self.settings["allowed_file_types"]
        if file_extension(attachment.filename) not in allowed:
            return "File type not allowed. Allowed: " + ", ".join(ext.upper() for ext in allowed)

        if attachment.size > self.settings["max_upload_size"]:
            return f"File is too large (max {format_file_size(self.settings['max_upload_size'])})."

        return None

    async def check_rate_limit(self, ctx: RequestContext) -> None:
        """Raise RateLimitExceededError once the client used up its window."""
        used = await self.audit.count_recent_by_ip(
            ACTION_SUBMISSION, ctx.client_ip, self.settings["rate_limit_window"]
        )
        if used >= self.settings["rate_limit"]:
            logger.warning(f"Submission rate limit reached for {ctx.client_ip}")
            raise RateLimitExceededError()

    async def submit(
        self,
        form: Mapping[str, Any],
        ctx: RequestContext,
        attachment: Optional[Attachment] = None,
    ) -> SubmissionResult:
        """
        Handle one public form submission.

        Raises:
            CSRFError: token missing or not matching the request context
            RateLimitExceededError: too many submissions from this address
        """
        if form.get(HONEYPOT_FIELD):
            logger.info(f"Honeypot triggered by {ctx.client_ip}; submission discarded")
            return SubmissionResult(success=True, message=SUCCESS_MESSAGE, spam=True)

        if not self.tokens.matches(form.get("csrf_token"), ctx.csrf_token):
            raise CSRFError()

        await self.check_rate_limit(ctx)

        data = self.clean(form)
        echo = {key: data[key] for key in ECHO_FIELDS}

        errors = self.validate(data, attachment)
        if errors:
            return SubmissionResult(success=False, errors=errors, form_data=echo)

        meta_data: dict[str, Any] = {
            "tags": parse_tags(data["tags"]),
            "priority": data["priority"],
            "author_name": data["author_name"] or None,
            "author_email": data["author_email"] or None,
        }
        if attachment is not None:
            meta_data["attachment"] = {
                "filename": sanitize_filename(attachment.filename),
                "size": attachment.size,
                "content_type": attachment.content_type,
            }

        item_id = await self.content.insert(
            {
                "title": data["title"],
                "content": data["content"],
                "data_type": data["data_type"],
                "status": data["status"],
                "meta_data": meta_data,
                "user_id": ctx.user_id,
            }
        )
        if item_id is None:
            return SubmissionResult(
                success=False,
                message="Your submission could not be saved. Please try again.",
                form_data=echo,
            )

        await self.audit.record(
            ACTION_SUBMISSION,
            entity_type="content",
            entity_id=item_id,
            user_id=ctx.user_id,
            ip_address=ctx.client_ip,
            user_agent=ctx.user_agent,
            data={"data_type": data["data_type"], "status": data["status"]},
        )
        return SubmissionResult(success=True, item_id=item_id, message=SUCCESS_MESSAGE)
