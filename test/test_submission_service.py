"""
Tests for the public form submission service
"""

import pytest

from example_module.constants.settings import get_default_settings
from example_module.exceptions import CSRFError, RateLimitExceededError
from example_module.schemas.submission import Attachment
from example_module.services.audit_service import ACTION_SUBMISSION, AuditService
from example_module.services.content_data_service import ContentDataService
from example_module.services.submission_service import SUCCESS_MESSAGE, SubmissionService


def _form(ctx, **overrides):
    form = {
        "csrf_token": ctx.csrf_token,
        "title": "My first post",
        "content": "Some useful content.",
        "data_type": "news",
        "tags": "python, release",
        "priority": "high",
        "status": "active",
        "author_name": "Sam",
        "author_email": "sam@example.com",
        "terms_accepted": "1",
    }
    form.update(overrides)
    return form


@pytest.fixture
def module_settings():
    return get_default_settings()


@pytest.fixture
def service(db, module_settings, tokens):
    return SubmissionService(db, module_settings, tokens)


class TestSubmit:
    async def test_valid_submission_is_stored(self, service, db, ctx):
        result = await service.submit(_form(ctx), ctx)

        assert result.success is True
        assert result.message == SUCCESS_MESSAGE
        item = await ContentDataService(db).get(result.item_id)
        assert item.title == "My first post"
        assert item.data_type == "news"
        assert item.meta_data["tags"] == ["python", "release"]
        assert item.meta_data["priority"] == "high"
        assert item.meta_data["author_email"] == "sam@example.com"

    async def test_submission_is_audited(self, service, db, ctx):
        result = await service.submit(_form(ctx), ctx)

        entry = await AuditService(db).latest(ACTION_SUBMISSION)
        assert entry.entity_id == result.item_id
        assert entry.ip_address == ctx.client_ip
        assert entry.user_agent == "pytest"

    async def test_honeypot_reports_success_but_stores_nothing(self, service, db, ctx):
        result = await service.submit(_form(ctx, website="http://spam.example"), ctx)

        assert result.success is True
        assert result.spam is True
        assert result.item_id is None
        assert await ContentDataService(db).count_all() == 0

    async def test_honeypot_wins_over_bad_token(self, service, ctx):
        result = await service.submit(_form(ctx, website="x", csrf_token="forged"), ctx)
        assert result.spam is True

    async def test_missing_csrf_token_raises(self, service, ctx):
        with pytest.raises(CSRFError):
            await service.submit(_form(ctx, csrf_token=""), ctx)

    async def test_foreign_csrf_token_raises(self, service, ctx, tokens):
        with pytest.raises(CSRFError):
            await service.submit(_form(ctx, csrf_token=tokens.generate()), ctx)

    async def test_rate_limit(self, db, module_settings, tokens, ctx):
        module_settings["rate_limit"] = 2
        service = SubmissionService(db, module_settings, tokens)

        assert (await service.submit(_form(ctx), ctx)).success
        assert (await service.submit(_form(ctx), ctx)).success
        with pytest.raises(RateLimitExceededError):
            await service.submit(_form(ctx), ctx)
        assert await ContentDataService(db).count_all() == 2

    async def test_field_errors_are_collected(self, service, db, ctx):
        result = await service.submit(
            _form(
                ctx,
                title="",
                content="",
                data_type="bogus",
                priority="urgent",
                status="inactive",
                author_email="not-an-email",
                terms_accepted="",
            ),
            ctx,
        )

        assert result.success is False
        assert set(result.errors) == {"title", "content", "data_type", "priority", "status", "author_email", "terms"}
        assert await ContentDataService(db).count_all() == 0

    async def test_failed_submission_echoes_clean_values(self, service, ctx):
        result = await service.submit(_form(ctx, title="<b>Bold</b> title", terms_accepted=""), ctx)

        assert result.success is False
        assert result.form_data["title"] == "Bold title"
        assert result.form_data["author_name"] == "Sam"

    async def test_content_length_limit(self, db, module_settings, tokens, ctx):
        module_settings["max_content_length"] = 100
        service = SubmissionService(db, module_settings, tokens)

        result = await service.submit(_form(ctx, content="x" * 101), ctx)
        assert result.errors["content"] == "Content must be 100 characters or less."


class TestAttachments:
    async def test_uploads_disabled(self, service, ctx):
        attachment = Attachment(filename="photo.jpg", size=1000)
        result = await service.submit(_form(ctx), ctx, attachment)
        assert result.errors["attachment"] == "File uploads are not allowed."

    async def test_disallowed_extension(self, db, module_settings, tokens, ctx):
        module_settings["allow_uploads"] = True
        module_settings["allowed_file_types"] = ["jpg", "png"]
        service = SubmissionService(db, module_settings, tokens)

        result = await service.submit(_form(ctx), ctx, Attachment(filename="tool.exe", size=10))
        assert result.errors["attachment"] == "File type not allowed. Allowed: JPG, PNG"

    async def test_too_large(self, db, module_settings, tokens, ctx):
        module_settings["allow_uploads"] = True
        module_settings["max_upload_size"] = 1024
        service = SubmissionService(db, module_settings, tokens)

        result = await service.submit(_form(ctx), ctx, Attachment(filename="photo.jpg", size=4096))
        assert result.errors["attachment"] == "File is too large (max 1 KB)."

    async def test_accepted_attachment_metadata_is_stored(self, db, module_settings, tokens, ctx):
        module_settings["allow_uploads"] = True
        service = SubmissionService(db, module_settings, tokens)

        result = await service.submit(
            _form(ctx), ctx, Attachment(filename="../my photo.jpg", size=2048, content_type="image/jpeg")
        )
        item = await ContentDataService(db).get(result.item_id)
        assert item.meta_data["attachment"] == {
            "filename": ".._my photo.jpg",
            "size": 2048,
            "content_type": "image/jpeg",
        }
