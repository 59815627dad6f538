"""
Tests for the HTML view renderer
"""

from datetime import datetime

import pytest

from example_module.constants.settings import get_default_settings
from example_module.models import ContentItem
from example_module.services.render_service import ViewRenderer
from example_module.utils.context import RequestContext


@pytest.fixture
def renderer():
    return ViewRenderer()


@pytest.fixture
def module_settings():
    return get_default_settings()


def _item(title="Title", content="Body", data_type="news"):
    return ContentItem(title=title, content=content, data_type=data_type, created_at=datetime(2024, 5, 1, 12, 30, 0))


class TestWidget:
    def test_renders_attributes_and_message(self, renderer, module_settings):
        html = renderer.widget(module_settings, {"style": "fancy", "title": "Hi there", "show_date": True})
        assert 'class="example-module-widget fancy"' in html
        assert "<h3>Hi there</h3>" in html
        assert module_settings["welcome_message"] in html
        assert "Today:" in html

    def test_hides_date(self, renderer, module_settings):
        html = renderer.widget(module_settings, {"style": "default", "title": "Hi", "show_date": False})
        assert "Today:" not in html

    def test_escapes_title(self, renderer, module_settings):
        html = renderer.widget(module_settings, {"style": "default", "title": "<script>x</script>", "show_date": False})
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_fallback_without_template(self, tmp_path, module_settings):
        html = ViewRenderer(template_dir=tmp_path).widget(
            module_settings, {"style": "minimal", "title": "<i>Hi</i>", "show_date": True}
        )
        assert html.startswith('<div class="example-module-widget minimal">')
        assert "&lt;i&gt;Hi&lt;/i&gt;" in html
        assert "Today:" in html


class TestDataList:
    def test_empty(self, renderer):
        assert "No news data found." in renderer.data_list([], "news")

    def test_items(self, renderer):
        html = renderer.data_list([_item(title="First"), _item(title="Second")], "news")
        assert 'class="example-module-data"' in html
        assert html.count('class="data-item"') == 2
        assert "Posted: 2024-05-01 12:30:00" in html

    def test_item_text_is_escaped(self, renderer):
        html = renderer.data_list([_item(content='<img src=x onerror="alert(1)">')], "news")
        assert "<img" not in html

    def test_error_fragment(self, renderer):
        assert renderer.data_error() == "<p>Error loading data.</p>"


class TestForm:
    def test_contains_token_and_honeypot(self, renderer, module_settings):
        html = renderer.form(module_settings, RequestContext(csrf_token="tok-123", request_uri="/example-module/form"))
        assert 'name="csrf_token" value="tok-123"' in html
        assert 'name="website"' in html
        assert 'action="/example-module/form"' in html
        assert 'name="attachment"' not in html

    def test_upload_field_when_allowed(self, renderer, module_settings):
        module_settings["allow_uploads"] = True
        html = renderer.form(module_settings, RequestContext())
        assert 'name="attachment"' in html
        assert 'enctype="multipart/form-data"' in html
        assert "max 5 MB" in html

    def test_errors_and_old_values(self, renderer, module_settings):
        ctx = RequestContext(
            errors={"title": "Title is required."},
            form_data={"content": "kept <text>", "data_type": "tutorial"},
        )
        html = renderer.form(module_settings, ctx)
        assert "Please correct the following errors:" in html
        assert "Title is required." in html
        assert "kept &lt;text&gt;" in html
        assert '<option value="tutorial" selected>' in html

    def test_flash_messages(self, renderer, module_settings):
        ctx = RequestContext()
        ctx.flash("success", "Thank you!")
        assert "Thank you!" in renderer.form(module_settings, ctx)


class TestAdminPages:
    def test_settings_page(self, renderer, module_settings):
        ctx = RequestContext(csrf_token="tok", request_uri="/admin/example-module/settings")
        html = renderer.admin_settings(module_settings, ctx)
        assert "General Settings" in html
        assert "Development" in html
        assert 'name="csrf_token" value="tok"' in html
        assert 'id="enabled" name="enabled" value="1" checked' in html
        assert 'id="debug_mode" name="debug_mode" value="1">' in html
        assert 'name="allowed_file_types[]" value="pdf" checked' in html
        assert 'name="allowed_file_types[]" value="txt">' in html
        assert "Currently 5 MB" in html
        assert "Currently 1 hour" in html

    def test_dashboard_with_stats(self, renderer):
        html = renderer.admin_dashboard({"total_items": 4, "by_type": {"news": 3, "tutorial": 1}, "recent_items": 2})
        assert "Total Items" in html
        assert "<h3>4</h3>" in html
        assert "<td>news</td><td>3</td>" in html

    def test_dashboard_without_stats(self, renderer):
        assert "Statistics are not available." in renderer.admin_dashboard(None)

    def test_content_page(self, renderer):
        assert "No content has been submitted yet." in renderer.admin_content([])
        html = renderer.admin_content([_item(title="Listed")])
        assert "<td>Listed</td>" in html
