"""
View Renderer

Renders the module's HTML fragments from Jinja2 templates. Autoescaping is on
for every template, so values reach the page escaped exactly once.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from markupsafe import Markup

from example_module.constants.content import DATA_TYPES, PRIORITIES
from example_module.constants.module import MODULE_TITLE, MODULE_VERSION
from example_module.constants.settings import (
    ALLOWED_FILE_EXTENSIONS,
    BOOLEAN_SETTINGS,
    INTEGER_BOUNDS,
    SETTINGS_SECTIONS,
    TEXT_LIMITS,
    WIDGET_STYLES,
)
from example_module.models.audit_entry import AuditEntry
from example_module.models.content_item import ContentItem
from example_module.utils.context import RequestContext
from example_module.utils.formatting import format_duration, format_file_size

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

FIELD_LABELS: dict[str, str] = {
    "enabled": "Enable Module",
    "welcome_title": "Welcome Title",
    "welcome_message": "Welcome Message",
    "show_date": "Show Date",
    "widget_style": "Widget Style",
    "cache_duration": "Cache Duration (seconds)",
    "admin_notifications": "Admin Notifications",
    "notification_email": "Notification Email",
    "max_items": "Maximum Items",
    "max_content_length": "Maximum Content Length",
    "allow_uploads": "Allow File Uploads",
    "max_upload_size": "Maximum Upload Size (bytes)",
    "allowed_file_types": "Allowed File Types",
    "enable_captcha": "Enable Captcha",
    "rate_limit": "Rate Limit",
    "rate_limit_window": "Rate Limit Window (seconds)",
    "debug_mode": "Debug Mode",
}


def _field_kind(key: str) -> str:
    if key in BOOLEAN_SETTINGS:
        return "checkbox"
    if key in INTEGER_BOUNDS:
        return "number"
    if key == "widget_style":
        return "select"
    if key == "allowed_file_types":
        return "extensions"
    if key == "welcome_message":
        return "textarea"
    if key == "notification_email":
        return "email"
    return "text"


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class ViewRenderer:
    """Turns settings, items and a request context into HTML strings."""

    def __init__(self, template_dir: Optional[Path] = None):
        template_dir = template_dir or TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["file_size"] = format_file_size
        self.env.filters["duration"] = format_duration
        self.env.globals.update(
            module_title=MODULE_TITLE,
            module_version=MODULE_VERSION,
            field_kind=_field_kind,
            field_labels=FIELD_LABELS,
            integer_bounds=INTEGER_BOUNDS,
            text_limits=TEXT_LIMITS,
            widget_styles=WIDGET_STYLES,
            file_extensions=ALLOWED_FILE_EXTENSIONS,
            data_types=DATA_TYPES,
            priorities=PRIORITIES,
        )

    def render(self, template_name: str, **context: Any) -> str:
        template = self.env.get_template(template_name)
        return template.render(**context)

    # ── Public fragments ──────────────────────────────────────────────────────

    def widget(self, settings: Mapping[str, Any], attributes: Mapping[str, Any]) -> str:
        """
        Render the welcome widget.

        `attributes` holds the resolved style, title and show_date values;
        the message always comes from settings.
        """
        try:
            return self.render(
                "widget.html",
                style=attributes["style"],
                title=attributes["title"],
                message=settings["welcome_message"],
                show_date=attributes["show_date"],
                today=_now(),
            )
        except TemplateNotFound:
            logger.warning("widget.html missing; using fallback markup")
            return self._fallback_widget(settings, attributes)

    def _fallback_widget(self, settings: Mapping[str, Any], attributes: Mapping[str, Any]) -> str:
        output = Markup('<div class="example-module-widget {}">').format(attributes["style"])
        output += Markup("<h3>{}</h3>").format(attributes["title"])
        output += Markup("<p>{}</p>").format(settings["welcome_message"])
        if attributes["show_date"]:
            output += Markup("<p><small>Today: {}</small></p>").format(_now())
        output += Markup("</div>")
        return str(output)

    def data_list(self, items: Iterable[ContentItem], data_type: str) -> str:
        return self.render("data_list.html", items=list(items), data_type=data_type)

    def form(self, settings: Mapping[str, Any], ctx: RequestContext) -> str:
        return self.render("form.html", settings=settings, ctx=ctx)

    def data_error(self) -> str:
        return "<p>Error loading data.</p>"

    # ── Admin pages ───────────────────────────────────────────────────────────

    def admin_settings(
        self,
        settings: Mapping[str, Any],
        ctx: RequestContext,
        sections: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> str:
        return self.render(
            "admin_settings.html",
            settings=settings,
            ctx=ctx,
            sections=sections or SETTINGS_SECTIONS,
        )

    def admin_dashboard(
        self,
        stats: Optional[Mapping[str, Any]],
        ctx: Optional[RequestContext] = None,
        activity: Iterable[AuditEntry] = (),
    ) -> str:
        return self.render("admin_dashboard.html", stats=stats, ctx=ctx, activity=list(activity))

    def admin_content(self, items: Iterable[ContentItem], ctx: Optional[RequestContext] = None) -> str:
        return self.render("admin_content.html", items=list(items), ctx=ctx)
