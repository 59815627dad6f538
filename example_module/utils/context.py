"""
Request Context

Everything the renderer and the submission handler need to know about the
current request (CSRF token, flash messages, echoed form values, the current
user) travels in an explicit RequestContext instead of global session state.
The web layer builds one per request from the Starlette session.
"""

import hmac
import secrets
from dataclasses import dataclass, field
from typing import Any, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from example_module.config import settings

SESSION_CSRF_KEY = "example_module_csrf"
SESSION_FLASH_KEY = "example_module_flash"
SESSION_FORM_KEY = "example_module_form"


class CSRFTokens:
    """Issue and check signed, expiring CSRF tokens."""

    def __init__(self, secret_key: Optional[str] = None, token_expiry: Optional[int] = None):
        self.serializer = URLSafeTimedSerializer(secret_key or settings.secret_key, salt="example-module-csrf")
        self.token_expiry = token_expiry if token_expiry is not None else settings.csrf_token_expiry

    def generate(self) -> str:
        """Generate a new CSRF token."""
        return self.serializer.dumps(secrets.token_urlsafe(32))

    def is_valid(self, token: Optional[str]) -> bool:
        """Check the signature and age of a token."""
        if not token:
            return False
        try:
            self.serializer.loads(token, max_age=self.token_expiry)
        except (BadSignature, SignatureExpired):
            return False
        return True

    def matches(self, submitted: Optional[str], expected: Optional[str]) -> bool:
        """True when the submitted token is valid and equals the session token."""
        if not submitted or not expected:
            return False
        return hmac.compare_digest(submitted, expected) and self.is_valid(submitted)


@dataclass
class RequestContext:
    csrf_token: str = ""
    client_ip: str = "unknown"
    user_agent: str = ""
    request_uri: str = "/"
    user_id: Optional[int] = None
    is_admin: bool = False
    # (category, message) pairs shown once
    flash_messages: list[tuple[str, str]] = field(default_factory=list)
    form_data: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    def flash(self, category: str, message: str) -> None:
        self.flash_messages.append((category, message))

    def messages(self, category: str) -> list[str]:
        return [message for cat, message in self.flash_messages if cat == category]

    def old(self, key: str, default: Any = "") -> Any:
        """Value previously submitted for a form field, for re-display."""
        return self.form_data.get(key, default)


def context_from_session(
    session: dict,
    tokens: CSRFTokens,
    client_ip: Optional[str] = None,
    user_agent: Optional[str] = None,
    request_uri: str = "/",
    user_id: Optional[int] = None,
    is_admin: bool = False,
) -> RequestContext:
    """
    Build a RequestContext from a session mapping.

    A CSRF token is created (or replaced when expired) and stored back in the
    session; pending flash messages and form echo data are consumed.
    """
    token = session.get(SESSION_CSRF_KEY)
    if not tokens.is_valid(token):
        token = tokens.generate()
        session[SESSION_CSRF_KEY] = token

    flashes = [tuple(item) for item in session.pop(SESSION_FLASH_KEY, [])]
    form_data = session.pop(SESSION_FORM_KEY, {})

    return RequestContext(
        csrf_token=token,
        client_ip=client_ip or "unknown",
        user_agent=user_agent or "",
        request_uri=request_uri,
        user_id=user_id,
        is_admin=is_admin,
        flash_messages=flashes,
        form_data=form_data,
    )


def store_flash(session: dict, ctx: RequestContext) -> None:
    """Carry flash messages and form echo data over a redirect."""
    if ctx.flash_messages:
        session[SESSION_FLASH_KEY] = [list(item) for item in ctx.flash_messages]
    if ctx.form_data:
        session[SESSION_FORM_KEY] = ctx.form_data
