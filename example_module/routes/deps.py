"""
Route dependencies

The module instance, CSRF token helper and database sessions are stored on
app.state by create_app(); routes reach them through these dependencies so
tests can override any of them.
"""

import logging
from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from example_module.exceptions import ModuleDisabledError
from example_module.module import ExampleModule
from example_module.utils.context import CSRFTokens, RequestContext, context_from_session

logger = logging.getLogger(__name__)


def get_module(request: Request) -> ExampleModule:
    return request.app.state.example_module


def get_enabled_module(module: ExampleModule = Depends(get_module)) -> ExampleModule:
    """Public pages answer 404 while the module is switched off."""
    if not module.enabled:
        raise ModuleDisabledError()
    return module


def get_csrf_tokens(request: Request) -> CSRFTokens:
    tokens = getattr(request.app.state, "csrf_tokens", None)
    if tokens is None:
        tokens = CSRFTokens()
        request.app.state.csrf_tokens = tokens
    return tokens


async def get_session(module: ExampleModule = Depends(get_module)) -> AsyncIterator[AsyncSession]:
    async with module.session_factory() as db:
        try:
            yield db
        except Exception as e:
            logger.error(f"Database session error: {e}")
            raise


def get_request_context(request: Request, tokens: CSRFTokens = Depends(get_csrf_tokens)) -> RequestContext:
    session = request.session
    return context_from_session(
        session,
        tokens,
        client_ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        request_uri=request.url.path,
        user_id=session.get("user_id"),
        is_admin=bool(session.get("is_admin")),
    )


def require_admin(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    """
    Admin pages need a session flagged as admin by the host login.

    Raises:
        HTTPException: 403 when the current session is not an admin session
    """
    if not ctx.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to access this page.",
        )
    return ctx
