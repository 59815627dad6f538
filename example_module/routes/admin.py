import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from example_module.exceptions import CSRFError
from example_module.module import ExampleModule
from example_module.routes.deps import get_csrf_tokens, get_module, get_session, require_admin
from example_module.services.audit_service import ACTION_CLEANUP, ACTION_SETTINGS_UPDATED, AuditService
from example_module.utils.context import CSRFTokens, RequestContext, store_flash

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/example-module", tags=["Example Module Admin"])

DASHBOARD_PATH = "/admin/example-module"
SETTINGS_PATH = "/admin/example-module/settings"


async def _check_csrf(request: Request, ctx: RequestContext, tokens: CSRFTokens):
    form = await request.form()
    if not tokens.matches(form.get("csrf_token"), ctx.csrf_token):
        raise CSRFError()
    return form


@router.get("", response_class=HTMLResponse)
async def dashboard(
    module: ExampleModule = Depends(get_module),
    ctx: RequestContext = Depends(require_admin),
):
    return HTMLResponse(await module.render_admin_dashboard(ctx))


@router.get("/content", response_class=HTMLResponse)
async def content(
    limit: int = Query(50, ge=1, le=200),
    module: ExampleModule = Depends(get_module),
    ctx: RequestContext = Depends(require_admin),
):
    return HTMLResponse(await module.render_admin_content(ctx, limit=limit))


@router.get("/settings", response_class=HTMLResponse)
async def settings_page(
    module: ExampleModule = Depends(get_module),
    ctx: RequestContext = Depends(require_admin),
):
    return HTMLResponse(module.render_admin_settings(ctx))


@router.post("/settings")
async def save_settings(
    request: Request,
    module: ExampleModule = Depends(get_module),
    ctx: RequestContext = Depends(require_admin),
    tokens: CSRFTokens = Depends(get_csrf_tokens),
    db: AsyncSession = Depends(get_session),
):
    """Validate the settings form, store it and redirect back with a notice."""
    form = await _check_csrf(request, ctx, tokens)

    sanitized = module.sanitize_settings(form)
    if await module.update_settings(sanitized):
        ctx.flash("success", "Settings saved successfully!")
        await AuditService(db).record(
            ACTION_SETTINGS_UPDATED,
            entity_type="module",
            user_id=ctx.user_id,
            ip_address=ctx.client_ip,
            user_agent=ctx.user_agent,
            data={"keys": sorted(sanitized)},
        )
    else:
        ctx.flash("error", "Failed to save settings. Please try again.")

    store_flash(request.session, ctx)
    return RedirectResponse(SETTINGS_PATH, status_code=status.HTTP_303_SEE_OTHER)


@router.post("/cleanup")
async def run_cleanup(
    request: Request,
    module: ExampleModule = Depends(get_module),
    ctx: RequestContext = Depends(require_admin),
    tokens: CSRFTokens = Depends(get_csrf_tokens),
    db: AsyncSession = Depends(get_session),
):
    """Purge content past the retention window."""
    await _check_csrf(request, ctx, tokens)

    removed = await module.cleanup()
    await AuditService(db).record(
        ACTION_CLEANUP,
        entity_type="module",
        user_id=ctx.user_id,
        ip_address=ctx.client_ip,
        data={"removed": removed},
    )
    ctx.flash("success", f"Removed {removed} old item(s).")
    store_flash(request.session, ctx)
    return RedirectResponse(DASHBOARD_PATH, status_code=status.HTTP_303_SEE_OTHER)
