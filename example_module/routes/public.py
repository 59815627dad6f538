import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from example_module.module import ExampleModule
from example_module.routes.deps import get_csrf_tokens, get_enabled_module, get_request_context, get_session
from example_module.schemas.submission import Attachment
from example_module.services.submission_service import SubmissionService
from example_module.utils.context import CSRFTokens, RequestContext, store_flash

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/example-module", tags=["Example Module"])

FORM_PATH = "/example-module/form"


async def _attachment_from_upload(upload) -> Optional[Attachment]:
    """Metadata for a submitted file; empty file inputs count as no upload."""
    if not isinstance(upload, UploadFile) or not upload.filename:
        return None
    size = upload.size
    if size is None:
        size = len(await upload.read())
    await upload.close()
    return Attachment(filename=upload.filename, size=size, content_type=upload.content_type)


@router.get("/widget", response_class=HTMLResponse)
async def widget(
    title: Optional[str] = Query(None, max_length=255),
    style: Optional[str] = Query(None, max_length=20),
    show_date: Optional[str] = Query(None),
    module: ExampleModule = Depends(get_enabled_module),
):
    attributes = {key: value for key, value in {"title": title, "style": style, "show_date": show_date}.items() if value is not None}
    return HTMLResponse(await module.shortcode_handler(attributes))


@router.get("/data", response_class=HTMLResponse)
async def data_list(
    type: str = Query("latest", max_length=50),
    limit: Optional[int] = Query(None, ge=1, le=100),
    module: ExampleModule = Depends(get_enabled_module),
):
    attributes = {"type": type}
    if limit is not None:
        attributes["limit"] = str(limit)
    return HTMLResponse(await module.data_shortcode(attributes))


@router.get("/form", response_class=HTMLResponse)
async def show_form(
    module: ExampleModule = Depends(get_enabled_module),
    ctx: RequestContext = Depends(get_request_context),
):
    return HTMLResponse(module.render_form(ctx))


@router.post("/form", response_class=HTMLResponse)
async def submit_form(
    request: Request,
    module: ExampleModule = Depends(get_enabled_module),
    ctx: RequestContext = Depends(get_request_context),
    tokens: CSRFTokens = Depends(get_csrf_tokens),
    db: AsyncSession = Depends(get_session),
):
    """
    Accept a public content submission.

    Success redirects back to the form with a flash message. Field errors
    re-render the form with the messages and the submitted values.
    CSRF and rate-limit failures are raised and answered by the exception
    handlers.
    """
    form = await request.form()
    attachment = await _attachment_from_upload(form.get("attachment"))

    service = SubmissionService(db, module.get_setting_values(), tokens)
    result = await service.submit(form, ctx, attachment)

    if result.success:
        ctx.flash("success", result.message)
        store_flash(request.session, ctx)
        return RedirectResponse(FORM_PATH, status_code=status.HTTP_303_SEE_OTHER)

    ctx.errors = result.errors
    ctx.form_data = result.form_data
    if result.message:
        ctx.flash("error", result.message)
    return HTMLResponse(module.render_form(ctx), status_code=status.HTTP_400_BAD_REQUEST)
