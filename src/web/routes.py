"""Web routes for server-rendered pages."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response

from src.config import Settings, get_settings
from src.modules.auth.models import User
from src.modules.repositories.routes import get_repository_service
from src.modules.repositories.service import RepositoryConfigService
from src.web.dependencies import require_admin, require_auth
from src.web.templates import templates

logger = structlog.get_logger()

router = APIRouter()


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    user: Annotated[User, Depends(require_auth)],
) -> Response:
    """Render the welcome page of a signed-in user."""
    return templates.TemplateResponse(
        request=request,
        name="dashboard.html",
        context={"user": user},
    )


@router.get("/admin/setup", response_class=HTMLResponse)
async def admin_setup(
    request: Request,
    user: Annotated[User, Depends(require_admin)],
    settings: Annotated[Settings, Depends(get_settings)],
    repositories: Annotated[RepositoryConfigService, Depends(get_repository_service)],
) -> Response:
    """Render the initial setup page shown to the first administrator.

    Lists the tracked repositories and which integrations are configured.
    """
    configs = await repositories.list_repositories()
    logger.info("admin_setup_viewed", user_id=user.id, repositories=len(configs))
    return templates.TemplateResponse(
        request=request,
        name="admin/setup.html",
        context={
            "user": user,
            "repositories": configs,
            "github_configured": settings.github_api_token is not None,
            "datadog_configured": settings.datadog_api_key is not None
            and settings.datadog_application_key is not None,
            "organization": settings.github_organization_name,
        },
    )
