"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from src.api.health import router as health_router
from src.api.rate_limit import limiter, rate_limit_exceeded_handler
from src.config import Settings, get_settings
from src.infrastructure.database import Database, init_database
from src.infrastructure.datadog import DatadogClient, DatadogConfigurationError
from src.infrastructure.github import (
    GitHubClient,
    GitHubConfigurationError,
    GitHubOAuthClient,
)
from src.infrastructure.observability import (
    configure_logging,
    init_observability,
    shutdown_observability,
)
from src.modules.auth.repository import UserRepository
from src.modules.auth.routes import router as users_router
from src.modules.auth.service import AuthService
from src.modules.collector import (
    AuthorResolver,
    CommitRepository,
    CommitSyncService,
    DeploymentRepository,
    DeploymentSyncService,
    IncidentRepository,
    IncidentSyncService,
    PullRequestRepository,
    PullRequestSyncService,
    RepositorySyncService,
    SyncScheduler,
    SyncStatusRepository,
    UserSyncService,
)
from src.modules.collector.routes import datadog_router, set_collector_services
from src.modules.collector.routes import router as admin_router
from src.modules.dashboard import DashboardCalculator, DashboardService
from src.modules.dashboard.routes import router as dashboard_router
from src.modules.dashboard.routes import set_dashboard_service
from src.modules.metrics import ChangeLeadTimeRepository, LeadTimeCalculator, MetricsService
from src.modules.metrics.routes import router as metrics_router
from src.modules.metrics.routes import set_metrics_service
from src.modules.repositories.repository import RepositoryConfigRepository
from src.modules.repositories.routes import router as repositories_router
from src.modules.repositories.routes import set_repository_services
from src.modules.repositories.service import RepositoryConfigService
from src.modules.teams.repository import TeamRepository
from src.modules.teams.routes import router as teams_router
from src.modules.teams.routes import set_team_service
from src.modules.teams.service import TeamService
from src.web.auth_routes import router as auth_web_router
from src.web.auth_routes import set_auth_service, set_oauth_client
from src.web.dependencies import AuthenticationRequired, auth_exception_handler
from src.web.routes import router as web_router

settings = get_settings()
configure_logging(debug=settings.debug)
logger = structlog.get_logger()

# Database instance (initialized on startup)
_database: Database | None = None


def _build_github_client(settings: Settings) -> GitHubClient | None:
    token = settings.github_api_token
    try:
        return GitHubClient(
            token.get_secret_value() if token else "",
            base_url=settings.github_api_url,
            organization_name=settings.github_organization_name,
            timeout_seconds=settings.github_timeout_seconds,
            circuit_breaker_fail_max=settings.circuit_breaker_fail_max,
            circuit_breaker_timeout=settings.circuit_breaker_timeout,
        )
    except GitHubConfigurationError as e:
        logger.warning("github_api_disabled", reason=str(e))
        return None


def _build_datadog_client(settings: Settings) -> DatadogClient | None:
    api_key = settings.datadog_api_key
    application_key = settings.datadog_application_key
    try:
        return DatadogClient(
            api_key.get_secret_value() if api_key else "",
            application_key.get_secret_value() if application_key else "",
            base_url=settings.datadog_base_url,
            timeout_seconds=settings.datadog_timeout_seconds,
            circuit_breaker_fail_max=settings.circuit_breaker_fail_max,
            circuit_breaker_timeout=settings.circuit_breaker_timeout,
        )
    except DatadogConfigurationError as e:
        logger.warning("datadog_api_disabled", reason=str(e))
        return None


def _build_oauth_client(settings: Settings) -> GitHubOAuthClient | None:
    secret = settings.github_oauth_client_secret
    try:
        return GitHubOAuthClient(
            settings.github_oauth_client_id or "",
            secret.get_secret_value() if secret else "",
            authorize_url=settings.github_oauth_authorize_url,
            token_url=settings.github_oauth_token_url,
            api_url=settings.github_api_url,
        )
    except GitHubConfigurationError as e:
        logger.warning("github_login_disabled", reason=str(e))
        return None


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup/shutdown."""
    global _database

    # Initialize database (sets global in connection module)
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    _database = await init_database(db_path)
    logger.info("database_connected", path=str(db_path))

    users = UserRepository(_database)
    teams = TeamRepository(_database)
    repositories = RepositoryConfigRepository(_database)
    commits = CommitRepository(_database)
    pull_requests = PullRequestRepository(_database)
    deployments = DeploymentRepository(_database)
    incidents = IncidentRepository(_database)
    sync_status = SyncStatusRepository(_database)
    lead_times = ChangeLeadTimeRepository(_database)

    github = _build_github_client(settings)
    datadog = _build_datadog_client(settings)
    oauth = _build_oauth_client(settings)

    # Authentication
    if settings.jwt_secret_key:
        auth_service = AuthService(
            users,
            jwt_secret=settings.jwt_secret_key.get_secret_value(),
            jwt_algorithm=settings.jwt_algorithm,
            jwt_expire_hours=settings.jwt_expire_hours,
            initial_admin_username=settings.initial_admin_username,
            organization_name=settings.github_organization_name,
            membership_checker=github,
        )
        set_auth_service(auth_service)
        logger.info("auth_service_initialized")
    else:
        set_auth_service(None)
        logger.warning("auth_disabled", reason="jwt_secret_key not set")
    set_oauth_client(oauth)

    # Repositories and teams
    repository_service = RepositoryConfigService(repositories)
    await repository_service.ensure_default(settings.default_repository_url)
    set_repository_services(
        repository_service,
        RepositorySyncService(github, repositories) if github else None,
    )
    set_team_service(TeamService(teams, users, repositories))

    # Metrics and dashboards
    lead_time_calculator = LeadTimeCalculator(deployments, commits, lead_times)
    set_metrics_service(MetricsService(deployments, incidents))
    set_dashboard_service(
        DashboardService(
            DashboardCalculator(commits, pull_requests, repositories, lead_times, incidents),
            users,
            teams,
        )
    )

    # Collectors
    scheduler = SyncScheduler()
    deployment_sync: DeploymentSyncService | None = None
    user_sync: UserSyncService | None = None
    if github is not None:
        commit_sync = CommitSyncService(
            github, commits, sync_status, repositories, AuthorResolver(users)
        )
        pull_request_sync = PullRequestSyncService(
            github, pull_requests, sync_status, repositories
        )
        deployment_sync = DeploymentSyncService(
            github, deployments, sync_status, repositories, lead_time_calculator
        )
        user_sync = UserSyncService(github, users)
        scheduler.add_job(
            "commit_sync",
            commit_sync.sync_all,
            interval_seconds=settings.commit_sync_interval_seconds,
            initial_delay_seconds=settings.commit_sync_initial_delay_seconds,
        )
        scheduler.add_job(
            "pull_request_sync",
            pull_request_sync.sync_all,
            interval_seconds=settings.pull_request_sync_interval_seconds,
            initial_delay_seconds=settings.pull_request_sync_initial_delay_seconds,
        )
        scheduler.add_job(
            "deployment_sync",
            deployment_sync.sync_all,
            interval_seconds=settings.deployment_sync_interval_seconds,
            initial_delay_seconds=settings.deployment_sync_initial_delay_seconds,
        )
    if datadog is not None:
        incident_sync = IncidentSyncService(datadog, incidents, sync_status, repositories)
        scheduler.add_job(
            "incident_sync",
            incident_sync.sync_all,
            interval_seconds=settings.incident_sync_interval_seconds,
            initial_delay_seconds=settings.incident_sync_initial_delay_seconds,
        )
    set_collector_services(
        deployment_sync=deployment_sync, user_sync=user_sync, datadog_client=datadog
    )

    if settings.scheduler_enabled:
        scheduler.start()
    else:
        logger.info("scheduler_disabled")

    yield

    # Cleanup on shutdown
    await scheduler.stop()
    for client in (github, datadog, oauth):
        if client is not None:
            await client.close()
    shutdown_observability()
    if _database:
        await _database.disconnect()
        logger.info("database_disconnected")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Tracing stays on the default no-op provider unless enabled
if settings.otel_enabled:
    init_observability(
        settings.app_name,
        settings.app_version,
        otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        console_export=settings.otel_console_export,
        sample_rate=settings.otel_sample_rate,
        app=app,
    )

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    rate_limit_exceeded_handler,  # type: ignore[arg-type]
)

# Authentication redirect
app.add_exception_handler(
    AuthenticationRequired,
    auth_exception_handler,  # type: ignore[arg-type]
)

# Static files (optional - only mount if directory exists)
static_path = Path(__file__).parent / "web" / "static"
if static_path.exists():
    app.mount("/static", StaticFiles(directory=static_path), name="static")

# Register routers
app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(auth_web_router)
app.include_router(users_router)
app.include_router(teams_router)
app.include_router(repositories_router)
app.include_router(admin_router)
app.include_router(datadog_router)
app.include_router(metrics_router)
app.include_router(dashboard_router)
app.include_router(web_router, tags=["web"])
