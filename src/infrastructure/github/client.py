"""GitHub REST API client."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import structlog
from aiobreaker import CircuitBreaker, CircuitBreakerError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.infrastructure.github.exceptions import (
    GitHubClientError,
    GitHubConfigurationError,
    GitHubTimeoutError,
    GitHubUnavailableError,
)
from src.infrastructure.github.schemas import (
    GitHubCommit,
    GitHubMember,
    GitHubPullRequest,
    GitHubRepository,
    GitHubWorkflowRun,
)
from src.infrastructure.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

PER_PAGE = 100


def parse_next_link(link_header: str | None) -> str | None:
    """Extract the ``rel="next"`` URL from a GitHub ``Link`` header.

    Args:
        link_header: Raw header value, e.g.
            ``<https://api.github.com/...&page=2>; rel="next", <...>; rel="last"``.

    Returns:
        The next page URL, or None on the last page.
    """
    if not link_header:
        return None

    for part in link_header.split(","):
        segments = part.split(";")
        if len(segments) < 2:
            continue
        url = segments[0].strip()
        if not (url.startswith("<") and url.endswith(">")):
            continue
        if any(s.strip() == 'rel="next"' for s in segments[1:]):
            return url[1:-1]
    return None


def format_since(value: datetime) -> str:
    """Format a datetime as the ISO-8601 UTC instant GitHub expects."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class GitHubClient:
    """Client for the GitHub REST API v3.

    Includes resilience patterns:
    - Retries with exponential backoff for transport failures
    - Circuit breaker to fail fast after repeated failures
    - Link header pagination

    Listing endpoints log non-2xx responses and return what was collected so
    far, so one failing repository never aborts a sync cycle.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = "https://api.github.com",
        organization_name: str | None = None,
        timeout_seconds: float = 30.0,
        circuit_breaker_fail_max: int = 5,
        circuit_breaker_timeout: float = 60.0,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: Personal access token or app token.
            base_url: GitHub API base URL.
            organization_name: Organization whose repositories are listed.
            timeout_seconds: Request timeout in seconds.
            circuit_breaker_fail_max: Open circuit after this many failures.
            circuit_breaker_timeout: Time in seconds before attempting recovery.

        Raises:
            GitHubConfigurationError: If the token is missing.
        """
        if not token:
            raise GitHubConfigurationError("GitHub API token is required")

        self._base_url = base_url.rstrip("/")
        self._organization_name = organization_name
        self._timeout = timeout_seconds
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
            },
        )
        self._breaker = CircuitBreaker(
            fail_max=circuit_breaker_fail_max,
            timeout_duration=timedelta(seconds=circuit_breaker_timeout),
        )

    @property
    def organization_name(self) -> str | None:
        return self._organization_name

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def is_member_of_organization(self, username: str, organization: str) -> bool:
        """Check organization membership.

        Args:
            username: GitHub login.
            organization: Organization name.

        Returns:
            True only when GitHub answers 204. Any other status or error is
            treated as "not a member".
        """
        url = f"{self._base_url}/orgs/{organization}/members/{username}"
        try:
            response = await self._request(url)
        except GitHubClientError as e:
            logger.warning(
                "github_membership_check_failed",
                username=username,
                organization=organization,
                error=str(e),
            )
            return False

        is_member = response.status_code == 204
        logger.info(
            "github_membership_checked",
            username=username,
            organization=organization,
            status_code=response.status_code,
            is_member=is_member,
        )
        return is_member

    async def get_commits(
        self, owner: str, repo: str, since: datetime
    ) -> list[GitHubCommit]:
        """List commits on the default branch since a point in time."""
        url = f"{self._base_url}/repos/{owner}/{repo}/commits"
        params = {"since": format_since(since), "per_page": PER_PAGE}

        commits: list[GitHubCommit] = []
        async for page in self._paginate(url, params):
            commits.extend(GitHubCommit.from_api(item) for item in page)

        logger.info("github_commits_fetched", owner=owner, repo=repo, count=len(commits))
        return commits

    async def get_pull_requests(
        self, owner: str, repo: str, since: datetime
    ) -> list[GitHubPullRequest]:
        """List pull requests updated since a point in time.

        Pull requests are requested newest-update first, so paging stops at
        the first one updated before ``since``.
        """
        url = f"{self._base_url}/repos/{owner}/{repo}/pulls"
        params = {
            "state": "all",
            "sort": "updated",
            "direction": "desc",
            "per_page": PER_PAGE,
        }

        pull_requests: list[GitHubPullRequest] = []
        async for page in self._paginate(url, params):
            for item in page:
                pr = GitHubPullRequest.from_api(item)
                if pr.updated_at is not None and pr.updated_at < since:
                    logger.info(
                        "github_pull_requests_fetched",
                        owner=owner,
                        repo=repo,
                        count=len(pull_requests),
                    )
                    return pull_requests
                pull_requests.append(pr)

        logger.info(
            "github_pull_requests_fetched",
            owner=owner,
            repo=repo,
            count=len(pull_requests),
        )
        return pull_requests

    async def get_pull_request_first_commit(
        self, owner: str, repo: str, number: int
    ) -> str | None:
        """Return the SHA of the first commit of a pull request, if any."""
        url = f"{self._base_url}/repos/{owner}/{repo}/pulls/{number}/commits"
        async for page in self._paginate(url, {"per_page": 1}):
            for item in page:
                sha = item.get("sha")
                if sha:
                    return str(sha)
            break
        return None

    async def get_workflow_runs(
        self,
        owner: str,
        repo: str,
        workflow_file: str,
        since: datetime | None = None,
    ) -> list[GitHubWorkflowRun]:
        """List runs of a workflow, newest first.

        Args:
            owner: Repository owner.
            repo: Repository name.
            workflow_file: Workflow file name, e.g. ``deploy.yml``.
            since: Stop at the first run created before this instant.
                None fetches the full history.
        """
        url = f"{self._base_url}/repos/{owner}/{repo}/actions/workflows/{workflow_file}/runs"

        runs: list[GitHubWorkflowRun] = []
        async for page in self._paginate(url, {"per_page": PER_PAGE}, items_key="workflow_runs"):
            for item in page:
                run = GitHubWorkflowRun.from_api(item)
                if since is not None and run.created_at is not None and run.created_at < since:
                    logger.info(
                        "github_workflow_runs_fetched",
                        owner=owner,
                        repo=repo,
                        workflow=workflow_file,
                        count=len(runs),
                    )
                    return runs
                runs.append(run)

        logger.info(
            "github_workflow_runs_fetched",
            owner=owner,
            repo=repo,
            workflow=workflow_file,
            count=len(runs),
        )
        return runs

    async def get_repositories(self) -> list[GitHubRepository]:
        """List the organization repositories, or the token owner's when no
        organization is configured."""
        if self._organization_name:
            url = f"{self._base_url}/orgs/{self._organization_name}/repos"
        else:
            url = f"{self._base_url}/user/repos"

        repositories: list[GitHubRepository] = []
        async for page in self._paginate(url, {"per_page": PER_PAGE}):
            repositories.extend(GitHubRepository.from_api(item) for item in page)

        logger.info(
            "github_repositories_fetched",
            organization=self._organization_name,
            count=len(repositories),
        )
        return repositories

    async def get_organization_members(self, organization: str) -> list[GitHubMember]:
        url = f"{self._base_url}/orgs/{organization}/members"

        members: list[GitHubMember] = []
        async for page in self._paginate(url, {"per_page": PER_PAGE}):
            members.extend(GitHubMember.from_api(item) for item in page)

        logger.info(
            "github_members_fetched", organization=organization, count=len(members)
        )
        return members

    async def _paginate(
        self,
        url: str,
        params: dict[str, Any] | None,
        *,
        items_key: str | None = None,
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield pages of items, following ``Link: rel="next"``."""
        next_url: str | None = url
        next_params = params
        while next_url:
            response = await self._request(next_url, next_params)
            if not response.is_success:
                logger.error(
                    "github_request_failed",
                    url=next_url,
                    status_code=response.status_code,
                )
                return

            payload = response.json()
            items = payload.get(items_key, []) if items_key else payload
            yield items or []

            # The next link already carries the query string
            next_url = parse_next_link(response.headers.get("link"))
            next_params = None

    async def _request(
        self, url: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        """Issue a GET with retry and circuit breaker protection.

        Raises:
            GitHubTimeoutError: If the request keeps timing out.
            GitHubUnavailableError: If the circuit is open or GitHub is unreachable.
        """
        with tracer.start_as_current_span("github.request") as span:
            span.set_attribute("http.url", url)
            try:
                response = await self._request_with_resilience(url, params)
                span.set_attribute("http.status_code", response.status_code)
                return response

            except CircuitBreakerError as e:
                span.record_exception(e)
                logger.warning("circuit_breaker_open", provider="github", url=url)
                raise GitHubUnavailableError(
                    "GitHub temporarily unavailable"
                ) from e

            except httpx.TimeoutException as e:
                span.record_exception(e)
                logger.warning(
                    "github_timeout", url=url, timeout_seconds=self._timeout
                )
                raise GitHubTimeoutError(
                    f"GitHub request timed out after {self._timeout}s"
                ) from e

            except httpx.TransportError as e:
                span.record_exception(e)
                logger.error("github_connection_error", url=url, error=str(e))
                raise GitHubUnavailableError("Unable to connect to GitHub") from e

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, max=5),
        reraise=True,
    )
    async def _request_with_resilience(
        self, url: str, params: dict[str, Any] | None
    ) -> httpx.Response:
        """Internal method with retry and circuit breaker logic."""
        return await self._breaker.call_async(  # type: ignore[no-any-return]
            self._do_request, url, params
        )

    async def _do_request(
        self, url: str, params: dict[str, Any] | None
    ) -> httpx.Response:
        logger.debug("github_request_start", url=url)
        return await self._client.get(url, params=params)
