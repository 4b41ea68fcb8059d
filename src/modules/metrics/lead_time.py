"""Change lead time calculation for production deployments."""

import math

import structlog

from src.infrastructure.observability import traced
from src.modules.collector.models import Commit, Deployment
from src.modules.collector.repository import CommitRepository, DeploymentRepository
from src.modules.metrics.repository import ChangeLeadTimeRepository

logger = structlog.get_logger()


class LeadTimeCalculator:
    """Attributes commits to the production deployment that first shipped them.

    A deployment ships every commit reachable from its SHA through parent
    links, except those already reachable from the previous production
    deployment of the same repository.
    """

    def __init__(
        self,
        deployments: DeploymentRepository,
        commits: CommitRepository,
        lead_times: ChangeLeadTimeRepository,
    ) -> None:
        self._deployments = deployments
        self._commits = commits
        self._lead_times = lead_times

    @traced("metrics.lead_time.calculate")
    async def calculate(self) -> int:
        """Process every production deployment not yet processed, oldest first.

        Returns:
            Number of deployments processed.
        """
        pending = await self._deployments.list_unprocessed_production()
        if not pending:
            return 0

        stored = 0
        for deployment in pending:
            previous = await self._deployments.find_previous_production(deployment)
            boundary: set[str] = set()
            if previous is not None:
                boundary = {
                    c.sha for c in await self._reachable_commits(previous, set())
                }

            shipped = await self._reachable_commits(deployment, boundary)
            if shipped:
                stored += await self._lead_times.save_many(
                    deployment.id,
                    [
                        (
                            commit.sha,
                            math.floor((deployment.created_at - commit.date).total_seconds()),
                        )
                        for commit in shipped
                    ],
                )
            await self._deployments.mark_processed(deployment.id)

        logger.info(
            "lead_times_calculated", deployments=len(pending), lead_times=stored
        )
        return len(pending)

    async def _reachable_commits(
        self, deployment: Deployment, boundary: set[str]
    ) -> list[Commit]:
        """Breadth-first walk over parents from the deployment SHA.

        The walk stays within the deployment's repository and does not enter
        commits in ``boundary``.
        """
        found: list[Commit] = []
        visited = {deployment.sha}
        frontier = [deployment.sha]

        while frontier:
            level = [
                c
                for c in await self._commits.get_many(
                    sha for sha in frontier if sha not in boundary
                )
                if c.repository_id == deployment.repository_id
            ]
            frontier = []
            for commit in level:
                found.append(commit)
                for parent in commit.parent_shas:
                    if parent not in visited:
                        visited.add(parent)
                        frontier.append(parent)

        return found
