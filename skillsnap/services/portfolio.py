"""Cached read access to portfolio data and write-side cache invalidation."""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

from skillsnap.cache import keys
from skillsnap.cache.extensions import (
    get_or_set_short,
    get_or_set_standard,
    get_or_set_user_specific,
    invalidate_multiple,
)
from skillsnap.cache.store import CacheStore
from skillsnap.metrics.aggregator import MetricsAggregator
from skillsnap.models.portfolio import PortfolioUser, Project, Skill

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PortfolioSource(Protocol):
    """Data-access collaborator that actually loads portfolio records."""

    async def list_portfolio_users(self) -> list[PortfolioUser]: ...

    async def get_portfolio_user(self, user_id: int) -> PortfolioUser | None: ...

    async def get_portfolio_user_by_app_user(
        self, app_user_id: str
    ) -> PortfolioUser | None: ...

    async def list_skills(self) -> list[Skill]: ...

    async def list_skills_by_user(self, user_id: int) -> list[Skill]: ...

    async def get_skill(self, skill_id: int) -> Skill | None: ...

    async def list_projects(self) -> list[Project]: ...

    async def list_projects_by_user(self, user_id: int) -> list[Project]: ...

    async def get_project(self, project_id: int) -> Project | None: ...


def _result_count(result: object) -> int:
    if result is None:
        return 0
    if isinstance(result, list):
        return len(result)
    return 1


class PortfolioReader:
    """Read-through facade used by the API layer.

    Every read goes through the shared ``CacheStore`` and every upstream
    load is timed into the shared ``MetricsAggregator``. A detail lookup
    that finds nothing returns None and leaves the cache untouched.
    Writers call the ``*_changed`` hooks after committing so stale entries
    are dropped.

    Args:
        source: Upstream data access.
        cache: Process-wide cache store.
        metrics: Process-wide metrics aggregator.
    """

    def __init__(
        self,
        source: PortfolioSource,
        cache: CacheStore,
        metrics: MetricsAggregator,
    ) -> None:
        self.source = source
        self.cache = cache
        self.metrics = metrics

    def _timed(
        self, operation: str, load: Callable[[], Awaitable[T]]
    ) -> Callable[[], Awaitable[T]]:
        async def fetch() -> T:
            started = time.perf_counter()
            result = await load()
            self.metrics.track_database_query(
                operation, time.perf_counter() - started, _result_count(result)
            )
            return result

        return fetch

    # ── Portfolio users ──────────────────────────────────────────────────

    async def list_portfolio_users(self) -> list[PortfolioUser]:
        return await get_or_set_standard(
            self.cache,
            keys.ALL_PORTFOLIO_USERS,
            self._timed("GetPortfolioUsers", self.source.list_portfolio_users),
        )

    async def get_portfolio_user(self, user_id: int) -> PortfolioUser | None:
        return await get_or_set_standard(
            self.cache,
            keys.portfolio_user_key(user_id),
            self._timed(
                "GetPortfolioUser", lambda: self.source.get_portfolio_user(user_id)
            ),
        )

    async def get_portfolio_user_by_app_user(
        self, app_user_id: str
    ) -> PortfolioUser | None:
        return await get_or_set_user_specific(
            self.cache,
            keys.portfolio_user_by_app_user_key(app_user_id),
            self._timed(
                "GetPortfolioUserByAppUser",
                lambda: self.source.get_portfolio_user_by_app_user(app_user_id),
            ),
        )

    # ── Skills ───────────────────────────────────────────────────────────

    async def list_skills(self) -> list[Skill]:
        return await get_or_set_short(
            self.cache,
            keys.ALL_SKILLS,
            self._timed("GetSkills", self.source.list_skills),
        )

    async def list_skills_by_user(self, user_id: int) -> list[Skill]:
        return await get_or_set_user_specific(
            self.cache,
            keys.skills_by_user_key(user_id),
            self._timed(
                "GetSkillsByUser", lambda: self.source.list_skills_by_user(user_id)
            ),
        )

    async def get_skill(self, skill_id: int) -> Skill | None:
        return await get_or_set_standard(
            self.cache,
            keys.skill_key(skill_id),
            self._timed("GetSkill", lambda: self.source.get_skill(skill_id)),
        )

    # ── Projects ─────────────────────────────────────────────────────────

    async def list_projects(self) -> list[Project]:
        return await get_or_set_short(
            self.cache,
            keys.ALL_PROJECTS,
            self._timed("GetProjects", self.source.list_projects),
        )

    async def list_projects_by_user(self, user_id: int) -> list[Project]:
        return await get_or_set_user_specific(
            self.cache,
            keys.projects_by_user_key(user_id),
            self._timed(
                "GetProjectsByUser",
                lambda: self.source.list_projects_by_user(user_id),
            ),
        )

    async def get_project(self, project_id: int) -> Project | None:
        return await get_or_set_standard(
            self.cache,
            keys.project_key(project_id),
            self._timed("GetProject", lambda: self.source.get_project(project_id)),
        )

    # ── Invalidation ─────────────────────────────────────────────────────

    def portfolio_user_changed(
        self, user_id: int, app_user_id: str | None = None
    ) -> None:
        """Drop cached entries affected by a create/update/delete of a user."""
        stale = [
            keys.ALL_PORTFOLIO_USERS,
            keys.portfolio_user_key(user_id),
            keys.user_role_key(user_id),
        ]
        if app_user_id:
            stale.append(keys.portfolio_user_by_app_user_key(app_user_id))
        invalidate_multiple(self.cache, stale, "portfolio user change")

    def skill_changed(self, skill_id: int, portfolio_user_id: int) -> None:
        invalidate_multiple(
            self.cache,
            [
                keys.ALL_SKILLS,
                keys.skill_key(skill_id),
                keys.skills_by_user_key(portfolio_user_id),
                keys.portfolio_user_key(portfolio_user_id),
            ],
            "skill change",
        )

    def project_changed(self, project_id: int, portfolio_user_id: int) -> None:
        invalidate_multiple(
            self.cache,
            [
                keys.ALL_PROJECTS,
                keys.project_key(project_id),
                keys.projects_by_user_key(portfolio_user_id),
                keys.portfolio_user_key(portfolio_user_id),
            ],
            "project change",
        )
