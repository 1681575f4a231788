"""Cache key templates, bulk-invalidation prefixes, categories and durations."""

from enum import StrEnum

# Portfolio users
ALL_PORTFOLIO_USERS = "portfolio_users:all"
PORTFOLIO_USER_BY_ID = "portfolio_user:id:{}"
PORTFOLIO_USER_BY_APP_USER_ID = "portfolio_user:app_user:{}"

# Skills
ALL_SKILLS = "skills:all"
SKILLS_BY_USER_ID = "skills:user:{}"
SKILL_BY_ID = "skill:id:{}"

# Projects
ALL_PROJECTS = "projects:all"
PROJECTS_BY_USER_ID = "projects:user:{}"
PROJECT_BY_ID = "project:id:{}"

# User roles
USER_ROLE = "user_role:portfolio_user:{}"

# Prefixes for bulk operations
PORTFOLIO_USERS_PREFIX = "portfolio_user"
SKILLS_PREFIX = "skill"
PROJECTS_PREFIX = "project"
USER_ROLES_PREFIX = "user_role"

ALL_PREFIXES = (
    PORTFOLIO_USERS_PREFIX,
    SKILLS_PREFIX,
    PROJECTS_PREFIX,
    USER_ROLES_PREFIX,
)


def portfolio_user_key(user_id: int) -> str:
    return PORTFOLIO_USER_BY_ID.format(user_id)


def portfolio_user_by_app_user_key(app_user_id: str) -> str:
    return PORTFOLIO_USER_BY_APP_USER_ID.format(app_user_id)


def skills_by_user_key(user_id: int) -> str:
    return SKILLS_BY_USER_ID.format(user_id)


def skill_key(skill_id: int) -> str:
    return SKILL_BY_ID.format(skill_id)


def projects_by_user_key(user_id: int) -> str:
    return PROJECTS_BY_USER_ID.format(user_id)


def project_key(project_id: int) -> str:
    return PROJECT_BY_ID.format(project_id)


def user_role_key(user_id: int) -> str:
    return USER_ROLE.format(user_id)


class CacheCategory(StrEnum):
    PORTFOLIO_USERS = "PortfolioUsers"
    SKILLS = "Skills"
    PROJECTS = "Projects"
    USER_ROLES = "UserRoles"
    OTHER = "Other"


# Checked in order; the first prefix that matches wins.
_CATEGORY_PREFIXES: tuple[tuple[str, CacheCategory], ...] = (
    (PORTFOLIO_USERS_PREFIX, CacheCategory.PORTFOLIO_USERS),
    (SKILLS_PREFIX, CacheCategory.SKILLS),
    (PROJECTS_PREFIX, CacheCategory.PROJECTS),
    (USER_ROLES_PREFIX, CacheCategory.USER_ROLES),
)


def categorize(key: str) -> CacheCategory:
    """Map a cache key to its category by case-insensitive prefix.

    ``"projects:all"`` and ``"project:id:7"`` both land in
    ``CacheCategory.PROJECTS``; anything unrecognised is ``OTHER``.
    """
    lowered = key.lower()
    for prefix, category in _CATEGORY_PREFIXES:
        if lowered.startswith(prefix):
            return category
    return CacheCategory.OTHER


class CacheDurations:
    """Cache lifetimes in seconds for different kinds of data."""

    STANDARD = 15 * 60.0
    SHORT = 10 * 60.0
    LONG = 60 * 60.0
    USER_SPECIFIC = 10 * 60.0


DEFAULT_TTL = CacheDurations.STANDARD
SLIDING_WINDOW = 5 * 60.0
