from skillsnap.models.enums import Role
from skillsnap.models.portfolio import PortfolioUser, Project, Skill

__all__ = [
    "PortfolioUser",
    "Project",
    "Role",
    "Skill",
]
