from enum import StrEnum


class Role(StrEnum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    USER = "User"
