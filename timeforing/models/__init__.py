from .project import Project
from .time_entry import TimeEntry
from .user import User, UserStatus

__all__ = ["Project", "TimeEntry", "User", "UserStatus"]
