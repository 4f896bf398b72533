"""
FTW Community Backend — ORM Models
===================================

Importing this package registers every table with `Base.metadata`
(Alembic autogenerate and the test suite's `create_all` rely on that).
"""

from ftw_community.models.college import (
    College,
    CoordinatorAssignment,
    CoreTeamAssignment,
    CoreTeamAssignmentCollege,
)
from ftw_community.models.content import Application, Event, TopRated, Video
from ftw_community.models.user import User
from ftw_community.models.work import Report, Task

__all__ = [
    "Application",
    "College",
    "CoordinatorAssignment",
    "CoreTeamAssignment",
    "CoreTeamAssignmentCollege",
    "Event",
    "Report",
    "Task",
    "TopRated",
    "User",
    "Video",
]
