# Repositories package init
"""
FTW Community Backend — Repositories (Data Access Layer)
=========================================================

What:  Stateless query objects over the ORM models.
How:   Each method takes the request's AsyncSession as its first argument.
       Repositories are constructed once at startup (see container.py) and
       shared by every request; they hold no per-request state.

Repository Inventory:
    - users.py:     UserRepository
    - colleges.py:  CollegeRepository, AssignmentRepository
    - work.py:      TaskRepository, ReportRepository
    - content.py:   ContentRepository (applications, events, videos, top rated)

Read methods that accept a ScopeFilter return an empty list WITHOUT querying
when the filter is empty.
"""

from typing import Any

from sqlalchemy import Select

from ftw_community.domain.scope import ScopeFilter


def apply_scope(query: Select, model: Any, scope: ScopeFilter) -> Select:
    """Add `model.<scope.field> IN scope.values` unless the scope is unrestricted."""
    if scope.is_unrestricted:
        return query
    column = getattr(model, scope.field)
    return query.where(column.in_(scope.values))
