"""
FTW Community Backend — Access Predicates
==========================================

What:  The two values the scope resolver hands back to its callers.

    ScopeFilter    a read predicate over one column: either "no restriction"
                   or "column IN {values}". An empty value set is a valid
                   filter that matches nothing.
    WriteDecision  an allowed mutation plus the fields it may touch.

How:   Repositories turn a ScopeFilter into a WHERE clause (or skip the
       query entirely when it is empty); services call
       `WriteDecision.check_fields` before applying an update.
"""

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Optional
from uuid import UUID

from ftw_community.exceptions import AuthorizationDenial


@dataclass(frozen=True)
class ScopeFilter:
    """
    Read predicate `field IN values`, or unrestricted when `values` is None.

    Example:
        college_lead of C1 reading tasks  → ScopeFilter("college_id", {C1})
        super_admin reading tasks         → ScopeFilter.unrestricted()
        core_team without an assignment   → ScopeFilter.nothing("college_id")
    """

    field: Optional[str] = None
    values: Optional[FrozenSet[UUID]] = None

    @classmethod
    def unrestricted(cls) -> "ScopeFilter":
        return cls()

    @classmethod
    def matching(cls, field: str, values: Iterable[Optional[UUID]]) -> "ScopeFilter":
        return cls(field=field, values=frozenset(v for v in values if v is not None))

    @classmethod
    def nothing(cls, field: str) -> "ScopeFilter":
        return cls(field=field, values=frozenset())

    @property
    def is_unrestricted(self) -> bool:
        return self.values is None

    @property
    def is_empty(self) -> bool:
        return self.values is not None and not self.values

    def matches(self, record: Any) -> bool:
        """Evaluate the predicate against an already-loaded record."""
        if self.values is None:
            return True
        return getattr(record, self.field, None) in self.values


@dataclass(frozen=True)
class WriteDecision:
    """An allowed mutation and the set of fields it may change."""

    mutable_fields: FrozenSet[str]

    def check_fields(self, requested: Iterable[str]) -> None:
        """Deny the whole mutation if any requested field is not mutable."""
        extra = set(requested) - self.mutable_fields
        if extra:
            raise AuthorizationDenial(context={"rejected_fields": sorted(extra)})
