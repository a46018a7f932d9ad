"""Stock scope: the business-wide pool or one branch of the business.

A stock key is ``(business, item, scope)``. The business pool is stored with a
NULL branch, which every query has to match with ``IS NULL`` rather than
``= NULL``; :meth:`Scope.lookup` is the single place that knows this.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Scope:
    branch_id: Optional[int] = None

    @classmethod
    def business(cls) -> "Scope":
        return cls(branch_id=None)

    @classmethod
    def branch(cls, branch_id: int) -> "Scope":
        if branch_id is None:
            raise ValueError("branch scope requires a branch id")
        return cls(branch_id=int(branch_id))

    @classmethod
    def from_branch_id(cls, branch_id: Optional[int]) -> "Scope":
        """Map an optional branch id from the API boundary onto a scope."""
        if branch_id is None:
            return cls.business()
        return cls.branch(branch_id)

    @property
    def is_business_pool(self) -> bool:
        return self.branch_id is None

    def lookup(self, field: str = "branch") -> dict:
        """ORM lookup kwargs selecting this scope on a nullable branch FK."""
        if self.branch_id is None:
            return {f"{field}__isnull": True}
        return {f"{field}_id": self.branch_id}

    def sort_key(self) -> tuple:
        # Lock order for multi-key operations: business pool, then branches ascending
        if self.branch_id is None:
            return (0, 0)
        return (1, self.branch_id)

    def __str__(self) -> str:
        return "business" if self.branch_id is None else f"branch:{self.branch_id}"


# EOF
