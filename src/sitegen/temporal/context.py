"""
Tenant context contract for Temporal workflows and activities.

Every tenant-scoped activity input carries a :class:`TenantCtx`, built once
in the service that starts the workflow. Activities open their execution
store from it, so a forgotten tenant id cannot reach the database.
"""

from dataclasses import dataclass
from typing import Final
from uuid import UUID

# Plan-based fairness weights
PLAN_WEIGHTS: Final[dict[str, int]] = {
    "free": 1,
    "pro": 3,
    "enterprise": 10,
}


@dataclass(frozen=True)
class TenantCtx:
    """
    Standardized tenant context for tenant-scoped activities.

    Attributes:
        tenant_id: Tenant identifier (UUID string), also the fairness key
        plan: Optional plan tier (free/pro/enterprise) for fairness weighting
    """

    tenant_id: str
    plan: str | None = None

    @property
    def tenant_uuid(self) -> UUID:
        return UUID(self.tenant_id)

    @property
    def fairness_weight(self) -> int:
        """Plan-specific weight for ``Priority(fairness_key=..., fairness_weight=...)``."""
        return get_fairness_weight(self.plan)


def get_fairness_weight(plan: str | None) -> int:
    """Fairness weight for a plan tier (1 for free/None, 3 for pro, 10 for enterprise)."""
    return PLAN_WEIGHTS.get(plan or "free", 1)
