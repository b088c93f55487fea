"""Membership type entitlements."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.logging import get_logger
from app.repositories.membership_repo import MembershipRepo

logger = get_logger(__name__)


def with_remaining_quota(entitlements: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``entitlements`` with ``quota.remaining`` filled in."""
    result: Dict[str, Any] = {}
    for feature, entitlement in (entitlements or {}).items():
        entitlement = dict(entitlement or {})
        quota = entitlement.get("quota")
        if quota:
            quota = dict(quota)
            limit = quota.get("limit") or 0
            used = quota.get("used") or 0
            quota["remaining"] = max(limit - used, 0)
            entitlement["quota"] = quota
        result[feature] = entitlement
    return result


class MembershipService:
    """Membership service."""

    def __init__(self, membership_repo: MembershipRepo):
        self.membership_repo = membership_repo

    def get_features(self, membership_type: str) -> Dict[str, Any]:
        membership = self.membership_repo.get_by_type(membership_type)
        if membership is None:
            raise ValueError(f"Membership type {membership_type} not found")
        return {
            "type": membership.type,
            "description": membership.description,
            "entitlements": with_remaining_quota(membership.entitlements),
            "generated_at": datetime.now(timezone.utc),
        }

    def upsert_features(
        self,
        membership_type: str,
        entitlements: Dict[str, Any],
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create or replace a membership type's entitlements."""
        stored = {
            feature: {
                key: value
                for key, value in (entitlement or {}).items()
                if value is not None
            }
            for feature, entitlement in (entitlements or {}).items()
        }
        self.membership_repo.upsert(membership_type, stored, description)
        logger.info(f"Saved {len(stored)} entitlements for {membership_type}")
        return self.get_features(membership_type)

    def delete_features(self, membership_type: str) -> None:
        if not self.membership_repo.soft_delete(membership_type):
            raise ValueError(f"Membership type {membership_type} not found")
