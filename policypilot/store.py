"""Persistence and notification collaborators used by the pipeline."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import UTC, datetime
from typing import Protocol

from policypilot.models import (
    ControlCoverage,
    NotificationRecord,
    PolicyRecord,
    PolicyVersionRecord,
)

log = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when a persistence call cannot be completed."""


class PolicyStore(Protocol):
    """The five calls the pipeline needs from a database/notification backend."""

    def create_policy(self, record: PolicyRecord) -> str: ...

    def get_latest_policy_version(self, policy_id: str) -> PolicyVersionRecord | None: ...

    def create_policy_version(self, record: PolicyVersionRecord) -> str: ...

    def update_policy_current_version(
        self,
        policy_id: str,
        version_id: str,
        summary: str,
        coverage: ControlCoverage | None = None,
    ) -> None: ...

    def create_notification(self, record: NotificationRecord) -> str: ...


def _now() -> datetime:
    return datetime.now(UTC)


class InMemoryPolicyStore:
    """Process-local store; safe to share between threads running pipelines."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.policies: dict[str, PolicyRecord] = {}
        self.versions: dict[str, PolicyVersionRecord] = {}
        self.notifications: dict[str, NotificationRecord] = {}

    def create_policy(self, record: PolicyRecord) -> str:
        policy_id = uuid.uuid4().hex
        with self._lock:
            self.policies[policy_id] = record.model_copy(update={"id": policy_id})
        log.debug("Created policy %s (%s)", policy_id, record.title)
        return policy_id

    def get_policy(self, policy_id: str) -> PolicyRecord | None:
        with self._lock:
            return self.policies.get(policy_id)

    def get_latest_policy_version(self, policy_id: str) -> PolicyVersionRecord | None:
        with self._lock:
            versions = [v for v in self.versions.values() if v.policy_id == policy_id]
        if not versions:
            return None
        # Insertion order breaks created_at ties.
        return max(enumerate(versions), key=lambda item: (item[1].created_at, item[0]))[1]

    def get_policy_versions(self, policy_id: str) -> list[PolicyVersionRecord]:
        with self._lock:
            versions = [v for v in self.versions.values() if v.policy_id == policy_id]
        return sorted(versions, key=lambda version: version.version_number, reverse=True)

    def create_policy_version(self, record: PolicyVersionRecord) -> str:
        version_id = uuid.uuid4().hex
        with self._lock:
            if record.policy_id not in self.policies:
                raise StoreError(f"Unknown policy id: {record.policy_id}")
            self.versions[version_id] = record.model_copy(
                update={"id": version_id, "created_at": _now()}
            )
        log.debug("Created version %s v%d for policy %s", version_id, record.version_number, record.policy_id)
        return version_id

    def update_policy_current_version(
        self,
        policy_id: str,
        version_id: str,
        summary: str,
        coverage: ControlCoverage | None = None,
    ) -> None:
        with self._lock:
            policy = self.policies.get(policy_id)
            if policy is None:
                raise StoreError(f"Unknown policy id: {policy_id}")
            if version_id not in self.versions:
                raise StoreError(f"Unknown version id: {version_id}")
            self.policies[policy_id] = policy.model_copy(
                update={
                    "current_version_id": version_id,
                    "summary": summary,
                    "control_coverage": coverage,
                    "last_generated_at": _now(),
                }
            )

    def create_notification(self, record: NotificationRecord) -> str:
        notification_id = uuid.uuid4().hex
        with self._lock:
            self.notifications[notification_id] = record.model_copy(
                update={"id": notification_id, "created_at": record.created_at or _now()}
            )
        return notification_id

    def notifications_for(self, user_id: str, tenant_id: str) -> list[NotificationRecord]:
        with self._lock:
            return [
                n
                for n in self.notifications.values()
                if n.user_id == user_id and n.tenant_id == tenant_id
            ]
