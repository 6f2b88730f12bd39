import threading

import pytest

from policypilot.models import (
    ControlCoverage,
    NotificationRecord,
    PolicyRecord,
    PolicyVersionRecord,
)
from policypilot.store import InMemoryPolicyStore, StoreError


def _policy() -> PolicyRecord:
    return PolicyRecord(tenant_id="t", type="Privacy Policy", title="Privacy Policy (Ghana)", content="# doc")


def _version(policy_id: str, number: int) -> PolicyVersionRecord:
    return PolicyVersionRecord(
        policy_id=policy_id,
        tenant_id="t",
        version_number=number,
        summary=f"v{number}",
        outline=[],
        sections=[],
        control_coverage=ControlCoverage(),
        document="# doc",
        provenance_json={},
    )


def test_latest_version_is_none_for_new_policy() -> None:
    store = InMemoryPolicyStore()
    policy_id = store.create_policy(_policy())
    assert store.get_latest_policy_version(policy_id) is None
    assert store.get_policy(policy_id).id == policy_id


def test_latest_version_returns_most_recent() -> None:
    store = InMemoryPolicyStore()
    policy_id = store.create_policy(_policy())
    store.create_policy_version(_version(policy_id, 1))
    second = store.create_policy_version(_version(policy_id, 2))
    latest = store.get_latest_policy_version(policy_id)
    assert latest.id == second
    assert latest.version_number == 2
    assert [v.version_number for v in store.get_policy_versions(policy_id)] == [2, 1]


def test_update_current_version_pointer() -> None:
    store = InMemoryPolicyStore()
    policy_id = store.create_policy(_policy())
    version_id = store.create_policy_version(_version(policy_id, 1))
    coverage = ControlCoverage(covered=["C1"])
    store.update_policy_current_version(policy_id, version_id, "summary", coverage)
    policy = store.get_policy(policy_id)
    assert policy.current_version_id == version_id
    assert policy.summary == "summary"
    assert policy.control_coverage == coverage
    assert policy.last_generated_at is not None


def test_unknown_ids_raise_store_error() -> None:
    store = InMemoryPolicyStore()
    with pytest.raises(StoreError):
        store.create_policy_version(_version("missing", 1))
    policy_id = store.create_policy(_policy())
    with pytest.raises(StoreError):
        store.update_policy_current_version(policy_id, "missing", "s")
    with pytest.raises(StoreError):
        store.update_policy_current_version("missing", "missing", "s")


def test_notifications_are_scoped_to_user_and_tenant() -> None:
    store = InMemoryPolicyStore()
    store.create_notification(
        NotificationRecord(tenant_id="t", user_id="u", type="success", title="a", description="b")
    )
    store.create_notification(
        NotificationRecord(tenant_id="t", user_id="other", type="info", title="c", description="d")
    )
    [note] = store.notifications_for("u", "t")
    assert note.title == "a"
    assert note.created_at is not None


def test_concurrent_policy_creation() -> None:
    store = InMemoryPolicyStore()

    def _create() -> None:
        for _ in range(50):
            store.create_policy(_policy())

    threads = [threading.Thread(target=_create) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(store.policies) == 200
