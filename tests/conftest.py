import pytest

from policypilot.models import PolicyPipelineRequest


@pytest.fixture
def privacy_request() -> PolicyPipelineRequest:
    return PolicyPipelineRequest(
        tenant_id="tenant-1",
        tenant_name="Acme Corp",
        user_id="user-1",
        policy_type="Privacy Policy",
        industry="technology",
        jurisdiction="United Kingdom",
        business_size="medium",
    )
