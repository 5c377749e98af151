"""Shared fixtures: a fake PagerDuty API served through respx."""

from __future__ import annotations

import httpx
import pytest
import respx

API_HOST = "api.pagerduty.com"
RESOURCES = ("escalation_policies", "oncalls", "users", "services")


def policy(policy_id: str, name: str, description: str | None = None) -> dict:
    return {
        "id": policy_id,
        "type": "escalation_policy",
        "name": name,
        "description": description,
    }


def oncall(policy_id: str, user_id: str, level: int) -> dict:
    return {
        "escalation_policy": {"id": policy_id, "type": "escalation_policy_reference"},
        "user": {"id": user_id, "type": "user_reference"},
        "escalation_level": level,
    }


def user(user_id: str, name: str, email: str | None = None) -> dict:
    return {
        "id": user_id,
        "name": name,
        "email": email or f"{name.split()[0].lower()}@example.com",
        "self": f"https://{API_HOST}/users/{user_id}",
        "html_url": f"https://example.pagerduty.com/users/{user_id}",
    }


def service(service_id: str, name: str, policy_id: str) -> dict:
    return {
        "id": service_id,
        "name": name,
        "escalation_policy": {"id": policy_id, "type": "escalation_policy_reference"},
    }


class FakePagerDuty:
    """Serves the four collections with offset pagination.

    Set ``collections[resource]`` to the records to serve and
    ``failures[resource]`` to ``"transport"``, ``"decode"`` or ``"status"``
    to break a resource.
    """

    page_size = 100

    def __init__(self, router: respx.Router) -> None:
        self.collections: dict[str, list[dict]] = {r: [] for r in RESOURCES}
        self.failures: dict[str, str] = {}
        self.routes = {
            resource: router.get(host=API_HOST, path=f"/{resource}").mock(
                side_effect=self._handler(resource)
            )
            for resource in RESOURCES
        }

    def _handler(self, resource: str):
        def handle(request: httpx.Request) -> httpx.Response:
            failure = self.failures.get(resource)
            if failure == "transport":
                raise httpx.ConnectError("connection refused", request=request)
            if failure == "decode":
                return httpx.Response(200, text="<html>maintenance</html>")
            if failure == "status":
                return httpx.Response(401, json={"error": {"message": "Unauthorized"}})

            offset = int(request.url.params.get("offset", "0"))
            records = self.collections[resource]
            chunk = records[offset : offset + self.page_size]
            return httpx.Response(
                200,
                json={
                    resource: chunk,
                    "limit": self.page_size,
                    "offset": offset,
                    "more": offset + self.page_size < len(records),
                },
            )

        return handle

    def requests(self, resource: str) -> list[httpx.Request]:
        return [call.request for call in self.routes[resource].calls]


@pytest.fixture
def pagerduty():
    """Mock the PagerDuty API for the duration of a test."""
    with respx.mock(assert_all_called=False) as router:
        yield FakePagerDuty(router)


@pytest.fixture
def sample_account(pagerduty: FakePagerDuty) -> FakePagerDuty:
    """A small account with three policies and a handful of on-calls."""
    pagerduty.collections["escalation_policies"] = [
        policy("P1", "Platform", "Core platform"),
        policy("P2", "Checkout"),
        policy("P3", "Quiet Team"),
    ]
    pagerduty.collections["oncalls"] = [
        oncall("P1", "U1", 1),
        oncall("P1", "U2", 2),
        oncall("P1", "U3", 3),
        oncall("P2", "U2", 1),
        oncall("P2", "U3", 1),
    ]
    pagerduty.collections["users"] = [
        user("U1", "Ana Garcia"),
        user("U2", "Ben Okafor"),
        user("U3", "Chloe Martin"),
    ]
    pagerduty.collections["services"] = [
        service("S1", "payments-api", "P2"),
        service("S2", "auth-service", "P1"),
        service("S3", "cart", "P2"),
    ]
    return pagerduty
