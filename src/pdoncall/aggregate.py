"""Joins the fetched PagerDuty collections into per-policy views."""

from __future__ import annotations

from collections import defaultdict

from pdoncall.models import (
    EscalationLevel,
    Policy,
    RawOnCall,
    RawPolicy,
    RawService,
    RawUser,
    ResolvedUser,
)


def _build_levels(
    oncalls: list[RawOnCall], users: dict[str, RawUser]
) -> tuple[EscalationLevel, ...]:
    """Group a policy's on-calls into levels ``1..max`` with no gaps.

    A policy without on-calls gets no levels at all. Users that cannot be
    resolved are dropped, which may leave a level empty.
    """
    if not oncalls:
        return ()

    by_depth: dict[int, list[ResolvedUser]] = defaultdict(list)
    for oncall in oncalls:
        user = users.get(oncall.user_id)
        if user is None:
            continue
        by_depth[oncall.escalation_level].append(
            ResolvedUser(id=user.id, name=user.name, email=user.email)
        )

    max_depth = max(oncall.escalation_level for oncall in oncalls)
    return tuple(
        EscalationLevel(depth=depth, users=tuple(by_depth.get(depth, ())))
        for depth in range(1, max_depth + 1)
    )


def make_escalation_policies(
    policies: list[RawPolicy],
    oncalls: list[RawOnCall],
    users: list[RawUser],
    services: list[RawService],
) -> list[Policy]:
    """Build one ``Policy`` per raw policy, keeping the fetched order.

    Records are joined on ids only. On-calls and services pointing at an
    unknown policy are ignored.

    Args:
        policies: Escalation policies as decoded from the API.
        oncalls: Current on-call rows for all policies.
        users: All users of the account.
        services: All services of the account.

    Returns:
        The aggregated policies, in the same order as ``policies``.
    """
    users_by_id = {user.id: user for user in users}

    oncalls_by_policy: dict[str, list[RawOnCall]] = defaultdict(list)
    for oncall in oncalls:
        oncalls_by_policy[oncall.policy_id].append(oncall)

    services_by_policy: dict[str, list[str]] = defaultdict(list)
    for service in services:
        services_by_policy[service.policy_id].append(service.name)

    result: list[Policy] = []
    for raw in policies:
        result.append(
            Policy(
                id=raw.id,
                name=raw.name,
                description=raw.description,
                levels=_build_levels(oncalls_by_policy.get(raw.id, []), users_by_id),
                services=tuple(services_by_policy.get(raw.id, ())),
            )
        )

    return result
