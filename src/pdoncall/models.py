"""Pydantic models for PagerDuty records and the aggregated policy view."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Reference(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str


class RawPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None


class RawOnCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    escalation_policy: Reference
    user: Reference
    escalation_level: int = Field(ge=1, le=255)

    @property
    def policy_id(self) -> str:
        return self.escalation_policy.id

    @property
    def user_id(self) -> str:
        return self.user.id


class RawUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str


class RawService(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    escalation_policy: Reference

    @property
    def policy_id(self) -> str:
        return self.escalation_policy.id


RawRecord = RawPolicy | RawOnCall | RawUser | RawService


class Page(BaseModel):
    """One decoded page of a paginated collection."""

    resource: str
    records: list[RawRecord]
    limit: int
    offset: int
    more: bool


class ResolvedUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str

    def display(self) -> str:
        return self.name


class EscalationLevel(BaseModel):
    model_config = ConfigDict(frozen=True)

    depth: int = Field(ge=1)
    users: tuple[ResolvedUser, ...] = ()


class Policy(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None
    levels: tuple[EscalationLevel, ...] = ()
    services: tuple[str, ...] = ()


def sort_policies(policies: list[Policy]) -> list[Policy]:
    """Return policies ordered by name; equal names keep their input order."""
    return sorted(policies, key=lambda p: p.name)
