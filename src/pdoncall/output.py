"""Text renderings of aggregated escalation policies."""

from __future__ import annotations

import csv
import io
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Iterator

from pydantic import BaseModel, Field

from pdoncall.models import EscalationLevel, Policy, ResolvedUser
from pdoncall.tree import TreePrinter

logger = logging.getLogger(__name__)

LevelFilter = Callable[[EscalationLevel], bool]

CSV_HEADER = ["Escalation Policy ID", "Escalation Policy", "depth", "name", "email"]


def _keep_all(level: EscalationLevel) -> bool:
    return True


def _rows(
    policies: list[Policy], keep_level: LevelFilter
) -> Iterator[tuple[Policy, EscalationLevel, ResolvedUser]]:
    for policy in policies:
        for level in policy.levels:
            if not keep_level(level):
                continue
            for user in level.users:
                yield policy, level, user


def build_tree_output(policies: list[Policy], keep_level: LevelFilter = _keep_all) -> str:
    """Render policies as a tree with one branch per escalation level.

    Args:
        policies: Policies to render, in display order.
        keep_level: Predicate deciding which levels are shown.
    """
    tree = TreePrinter()

    for policy in policies:
        root = tree.add_root(f"Escalation Policy - {policy.name}")
        oncalls = root.add_child("Oncalls")
        for level in policy.levels:
            if keep_level(level):
                names = ", ".join(user.display() for user in level.users)
                oncalls.add_child(f"Level {level.depth} - {names}")

    return tree.render()


def build_json_output(policies: list[Policy], keep_level: LevelFilter = _keep_all) -> str:
    """Render one flat JSON record per policy, level and user."""
    records = [
        {
            "id": policy.id,
            "escalationPolicy": policy.name,
            "depth": level.depth,
            "userName": user.name,
            "userEmail": user.email,
        }
        for policy, level, user in _rows(policies, keep_level)
    ]
    return json.dumps(records, indent=2, ensure_ascii=False)


def build_csv_output(policies: list[Policy], keep_level: LevelFilter = _keep_all) -> str:
    """Render the same flattening as the JSON output as CSV with a header row."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for policy, level, user in _rows(policies, keep_level):
        writer.writerow([policy.id, policy.name, level.depth, user.name, user.email])
    return output.getvalue()


class TfStateExport(BaseModel):
    """Name to id mapping of escalation policies for infrastructure imports.

    A name seen with two different ids is removed from the mapping and
    listed under ``duplicates`` instead; later policies with that name are
    listed only once and never mapped again.
    """

    escalation_policies: dict[str, str] = Field(default_factory=dict)
    duplicates: list[str] = Field(default_factory=list)

    def add_escalation_policy(self, policy: Policy) -> None:
        if policy.name in self.duplicates:
            logger.warning("Duplicate policy with name %s found!", policy.name)
            return

        existing = self.escalation_policies.get(policy.name)
        if existing is not None and existing != policy.id:
            logger.warning("Duplicate policy with name %s found!", policy.name)
            del self.escalation_policies[policy.name]
            self.duplicates.append(policy.name)
            return

        self.escalation_policies[policy.name] = policy.id

    def render(self) -> str:
        data = {
            "escalation_policies": dict(sorted(self.escalation_policies.items())),
            "duplicates": self.duplicates,
        }
        return json.dumps(data, indent=2, ensure_ascii=False)


def build_tfstate_output(policies: list[Policy]) -> str:
    export = TfStateExport()
    for policy in policies:
        export.add_escalation_policy(policy)
    return export.render()


def write_output(dest: str, contents: str) -> None:
    """Write ``contents`` to the file ``dest``, or to stdout when it is ``-``.

    Raises:
        OSError: If the file cannot be written.
    """
    if not contents.endswith("\n"):
        contents += "\n"

    if dest == "-":
        sys.stdout.write(contents)
        sys.stdout.flush()
        return

    Path(dest).write_text(contents, encoding="utf-8")
    logger.info("Wrote output to %s", dest)
