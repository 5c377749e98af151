"""Name and depth filters applied to aggregated policies."""

from __future__ import annotations

import re
from typing import Iterable

from pdoncall.config import ConfigError
from pdoncall.models import EscalationLevel, Policy


def _compile(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as e:
            raise ConfigError(f"Invalid filter pattern '{pattern}': {e}") from e
    return compiled


class PolicyFilter:
    """Selects policies by name and trims levels by depth.

    A name matching any include pattern always passes. Otherwise a name
    matching an exclude pattern is dropped. Names matching neither pass
    only when no include patterns were given.

    Raises:
        ConfigError: If any pattern is not a valid regular expression.
    """

    def __init__(
        self,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        max_depth: int | None = None,
    ) -> None:
        self.include = _compile(include)
        self.exclude = _compile(exclude)
        self.max_depth = max_depth

    def matches(self, policy: Policy) -> bool:
        if any(p.search(policy.name) for p in self.include):
            return True
        if any(p.search(policy.name) for p in self.exclude):
            return False
        return not self.include

    def keep_level(self, level: EscalationLevel) -> bool:
        return self.max_depth is None or level.depth <= self.max_depth

    def apply(self, policies: Iterable[Policy]) -> list[Policy]:
        return [policy for policy in policies if self.matches(policy)]
