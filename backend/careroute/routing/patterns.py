import re
from typing import Dict, Iterable, Optional, Tuple

from careroute.models.config import RouteRule

# Every regex metacharacter except the "*" wildcard.
_SPECIAL = re.compile(r"[.+?^${}()|\[\]\\]")


def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """
    Compile a rule match pattern.

    ``*`` matches any sequence, newlines included; everything else is literal.
    The pattern is anchored at both ends and case-insensitive.
    """
    escaped = _SPECIAL.sub(lambda m: "\\" + m.group(0), pattern)
    return re.compile("^" + escaped.replace("*", ".*") + "$", re.IGNORECASE | re.DOTALL)


class RuleMatcher:
    """Ordered rules with their patterns compiled once, at load time."""

    def __init__(self, rules: Iterable[RouteRule]):
        self._compiled: Tuple[Tuple[RouteRule, "re.Pattern[str]"], ...] = tuple(
            (rule, compile_pattern(rule.match)) for rule in rules
        )

    def first_match(self, topic: str) -> Optional[RouteRule]:
        for rule, pattern in self._compiled:
            if pattern.fullmatch(topic):
                return rule
        return None

    def patterns(self) -> Dict[str, str]:
        return {rule.name: pattern.pattern for rule, pattern in self._compiled}

    def __len__(self) -> int:
        return len(self._compiled)
