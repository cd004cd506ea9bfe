"""Ignore rules for dependencies exempt from the quality gate check.

Rules come from the CLI as one comma-separated string of regular expressions,
e.g. ``".*-mock,.*-cronjobs,.*-test.*"``. Each rule must match the whole
dependency name: ``baz`` does not ignore ``foobaz``.
"""

import re
from dataclasses import dataclass

from sonarcheck.errors import IgnoreRuleError

RULE_SEPARATOR = ","


@dataclass(frozen=True)
class IgnoreRuleSet:
    """Ordered list of ignore patterns.

    Patterns are compiled when evaluated, in order. A pattern that does not
    compile aborts the evaluation with IgnoreRuleError; rules placed before it
    still get the chance to match first.

    Attributes:
        rules: Trimmed, non-empty patterns in CLI order
    """

    rules: tuple[str, ...] = ()

    @classmethod
    def parse(cls, value: str | None) -> "IgnoreRuleSet":
        """Parse a comma-separated rule string."""
        if not value:
            return cls()
        rules = tuple(rule.strip() for rule in value.split(RULE_SEPARATOR))
        return cls(rules=tuple(rule for rule in rules if rule))

    def __bool__(self) -> bool:
        return bool(self.rules)

    def matching_rule(self, name: str) -> str | None:
        """Return the first rule that fully matches a name.

        Raises:
            IgnoreRuleError: If a rule evaluated before a match does not compile
        """
        for rule in self.rules:
            try:
                pattern = re.compile(rule)
            except re.error as e:
                raise IgnoreRuleError(rule, str(e)) from e
            if pattern.fullmatch(name):
                return rule
        return None

    def matches(self, name: str) -> bool:
        """Return True if any rule fully matches a name.

        Raises:
            IgnoreRuleError: If a rule evaluated before a match does not compile
        """
        return self.matching_rule(name) is not None


def matches(rules: str, name: str) -> bool:
    """Check a name against a comma-separated rule string.

    Example:
        >>> matches("^foo.*$,bar", "foobaz")
        True
        >>> matches("baz", "foobaz")
        False
    """
    return IgnoreRuleSet.parse(rules).matches(name)
