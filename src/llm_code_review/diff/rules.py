"""
Custom Rule Engine

Scans a file's added content against user-supplied regular-expression rules.
"""

import re
import logging
from typing import List, Optional, Sequence

from ..models.diff import FileChange
from ..models.rules import RuleSpec, RuleViolation, DEFAULT_RULE_SEVERITY


logger = logging.getLogger(__name__)


def line_number_at(text: str, index: int) -> int:
    """1-based line of the character at ``index`` in ``text``."""
    return text.count('\n', 0, index) + 1


class RuleEngine:
    """
    Matches custom rules against added lines.

    Only addition lines are scanned, concatenated with newlines in file
    order. By default a violation's ``line`` is the 1-based line within that
    concatenated text, not the file's line number. ``absolute_lines=True``
    maps it to the added line's new-file line number instead.
    """

    def __init__(self, rules: Optional[Sequence[RuleSpec]] = None, absolute_lines: bool = False):
        """
        Initialize rule engine.

        Args:
            rules: Rules applied by ``check`` when none are passed explicitly
            absolute_lines: Report new-file line numbers instead of text lines
        """
        self.rules = list(rules or [])
        self.absolute_lines = absolute_lines

    def check(self, file_change: FileChange) -> List[RuleViolation]:
        """Check a file against the engine's configured rules."""
        return self.check_rules(file_change, self.rules, absolute_lines=self.absolute_lines)

    @staticmethod
    def check_rules(
        file_change: FileChange,
        rules: Sequence[RuleSpec],
        absolute_lines: bool = False,
    ) -> List[RuleViolation]:
        """
        Check a file's added content against rules.

        A rule whose pattern does not compile is skipped with a warning.

        Args:
            file_change: File to scan
            rules: Rules to apply
            absolute_lines: Report new-file line numbers instead of text lines

        Returns:
            Violations in rule order, then match order
        """
        if not rules:
            return []

        added_lines = file_change.added_lines
        added_text = file_change.added_text
        violations = []

        for rule in rules:
            try:
                regex = re.compile(rule.pattern)
            except re.error as e:
                logger.warning(f"Invalid regex pattern in rule {rule.name}: {e}")
                continue

            for match in regex.finditer(added_text):
                line = line_number_at(added_text, match.start())
                if absolute_lines and added_lines:
                    line = added_lines[line - 1].new_line_number

                violations.append(RuleViolation(
                    rule=rule.name,
                    message=rule.message,
                    severity=rule.severity or DEFAULT_RULE_SEVERITY,
                    line=line,
                    matched_text=match.group(0),
                ))

        if violations:
            logger.debug(f"{len(violations)} rule violations in {file_change.filename}")
        return violations
