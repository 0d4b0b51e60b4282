"""
Prompt Builder

Builds the single review request sent to the LLM: focus areas, limits,
reviewer guidelines, the output contract, the added lines with their
line numbers, and custom rule violations.
"""

import logging
from typing import List, Sequence

from ..config import ReviewConfig
from ..models.diff import ReviewableChange
from ..models.review import COMMENT_CATEGORIES
from ..models.rules import RuleViolation


logger = logging.getLogger(__name__)


REVIEW_GUIDELINES = (
    "Only comment on significant issues that match the focus areas",
    "Provide specific, actionable feedback",
    "Include line numbers in your comments",
    "Be constructive and helpful, not just critical",
    "Consider security, performance, maintainability, and best practices",
    "Ignore minor style issues unless they impact readability significantly",
)


class PromptBuilder:
    """Builds review prompts from reviewable changes."""

    def __init__(self, review_config: ReviewConfig):
        """
        Initialize prompt builder.

        Args:
            review_config: Focus areas, minimum severity and comment limit
        """
        self.review_config = review_config

    def build_review_prompt(
        self,
        changes: Sequence[ReviewableChange],
        violations: Sequence[RuleViolation] = (),
    ) -> str:
        """
        Build the complete review prompt.

        Args:
            changes: Files with their added lines
            violations: Custom rule violations to surface to the reviewer

        Returns:
            Prompt text
        """
        logger.debug(f"Building review prompt for {len(changes)} files")

        sections = [
            "You are an expert code reviewer. Please review the following code changes "
            "and provide constructive feedback.",
            self._format_settings(),
            self._format_guidelines(),
            self._format_output_contract(),
            "Code Changes to Review:",
        ]

        for index, change in enumerate(changes, 1):
            sections.append(self._format_change(index, change))

        if violations:
            sections.append(self._format_violations(violations))

        sections.append(
            "Provide your review as a JSON array of comment objects. "
            "If no significant issues are found, return an empty array []."
        )

        return "\n\n".join(sections) + "\n"

    def _format_settings(self) -> str:
        return "\n".join([
            f"Focus Areas: {', '.join(self.review_config.focus_areas)}",
            f"Minimum Severity: {self.review_config.severity}",
            f"Maximum Comments: {self.review_config.max_comments}",
        ])

    def _format_guidelines(self) -> str:
        lines = ["Guidelines:"]
        lines.extend(f"- {guideline}" for guideline in REVIEW_GUIDELINES)
        return "\n".join(lines)

    def _format_output_contract(self) -> str:
        return "\n".join([
            "For each issue found, respond in this JSON format:",
            "{",
            '  "filename": "path/to/file.js",',
            '  "line": 42,',
            '  "severity": "high|medium|low",',
            f'  "category": "{"|".join(COMMENT_CATEGORIES)}",',
            '  "message": "Clear explanation of the issue and suggested fix",',
            '  "suggestion": "Optional code suggestion"',
            "}",
        ])

    def _format_change(self, index: int, change: ReviewableChange) -> str:
        lines = [
            f"--- File {index}: {change.filename} ---",
            f"Additions: {change.additions}, Deletions: {change.deletions}",
            "Added lines (with line numbers):",
        ]
        for added in change.added_lines:
            line_number = added.new_line_number if added.new_line_number is not None else 'unknown'
            lines.append(f"{line_number}: {added.content}")
        return "\n".join(lines)

    def _format_violations(self, violations: Sequence[RuleViolation]) -> str:
        lines: List[str] = ["Custom Rule Violations:"]
        for violation in violations:
            location = f"{violation.filename}, " if violation.filename else ""
            lines.append(f"- {violation.rule}: {violation.message} ({location}Line {violation.line})")
        return "\n".join(lines)
