"""
GitHub Comment Formatter

Formats review comments and the aggregate review summary as GitHub
markdown.
"""

import logging
from collections import Counter
from typing import Dict, List, Sequence

from ..models.review import Comment
from ..models.rules import RuleViolation


logger = logging.getLogger(__name__)


SEVERITY_EMOJI: Dict[str, str] = {
    'high': '🚨',
    'medium': '⚠️',
    'low': '💡',
}

DEFAULT_SEVERITY_EMOJI = '💭'

CATEGORY_EMOJI: Dict[str, str] = {
    'bugs': '🐛',
    'security': '🔒',
    'performance': '⚡',
    'readability': '📖',
    'maintainability': '🔧',
    'best-practices': '✅',
    'testing': '🧪',
    'documentation': '📚',
}

SEVERITY_LABELS = (
    ('high', 'High'),
    ('medium', 'Medium'),
    ('low', 'Low'),
)


class GitHubCommentFormatter:
    """
    Formats reviews for GitHub PR comments.

    Inline comments carry a severity marker, the category, the message, an
    optional suggestion block and an attribution footer. The summary groups
    posted comments by severity and category and lists rule violations.
    """

    def __init__(self, attribution: str = "Generated by AI Code Review"):
        """
        Initialize GitHub comment formatter.

        Args:
            attribution: Footer text identifying the automated reviewer
        """
        self.attribution = attribution
        self.max_comment_length = 65536  # GitHub's comment limit

    def format_comment(self, comment: Comment) -> str:
        """
        Format an inline review comment body.

        Args:
            comment: Comment to format

        Returns:
            Markdown body
        """
        severity_marker = SEVERITY_EMOJI.get(comment.severity, DEFAULT_SEVERITY_EMOJI)
        category_marker = CATEGORY_EMOJI.get(comment.category, '')

        body = f"{severity_marker} **{comment.category}** {category_marker}\n\n"
        body += f"{comment.message}\n"

        if comment.suggestion:
            body += f"\n**Suggestion:**\n```\n{comment.suggestion}\n```\n"

        body += f"\n---\n*{self.attribution}* • Severity: `{comment.severity}`"

        return self._truncate(body)

    def format_summary(self, comments: Sequence[Comment], violations: Sequence[RuleViolation]) -> str:
        """
        Format the aggregate review summary.

        Args:
            comments: Comments that were posted
            violations: Custom rule violations found in the run

        Returns:
            Markdown review body
        """
        sections: List[str] = ["## 🤖 AI Code Review Summary\n"]

        if comments:
            count = len(comments)
            plural = '' if count == 1 else 's'
            sections.append(
                f"I've reviewed your code and found **{count} potential improvement{plural}**.\n"
            )

            by_severity = Counter(comment.severity for comment in comments)
            severity_lines = ["### Issues by Severity:"]
            for severity, label in SEVERITY_LABELS:
                if by_severity.get(severity):
                    severity_lines.append(
                        f"- {SEVERITY_EMOJI[severity]} **{label}**: {by_severity[severity]}"
                    )
            sections.append("\n".join(severity_lines) + "\n")

            # Counter keeps first-seen order
            by_category = Counter(comment.category for comment in comments)
            category_lines = ["### Issues by Category:"]
            category_lines.extend(
                f"- **{category}**: {category_count}" for category, category_count in by_category.items()
            )
            sections.append("\n".join(category_lines) + "\n")

        if violations:
            violation_lines = [f"### Custom Rule Violations: {len(violations)}"]
            violation_lines.extend(
                f"- **{violation.rule}**: {violation.message}" for violation in violations
            )
            sections.append("\n".join(violation_lines) + "\n")

        sections.append(
            "---\n*This review was generated automatically. Please review the suggestions "
            "and apply what makes sense for your codebase.*"
        )

        return self._truncate("\n".join(sections))

    def _truncate(self, body: str) -> str:
        if len(body) <= self.max_comment_length:
            return body
        logger.warning(f"Truncating comment body from {len(body)} characters")
        return body[:self.max_comment_length - 20] + "\n\n*(truncated)*"
