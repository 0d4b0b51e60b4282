"""
Review Data Models

Comment records proposed by the LLM, comments already on the pull request,
and the result of a review run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, field_validator

from .rules import RuleViolation


logger = logging.getLogger(__name__)

VALID_SEVERITIES = ('high', 'medium', 'low')

COMMENT_CATEGORIES = (
    'bugs',
    'security',
    'performance',
    'readability',
    'maintainability',
    'best-practices',
    'testing',
    'documentation',
)


@dataclass(frozen=True)
class Comment:
    """A review comment anchored to an absolute new-file line."""
    filename: str
    line: int
    severity: str
    category: str
    message: str
    suggestion: Optional[str] = None

    @property
    def location(self) -> str:
        return f"{self.filename}:{self.line}"


@dataclass(frozen=True)
class ExistingComment:
    """A review comment already present on the pull request."""
    path: str
    line: Optional[int]
    author_login: str
    comment_id: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ExistingComment":
        """Build from a GitHub pull request review comment payload."""
        user = data.get('user') or {}
        return cls(
            path=data.get('path', ''),
            line=data.get('line'),
            author_login=user.get('login', ''),
            comment_id=data.get('id'),
        )


@dataclass(frozen=True)
class PullRequestInfo:
    """The subset of pull request metadata the review needs."""
    number: int
    head_sha: str
    title: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PullRequestInfo":
        return cls(
            number=data['number'],
            head_sha=data['head']['sha'],
            title=data.get('title') or "",
        )


@dataclass(frozen=True)
class SkippedComment:
    """A proposed comment that was not posted, with the reason why."""
    comment: Comment
    reason: str
    error: Optional[str] = None


@dataclass
class RunResult:
    """Outcome of one review run."""
    success: bool
    skipped: bool = False
    reason: Optional[str] = None
    files_reviewed: int = 0
    comments_generated: int = 0
    comments_posted: int = 0
    comments_skipped: int = 0
    custom_rule_violations: int = 0
    posted_comments: List[Comment] = field(default_factory=list)
    skipped_comments: List[SkippedComment] = field(default_factory=list)
    violations: List[RuleViolation] = field(default_factory=list)

    def __post_init__(self):
        """Validate data."""
        if self.skipped and not self.reason:
            raise ValueError("Skipped runs must carry a reason")
        counts = (
            self.files_reviewed,
            self.comments_generated,
            self.comments_posted,
            self.comments_skipped,
            self.custom_rule_violations,
        )
        if any(count < 0 for count in counts):
            raise ValueError("Counts must be non-negative")

    @classmethod
    def skipped_run(cls, reason: str) -> "RunResult":
        """Result for a run that stopped before any external call."""
        return cls(success=True, skipped=True, reason=reason)

    @classmethod
    def completed(
        cls,
        files_reviewed: int,
        comments_generated: int,
        posted: List[Comment],
        skipped: List[SkippedComment],
        violations: List[RuleViolation],
    ) -> "RunResult":
        """Result for a run that went through comment emission."""
        return cls(
            success=True,
            files_reviewed=files_reviewed,
            comments_generated=comments_generated,
            comments_posted=len(posted),
            comments_skipped=len(skipped),
            custom_rule_violations=len(violations),
            posted_comments=list(posted),
            skipped_comments=list(skipped),
            violations=list(violations),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Summary counters, suitable for logging or CI outputs."""
        if self.skipped:
            return {'success': self.success, 'skipped': True, 'reason': self.reason}
        return {
            'success': self.success,
            'skipped': False,
            'files_reviewed': self.files_reviewed,
            'comments_generated': self.comments_generated,
            'comments_posted': self.comments_posted,
            'comments_skipped': self.comments_skipped,
            'custom_rule_violations': self.custom_rule_violations,
        }


# Pydantic model for LLM response validation
class CommentPayload(BaseModel):
    """One element of the JSON array returned by the LLM."""
    filename: str
    line: int
    severity: str
    category: str
    message: str
    suggestion: Optional[str] = None

    @field_validator('severity')
    @classmethod
    def normalize_severity(cls, v):
        severity = v.strip().lower()
        if severity not in VALID_SEVERITIES:
            logger.debug(f"Unknown severity '{v}', using 'medium'")
            return 'medium'
        return severity

    @field_validator('suggestion')
    @classmethod
    def empty_suggestion_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    def to_comment(self) -> Comment:
        return Comment(
            filename=self.filename,
            line=self.line,
            severity=self.severity,
            category=self.category,
            message=self.message,
            suggestion=self.suggestion,
        )
