"""
Data Models

Core data models of the code review pipeline.
"""

from .diff import LineKind, LineChange, Hunk, FileChange, ReviewableChange
from .rules import RuleSpec, RuleViolation, RuleSpecRequest
from .review import (
    Comment,
    CommentPayload,
    ExistingComment,
    PullRequestInfo,
    SkippedComment,
    RunResult,
)

__all__ = [
    "LineKind",
    "LineChange",
    "Hunk",
    "FileChange",
    "ReviewableChange",
    "RuleSpec",
    "RuleViolation",
    "RuleSpecRequest",
    "Comment",
    "CommentPayload",
    "ExistingComment",
    "PullRequestInfo",
    "SkippedComment",
    "RunResult",
]
