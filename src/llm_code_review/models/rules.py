"""
Custom Rule Data Models

User-defined pattern rules and the violations they produce.
"""

from dataclasses import dataclass, replace
from typing import Optional
from pydantic import BaseModel, field_validator


DEFAULT_RULE_SEVERITY = "medium"


@dataclass(frozen=True)
class RuleSpec:
    """A user-supplied regular-expression rule."""
    name: str
    pattern: str
    message: str
    severity: str = DEFAULT_RULE_SEVERITY


@dataclass(frozen=True)
class RuleViolation:
    """
    A single rule match inside a file's added content.

    ``line`` is 1-based within the concatenated addition text unless the
    rule engine ran in absolute-line mode.
    """
    rule: str
    message: str
    severity: str
    line: int
    matched_text: str
    filename: Optional[str] = None

    def with_filename(self, filename: str) -> "RuleViolation":
        """Return a copy tagged with the file it was found in."""
        return replace(self, filename=filename)


# Pydantic model for config validation
class RuleSpecRequest(BaseModel):
    """Config-file representation of a custom rule."""
    name: str
    pattern: str
    message: str
    severity: Optional[str] = None

    @field_validator('name', 'pattern', 'message')
    @classmethod
    def validate_non_empty(cls, v):
        if not v.strip():
            raise ValueError('Field cannot be empty')
        return v

    @field_validator('severity')
    @classmethod
    def validate_severity(cls, v):
        if v is not None and v not in {'high', 'medium', 'low'}:
            raise ValueError('Invalid severity')
        return v

    def to_rule(self) -> RuleSpec:
        return RuleSpec(
            name=self.name,
            pattern=self.pattern,
            message=self.message,
            severity=self.severity or DEFAULT_RULE_SEVERITY,
        )
