"""
Diff Data Models

Line-addressable structures produced from a unified diff.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class LineKind(Enum):
    """Classification of a single line inside a hunk."""
    ADDITION = "addition"
    DELETION = "deletion"
    CONTEXT = "context"


@dataclass(frozen=True)
class LineChange:
    """One line of a hunk with its resolved old/new line numbers."""
    kind: LineKind
    content: str
    old_line_number: Optional[int] = None
    new_line_number: Optional[int] = None

    def __post_init__(self):
        """Validate data."""
        if self.kind == LineKind.ADDITION and self.old_line_number is not None:
            raise ValueError("Added lines have no old line number")
        if self.kind == LineKind.DELETION and self.new_line_number is not None:
            raise ValueError("Deleted lines have no new line number")

    @property
    def is_addition(self) -> bool:
        return self.kind == LineKind.ADDITION

    @property
    def is_deletion(self) -> bool:
        return self.kind == LineKind.DELETION


@dataclass(frozen=True)
class Hunk:
    """A contiguous block of changed lines."""
    old_start: int
    old_length: int
    new_start: int
    new_length: int
    context: str = ""
    lines: Tuple[LineChange, ...] = ()

    def __post_init__(self):
        """Validate data."""
        if self.old_start < 0 or self.new_start < 0:
            raise ValueError("Line numbers must be non-negative")
        if self.old_length < 0 or self.new_length < 0:
            raise ValueError("Line counts must be non-negative")


@dataclass(frozen=True)
class FileChange:
    """
    All changes to one file.

    ``changes`` is the flat, file-ordered concatenation of every hunk's lines.
    ``additions`` and ``deletions`` always equal the number of addition and
    deletion lines in ``changes``.
    """
    filename: str
    old_filename: str
    hunks: Tuple[Hunk, ...] = ()
    changes: Tuple[LineChange, ...] = ()
    additions: int = 0
    deletions: int = 0

    def __post_init__(self):
        """Validate data."""
        if self.additions != sum(1 for c in self.changes if c.is_addition):
            raise ValueError("Addition count does not match addition lines")
        if self.deletions != sum(1 for c in self.changes if c.is_deletion):
            raise ValueError("Deletion count does not match deletion lines")

    @classmethod
    def from_hunks(cls, filename: str, old_filename: str, hunks: Tuple[Hunk, ...]) -> "FileChange":
        """Build a FileChange, deriving the flat change list and counters."""
        changes = tuple(line for hunk in hunks for line in hunk.lines)
        return cls(
            filename=filename,
            old_filename=old_filename,
            hunks=tuple(hunks),
            changes=changes,
            additions=sum(1 for c in changes if c.is_addition),
            deletions=sum(1 for c in changes if c.is_deletion),
        )

    @property
    def added_lines(self) -> Tuple[LineChange, ...]:
        """Addition lines in file order."""
        return tuple(c for c in self.changes if c.is_addition)

    @property
    def added_text(self) -> str:
        """Content of every added line joined by newlines."""
        return "\n".join(line.content for line in self.added_lines)


@dataclass(frozen=True)
class ReviewableChange:
    """The added-lines-only view of a file that gets sent for review."""
    filename: str
    additions: int
    deletions: int
    added_lines: Tuple[LineChange, ...]
    content: str
    line_numbers: Tuple[int, ...]

    @classmethod
    def from_file_change(cls, file_change: FileChange) -> "ReviewableChange":
        added = file_change.added_lines
        return cls(
            filename=file_change.filename,
            additions=file_change.additions,
            deletions=file_change.deletions,
            added_lines=added,
            content=file_change.added_text,
            line_numbers=tuple(
                line.new_line_number for line in added if line.new_line_number is not None
            ),
        )
