"""
File Filtering and Reviewable Change Extraction

Drops excluded files and reduces the remainder to their added lines.
"""

import re
import logging
from typing import List, Optional, Pattern, Sequence

from ..models.diff import FileChange, ReviewableChange


logger = logging.getLogger(__name__)


def glob_to_regex(glob: str) -> Pattern:
    """
    Translate a glob into an anchored, case-sensitive regular expression.

    ``*`` matches any run of characters (including ``/``), ``?`` matches one
    character, everything else is literal.

    Args:
        glob: Glob pattern such as ``*.test.js`` or ``dist/**``

    Returns:
        Compiled pattern that must match the whole filename
    """
    parts = []
    for char in glob:
        if char == '*':
            parts.append('.*')
        elif char == '?':
            parts.append('.')
        else:
            parts.append(re.escape(char))
    return re.compile(f"^{''.join(parts)}$")


def is_excluded(filename: str, patterns: Sequence[Pattern]) -> bool:
    return any(pattern.match(filename) for pattern in patterns)


def filter_files(
    files: List[FileChange],
    exclude_patterns: Optional[Sequence[str]],
) -> List[FileChange]:
    """
    Remove files whose filename matches any exclude glob.

    Args:
        files: Parsed file changes
        exclude_patterns: Glob patterns; empty or None keeps every file

    Returns:
        Files that are not excluded, in their original order
    """
    if not exclude_patterns:
        return files

    compiled = [glob_to_regex(glob) for glob in exclude_patterns]
    kept = []
    for file_change in files:
        if is_excluded(file_change.filename, compiled):
            logger.debug(f"Excluding file: {file_change.filename}")
            continue
        kept.append(file_change)

    logger.info(f"Filtered to {len(kept)} of {len(files)} files")
    return kept


def extract_reviewable_changes(files: List[FileChange]) -> List[ReviewableChange]:
    """
    Reduce files to their added lines.

    Files without any addition are omitted.

    Args:
        files: File changes to extract from

    Returns:
        One ReviewableChange per file that has additions
    """
    reviewable = [
        ReviewableChange.from_file_change(file_change)
        for file_change in files
        if file_change.added_lines
    ]
    logger.debug(f"Extracted {len(reviewable)} reviewable changes")
    return reviewable
