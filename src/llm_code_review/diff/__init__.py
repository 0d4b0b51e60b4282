"""
Diff Processing

This module provides unified diff parsing, exclude-pattern filtering,
reviewable change extraction and custom rule matching.
"""

from .parser import DiffParser, ParserState, parse_diff
from .filters import glob_to_regex, filter_files, extract_reviewable_changes
from .rules import RuleEngine

__all__ = [
    'DiffParser',
    'ParserState',
    'parse_diff',
    'glob_to_regex',
    'filter_files',
    'extract_reviewable_changes',
    'RuleEngine',
]
