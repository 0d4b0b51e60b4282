"""
Review Formatter

This module provides GitHub markdown formatting for inline review comments
and the aggregate review summary.
"""

from .github import GitHubCommentFormatter

__all__ = ['GitHubCommentFormatter']
