"""
GitHub Integration Layer

This module provides GitHub API integration for pull request metadata,
diff retrieval and review comment posting.
"""

from .client import GitHubClient, GitHubAPIError, RateLimitExceeded

__all__ = ['GitHubClient', 'GitHubAPIError', 'RateLimitExceeded']
