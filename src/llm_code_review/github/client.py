"""
GitHub API Client

Handles GitHub API authentication, rate limiting, and communication.
Provides the pull request operations the review pipeline consumes:
PR metadata, diff, existing review comments, inline comments and reviews.
"""

import time
import logging
from typing import Dict, List, Optional, Any
from datetime import datetime
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models.review import ExistingComment


logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """GitHub API related errors"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class RateLimitExceeded(GitHubAPIError):
    """GitHub API rate limit exceeded"""
    def __init__(self, reset_time: datetime):
        super().__init__(f"Rate limit exceeded. Resets at {reset_time}", status_code=429)
        self.reset_time = reset_time


class GitHubClient:
    """
    GitHub API client for a single repository.

    Provides methods for:
    - Pull request metadata and diff retrieval
    - Existing review comment listing
    - Inline comment and review posting
    - API rate limit management
    """

    DIFF_MEDIA_TYPE = 'application/vnd.github.v3.diff'

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        timeout: int = 30,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub token
            owner: Repository owner
            repo: Repository name
            base_url: GitHub API base URL (default: https://api.github.com)
            timeout: Request timeout in seconds
        """
        if not token:
            raise ValueError("GitHub token is required")
        if not owner or not repo:
            raise ValueError("Repository owner and name are required")

        self.token = token
        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = self._create_session()
        self.rate_limit_remaining = 5000
        self.rate_limit_reset = datetime.now()

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy and authentication."""
        session = requests.Session()

        # Configure retry strategy
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        # Set authentication headers
        session.headers.update({
            'Authorization': f'token {self.token}',
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'LLM-Code-Review/1.0'
        })

        return session

    def _check_rate_limit(self) -> None:
        """Check and handle GitHub API rate limits."""
        if self.rate_limit_remaining <= 10 and datetime.now() < self.rate_limit_reset:
            wait_time = (self.rate_limit_reset - datetime.now()).total_seconds()
            if wait_time > 0:
                logger.warning(f"Rate limit low ({self.rate_limit_remaining}), resets in {wait_time:.1f}s")
                raise RateLimitExceeded(self.rate_limit_reset)

    def _update_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit information from response headers."""
        if 'X-RateLimit-Remaining' in response.headers:
            self.rate_limit_remaining = int(response.headers['X-RateLimit-Remaining'])

        if 'X-RateLimit-Reset' in response.headers:
            reset_timestamp = int(response.headers['X-RateLimit-Reset'])
            self.rate_limit_reset = datetime.fromtimestamp(reset_timestamp)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make authenticated request to GitHub API with rate limiting.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            GitHubAPIError: For API errors
            RateLimitExceeded: When rate limit is exceeded
        """
        self._check_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise GitHubAPIError(f"Request failed: {str(e)}") from e

        self._update_rate_limit(response)

        if response.status_code == 429:
            reset_time = datetime.fromtimestamp(int(response.headers.get('X-RateLimit-Reset', time.time() + 3600)))
            raise RateLimitExceeded(reset_time)

        if not response.ok:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            raise GitHubAPIError(
                f"GitHub API error {response.status_code}: {error_data.get('message', 'Unknown error')}",
                status_code=response.status_code,
                response_data=error_data
            )

        return response

    def get_pull_request(self, pr_number: int) -> Dict[str, Any]:
        """
        Get pull request information.

        Args:
            pr_number: Pull request number

        Returns:
            Pull request data
        """
        logger.info(f"Fetching PR {self.owner}/{self.repo}#{pr_number}")

        response = self._make_request('GET', f'{self.repo_path}/pulls/{pr_number}')
        return response.json()

    def get_pull_request_diff(self, pr_number: int) -> str:
        """
        Get the unified diff of a pull request.

        Args:
            pr_number: Pull request number

        Returns:
            Raw diff text
        """
        logger.info(f"Fetching diff for {self.owner}/{self.repo}#{pr_number}")

        response = self._make_request(
            'GET',
            f'{self.repo_path}/pulls/{pr_number}',
            headers={'Accept': self.DIFF_MEDIA_TYPE},
        )
        logger.debug(f"Retrieved diff length: {len(response.text)}")
        return response.text

    def get_review_comments(self, pr_number: int) -> List[ExistingComment]:
        """
        Get existing review comments on a pull request.

        Args:
            pr_number: Pull request number

        Returns:
            Review comments in the order GitHub returns them
        """
        logger.info(f"Fetching review comments for {self.owner}/{self.repo}#{pr_number}")

        comments = []
        page = 1
        per_page = 100

        while True:
            response = self._make_request(
                'GET',
                f'{self.repo_path}/pulls/{pr_number}/comments',
                params={'page': page, 'per_page': per_page}
            )

            page_comments = response.json()
            if not page_comments:
                break

            comments.extend(ExistingComment.from_api(item) for item in page_comments)

            if len(page_comments) < per_page:
                break

            page += 1

        logger.info(f"Found {len(comments)} existing comments")
        return comments

    def post_review_comment(
        self,
        pr_number: int,
        body: str,
        commit_id: str,
        path: str,
        line: int,
    ) -> Dict[str, Any]:
        """
        Post an inline review comment on the new side of a file.

        Args:
            pr_number: Pull request number
            body: Markdown comment body
            commit_id: Head commit SHA the comment refers to
            path: File path
            line: New-file line number

        Returns:
            Created comment data
        """
        logger.debug(f"Posting review comment on {path}:{line}")

        response = self._make_request(
            'POST',
            f'{self.repo_path}/pulls/{pr_number}/comments',
            json={
                'body': body,
                'commit_id': commit_id,
                'path': path,
                'line': line,
                'side': 'RIGHT',
            }
        )
        return response.json()

    def post_review(
        self,
        pr_number: int,
        body: str,
        event: str = 'COMMENT',
        comments: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        Post a pull request review.

        Args:
            pr_number: Pull request number
            body: Review body
            event: COMMENT, APPROVE or REQUEST_CHANGES
            comments: Optional inline comments with path, line and body

        Returns:
            Created review data
        """
        logger.debug(f"Posting {event} review on #{pr_number}")

        response = self._make_request(
            'POST',
            f'{self.repo_path}/pulls/{pr_number}/reviews',
            json={
                'body': body,
                'event': event,
                'comments': [
                    {'path': c['path'], 'line': c['line'], 'body': c['body']}
                    for c in (comments or [])
                ],
            }
        )
        return response.json()
