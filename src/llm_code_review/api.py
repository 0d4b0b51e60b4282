"""
Main Review API

Entry point that wires configuration, the GitHub client and the LLM
provider into the review orchestrator.
"""

import logging
from typing import Optional

from .config import AppConfig, load_config
from .github.client import GitHubClient
from .llm.providers import LLMProvider, create_provider
from .models.review import RunResult
from .review.orchestrator import ReviewOrchestrator


logger = logging.getLogger(__name__)


class ReviewService:
    """
    Main code review interface.

    Builds the collaborators once from configuration:
    1. GitHub client for the configured repository
    2. LLM provider selected by ``llm.provider``
    3. Review orchestrator running the pipeline
    """

    def __init__(
        self,
        config: AppConfig,
        github_client: Optional[GitHubClient] = None,
        provider: Optional[LLMProvider] = None,
    ):
        """
        Initialize review service.

        Args:
            config: Validated application configuration
            github_client: Optional pre-built client (default: from config.github)
            provider: Optional pre-built provider (default: from config.llm)
        """
        self.config = config

        logger.info("Initializing review service components...")
        logger.info(f"LLM Provider: {config.llm.provider}")
        logger.info(f"Model: {config.llm.model}")
        logger.info(f"Focus Areas: {', '.join(config.review.focus_areas)}")

        self.github_client = github_client or self._create_github_client(config)
        self.provider = provider or create_provider(config.llm)
        self.orchestrator = ReviewOrchestrator(config, self.github_client, self.provider.invoke)

        logger.info("Review service initialized successfully")

    @classmethod
    def from_root(cls, root_path: Optional[str] = None) -> "ReviewService":
        """Load configuration from ``root_path`` and build the service."""
        return cls(load_config(root_path))

    @staticmethod
    def _create_github_client(config: AppConfig) -> GitHubClient:
        github = config.github
        if not github.token or not github.owner or not github.repository:
            raise ValueError("Missing required environment variables: GITHUB_TOKEN, REPO_OWNER, REPO_NAME")

        logger.info(f"GitHub API initialized for {github.owner}/{github.repository}")
        return GitHubClient(
            github.token,
            github.owner,
            github.repository,
            base_url=github.api_base_url,
            timeout=github.timeout_seconds,
        )

    def review_pull_request(self, pr_number: int, diff_text: str) -> RunResult:
        """
        Review a pull request.

        Args:
            pr_number: Pull request number
            diff_text: Unified diff text

        Returns:
            RunResult of the review
        """
        return self.orchestrator.run(pr_number, diff_text)

    def fetch_diff(self, pr_number: int) -> str:
        """Fetch the pull request diff from GitHub."""
        return self.github_client.get_pull_request_diff(pr_number)
