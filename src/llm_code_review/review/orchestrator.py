"""
Review Orchestrator

Runs one review of a pull request diff: parse, filter, extract, check
rules, ask the LLM, normalize its answer, and post the comments that are
not already on the pull request.
"""

import time
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..config import AppConfig
from ..diff.parser import DiffParser
from ..diff.filters import filter_files, extract_reviewable_changes
from ..diff.rules import RuleEngine
from ..formatting.github import GitHubCommentFormatter
from ..llm.normalizer import ResponseNormalizer
from ..llm.prompts import PromptBuilder
from ..models.diff import FileChange
from ..models.review import (
    Comment,
    ExistingComment,
    PullRequestInfo,
    RunResult,
    SkippedComment,
)
from ..models.rules import RuleViolation
from .reconciler import find_existing_comment


logger = logging.getLogger(__name__)

# Skip reasons
SKIP_DISABLED = "disabled"
SKIP_NO_CHANGES = "no-changes"
SKIP_ALL_EXCLUDED = "all-excluded"
SKIP_NO_ADDITIONS = "no-additions"

ALREADY_EXISTS = "already exists"
POST_FAILED = "post failed"


class HostingClient(Protocol):
    """Hosting-service operations the orchestrator consumes."""

    def get_pull_request(self, pr_number: int) -> Dict[str, Any]: ...

    def get_review_comments(self, pr_number: int) -> List[ExistingComment]: ...

    def post_review_comment(self, pr_number: int, body: str, commit_id: str, path: str, line: int) -> Any: ...

    def post_review(self, pr_number: int, body: str, event: str = 'COMMENT') -> Any: ...


class ReviewOrchestrator:
    """
    Sequences the review pipeline for a single pull request.

    The run stops with a skipped result, before any external call, when the
    review is disabled, the diff has no files, every file is excluded, or no
    file has additions. Failures fetching PR data or calling the LLM abort
    the run. Failures posting an individual comment are recorded and the run
    continues.
    """

    def __init__(
        self,
        config: AppConfig,
        client: HostingClient,
        generate: Callable[[str], str],
        formatter: Optional[GitHubCommentFormatter] = None,
    ):
        """
        Initialize review orchestrator.

        Args:
            config: Immutable application configuration
            client: Hosting-service client
            generate: LLM invocation, prompt text to raw response text
            formatter: Comment formatter (default: GitHubCommentFormatter)
        """
        self.config = config
        self.client = client
        self.generate = generate
        self.formatter = formatter or GitHubCommentFormatter()

        self.diff_parser = DiffParser()
        self.rule_engine = RuleEngine(config.rules.custom, absolute_lines=config.rules.absolute_lines)
        self.prompt_builder = PromptBuilder(config.review)
        self.normalizer = ResponseNormalizer(max_comments=config.review.max_comments)

        self.comment_delay = config.github.comment_delay_seconds
        self.bot_marker = config.github.bot_login_marker

    def run(self, pr_number: int, diff_text: str) -> RunResult:
        """
        Review a pull request diff.

        Args:
            pr_number: Pull request number
            diff_text: Unified diff of the pull request

        Returns:
            RunResult, either skipped with a reason or completed with counts

        Raises:
            ValueError: If the PR number is missing or invalid
            Exception: Errors from the hosting client or the LLM are re-raised
        """
        if not self.config.enabled:
            logger.info("Code review is disabled in configuration")
            return RunResult.skipped_run(SKIP_DISABLED)

        if not pr_number or int(pr_number) <= 0:
            raise ValueError("PR number is required")

        logger.info(f"Starting review for PR #{pr_number}")

        parsed_files = self.diff_parser.parse(diff_text)
        logger.info(f"Found {len(parsed_files)} changed files")
        if not parsed_files:
            logger.info("No files to review")
            return RunResult.skipped_run(SKIP_NO_CHANGES)

        filtered_files = filter_files(parsed_files, self.config.review.exclude_patterns)
        if not filtered_files:
            logger.info("All files excluded by patterns")
            return RunResult.skipped_run(SKIP_ALL_EXCLUDED)

        reviewable_changes = extract_reviewable_changes(filtered_files)
        logger.info(f"{len(reviewable_changes)} files with additions to review")
        if not reviewable_changes:
            logger.info("No additions to review")
            return RunResult.skipped_run(SKIP_NO_ADDITIONS)

        violations = self._check_rules(filtered_files)

        try:
            pr_info = PullRequestInfo.from_api(self.client.get_pull_request(pr_number))
            existing_comments = self.client.get_review_comments(pr_number)
            logger.info(f"Found {len(existing_comments)} existing comments")

            prompt = self.prompt_builder.build_review_prompt(reviewable_changes, violations)
            logger.info("Sending code to LLM for review")
            raw_response = self.generate(prompt)
        except Exception as e:
            logger.error(f"Review failed for PR #{pr_number}: {e}")
            raise

        comments = self.normalizer.normalize(raw_response)
        logger.info(f"LLM generated {len(comments)} comments")

        posted, skipped = self._post_comments(pr_number, pr_info.head_sha, comments, existing_comments)

        if posted:
            self._post_summary(pr_number, posted, violations)

        result = RunResult.completed(
            files_reviewed=len(reviewable_changes),
            comments_generated=len(comments),
            posted=posted,
            skipped=skipped,
            violations=violations,
        )
        logger.info(f"Review completed: {result.comments_posted} posted, {result.comments_skipped} skipped")
        return result

    def _check_rules(self, files: List[FileChange]) -> List[RuleViolation]:
        """Run custom rules over every filtered file, tagging violations with filenames."""
        if not self.rule_engine.rules:
            return []

        violations = []
        for file_change in files:
            for violation in self.rule_engine.check(file_change):
                violations.append(violation.with_filename(file_change.filename))

        logger.info(f"Found {len(violations)} custom rule violations")
        return violations

    def _post_comments(
        self,
        pr_number: int,
        commit_id: str,
        comments: List[Comment],
        existing_comments: List[ExistingComment],
    ):
        """Post comments one at a time; returns (posted, skipped)."""
        posted: List[Comment] = []
        skipped: List[SkippedComment] = []

        for comment in comments:
            existing = find_existing_comment(existing_comments, comment.filename, comment.line, self.bot_marker)
            if existing is not None:
                logger.info(f"Skipping comment on {comment.location} - {ALREADY_EXISTS}")
                skipped.append(SkippedComment(comment=comment, reason=ALREADY_EXISTS))
                continue

            try:
                self.client.post_review_comment(
                    pr_number,
                    self.formatter.format_comment(comment),
                    commit_id,
                    comment.filename,
                    comment.line,
                )
            except Exception as e:
                logger.error(f"Failed to post comment on {comment.location}: {e}")
                skipped.append(SkippedComment(comment=comment, reason=POST_FAILED, error=str(e)))
                continue

            posted.append(comment)
            logger.info(f"Posted comment on {comment.location}")

            if self.comment_delay:
                time.sleep(self.comment_delay)

        return posted, skipped

    def _post_summary(self, pr_number: int, posted: List[Comment], violations: List[RuleViolation]) -> None:
        summary = self.formatter.format_summary(posted, violations)
        try:
            self.client.post_review(pr_number, summary, 'COMMENT')
            logger.info("Posted review summary")
        except Exception as e:
            logger.error(f"Failed to post review summary: {e}")


def run_review(
    pr_number: int,
    diff_text: str,
    config: AppConfig,
    client: HostingClient,
    generate: Callable[[str], str],
) -> RunResult:
    """Run a single review with the given configuration and collaborators."""
    return ReviewOrchestrator(config, client, generate).run(pr_number, diff_text)
