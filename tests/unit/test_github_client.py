"""
Unit tests for the GitHub API client.
"""

from unittest.mock import Mock

import pytest
import requests

from llm_code_review.github.client import GitHubClient, GitHubAPIError, RateLimitExceeded
from llm_code_review.models.review import ExistingComment


def make_response(json_data=None, status_code=200, text="", headers=None):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.headers = headers or {}
    response.json.return_value = json_data
    response.text = text
    response.content = text.encode() or b"{}"
    return response


def api_comment(index, login="github-actions[bot]"):
    return {"id": index, "path": "a.js", "line": index, "user": {"login": login}}


class TestGitHubClientInit:
    """Tests for client construction."""

    def test_requires_token(self):
        with pytest.raises(ValueError, match="token"):
            GitHubClient("", "acme", "widgets")

    def test_requires_repository(self):
        with pytest.raises(ValueError, match="owner and name"):
            GitHubClient("ghp_x", "acme", "")

    def test_session_headers(self):
        client = GitHubClient("ghp_x", "acme", "widgets")

        assert client.session.headers["Authorization"] == "token ghp_x"
        assert client.session.headers["Accept"] == "application/vnd.github.v3+json"
        assert client.repo_path == "/repos/acme/widgets"


class TestGitHubClient:
    """Unit tests for GitHubClient operations."""

    def setup_method(self):
        self.client = GitHubClient("ghp_x", "acme", "widgets", base_url="https://api.github.com/")
        self.client.session = Mock()

    def test_get_pull_request(self):
        self.client.session.request.return_value = make_response({"number": 7, "head": {"sha": "abc"}})

        data = self.client.get_pull_request(7)

        assert data["head"]["sha"] == "abc"
        self.client.session.request.assert_called_once_with(
            "GET", "https://api.github.com/repos/acme/widgets/pulls/7", timeout=30
        )

    def test_get_pull_request_diff_uses_diff_media_type(self):
        self.client.session.request.return_value = make_response(text="diff --git a/x b/x\n")

        diff = self.client.get_pull_request_diff(7)

        assert diff.startswith("diff --git")
        _, kwargs = self.client.session.request.call_args
        assert kwargs["headers"] == {"Accept": "application/vnd.github.v3.diff"}

    def test_get_review_comments_paginates(self):
        """Test that full pages trigger another request."""
        first_page = [api_comment(i) for i in range(1, 101)]
        second_page = [api_comment(i, login="octocat") for i in range(101, 104)]
        self.client.session.request.side_effect = [
            make_response(first_page),
            make_response(second_page),
        ]

        comments = self.client.get_review_comments(7)

        assert len(comments) == 103
        assert comments[0] == ExistingComment(path="a.js", line=1, author_login="github-actions[bot]", comment_id=1)
        assert comments[-1].author_login == "octocat"
        pages = [call.kwargs["params"]["page"] for call in self.client.session.request.call_args_list]
        assert pages == [1, 2]

    def test_get_review_comments_empty(self):
        self.client.session.request.return_value = make_response([])

        assert self.client.get_review_comments(7) == []

    def test_post_review_comment_payload(self):
        self.client.session.request.return_value = make_response({"id": 1})

        self.client.post_review_comment(7, "body", "abc123", "src/a.js", 12)

        method, url = self.client.session.request.call_args.args
        payload = self.client.session.request.call_args.kwargs["json"]
        assert method == "POST"
        assert url.endswith("/repos/acme/widgets/pulls/7/comments")
        assert payload == {
            "body": "body",
            "commit_id": "abc123",
            "path": "src/a.js",
            "line": 12,
            "side": "RIGHT",
        }

    def test_post_review(self):
        self.client.session.request.return_value = make_response({"id": 2})

        self.client.post_review(7, "summary")

        payload = self.client.session.request.call_args.kwargs["json"]
        assert payload == {"body": "summary", "event": "COMMENT", "comments": []}

    def test_api_error(self):
        self.client.session.request.return_value = make_response({"message": "Not Found"}, status_code=404)

        with pytest.raises(GitHubAPIError) as exc_info:
            self.client.get_pull_request(7)

        assert exc_info.value.status_code == 404
        assert "Not Found" in str(exc_info.value)

    def test_rate_limited_response(self):
        self.client.session.request.return_value = make_response(
            {}, status_code=429, headers={"X-RateLimit-Reset": "2000000000"}
        )

        with pytest.raises(RateLimitExceeded):
            self.client.get_pull_request(7)

    def test_request_exception_is_wrapped(self):
        self.client.session.request.side_effect = requests.ConnectionError("boom")

        with pytest.raises(GitHubAPIError, match="Request failed"):
            self.client.get_pull_request(7)

    def test_rate_limit_headers_tracked(self):
        self.client.session.request.return_value = make_response(
            {"number": 7}, headers={"X-RateLimit-Remaining": "42", "X-RateLimit-Reset": "2000000000"}
        )

        self.client.get_pull_request(7)

        assert self.client.rate_limit_remaining == 42

    def test_low_rate_limit_blocks_requests(self):
        """Test that requests stop before the limit is exhausted."""
        self.client.session.request.return_value = make_response(
            {"number": 7}, headers={"X-RateLimit-Remaining": "5", "X-RateLimit-Reset": "4000000000"}
        )
        self.client.get_pull_request(7)

        with pytest.raises(RateLimitExceeded):
            self.client.get_pull_request(7)
        assert self.client.session.request.call_count == 1
