"""
Unit tests for diff, rule and review data models.
"""

import pytest
from pydantic import ValidationError

from llm_code_review.models.diff import LineKind, LineChange, Hunk, FileChange, ReviewableChange
from llm_code_review.models.review import (
    Comment,
    CommentPayload,
    ExistingComment,
    PullRequestInfo,
    RunResult,
    SkippedComment,
)
from llm_code_review.models.rules import RuleSpecRequest, RuleViolation


class TestDiffModels:
    """Unit tests for diff data models."""

    def test_addition_cannot_have_old_line_number(self):
        with pytest.raises(ValueError):
            LineChange(LineKind.ADDITION, "x", old_line_number=3, new_line_number=4)

    def test_deletion_cannot_have_new_line_number(self):
        with pytest.raises(ValueError):
            LineChange(LineKind.DELETION, "x", old_line_number=3, new_line_number=4)

    def test_hunk_rejects_negative_values(self):
        with pytest.raises(ValueError):
            Hunk(old_start=-1, old_length=0, new_start=1, new_length=1)
        with pytest.raises(ValueError):
            Hunk(old_start=1, old_length=0, new_start=1, new_length=-2)

    def test_file_change_counts_must_match_lines(self):
        """Test that inconsistent counters are rejected."""
        changes = (LineChange(LineKind.ADDITION, "x", None, 1),)

        with pytest.raises(ValueError):
            FileChange("a.py", "a.py", (), changes, additions=2, deletions=0)

    def test_from_hunks_derives_changes_and_counts(self):
        first = Hunk(1, 1, 1, 2, "", (
            LineChange(LineKind.CONTEXT, "a", 1, 1),
            LineChange(LineKind.ADDITION, "b", None, 2),
        ))
        second = Hunk(9, 1, 10, 0, "", (
            LineChange(LineKind.DELETION, "z", 9, None),
        ))

        file_change = FileChange.from_hunks("a.py", "a.py", (first, second))

        assert [c.content for c in file_change.changes] == ["a", "b", "z"]
        assert file_change.additions == 1
        assert file_change.deletions == 1
        assert file_change.added_text == "b"

    def test_reviewable_change_from_file_change(self):
        hunk = Hunk(1, 0, 7, 2, "", (
            LineChange(LineKind.ADDITION, "one", None, 7),
            LineChange(LineKind.ADDITION, "two", None, 8),
        ))
        file_change = FileChange.from_hunks("new.py", "new.py", (hunk,))

        change = ReviewableChange.from_file_change(file_change)

        assert change.content == "one\ntwo"
        assert change.line_numbers == (7, 8)
        assert change.additions == 2
        assert change.deletions == 0


class TestRuleModels:
    """Unit tests for rule data models."""

    def test_rule_request_defaults_severity(self):
        rule = RuleSpecRequest(name="r", pattern="x", message="m").to_rule()

        assert rule.severity == "medium"

    @pytest.mark.parametrize("field", ["name", "pattern", "message"])
    def test_rule_request_rejects_blank_fields(self, field):
        data = {"name": "r", "pattern": "x", "message": "m"}
        data[field] = "  "

        with pytest.raises(ValidationError):
            RuleSpecRequest(**data)

    def test_rule_request_rejects_unknown_severity(self):
        with pytest.raises(ValidationError):
            RuleSpecRequest(name="r", pattern="x", message="m", severity="blocker")

    def test_violation_with_filename(self):
        violation = RuleViolation("r", "m", "low", 2, "x")

        tagged = violation.with_filename("a.py")

        assert tagged.filename == "a.py"
        assert violation.filename is None


class TestReviewModels:
    """Unit tests for review data models."""

    def test_comment_location(self):
        assert Comment("a.js", 4, "low", "bugs", "m").location == "a.js:4"

    def test_existing_comment_from_api(self):
        existing = ExistingComment.from_api({
            "id": 99,
            "path": "src/a.js",
            "line": 12,
            "user": {"login": "github-actions[bot]"},
        })

        assert existing == ExistingComment("src/a.js", 12, "github-actions[bot]", 99)

    def test_existing_comment_without_user(self):
        existing = ExistingComment.from_api({"path": "a.js", "line": None, "user": None})

        assert existing.author_login == ""
        assert existing.line is None

    def test_pull_request_info_from_api(self):
        info = PullRequestInfo.from_api({"number": 5, "title": "Add form", "head": {"sha": "deadbeef"}})

        assert info == PullRequestInfo(number=5, head_sha="deadbeef", title="Add form")

    def test_skipped_run(self):
        result = RunResult.skipped_run("no-changes")

        assert result.success
        assert result.skipped
        assert result.reason == "no-changes"
        assert result.to_dict() == {"success": True, "skipped": True, "reason": "no-changes"}

    def test_skipped_run_requires_reason(self):
        with pytest.raises(ValueError):
            RunResult(success=True, skipped=True)

    def test_negative_counts_rejected(self):
        with pytest.raises(ValueError):
            RunResult(success=True, comments_posted=-1)

    def test_completed_counts(self):
        posted = [Comment("a.js", 1, "high", "bugs", "m")]
        skipped = [SkippedComment(Comment("a.js", 2, "low", "bugs", "n"), "already exists")]
        violations = [RuleViolation("r", "m", "low", 1, "x", "a.js")]

        result = RunResult.completed(2, 2, posted, skipped, violations)

        assert result.to_dict() == {
            "success": True,
            "skipped": False,
            "files_reviewed": 2,
            "comments_generated": 2,
            "comments_posted": 1,
            "comments_skipped": 1,
            "custom_rule_violations": 1,
        }

    def test_comment_payload_to_comment(self):
        payload = CommentPayload(
            filename="a.js",
            line=3,
            severity="Medium",
            category="security",
            message="Escape output",
            suggestion="",
        )

        assert payload.to_comment() == Comment("a.js", 3, "medium", "security", "Escape output", None)
