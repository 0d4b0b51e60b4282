"""
Property-based tests for diff parsing, filtering and rule checking.
"""

from hypothesis import given, strategies as st

from llm_code_review.diff.filters import extract_reviewable_changes, filter_files, glob_to_regex
from llm_code_review.diff.parser import DiffParser
from llm_code_review.diff.rules import RuleEngine
from llm_code_review.models.diff import FileChange, LineKind
from llm_code_review.models.rules import RuleSpec


# Content may hold form feeds and Unicode line separators; only "\n" and "\r" are excluded
line_content = st.text(
    alphabet=st.characters(
        whitelist_categories=("Lu", "Ll", "Nd"),
        whitelist_characters=" ;(){}=._\t\x0b\x0c\x1c\x1d\x1e\x85\u2028\u2029",
    ),
    max_size=30,
)
hunk_body = st.lists(st.tuples(st.sampled_from("+- "), line_content), max_size=25)
filename = st.from_regex(r"[a-z]{1,8}(/[a-z]{1,8}){0,2}\.(py|js|md)", fullmatch=True)


def build_diff(name, old_start, new_start, body):
    lines = [
        f"diff --git a/{name} b/{name}",
        "index 1111111..2222222 100644",
        f"--- a/{name}",
        f"+++ b/{name}",
        f"@@ -{old_start},{len(body)} +{new_start},{len(body)} @@",
    ]
    lines.extend(marker + content for marker, content in body)
    return "\n".join(lines) + "\n"


class TestDiffParsingProperties:
    """Property tests for DiffParser."""

    @given(st.text(alphabet=" \t\r\n"))
    def test_whitespace_only_input_yields_nothing(self, text):
        assert DiffParser().parse(text) == []

    @given(filename, st.integers(0, 500), st.integers(0, 500), hunk_body)
    def test_counts_match_line_kinds(self, name, old_start, new_start, body):
        """Addition and deletion counters equal the marker counts."""
        file_change = DiffParser().parse(build_diff(name, old_start, new_start, body))[0]

        assert file_change.filename == name
        assert file_change.additions == sum(1 for marker, _ in body if marker == "+")
        assert file_change.deletions == sum(1 for marker, _ in body if marker == "-")
        assert len(file_change.changes) == len(body)
        assert [c.content for c in file_change.changes] == [content for _, content in body]

    @given(filename, st.integers(0, 500), st.integers(0, 500), hunk_body)
    def test_line_numbers_are_contiguous(self, name, old_start, new_start, body):
        """New-side numbers run from new_start; old-side numbers from old_start."""
        changes = DiffParser().parse(build_diff(name, old_start, new_start, body))[0].changes

        new_numbers = [c.new_line_number for c in changes if c.kind != LineKind.DELETION]
        old_numbers = [c.old_line_number for c in changes if c.kind != LineKind.ADDITION]
        assert new_numbers == list(range(new_start, new_start + len(new_numbers)))
        assert old_numbers == list(range(old_start, old_start + len(old_numbers)))

    @given(st.lists(filename, min_size=1, max_size=5, unique=True), hunk_body)
    def test_one_file_change_per_header(self, names, body):
        diff = "".join(build_diff(name, 1, 1, body) for name in names)

        assert [f.filename for f in DiffParser().parse(diff)] == names

    @given(filename, hunk_body)
    def test_reviewable_lines_are_the_additions(self, name, body):
        files = DiffParser().parse(build_diff(name, 1, 1, body))
        reviewable = extract_reviewable_changes(files)
        added = [content for marker, content in body if marker == "+"]

        if not added:
            assert reviewable == []
        else:
            assert reviewable[0].content == "\n".join(added)
            assert len(reviewable[0].line_numbers) == len(added)

    @given(filename, hunk_body)
    def test_rule_lines_stay_within_added_text(self, name, body):
        file_change = DiffParser().parse(build_diff(name, 1, 1, body))[0]
        rule = RuleSpec(name="any-digit", pattern=r"\d", message="digit")

        for violation in RuleEngine.check_rules(file_change, [rule]):
            assert 1 <= violation.line <= file_change.additions


class TestGlobProperties:
    """Property tests for glob filtering."""

    @given(filename)
    def test_literal_glob_matches_itself(self, name):
        assert glob_to_regex(name).match(name)

    @given(filename)
    def test_star_matches_everything(self, name):
        assert glob_to_regex("*").match(name)

    @given(st.lists(filename, max_size=6), st.lists(filename, max_size=3))
    def test_filter_keeps_exactly_the_unmatched(self, names, patterns):
        files = [FileChange.from_hunks(name, name, ()) for name in names]

        kept = filter_files(files, patterns)

        assert [f.filename for f in kept] == [n for n in names if n not in patterns]
