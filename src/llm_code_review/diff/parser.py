"""
Unified Diff Parser

Parses raw ``git diff`` output into per-file change records with hunks
and line-level classifications. Malformed input never raises: unknown or
out-of-place lines are dropped.
"""

import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ..models.diff import LineKind, LineChange, Hunk, FileChange


logger = logging.getLogger(__name__)


class ParserState(Enum):
    """Where the parser is inside the diff."""
    NO_FILE = "no_file"
    IN_FILE = "in_file"
    IN_HUNK = "in_hunk"


@dataclass
class _OpenHunk:
    """Hunk under construction; stamps line numbers as content arrives."""
    old_start: int
    old_length: int
    new_start: int
    new_length: int
    context: str
    lines: List[LineChange] = field(default_factory=list)
    old_line_num: int = 0
    new_line_num: int = 0

    def __post_init__(self):
        self.old_line_num = self.old_start
        self.new_line_num = self.new_start

    def add_line(self, raw_line: str) -> LineChange:
        marker, content = raw_line[:1], raw_line[1:]

        if marker == '+':
            change = LineChange(LineKind.ADDITION, content, None, self.new_line_num)
            self.new_line_num += 1
        elif marker == '-':
            change = LineChange(LineKind.DELETION, content, self.old_line_num, None)
            self.old_line_num += 1
        else:
            change = LineChange(LineKind.CONTEXT, content, self.old_line_num, self.new_line_num)
            self.old_line_num += 1
            self.new_line_num += 1

        self.lines.append(change)
        return change

    def build(self) -> Hunk:
        return Hunk(
            old_start=self.old_start,
            old_length=self.old_length,
            new_start=self.new_start,
            new_length=self.new_length,
            context=self.context,
            lines=tuple(self.lines),
        )


@dataclass
class _OpenFile:
    """File under construction."""
    filename: str
    old_filename: str
    hunks: List[_OpenHunk] = field(default_factory=list)

    def build(self) -> FileChange:
        return FileChange.from_hunks(
            self.filename,
            self.old_filename,
            tuple(hunk.build() for hunk in self.hunks),
        )


class DiffParser:
    """
    Parser for unified diff text.

    Scans the diff line by line with an explicit state machine over
    NO_FILE, IN_FILE and IN_HUNK:

    - ``diff --git a/<old> b/<new>`` closes the open file and opens a new one.
      If the header does not match, no file is opened and the parser stays in
      NO_FILE until the next valid header.
    - In IN_FILE, metadata (index, mode, ``---``/``+++`` markers, binary
      notices) is skipped.
    - ``@@ -o[,ol] +n[,nl] @@ ctx`` opens a hunk; omitted lengths default to 1.
    - In IN_HUNK every other line is content: ``+`` addition, ``-`` deletion,
      anything else context. ``\\ No newline at end of file`` is context too
      and advances both counters unless ``skip_no_newline_markers`` is set.
    - Lines split on ``\\n`` only, with one trailing ``\\r`` removed.
    """

    FILE_HEADER_PREFIX = 'diff --git'
    HUNK_HEADER_PREFIX = '@@'
    NO_NEWLINE_MARKER = '\\'

    def __init__(self, skip_no_newline_markers: bool = False):
        """
        Initialize diff parser.

        Args:
            skip_no_newline_markers: Drop ``\\ No newline at end of file`` lines
                instead of recording them as context lines
        """
        self.skip_no_newline_markers = skip_no_newline_markers
        self.file_header_pattern = re.compile(r'^diff --git a/(.+) b/(.+)$')
        self.hunk_header_pattern = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$')
        self.binary_file_pattern = re.compile(r'^Binary files? .* differ')

    def parse(self, diff_text: str) -> List[FileChange]:
        """
        Parse unified diff text into file changes.

        Args:
            diff_text: Raw diff output

        Returns:
            FileChange objects in diff order (empty for blank input)
        """
        if not diff_text or not diff_text.strip():
            return []

        files: List[FileChange] = []
        state = ParserState.NO_FILE
        current_file: Optional[_OpenFile] = None

        for line in self._split_lines(diff_text):
            state, current_file = self._step(state, current_file, line, files)

        if current_file is not None:
            files.append(current_file.build())

        total_additions = sum(f.additions for f in files)
        total_deletions = sum(f.deletions for f in files)
        logger.info(f"Parsed diff: {len(files)} files, +{total_additions}/-{total_deletions}")
        return files

    def _step(
        self,
        state: ParserState,
        current_file: Optional[_OpenFile],
        line: str,
        files: List[FileChange],
    ) -> Tuple[ParserState, Optional[_OpenFile]]:
        """Consume one line and return the next state and open file."""
        if line.startswith(self.FILE_HEADER_PREFIX):
            if current_file is not None:
                files.append(current_file.build())
            return self._open_file(line)

        if state == ParserState.NO_FILE:
            return state, None

        if line.startswith(self.HUNK_HEADER_PREFIX):
            hunk = self._parse_hunk_header(line)
            if hunk is None:
                logger.debug(f"Ignoring malformed hunk header: {line}")
                return state, current_file
            current_file.hunks.append(hunk)
            return ParserState.IN_HUNK, current_file

        if state == ParserState.IN_FILE:
            if self.binary_file_pattern.match(line):
                logger.debug(f"Binary diff for {current_file.filename}")
            return state, current_file

        if self.skip_no_newline_markers and line.startswith(self.NO_NEWLINE_MARKER):
            return state, current_file

        current_file.hunks[-1].add_line(line)
        return state, current_file

    @staticmethod
    def _split_lines(diff_text: str) -> List[str]:
        """
        Split on ``\\n`` only; form feeds and other Unicode line breaks are content.

        One trailing ``\\r`` per line is removed so CRLF diffs parse like LF diffs.
        """
        lines = diff_text.split('\n')
        if diff_text.endswith('\n'):
            lines.pop()
        return [line[:-1] if line.endswith('\r') else line for line in lines]

    def _open_file(self, line: str) -> Tuple[ParserState, Optional[_OpenFile]]:
        match = self.file_header_pattern.match(line)
        if not match:
            logger.debug(f"Skipping unrecognised file header: {line}")
            return ParserState.NO_FILE, None

        old_filename, filename = match.group(1), match.group(2)
        logger.debug(f"Parsing file change: {filename}")
        return ParserState.IN_FILE, _OpenFile(filename=filename, old_filename=old_filename)

    def _parse_hunk_header(self, line: str) -> Optional[_OpenHunk]:
        """
        Parse a hunk header line.

        Args:
            line: Line starting with ``@@``

        Returns:
            A new open hunk, or None if the header is malformed
        """
        match = self.hunk_header_pattern.match(line)
        if not match:
            return None

        return _OpenHunk(
            old_start=int(match.group(1)),
            old_length=int(match.group(2) or 1),
            new_start=int(match.group(3)),
            new_length=int(match.group(4) or 1),
            context=match.group(5).strip(),
        )


def parse_diff(diff_text: str, skip_no_newline_markers: bool = False) -> List[FileChange]:
    """Parse diff text with a default parser."""
    return DiffParser(skip_no_newline_markers=skip_no_newline_markers).parse(diff_text)
