"""
Response Normalizer

Turns raw LLM output into a bounded list of Comment records. Structured
JSON is preferred; text that cannot be parsed as a JSON array goes through a
line-oriented heuristic extractor instead of failing the run.
"""

import re
import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..models.review import Comment, CommentPayload


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('filename', 'line', 'severity', 'category', 'message')


class ResponseNormalizer:
    """
    Normalizes LLM review responses.

    Steps:
    1. Strip an enclosing fenced code block (optionally language-tagged).
    2. Parse a JSON array; keep elements carrying every required field.
    3. Fall back to heuristic extraction when step 2 fails.
    4. Truncate to ``max_comments``.
    """

    FILE_INDICATORS = ('filename:', 'File:')
    LINE_INDICATOR = 'line:'
    FENCE = '```'

    def __init__(self, max_comments: int = 10):
        """
        Initialize response normalizer.

        Args:
            max_comments: Maximum number of comments to keep
        """
        self.max_comments = max_comments
        self.enclosing_fence_pattern = re.compile(r'^```[\w+-]*[ \t]*\n?(.*?)\n?[ \t]*```$', re.DOTALL)
        self.embedded_fence_pattern = re.compile(r'```(?:json)?\s*(.*?)\s*```', re.DOTALL)
        self.line_number_pattern = re.compile(r'line:?\s*(\d+)', re.IGNORECASE)

    def normalize(self, raw_text: str, max_comments: Optional[int] = None) -> List[Comment]:
        """
        Normalize a raw response into comments.

        Args:
            raw_text: Raw LLM response
            max_comments: Overrides the configured limit

        Returns:
            At most ``max_comments`` comments in response order
        """
        limit = self.max_comments if max_comments is None else max_comments
        text = self.strip_code_fence(raw_text or "")

        try:
            parsed = json.loads(text)
        except ValueError as e:
            logger.warning(f"Failed to parse LLM response as JSON: {e}")
            logger.debug(f"Raw response: {raw_text}")
            return self.extract_from_text(raw_text or "", limit)

        if not isinstance(parsed, list):
            logger.warning("LLM response is not a JSON array")
            logger.debug(f"Raw response: {raw_text}")
            return self.extract_from_text(raw_text or "", limit)

        comments = []
        for item in parsed:
            comment = self._to_comment(item)
            if comment is not None:
                comments.append(comment)

        if len(comments) > limit:
            logger.info(f"Limiting comments from {len(comments)} to {limit}")

        return comments[:limit]

    def strip_code_fence(self, text: str) -> str:
        """
        Return the interior of a fenced code block.

        An enclosing fence wins when its interior holds no other fence;
        otherwise the first embedded ``json`` or untagged fenced block is
        used. Text without fences is returned stripped.
        """
        stripped = text.strip()

        match = self.enclosing_fence_pattern.match(stripped)
        if match and self.FENCE not in match.group(1):
            return match.group(1).strip()

        match = self.embedded_fence_pattern.search(stripped)
        if match:
            return match.group(1).strip()

        return stripped

    def _to_comment(self, item: Any) -> Optional[Comment]:
        if not isinstance(item, dict):
            logger.debug(f"Dropping non-object comment: {item!r}")
            return None

        if any(item.get(name) is None for name in REQUIRED_FIELDS):
            logger.debug(f"Dropping comment missing required fields: {item}")
            return None

        try:
            return CommentPayload(**self._select_fields(item)).to_comment()
        except ValidationError as e:
            logger.debug(f"Dropping invalid comment {item}: {e}")
            return None

    @staticmethod
    def _select_fields(item: Dict[str, Any]) -> Dict[str, Any]:
        fields = {name: item[name] for name in REQUIRED_FIELDS}
        fields['filename'] = str(fields['filename'])
        fields['category'] = str(fields['category'])
        fields['message'] = str(fields['message'])
        if item.get('suggestion') is not None:
            fields['suggestion'] = str(item['suggestion'])
        return fields

    def extract_from_text(self, text: str, max_comments: Optional[int] = None) -> List[Comment]:
        """
        Heuristic fallback for non-JSON responses.

        A line containing a file indicator starts a new comment (line 1,
        medium severity, general category); a line containing ``line:`` with
        a number sets the line; any other non-blank line is appended to the
        message.

        Args:
            text: Raw response text
            max_comments: Maximum number of comments to keep

        Returns:
            Extracted comments
        """
        limit = self.max_comments if max_comments is None else max_comments
        comments: List[Comment] = []
        current: Optional[Dict[str, Any]] = None

        for line in text.split('\n'):
            if any(indicator in line for indicator in self.FILE_INDICATORS):
                if current is not None:
                    comments.append(self._flush(current))
                parts = line.split(':')
                current = {
                    'filename': parts[1].strip() if len(parts) > 1 else '',
                    'line': 1,
                    'message_parts': [],
                }
            elif current is not None and self.LINE_INDICATOR in line:
                match = self.line_number_pattern.search(line)
                if match:
                    current['line'] = int(match.group(1))
            elif current is not None and line.strip():
                current['message_parts'].append(line.strip())

        if current is not None:
            comments.append(self._flush(current))

        logger.info(f"Extracted {len(comments)} comments from text response")
        return comments[:limit]

    @staticmethod
    def _flush(candidate: Dict[str, Any]) -> Comment:
        return Comment(
            filename=candidate['filename'],
            line=candidate['line'],
            severity='medium',
            category='general',
            message=' '.join(candidate['message_parts']),
        )
