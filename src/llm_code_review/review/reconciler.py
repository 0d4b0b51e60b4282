"""
Comment Reconciliation

Suppresses proposed comments that the automated reviewer already posted.
"""

from typing import Iterable, Optional

from ..models.review import ExistingComment


DEFAULT_BOT_MARKER = "bot"


def is_bot_author(login: str, marker: str = DEFAULT_BOT_MARKER) -> bool:
    """Case-sensitive substring test on the author login."""
    return marker in (login or "")


def find_existing_comment(
    existing_comments: Iterable[ExistingComment],
    filename: str,
    line: int,
    marker: str = DEFAULT_BOT_MARKER,
) -> Optional[ExistingComment]:
    """
    Find a bot-authored comment already at ``filename:line``.

    Args:
        existing_comments: Comments in the order the hosting service returned them
        filename: File path of the proposed comment
        line: New-file line of the proposed comment
        marker: Substring identifying the automated reviewer's login

    Returns:
        The first matching comment, or None
    """
    for existing in existing_comments:
        if existing.path == filename and existing.line == line and is_bot_author(existing.author_login, marker):
            return existing
    return None
