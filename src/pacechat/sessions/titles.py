from typing import Iterable

from pacechat.sessions.schema import DEFAULT_TITLE, Message, Role

TITLE_MAX_CHARS = 30
TRUNCATION_MARKER = "..."


def derive_title(messages: Iterable[Message]) -> str:
    """Title for a message log: the first user message, truncated."""
    for message in messages:
        if message.role == Role.USER:
            content = message.content
            if len(content) > TITLE_MAX_CHARS:
                return content[:TITLE_MAX_CHARS] + TRUNCATION_MARKER
            return content
    return DEFAULT_TITLE
