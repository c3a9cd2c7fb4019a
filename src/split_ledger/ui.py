"""Interactive UI components for choosing a group member."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import Member

logger = logging.getLogger(__name__)


def member_label(member: Member) -> str:
    """Label shown for a member in completions: 'Name (uid)' or just the uid."""
    if member.name:
        return f"{member.name} ({member.uid})"
    return member.uid


class MemberCompleter(Completer):
    """Fuzzy search completer for group members."""

    def __init__(self, members: list[Member]):
        """Initialize the completer with the group's members."""
        self.members = members
        self.label_to_uid = {member_label(m): m.uid for m in members}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for label in self.label_to_uid:
            if not query or self._fuzzy_match(query, label.lower()):
                yield Completion(
                    text=label,
                    start_position=-len(document.text),
                    display=label,
                )

    def _fuzzy_match(self, query: str, text: str) -> bool:
        """
        Fuzzy match: all characters in query must appear in order in text.

        Example:
            query="ali" matches "Alice (u1)"
            query="u2" matches "Bob (u2)"
        """
        query_idx = 0
        for char in text:
            if query_idx < len(query) and char == query[query_idx]:
                query_idx += 1
        return query_idx == len(query)

    def resolve(self, text: str) -> str | None:
        """Map a typed label or raw uid back to a member uid."""
        if text in self.label_to_uid:
            return self.label_to_uid[text]
        for member in self.members:
            if member.uid == text:
                return member.uid
        return None


def select_member_interactive(members: list[Member]) -> str | None:
    """
    Interactive member selection with fuzzy search.

    Args:
        members: Members of the group

    Returns:
        Selected member uid, or None to skip
    """
    if not members:
        return None

    print("\n👤 Whose settlements do you want to see?")
    print("   Type to search, press Enter to confirm, Ctrl+C to skip\n")

    completer = MemberCompleter(members)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt("Member: ", complete_while_typing=True)

            if not result:
                return None

            uid = completer.resolve(result.strip())
            if uid:
                logger.info(f"User selected member: {uid}")
                return uid

            print("❌ Unknown member. Please select from the list or press Tab.")

    except KeyboardInterrupt:
        print("\n⏭️  Skipped")
        return None
    except EOFError:
        return None
