"""Interactive UI components for the CLI."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

logger = logging.getLogger(__name__)


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="gro" matches "groceries"
        query="ent" matches "entertainment"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


class CategoryCompleter(Completer):
    """Fuzzy search completer for expense categories."""

    def __init__(self, categories: list[str]):
        """Initialize the completer with available categories."""
        self.categories = categories

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for category in self.categories:
            if not query:
                yield Completion(text=category, start_position=0, display=category)
            elif fuzzy_match(query, category.lower()):
                yield Completion(
                    text=category,
                    start_position=-len(document.text),
                    display=category,
                )


def select_category_interactive(
    categories: list[str],
    expense_description: str,
    default: str | None = None,
) -> str | None:
    """
    Interactive category selection with fuzzy search.

    Any non-empty text is accepted, so new categories can be typed in.

    Args:
        categories: Known categories to complete from
        expense_description: Description of the expense being categorized
        default: Pre-filled category

    Returns:
        Selected category, or None to skip
    """
    print(f"\n📝 Categorize: {expense_description}")
    print("   Type to search, press Enter to confirm, Ctrl+C to skip\n")

    session: PromptSession[str] = PromptSession(
        completer=CategoryCompleter(categories)
    )

    try:
        result = session.prompt(
            "Category: ",
            default=default or "",
            complete_while_typing=True,
        )
    except KeyboardInterrupt:
        print("\n⏭️  Skipped")
        return None
    except EOFError:
        return None

    category = result.strip().lower()
    if not category:
        return None

    if category not in categories:
        logger.info(f"Using new category: {category}")
    return category


def confirm(message: str) -> bool:
    """Simple yes/no confirmation, defaulting to no."""
    response = input(f"{message} [y/N] ").strip().lower()
    return response in ("y", "yes")
