"""Change summaries for version history entries.

Pure functions, no database access.
"""

from decimal import Decimal
from typing import Optional

from .version_state import VersionState

INITIAL_VERSION_SUMMARY = "Initial version"
GENERIC_CHANGE_SUMMARY = "Details changed"
CLAUSE_SEPARATOR = "; "


def format_signed_amount(delta: Decimal) -> str:
    """Format a money delta with an explicit sign: ``+150.00`` / ``-20.50``."""
    return f"{delta:+.2f}"


def summarize(previous: Optional[VersionState], current: VersionState) -> str:
    """Describe what changed from *previous* to *current*.

    Clauses are checked in a fixed order (name, total, item count) and
    joined with ``"; "``. Without a previous state the result is
    ``"Initial version"``; when no clause applies (e.g. only an item's
    price changed) a generic message is returned.
    """
    if previous is None:
        return INITIAL_VERSION_SUMMARY

    clauses = []

    if previous.name != current.name:
        clauses.append(f'Name: "{previous.name}" -> "{current.name}"')

    if previous.total != current.total:
        clauses.append(f"Total: {format_signed_amount(current.total - previous.total)}")

    count_delta = len(current.items) - len(previous.items)
    if count_delta:
        clauses.append(f"Items: {count_delta:+d}")

    return CLAUSE_SEPARATOR.join(clauses) or GENERIC_CHANGE_SUMMARY
