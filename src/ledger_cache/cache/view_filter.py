"""Pure search and sort over already-loaded collections.

Nothing here touches the cache or the network, so it is safe to run on
every keystroke.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

T = TypeVar("T")


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def filter_items(collection: Iterable[T], fields: Sequence[str], term: str | None) -> list[T]:
    """Keep items where any of ``fields`` contains ``term``, case-insensitively.

    Fields are read as mapping keys or attributes; missing or None fields never
    match. A blank or whitespace-only term keeps everything; any other term is
    matched as given, surrounding spaces included. The input is not modified.

    Example:
        ```python
        filter_items(expenses, ("description", "team_name", "category"), "pari")
        ```
    """
    items = list(collection)
    if not (term or "").strip():
        return items
    needle = term.casefold()

    def matches(item: T) -> bool:
        for name in fields:
            value = _field(item, name)
            if value is not None and needle in str(value).casefold():
                return True
        return False

    return [item for item in items if matches(item)]


def sort_items(collection: Iterable[T], field: str, descending: bool = False) -> list[T]:
    """Stable sort by one field; items missing the field go last."""
    items = list(collection)
    present = [item for item in items if _field(item, field) is not None]
    missing = [item for item in items if _field(item, field) is None]
    present.sort(key=lambda item: _field(item, field), reverse=descending)
    return present + missing
