"""Transformer contract and shared batch helper."""

from collections.abc import Callable, Iterable
from typing import Any, Protocol

from news_spine.models import CanonicalItem

RawArticle = dict[str, Any]


class Transformer(Protocol):
    """Pure mapping from a provider-native article to a canonical item."""

    provider: str

    def to_canonical(self, raw: RawArticle) -> CanonicalItem | None: ...

    def transform_batch(self, raws: Iterable[RawArticle]) -> list[CanonicalItem]: ...


def transform_all(
    to_canonical: Callable[[RawArticle], CanonicalItem | None],
    raws: Iterable[RawArticle],
) -> list[CanonicalItem]:
    """Map ``raws`` in order, dropping articles that do not yield an item."""
    items = []
    for raw in raws:
        item = to_canonical(raw)
        if item is not None:
            items.append(item)
    return items


def dig(raw: Any, *path: str) -> Any:
    """Nested dict lookup that tolerates missing keys and non-dict values."""
    current = raw
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current
