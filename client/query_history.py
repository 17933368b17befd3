from collections import deque
from typing import Deque, Iterator, List

from config import HISTORY_LIMIT
from models.query_models import QueryHistoryItem, ReplaySelection


class QueryHistory:
    """Most-recent-first record of completed dispatches for one session."""

    def __init__(self, max_items: int = HISTORY_LIMIT):
        self._items: Deque[QueryHistoryItem] = deque(maxlen=max_items)

    def append(self, item: QueryHistoryItem) -> None:
        # appendleft on a bounded deque drops the oldest from the right
        self._items.appendleft(item)

    def select_for_replay(self, index: int) -> ReplaySelection:
        if index < 0 or index >= len(self._items):
            raise IndexError(f"No history item at position {index}")
        item = self._items[index]
        return ReplaySelection(query=item.query, mode=item.type)

    def clear(self) -> None:
        self._items.clear()

    @property
    def items(self) -> List[QueryHistoryItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[QueryHistoryItem]:
        return iter(list(self._items))
