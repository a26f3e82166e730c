from __future__ import annotations

from typing import FrozenSet, Iterable, Optional


class VisibilityTracker:
    """Hidden series for one chart. The index column can never be hidden."""

    def __init__(self, hidden: Optional[Iterable[str]] = None, index_header: Optional[str] = None):
        self.index_header = index_header
        self._hidden = {str(h) for h in (hidden or []) if h != index_header}

    @property
    def hidden(self) -> FrozenSet[str]:
        return frozenset(self._hidden)

    def toggle(self, series: str) -> FrozenSet[str]:
        if series == self.index_header:
            return self.hidden
        if series in self._hidden:
            self._hidden.remove(series)
        else:
            self._hidden.add(series)
        return self.hidden

    def is_hidden(self, series: str) -> bool:
        return series in self._hidden

    def copy(self, index_header: Optional[str] = None) -> "VisibilityTracker":
        return VisibilityTracker(self._hidden, index_header=index_header or self.index_header)
