"""Chart workspace: one in-progress chart plus any number of pinned charts.

Each chart owns its dataset snapshot, its hidden-series set and its viewport.
Pinning copies the in-progress hidden set, so later toggles on either side
never leak into the other.
"""

from __future__ import annotations

import itertools
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from core.charts import RenderPayload, build_render_payload
from core.data import Dataset, load_dataset
from core.errors import IngestionError, NothingToPin, UnknownChart, UploadInProgress
from core.settings import ViewerSettings
from core.viewport import ViewportController
from core.visibility import VisibilityTracker


logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def uuid_ids() -> str:
    return uuid.uuid4().hex


def counter_ids(prefix: str = "chart") -> IdFactory:
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@dataclass
class ChartInstance:
    id: str
    dataset: Dataset
    visibility: VisibilityTracker
    viewport: ViewportController = field(default_factory=ViewportController)

    def __post_init__(self):
        self.viewport.attach(self.dataset.row_count)

    @property
    def headers(self):
        return self.dataset.headers

    def toggle_series(self, series: str):
        return self.visibility.toggle(series)

    def render(self, settings: Optional[ViewerSettings] = None) -> RenderPayload:
        colors = (settings or self.viewport.settings).colors
        return build_render_payload(self.dataset, self.viewport, self.visibility.hidden, colors)


class ChartInstanceManager:
    def __init__(self, id_factory: Optional[IdFactory] = None, settings: Optional[ViewerSettings] = None):
        self.id_factory = id_factory or uuid_ids
        self.settings = settings or ViewerSettings()
        self.instances: Dict[str, ChartInstance] = {}
        self.draft: Optional[Dataset] = None
        self.draft_visibility = VisibilityTracker()
        self.draft_viewport = ViewportController(settings=self.settings)
        self.is_loading = False
        self.error: Optional[str] = None

    # ---------- upload ----------
    @contextmanager
    def uploading(self) -> Iterator[None]:
        """Loading state for one upload; a second upload while pending is rejected."""
        if self.is_loading:
            raise UploadInProgress()
        self.is_loading = True
        self.error = None
        try:
            yield
        finally:
            self.is_loading = False

    def ingest(self, filename: str, content: bytes) -> Optional[Dataset]:
        """Normalize uploaded bytes into the in-progress chart.

        Zero-byte files clear the in-progress chart. On failure nothing is
        committed, `error` holds the user-facing text and the error propagates.
        """
        if not content:
            self.reset_draft()
            return None
        try:
            dataset = load_dataset(filename, content, self.settings.date_format)
        except IngestionError as exc:
            self.error = exc.message
            raise
        self.set_draft(dataset)
        return dataset

    def upload(self, filename: str, content: bytes) -> Optional[Dataset]:
        with self.uploading():
            return self.ingest(filename, content)

    # ---------- in-progress chart ----------
    def set_draft(self, dataset: Dataset) -> None:
        self.draft = dataset
        self.draft_visibility = VisibilityTracker(index_header=dataset.index_header)
        self.draft_viewport.on_dataset_replaced(dataset.row_count)

    def reset_draft(self) -> None:
        self.draft = None
        self.draft_visibility = VisibilityTracker()
        self.draft_viewport.on_dataset_replaced(0)
        self.error = None

    @property
    def row_count(self) -> int:
        return self.draft.row_count if self.draft is not None else 0

    # ---------- pinned charts ----------
    def _add_instance(self, dataset: Dataset, visibility: VisibilityTracker) -> str:
        chart_id = self.id_factory()
        while chart_id in self.instances:
            chart_id = self.id_factory()
        self.instances[chart_id] = ChartInstance(
            id=chart_id,
            dataset=dataset,
            visibility=visibility,
            viewport=ViewportController(settings=self.settings),
        )
        logger.info("pinned chart %s (%d rows)", chart_id, dataset.row_count)
        return chart_id

    def pin(self, dataset: Dataset, hidden: Iterable[str] = ()) -> str:
        return self._add_instance(dataset, VisibilityTracker(hidden, index_header=dataset.index_header))

    def pin_draft(self) -> str:
        if self.draft is None or not self.draft.headers:
            raise NothingToPin()
        chart_id = self._add_instance(self.draft, self.draft_visibility.copy())
        self.reset_draft()
        return chart_id

    def remove(self, chart_id: str) -> None:
        if self.instances.pop(chart_id, None) is None:
            raise UnknownChart(chart_id)
        logger.info("removed chart %s", chart_id)

    def get(self, chart_id: str) -> ChartInstance:
        try:
            return self.instances[chart_id]
        except KeyError:
            raise UnknownChart(chart_id) from None

    def chart_ids(self) -> List[str]:
        return list(self.instances)

    # ---------- routing (chart_id None = in-progress chart) ----------
    def viewport_for(self, chart_id: Optional[str]) -> ViewportController:
        if chart_id is None:
            return self.draft_viewport
        return self.get(chart_id).viewport

    def toggle_series(self, chart_id: Optional[str], series: str):
        if chart_id is None:
            return self.draft_visibility.toggle(series)
        return self.get(chart_id).toggle_series(series)

    def render(self, chart_id: Optional[str]) -> RenderPayload:
        if chart_id is not None:
            return self.get(chart_id).render(self.settings)
        dataset = self.draft if self.draft is not None else Dataset(headers=())
        return build_render_payload(dataset, self.draft_viewport, self.draft_visibility.hidden, self.settings.colors)
