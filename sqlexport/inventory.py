"""
Inventory：从根 ID 出发递归加载 dashboard / widget / query / visualization，
并为每个对象分配资源名。
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional

from pydantic import BaseModel

from sqlexport.client import Fetcher
from sqlexport.models import Dashboard, Query, QueryRef, RawPayload, Visualization, Widget
from sqlexport.naming import canonicalize

logger = logging.getLogger(__name__)


class DashboardEntry(BaseModel):
    remote_id: str
    resource_name: str
    obj: Dashboard


class WidgetEntry(BaseModel):
    remote_id: str
    resource_name: str
    obj: Widget


class QueryEntry(BaseModel):
    remote_id: str
    resource_name: str
    obj: Query


class VisualizationEntry(BaseModel):
    remote_id: str
    resource_name: str
    obj: Visualization


def _present(payload: Optional[RawPayload]) -> bool:
    return payload is not None and payload.root is not None


def _unique_name(base: str, taken: Iterable[str]) -> str:
    """Suffix ``base`` with a counter if another object of the same kind already uses it."""
    taken = set(taken)
    if base not in taken:
        return base
    n = 1
    while f"{base}_{n}" in taken:
        n += 1
    return f"{base}_{n}"


class Inventory:
    """
    All objects loaded during one run.

    The collections only ever grow; their order is the order objects were
    discovered in and is the order they are rendered in.
    """

    def __init__(self, fetcher: Fetcher):
        self._fetcher = fetcher
        self.dashboards: List[DashboardEntry] = []
        self.widgets: List[WidgetEntry] = []
        self.queries: List[QueryEntry] = []
        self.visualizations: List[VisualizationEntry] = []

    # ── Loading ───────────────────────────────────────

    def load_dashboard(self, remote_id: str):
        """Load a dashboard, its widgets and every query those widgets show."""
        if any(d.remote_id == remote_id for d in self.dashboards):
            logger.debug(f"[dashboard {remote_id}] already loaded")
            return

        dashboard = self._fetcher.fetch_dashboard(remote_id)
        entry = DashboardEntry(
            remote_id=dashboard.id,
            resource_name=_unique_name(canonicalize(dashboard.name), (d.resource_name for d in self.dashboards)),
            obj=dashboard,
        )
        logger.info(f"[dashboard {dashboard.id}] {dashboard.name!r} -> {entry.resource_name}")

        widgets: List[WidgetEntry] = []
        for i, payload in enumerate(dashboard.widgets):
            widget = payload.decode(Widget)
            widget.dashboard_id = dashboard.id
            if _present(widget.visualization):
                widget.visualization_id = widget.visualization.decode(Visualization).id

            widgets.append(WidgetEntry(
                remote_id=widget.id,
                resource_name=f"{entry.resource_name}_{i}",
                obj=widget,
            ))

        self.dashboards.append(entry)
        self.widgets.extend(widgets)

        # 所有 widget 入库后再递归加载 query
        for w in widgets:
            if not _present(w.obj.visualization):
                continue
            visualization = w.obj.visualization.decode(Visualization)
            if _present(visualization.query):
                self.load_query(visualization.query.decode(QueryRef).id)

    def load_query(self, remote_id: str):
        """Load a query and its visualizations."""
        if any(q.remote_id == remote_id for q in self.queries):
            logger.debug(f"[query {remote_id}] already loaded")
            return

        query = self._fetcher.fetch_query(remote_id)
        entry = QueryEntry(
            remote_id=query.id,
            resource_name=_unique_name(canonicalize(query.name), (q.resource_name for q in self.queries)),
            obj=query,
        )
        logger.info(f"[query {query.id}] {query.name!r} -> {entry.resource_name}")

        visualizations: List[VisualizationEntry] = []
        for payload in query.visualizations:
            visualization = payload.decode(Visualization)
            visualization.query_id = query.id
            visualizations.append(VisualizationEntry(
                remote_id=visualization.id,
                resource_name="",
                obj=visualization,
            ))

        # Only suffix a sequence number when a type occurs more than once.
        totals = Counter(v.obj.type.lower() for v in visualizations)
        seq: Counter = Counter()
        for v in visualizations:
            typ = v.obj.type.lower()
            if totals[typ] == 1:
                v.resource_name = f"{entry.resource_name}_{typ}"
            else:
                v.resource_name = f"{entry.resource_name}_{typ}_{seq[typ]}"
                seq[typ] += 1

        self.queries.append(entry)
        self.visualizations.extend(visualizations)

    # ── Lookups ───────────────────────────────────────

    def widgets_for(self, dashboard: DashboardEntry) -> List[WidgetEntry]:
        return [w for w in self.widgets if w.obj.dashboard_id == dashboard.remote_id]

    def visualizations_for(self, query: QueryEntry) -> List[VisualizationEntry]:
        return [v for v in self.visualizations if v.obj.query_id == query.remote_id]

    def find_visualization(self, remote_id: str) -> Optional[VisualizationEntry]:
        for v in self.visualizations:
            if v.remote_id == remote_id:
                return v
        return None
