"""
Output: one .tf file per query and per dashboard.
"""

import logging
from pathlib import Path
from typing import List

from sqlexport.errors import ExportError
from sqlexport.inventory import DashboardEntry, Inventory, QueryEntry
from sqlexport.renderer import Renderer

logger = logging.getLogger(__name__)

QUERY_PREFIX = "query_"
DASHBOARD_PREFIX = "dashboard_"
EXTENSION = ".tf"


class OutputWriter:
    """Writes rendered text to files named after resource names."""

    def __init__(self, output_dir: Path = Path(".")):
        self.output_dir = Path(output_dir)

        # Ensure output directory exists
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def query_path(self, entry: QueryEntry) -> Path:
        return self.output_dir / f"{QUERY_PREFIX}{entry.resource_name}{EXTENSION}"

    def dashboard_path(self, entry: DashboardEntry) -> Path:
        return self.output_dir / f"{DASHBOARD_PREFIX}{entry.resource_name}{EXTENSION}"

    def write_query(self, entry: QueryEntry, text: str) -> Path:
        return self._write(self.query_path(entry), text)

    def write_dashboard(self, entry: DashboardEntry, text: str) -> Path:
        return self._write(self.dashboard_path(entry), text)

    def write_all(self, inventory: Inventory, renderer: Renderer) -> List[Path]:
        """Render and write every query, then every dashboard."""
        written = []
        for q in inventory.queries:
            written.append(self.write_query(q, renderer.render_query(q)))
        for d in inventory.dashboards:
            written.append(self.write_dashboard(d, renderer.render_dashboard(d)))
        return written

    def _write(self, path: Path, text: str) -> Path:
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            raise ExportError(f"Cannot write {path}: {e}") from e
        logger.info(f"Wrote {path}")
        return path
