"""
渲染器：把 Inventory 中的对象输出为 Terraform 配置文本。

对象之间的引用一律使用资源名 (databricks_sql_query.<name>.id)，不会出现远端 ID。
每个文件先输出父资源 (query / dashboard)，再输出依赖它的资源。
"""

import json
import logging
from typing import Dict, Type

from sqlexport.errors import InconsistentInventoryError, UnsupportedVariantError
from sqlexport.hcl import BlockWriter
from sqlexport.inventory import DashboardEntry, Inventory, QueryEntry, VisualizationEntry, WidgetEntry
from sqlexport.models import (
    MultiValuedParameter,
    QueryParameter,
    QueryParameterDate,
    QueryParameterDateRange,
    QueryParameterDateTime,
    QueryParameterDateTimeRange,
    QueryParameterDateTimeSec,
    QueryParameterDateTimeSecRange,
    QueryParameterEnum,
    QueryParameterNumber,
    QueryParameterQuery,
    QueryParameterText,
    SingleValuedParameter,
    VisualizationTableOptions,
)

logger = logging.getLogger(__name__)

QUERY_RESOURCE = "databricks_sql_query"
VISUALIZATION_RESOURCE = "databricks_sql_visualization"
DASHBOARD_RESOURCE = "databricks_sql_dashboard"
WIDGET_RESOURCE = "databricks_sql_widget"

# Parameter variant -> nested block name
PARAMETER_BLOCKS: Dict[Type[QueryParameter], str] = {
    QueryParameterText: "text",
    QueryParameterNumber: "number",
    QueryParameterEnum: "enum",
    QueryParameterQuery: "query",
    QueryParameterDate: "date",
    QueryParameterDateTime: "datetime",
    QueryParameterDateTimeSec: "datetimesec",
    QueryParameterDateRange: "date_range",
    QueryParameterDateTimeRange: "datetime_range",
    QueryParameterDateTimeSecRange: "datetimesec_range",
}


class Renderer:
    """Turns loaded objects into text. Holds no state besides the inventory."""

    def __init__(self, inventory: Inventory, skip_table_defaults: bool = True):
        self._inventory = inventory
        self._skip_table_defaults = skip_table_defaults

    # ── Queries ───────────────────────────────────────

    def render_query(self, entry: QueryEntry) -> str:
        """The query resource followed by one resource per visualization."""
        logger.debug(f"Rendering query {entry.resource_name}")
        w = BlockWriter()
        q = entry.obj

        with w.block(f'resource "{QUERY_RESOURCE}" "{entry.resource_name}"'):
            w.attr("data_source_id", q.data_source_id)
            w.attr("name", q.name)
            if q.description:
                w.attr("description", q.description)

            w.line()
            w.strings("tags", q.tags)

            if q.schedule is not None:
                w.line()
                with w.block("schedule"):
                    w.line(f"interval = {q.schedule.interval}")

            for p in q.options.parameters:
                w.line()
                self._write_parameter(w, p)

            w.line()
            w.heredoc("query", "SQL", q.query)

        for v in self._inventory.visualizations_for(entry):
            w.line()
            self._write_visualization(w, entry, v)

        return w.getvalue()

    def _write_parameter(self, w: BlockWriter, p: QueryParameter):
        block = PARAMETER_BLOCKS.get(type(p))
        if block is None:
            raise UnsupportedVariantError(f"Don't know how to render parameter type {type(p).__name__}")

        with w.block("parameter"):
            w.attr("name", p.name)
            if p.title:
                w.attr("title", p.title)
            w.line()

            with w.block(block):
                if isinstance(p, QueryParameterNumber):
                    w.line(f"value = {int(p.value)}")
                elif isinstance(p, MultiValuedParameter):
                    if isinstance(p, QueryParameterEnum):
                        w.strings("options", p.options.split("\n"))
                    else:
                        w.attr("query_id", p.query_id)
                    self._write_values(w, p)
                elif isinstance(p, SingleValuedParameter):
                    w.attr("value", p.value)

    @staticmethod
    def _write_values(w: BlockWriter, p: MultiValuedParameter):
        if p.multi is None:
            w.attr("value", p.values[0] if p.values else "")
            return

        w.strings("values", p.values)
        w.line()
        with w.block("multiple"):
            w.attr("prefix", p.multi.prefix)
            w.attr("suffix", p.multi.suffix)
            w.attr("separator", p.multi.separator)

    def _write_visualization(self, w: BlockWriter, query: QueryEntry, entry: VisualizationEntry):
        v = entry.obj
        typ = v.type.lower()

        with w.block(f'resource "{VISUALIZATION_RESOURCE}" "{entry.resource_name}"'):
            w.line(f"query_id = {QUERY_RESOURCE}.{query.resource_name}.id")
            w.attr("type", typ)
            w.attr("name", v.name)
            if v.description:
                w.attr("description", v.description)
            w.line()
            w.heredoc("options", "JSON", self.options_json(entry))

    def options_json(self, entry: VisualizationEntry) -> str:
        """
        Re-serialize visualization options.

        Table options go through VisualizationTableOptions so columns can drop
        the values the service fills in by default. Anything else is pretty
        printed with sorted keys.
        """
        v = entry.obj
        if v.type.lower() == "table":
            options = v.options.decode(VisualizationTableOptions)
            data = options.to_json_dict(skip_defaults=self._skip_table_defaults)
            return json.dumps(data, indent=2, ensure_ascii=False)
        return json.dumps(v.options.root, indent=2, sort_keys=True, ensure_ascii=False)

    # ── Dashboards ────────────────────────────────────

    def render_dashboard(self, entry: DashboardEntry) -> str:
        """The dashboard resource followed by one resource per widget."""
        logger.debug(f"Rendering dashboard {entry.resource_name}")
        w = BlockWriter()
        d = entry.obj

        with w.block(f'resource "{DASHBOARD_RESOURCE}" "{entry.resource_name}"'):
            w.attr("name", d.name)
            w.line()
            w.strings("tags", d.tags)

        for widget in self._inventory.widgets_for(entry):
            w.line()
            self._write_widget(w, entry, widget)

        return w.getvalue()

    def _write_widget(self, w: BlockWriter, dashboard: DashboardEntry, entry: WidgetEntry):
        widget = entry.obj

        with w.block(f'resource "{WIDGET_RESOURCE}" "{entry.resource_name}"'):
            w.line(f"dashboard_id = {DASHBOARD_RESOURCE}.{dashboard.resource_name}.id")

            if widget.visualization_id is not None:
                v = self._inventory.find_visualization(widget.visualization_id)
                if v is None:
                    raise InconsistentInventoryError(
                        f"Widget {entry.resource_name} references visualization "
                        f"{widget.visualization_id} which was not loaded"
                    )
                w.line(f"visualization_id = {VISUALIZATION_RESOURCE}.{v.resource_name}.id")
            else:
                w.heredoc("text", "EOT", widget.text)

            position = widget.options.position
            if position is not None:
                w.line()
                with w.block("position"):
                    w.line(f"size_x = {position.size_x}")
                    w.line(f"size_y = {position.size_y}")
                    w.line(f"pos_x = {position.pos_x}")
                    w.line(f"pos_y = {position.pos_y}")

            for mapping in widget.options.parameter_mappings.values():
                w.line()
                with w.block("parameter"):
                    w.attr("name", mapping.name)
                    w.attr("type", mapping.type)
                    if mapping.map_to:
                        w.attr("map_to", mapping.map_to)
                    if mapping.title:
                        w.attr("title", mapping.title)
                    if isinstance(mapping.value, str):
                        w.attr("value", mapping.value)
                    elif mapping.value is not None:
                        raise UnsupportedVariantError(
                            f"Unhandled value type for parameter {mapping.name!r} "
                            f"of widget {entry.resource_name}: {type(mapping.value).__name__}"
                        )
