"""Shared test fixtures."""

import copy
from unittest.mock import MagicMock

import pytest

from sqlexport.config_loader import ExportConfig
from sqlexport.errors import NotFoundError
from sqlexport.models import Dashboard, Query


# ── Sample payloads ───────────────────────────────────────────────────

def table_column(**overrides):
    """A table column exactly as the service returns it, all defaults filled in."""
    column = {
        "name": "region",
        "type": "string",
        "title": "region",
        "displayAs": "string",
        "allowSearch": False,
        "numberFormat": "",
        "booleanValues": ["false", "true"],
        "imageUrlTemplate": "{{ @ }}",
        "imageTitleTemplate": "{{ @ }}",
        "imageWidth": "",
        "imageHeight": "",
        "linkUrlTemplate": "{{ @ }}",
        "linkTextTemplate": "{{ @ }}",
        "linkTitleTemplate": "{{ @ }}",
        "linkOpenInNewTab": True,
        "visible": True,
        "order": 100000,
        "alignContent": "left",
        "allowHTML": True,
        "highlightLinks": False,
    }
    column.update(overrides)
    return column


REVENUE_QUERY = {
    "id": "q-1",
    "data_source_id": "ds-1",
    "name": "Revenue by Region",
    "description": "Monthly revenue",
    "query": "SELECT region, sum(amount)\nFROM revenue\nWHERE region IN ({{ region }})\nGROUP BY 1",
    "schedule": {"interval": 3600},
    "tags": ["finance"],
    "options": {
        "parameters": [
            {
                "name": "region",
                "title": "Region",
                "type": "enum",
                "enumOptions": "EMEA\nAPAC",
                "value": ["EMEA", "APAC"],
                "multiValuesOptions": {"prefix": "'", "suffix": "'", "separator": ","},
            },
            {"name": "limit", "title": "", "type": "number", "value": 10},
        ],
    },
    "visualizations": [
        {
            "id": 11,
            "type": "TABLE",
            "name": "Table",
            "description": "",
            "options": {"itemsPerPage": 25, "columns": [table_column()]},
        },
        {
            "id": 12,
            "type": "CHART",
            "name": "Trend",
            "description": "Revenue over time",
            "options": {"series": {"stacking": None}, "globalSeriesType": "line"},
        },
        {
            "id": 13,
            "type": "TABLE",
            "name": "Details",
            "options": {"columns": []},
        },
    ],
}

SALES_DASHBOARD = {
    "id": "dash-1",
    "name": "Sales (EMEA) Overview",
    "tags": ["sales", "emea"],
    "widgets": [
        {
            "id": 901,
            "text": "",
            "visualization": {
                "id": 11,
                "type": "TABLE",
                "name": "Table",
                "options": {},
                "query": {"id": "q-1", "name": "Revenue by Region"},
            },
            "options": {
                "position": {"autoHeight": False, "sizeX": 3, "sizeY": 8, "col": 0, "row": 0},
                "parameterMappings": {
                    "region": {
                        "name": "region",
                        "type": "dashboard-level",
                        "mapTo": "region",
                        "value": None,
                        "title": "",
                    },
                },
            },
        },
        {
            "id": 902,
            "text": "## Notes\nNumbers are in EUR.",
            "options": {"position": {"autoHeight": False, "sizeX": 3, "sizeY": 4, "col": 3, "row": 0}},
        },
        {
            "id": 903,
            "visualization": {
                "id": 12,
                "type": "CHART",
                "name": "Trend",
                "options": {},
                "query": {"id": "q-1"},
            },
            "options": None,
        },
    ],
}


def make_fetcher(dashboards=None, queries=None):
    """A fetcher serving the given payloads; unknown IDs raise NotFoundError."""
    dashboards = dashboards or {}
    queries = queries or {}

    def fetch_dashboard(remote_id):
        if remote_id not in dashboards:
            raise NotFoundError("dashboard", remote_id, "not found")
        return Dashboard.model_validate(copy.deepcopy(dashboards[remote_id]))

    def fetch_query(remote_id):
        if remote_id not in queries:
            raise NotFoundError("query", remote_id, "not found")
        return Query.model_validate(copy.deepcopy(queries[remote_id]))

    fetcher = MagicMock()
    fetcher.fetch_dashboard.side_effect = fetch_dashboard
    fetcher.fetch_query.side_effect = fetch_query
    return fetcher


@pytest.fixture
def fetcher():
    return make_fetcher(
        dashboards={"dash-1": SALES_DASHBOARD},
        queries={"q-1": REVENUE_QUERY},
    )


@pytest.fixture
def config(tmp_path):
    return ExportConfig(
        host="https://example.cloud.databricks.com",
        token="dapi-test",
        output_dir=tmp_path / "out",
    )
