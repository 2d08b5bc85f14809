"""
Data models for SQL dashboards, widgets, queries and visualizations.

Payloads whose shape depends on a sibling field (widget visualizations, query
visualizations, visualization options) are kept as RawPayload and decoded
once the caller knows what they hold.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    RootModel,
    SerializeAsAny,
    ValidationError,
    field_validator,
)

from sqlexport.errors import DecodeError, UnsupportedVariantError

M = TypeVar("M", bound=BaseModel)


def _to_remote_id(value: Any) -> Any:
    """Visualization and widget IDs come back as JSON ints; keep all IDs as strings."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


RemoteId = Annotated[str, BeforeValidator(_to_remote_id)]


def _none_as_empty_list(value: Any) -> Any:
    return [] if value is None else value


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RawPayload(RootModel[Any]):
    """An undecoded JSON value."""

    def decode(self, model: Type[M]) -> M:
        try:
            return model.model_validate(self.root)
        except ValidationError as e:
            raise DecodeError(f"Cannot decode {model.__name__}: {e}") from e


# ── Query parameters ──────────────────────────────────

class QueryParameter(_Model):
    name: str
    title: Optional[str] = None


class SingleValuedParameter(QueryParameter):
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class QueryParameterText(SingleValuedParameter):
    type: Literal["text"] = "text"


class QueryParameterNumber(QueryParameter):
    type: Literal["number"] = "number"
    value: float = 0


class MultipleValuesOptions(_Model):
    prefix: str = ""
    suffix: str = ""
    separator: str = ""


class MultiValuedParameter(QueryParameter):
    # The service sends a bare string for single-valued parameters and a list otherwise.
    values: List[str] = Field(default_factory=list, alias="value")
    multi: Optional[MultipleValuesOptions] = Field(default=None, alias="multiValuesOptions")

    @field_validator("values", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(v) for v in value]
        return [str(value)]


class QueryParameterEnum(MultiValuedParameter):
    type: Literal["enum"] = "enum"
    options: str = Field(default="", alias="enumOptions")


class QueryParameterQuery(MultiValuedParameter):
    type: Literal["query"] = "query"
    query_id: RemoteId = Field(default="", alias="queryId")


class QueryParameterDate(SingleValuedParameter):
    type: Literal["date"] = "date"


class QueryParameterDateTime(SingleValuedParameter):
    type: Literal["datetime-local"] = "datetime-local"


class QueryParameterDateTimeSec(SingleValuedParameter):
    type: Literal["datetime-with-seconds"] = "datetime-with-seconds"


class QueryParameterDateRange(SingleValuedParameter):
    type: Literal["date-range"] = "date-range"


class QueryParameterDateTimeRange(SingleValuedParameter):
    type: Literal["datetime-range"] = "datetime-range"


class QueryParameterDateTimeSecRange(SingleValuedParameter):
    type: Literal["datetime-range-with-seconds"] = "datetime-range-with-seconds"


PARAMETER_TYPES: Dict[str, Type[QueryParameter]] = {
    "text": QueryParameterText,
    "number": QueryParameterNumber,
    "enum": QueryParameterEnum,
    "query": QueryParameterQuery,
    "date": QueryParameterDate,
    "datetime-local": QueryParameterDateTime,
    "datetime-with-seconds": QueryParameterDateTimeSec,
    "date-range": QueryParameterDateRange,
    "datetime-range": QueryParameterDateTimeRange,
    "datetime-range-with-seconds": QueryParameterDateTimeSecRange,
}


def parse_parameter(raw: Any) -> QueryParameter:
    """
    Decode one query parameter.

    The discriminant is read first so an unknown parameter type fails loudly
    instead of being mistaken for a neighbouring variant.
    """
    if isinstance(raw, QueryParameter):
        return raw
    if not isinstance(raw, dict):
        raise DecodeError(f"Query parameter must be an object, got {type(raw).__name__}")

    kind = raw.get("type")
    model = PARAMETER_TYPES.get(kind)
    if model is None:
        raise UnsupportedVariantError(f"Unknown query parameter type: {kind!r}")

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise DecodeError(f"Cannot decode {kind} parameter {raw.get('name')!r}: {e}") from e


# ── Queries ───────────────────────────────────────────

class QuerySchedule(_Model):
    interval: int


class QueryOptions(_Model):
    parameters: List[SerializeAsAny[QueryParameter]] = Field(default_factory=list)

    @field_validator("parameters", mode="before")
    @classmethod
    def _decode_parameters(cls, value: Any) -> Any:
        if value is None:
            return []
        return [parse_parameter(p) for p in value]


class Query(_Model):
    id: RemoteId
    data_source_id: str = ""
    name: str
    description: Optional[str] = None
    query: str = ""
    schedule: Optional[QuerySchedule] = None
    options: QueryOptions = Field(default_factory=QueryOptions)
    tags: List[str] = Field(default_factory=list)
    visualizations: List[RawPayload] = Field(default_factory=list)

    @field_validator("tags", "visualizations", mode="before")
    @classmethod
    def _lists_none(cls, value: Any) -> Any:
        return _none_as_empty_list(value)

    @field_validator("options", mode="before")
    @classmethod
    def _options_none(cls, value: Any) -> Any:
        return {} if value is None else value


class QueryRef(_Model):
    """The slice of a query embedded in a dashboard widget's visualization."""
    id: RemoteId


# ── Visualizations ────────────────────────────────────

class Visualization(_Model):
    id: RemoteId
    query_id: str = ""
    type: str
    name: str = ""
    description: Optional[str] = None
    options: RawPayload = Field(default_factory=lambda: RawPayload(None))

    # Only present when the visualization is embedded in a dashboard widget.
    query: Optional[RawPayload] = None


# Values the service fills into every table column.
TABLE_COLUMN_DEFAULTS: Dict[str, Any] = {
    "name": "",
    "type": "",
    "title": "",
    "displayAs": "",
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
    "order": 0,
    "alignContent": "left",
    "allowHTML": True,
    "highlightLinks": False,
}


class VisualizationTableColumn(_Model):
    name: str = ""
    type: str = ""
    title: str = ""
    display_as: str = Field(default="", alias="displayAs")
    allow_search: bool = Field(default=False, alias="allowSearch")

    number_format: str = Field(default="", alias="numberFormat")
    boolean_values: List[str] = Field(default_factory=lambda: ["false", "true"], alias="booleanValues")
    image_url_template: str = Field(default="{{ @ }}", alias="imageUrlTemplate")
    image_title_template: str = Field(default="{{ @ }}", alias="imageTitleTemplate")
    image_width: str = Field(default="", alias="imageWidth")
    image_height: str = Field(default="", alias="imageHeight")
    link_url_template: str = Field(default="{{ @ }}", alias="linkUrlTemplate")
    link_text_template: str = Field(default="{{ @ }}", alias="linkTextTemplate")
    link_title_template: str = Field(default="{{ @ }}", alias="linkTitleTemplate")
    link_open_in_new_tab: bool = Field(default=True, alias="linkOpenInNewTab")
    visible: bool = True
    order: int = 0
    align_content: str = Field(default="left", alias="alignContent")
    allow_html: bool = Field(default=True, alias="allowHTML")
    highlight_links: bool = Field(default=False, alias="highlightLinks")

    def to_json_dict(self, skip_defaults: bool = False) -> Dict[str, Any]:
        """
        Serialize the column with the service's field names.

        With skip_defaults every field equal to TABLE_COLUMN_DEFAULTS is
        dropped, and so is ``order`` since the position in the column list
        already carries it.
        """
        data = self.model_dump(by_alias=True)
        if not skip_defaults:
            if not data["order"]:
                del data["order"]
            return data

        del data["order"]
        return {
            key: value
            for key, value in sorted(data.items())
            if key not in TABLE_COLUMN_DEFAULTS or TABLE_COLUMN_DEFAULTS[key] != value
        }


class VisualizationTableOptions(_Model):
    items_per_page: int = Field(default=0, alias="itemsPerPage")
    columns: List[VisualizationTableColumn] = Field(default_factory=list)

    @field_validator("columns", mode="before")
    @classmethod
    def _columns_none(cls, value: Any) -> Any:
        return _none_as_empty_list(value)

    def to_json_dict(self, skip_defaults: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.items_per_page:
            data["itemsPerPage"] = self.items_per_page
        if self.columns:
            data["columns"] = [c.to_json_dict(skip_defaults) for c in self.columns]
        return data


# ── Dashboards & widgets ──────────────────────────────

class WidgetPosition(_Model):
    auto_height: bool = Field(default=False, alias="autoHeight")
    size_x: int = Field(default=0, alias="sizeX")
    size_y: int = Field(default=0, alias="sizeY")
    pos_x: int = Field(default=0, alias="col")
    pos_y: int = Field(default=0, alias="row")


class WidgetParameterMapping(_Model):
    name: str
    type: str
    map_to: Optional[str] = Field(default=None, alias="mapTo")
    title: Optional[str] = None
    value: Any = None


class WidgetOptions(_Model):
    position: Optional[WidgetPosition] = None
    parameter_mappings: Dict[str, WidgetParameterMapping] = Field(
        default_factory=dict, alias="parameterMappings"
    )

    @field_validator("parameter_mappings", mode="before")
    @classmethod
    def _mappings_none(cls, value: Any) -> Any:
        return {} if value is None else value


class Widget(_Model):
    id: RemoteId
    dashboard_id: str = ""
    text: Optional[str] = None
    visualization: Optional[RawPayload] = None
    visualization_id: Optional[RemoteId] = None
    options: WidgetOptions = Field(default_factory=WidgetOptions)

    @field_validator("options", mode="before")
    @classmethod
    def _options_none(cls, value: Any) -> Any:
        return {} if value is None else value


class Dashboard(_Model):
    id: RemoteId
    name: str
    tags: List[str] = Field(default_factory=list)
    widgets: List[RawPayload] = Field(default_factory=list)

    @field_validator("tags", "widgets", mode="before")
    @classmethod
    def _lists_none(cls, value: Any) -> Any:
        return _none_as_empty_list(value)
