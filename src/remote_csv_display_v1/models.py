from __future__ import annotations

from enum import Enum
from typing import FrozenSet, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CSV_URL = (
    "https://raw.githubusercontent.com/digitalpunchid/harga_komoditas_pangan/"
    "refs/heads/main/harga_komoditas_konsumen_kota_bandung.csv"
)


class TabularDataset(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    header: List[str]
    rows: List[List[str]]

    @model_validator(mode="after")
    def _validate_widths(self) -> "TabularDataset":
        width = len(self.header)
        for row in self.rows:
            if len(row) != width:
                raise ValueError("every row must have as many cells as the header")
        return self


class RemoteCsvInput(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    url: str = DEFAULT_CSV_URL
    hide: str = ""
    grouped_timeline: Optional[str] = Field(default=None, alias="grouped-timeline")

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("url must be non-empty")
        return cleaned

    @field_validator("hide")
    @classmethod
    def _strip_hide(cls, value: str) -> str:
        return value.strip()


class TableViewConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    hidden_columns: FrozenSet[str] = frozenset()

    @classmethod
    def from_hide_option(cls, hide: str) -> "TableViewConfig":
        names = {part.strip().lower() for part in hide.split(",")}
        names.discard("")
        return cls(hidden_columns=frozenset(names))


class TimelineViewConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id_column: str
    label_column: str
    value_column: str
    unit_column: str


class TableView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    header: List[str]
    rows: List[List[str]]


class TimelinePoint(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: str
    value: float


class ChartState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


class TimelineGroup(BaseModel):
    model_config = ConfigDict(extra="forbid")

    key: str
    label: str
    unit: str
    latest: Optional[TimelinePoint] = None
    history: List[TimelinePoint] = Field(default_factory=list)
    chart_state: ChartState = ChartState.UNINITIALIZED


class TimelineView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    groups: List[TimelineGroup]


class RemoteCsvOutput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["table", "timeline"]
    ok: bool
    html: str
    error: Optional[str] = None
    table: Optional[TableView] = None
    timeline: Optional[TimelineView] = None


class UpdateInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str
    download_url: str
    description: str = ""
