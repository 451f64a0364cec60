from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DatabaseInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class TableInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    database: str
    engine: str = ""


class ColumnInfo(BaseModel):
    """`system.columns` 한 행이에요. 키 소속 여부는 0/1로 와서 bool로 바꿔요."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    column_type: str = Field(alias="type")
    default_type: str = ""
    default_expression: str = ""
    comment: str = ""
    is_in_partition_key: bool = False
    is_in_sorting_key: bool = False
    is_in_primary_key: bool = False
    is_in_sampling_key: bool = False

    @property
    def flags(self) -> list[str]:
        flags: list[str] = []
        if self.is_in_primary_key:
            flags.append("PRIMARY KEY")
        if self.is_in_sorting_key:
            flags.append("SORTING KEY")
        if self.is_in_partition_key:
            flags.append("PARTITION KEY")
        if self.is_in_sampling_key:
            flags.append("SAMPLING KEY")
        return flags
