# backend/geomeasure/schemas/measurement.py
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr
from datetime import datetime
from typing import Union

from .commons import GeometryType


class MeasurementIn(BaseModel):
    # 形状の中身や type と geometry.type の整合性は検証しない
    type: GeometryType
    geojson: dict
    value: Union[StrictInt, StrictFloat]  # JSON の数値のみ（"12" や true は不可）
    unit: StrictStr = Field(min_length=1)


class MeasurementOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="_id")
    type: str
    geojson: dict
    value: float
    unit: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class DeleteResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    deleted_count: int = Field(alias="deletedCount")
