# backend/geomeasure/schemas/commons.py
from typing import Literal

# 保存できる形状のみ（ストア側の enum と同じ）
GeometryType = Literal["LineString", "Polygon"]

GEOMETRY_TYPES = ("LineString", "Polygon")
UNITS = {"LineString": "m", "Polygon": "m²"}
