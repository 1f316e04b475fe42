# backend/geomeasure/client/geometry.py
"""
描画済み形状（表示投影 EPSG:3857）を計測レコードに変換する。

  - EPSG:4326 へ再投影（lon/lat 順）
  - 球面上の長さ（LineString）または面積（Polygon）を算出
  - GeoJSON Feature に包んで {type, geojson, value, unit} を返す
"""
from __future__ import annotations

from typing import Optional, Union

from pyproj import CRS, Geod, Transformer
from shapely.geometry import LineString, Polygon, shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform

from geomeasure.schemas.commons import UNITS

DISPLAY_CRS = CRS.from_epsg(3857)
GEOGRAPHIC_CRS = CRS.from_epsg(4326)

# Web 地図の計測で使われる平均地球半径（球体モデル）
EARTH_RADIUS_M = 6371008.8
SPHERE = Geod(a=EARTH_RADIUS_M, b=EARTH_RADIUS_M)

_to_geographic = Transformer.from_crs(DISPLAY_CRS, GEOGRAPHIC_CRS, always_xy=True)
_to_display = Transformer.from_crs(GEOGRAPHIC_CRS, DISPLAY_CRS, always_xy=True)


def _as_geometry(geom: Union[BaseGeometry, dict]) -> BaseGeometry:
    if isinstance(geom, dict):
        return shape(geom)
    return geom


def _distinct_vertices(coords) -> int:
    return len({(x, y) for x, y, *_ in coords})


def is_degenerate(geom: BaseGeometry) -> bool:
    if geom.is_empty:
        return True
    if isinstance(geom, LineString):
        return _distinct_vertices(geom.coords) < 2
    if isinstance(geom, Polygon):
        return _distinct_vertices(geom.exterior.coords) < 3
    return False


def to_geographic(geom: BaseGeometry) -> BaseGeometry:
    return transform(_to_geographic.transform, geom)


def _as_lists(coords) -> list:
    return [[float(c) for c in pt] for pt in coords]


def to_feature(geom_ll: BaseGeometry) -> dict:
    """再投影済みの形状を GeoJSON Feature にする（座標はリスト）。"""
    if isinstance(geom_ll, LineString):
        coordinates = _as_lists(geom_ll.coords)
    else:
        # 外輪のみ（穴は考慮しない）。1段深くして単一リングを表す
        coordinates = [_as_lists(geom_ll.exterior.coords)]
    return {
        "type": "Feature",
        "geometry": {"type": geom_ll.geom_type, "coordinates": coordinates},
        "properties": {},
    }


def measure(geom_ll: BaseGeometry) -> float:
    if isinstance(geom_ll, LineString):
        return SPHERE.geometry_length(geom_ll)
    area, _perimeter = SPHERE.geometry_area_perimeter(Polygon(geom_ll.exterior.coords))
    return abs(area)


def to_measurement(geom: Union[BaseGeometry, dict]) -> Optional[dict]:
    """
    geom: 表示投影（EPSG:3857）の LineString / Polygon、または同等の GeoJSON geometry
    戻り値: {"type", "geojson", "value", "unit"}。退化した形状は None（送信しない）
    """
    geom = _as_geometry(geom)
    if geom.geom_type not in UNITS:
        raise ValueError(f"unsupported geometry type: {geom.geom_type}")
    if is_degenerate(geom):
        return None

    geom_ll = to_geographic(geom)
    return {
        "type": geom_ll.geom_type,
        "geojson": to_feature(geom_ll),
        "value": measure(geom_ll),
        "unit": UNITS[geom_ll.geom_type],
    }


def from_lonlat(geom_ll: Union[BaseGeometry, dict]) -> BaseGeometry:
    """EPSG:4326 の形状を表示投影へ（地図上での描画再現・テスト用）。"""
    return transform(_to_display.transform, _as_geometry(geom_ll))
