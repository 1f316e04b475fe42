# backend/geomeasure/client/session.py
"""
クライアント側の描画セッション。

地図・描画ソース・描画モードをグローバル状態で持たず、UI 層が所有する
DrawingSession を Geometry Service / API クライアントに渡して使う。
"""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional, Union

import structlog
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from geomeasure.client.api import MeasurementApiError, MeasurementsClient
from geomeasure.client.geometry import to_measurement
from geomeasure.schemas.commons import GEOMETRY_TYPES

logger = structlog.get_logger(__name__)


@dataclass(eq=False)
class Drawing:
    geometry: BaseGeometry  # 表示投影（EPSG:3857）
    record: Optional[dict] = None  # 保存後にサーバが返したレコード


@dataclass
class DrawingSession:
    pending: list[Drawing] = field(default_factory=list)
    saved: list[Drawing] = field(default_factory=list)
    measurements: list[dict] = field(default_factory=list)
    draw_mode: Optional[str] = None
    status: Optional[str] = None

    def set_draw_mode(self, kind: str) -> None:
        if kind not in GEOMETRY_TYPES:
            raise ValueError(f"draw mode must be LineString|Polygon, got {kind!r}")
        self.draw_mode = kind

    def stop_drawing(self) -> None:
        self.draw_mode = None

    def add_drawing(self, geometry: Union[BaseGeometry, dict]) -> Drawing:
        if isinstance(geometry, dict):
            geometry = shape(geometry)
        if geometry.geom_type not in GEOMETRY_TYPES:
            raise ValueError(f"drawing must be LineString|Polygon, got {geometry.geom_type!r}")
        drawing = Drawing(geometry=geometry)
        self.pending.append(drawing)
        return drawing

    async def save_pending(self, client: MeasurementsClient) -> bool:
        """
        未保存の形状をまとめて送信する。

        各形状は独立した create 呼び出しとして同時に送る。成功したものは
        saved へ移し、失敗したものは pending に残す（再送はユーザ操作）。
        1件でも失敗すればバッチ全体を失敗として status に表示する。
        送信済みの挿入は取り消さない。
        """
        batch: list[tuple[Drawing, dict]] = []
        failures: list[str] = []
        for drawing in list(self.pending):
            try:
                measurement = to_measurement(drawing.geometry)
            except Exception as e:
                # 変換できない形状は pending に残して失敗扱い
                failures.append(f"Could not measure {drawing.geometry.geom_type}: {e}")
                logger.error("drawing conversion failed", geom_type=drawing.geometry.geom_type, error=str(e))
                continue
            if measurement is None:
                # 頂点不足などの退化形状は送らない
                self.pending.remove(drawing)
                logger.info("skipped degenerate drawing", geom_type=drawing.geometry.geom_type)
                continue
            batch.append((drawing, measurement))

        if not batch and not failures:
            self.status = "Nothing to save."
            return True

        results = await asyncio.gather(
            *(client.create_measurement(m) for _, m in batch),
            return_exceptions=True,
        )

        total = len(batch) + len(failures)
        for (drawing, _), result in zip(batch, results):
            if isinstance(result, MeasurementApiError):
                failures.append(result.message)
                continue
            if isinstance(result, Exception):
                failures.append(str(result) or type(result).__name__)
                logger.error("create call failed", error=repr(result))
                continue
            if isinstance(result, BaseException):
                raise result
            drawing.record = result
            self.pending.remove(drawing)
            self.saved.append(drawing)

        if failures:
            self.status = f"Save failed for {len(failures)} of {total} measurement(s): {failures[0]}"
            logger.warning("batch save failed", total=total, failed=len(failures))
            return False
        self.status = f"Saved {total} measurement(s)."
        logger.info("batch saved", total=total)
        return True

    async def refresh(self, client: MeasurementsClient) -> bool:
        try:
            self.measurements = await client.list_measurements()
        except MeasurementApiError as e:
            self.status = f"Could not load measurements: {e.message}"
            return False
        self.status = f"Loaded {len(self.measurements)} measurement(s)."
        return True

    async def delete_latest(self, client: MeasurementsClient) -> bool:
        try:
            await client.delete_latest()
        except MeasurementApiError as e:
            self.status = f"Delete failed: {e.message}"
            return False
        if not await self.refresh(client):
            return False
        self.status = "Deleted the latest measurement."
        return True

    async def download(self, client: MeasurementsClient, directory: Union[str, Path] = ".") -> Optional[Path]:
        """一覧 API の結果をそのまま measurements-YYYY-MM-DD.json に書き出す。"""
        try:
            items = await client.list_measurements()
        except MeasurementApiError as e:
            self.status = f"Download failed: {e.message}"
            return None
        out = Path(directory) / f"measurements-{date.today().isoformat()}.json"
        out.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
        self.measurements = items
        self.status = f"Downloaded {len(items)} measurement(s) to {out.name}."
        return out
