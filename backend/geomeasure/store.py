# backend/geomeasure/store.py
"""
measurements コレクションへの操作。

更新系は作成と削除のみ。一覧・最新の判定は created_at 降順、
同時刻は id（挿入順）で決める。
"""
from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from geomeasure.models.measurement import Measurement

logger = structlog.get_logger(__name__)

_NEWEST_FIRST = (Measurement.created_at.desc(), Measurement.id.desc())


def list_measurements(db: Session) -> list[Measurement]:
    return list(db.scalars(select(Measurement).order_by(*_NEWEST_FIRST)))


def create_measurement(db: Session, type: str, geojson: dict, value: float, unit: str) -> Measurement:
    now = datetime.now(timezone.utc)
    obj = Measurement(
        type=type,
        geojson=geojson,
        value=value,
        unit=unit,
        created_at=now,
        updated_at=now,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info("measurement created", id=obj.id, type=obj.type, value=obj.value, unit=obj.unit)
    return obj


def delete_latest(db: Session) -> int:
    """最新の1件を削除し、削除件数（0 または 1）を返す。

    検索と削除を1文の DELETE で行うため、間に挿入が割り込むことはない。
    """
    latest_id = select(Measurement.id).order_by(*_NEWEST_FIRST).limit(1).scalar_subquery()
    stmt = delete(Measurement).where(Measurement.id == latest_id)
    result = db.execute(stmt.execution_options(synchronize_session=False))
    db.commit()
    deleted = result.rowcount or 0
    logger.info("latest measurement deleted", deleted_count=deleted)
    return deleted


def clear_measurements(db: Session) -> int:
    # 管理用途のみ（API には公開しない）
    result = db.execute(delete(Measurement).execution_options(synchronize_session=False))
    db.commit()
    deleted = result.rowcount or 0
    logger.warning("all measurements cleared", deleted_count=deleted)
    return deleted
