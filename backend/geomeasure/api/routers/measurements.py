# backend/geomeasure/api/routers/measurements.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import structlog

from geomeasure import store
from geomeasure.db import get_db
from geomeasure.models.measurement import Measurement
from geomeasure.schemas.measurement import MeasurementIn, MeasurementOut, DeleteResult

router = APIRouter()
logger = structlog.get_logger(__name__)


def _to_out(m: Measurement) -> MeasurementOut:
    return MeasurementOut(
        id=m.id,
        type=m.type,
        geojson=m.geojson,
        value=m.value,
        unit=m.unit,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _unavailable(db: Session, op: str, err: SQLAlchemyError) -> HTTPException:
    db.rollback()
    logger.error("database error", op=op, error=str(err))
    return HTTPException(
        status_code=503,
        detail={"error": "Database unavailable", "details": str(err)},
    )


@router.get("")
@router.get("/", include_in_schema=False)
def list_measurements(db: Session = Depends(get_db)) -> list[MeasurementOut]:
    try:
        rows = store.list_measurements(db)
    except SQLAlchemyError as e:
        raise _unavailable(db, "list", e)
    return [_to_out(m) for m in rows]


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_measurement(payload: MeasurementIn, db: Session = Depends(get_db)) -> MeasurementOut:
    try:
        obj = store.create_measurement(
            db,
            type=payload.type,
            geojson=payload.geojson,
            value=payload.value,
            unit=payload.unit,
        )
    except SQLAlchemyError as e:
        raise _unavailable(db, "create", e)
    return _to_out(obj)


# 最新（created_at 最大）の1件のみ削除。全件削除は scripts/clear_measurements.py で行う
@router.delete("/latest")
def delete_latest(db: Session = Depends(get_db)) -> DeleteResult:
    try:
        deleted = store.delete_latest(db)
    except SQLAlchemyError as e:
        raise _unavailable(db, "delete_latest", e)
    if not deleted:
        raise HTTPException(status_code=404, detail="No measurements to delete")
    return DeleteResult(deleted_count=deleted)
