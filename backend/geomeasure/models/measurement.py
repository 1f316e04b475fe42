# backend/geomeasure/models/measurement.py
from sqlalchemy import Integer, String, Column, Float, DateTime, JSON, CheckConstraint
from .base import Base

class Measurement(Base):
    __tablename__ = "measurements"
    __table_args__ = (
        CheckConstraint("type IN ('LineString', 'Polygon')", name="ck_measurements_type"),
    )
    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False)  # LineString|Polygon
    geojson = Column(JSON, nullable=False)  # GeoJSON Feature (EPSG:4326)
    value = Column(Float, nullable=False)  # m | m²
    unit = Column(String, nullable=False)
    # 作成時に確定し以後更新しない（updated_at も同値）
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
