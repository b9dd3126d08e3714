from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from .db import Base

def _new_id() -> str:
    return str(uuid.uuid4())

class FarmProfile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String, nullable=False)

    full_name = Column(String, nullable=True)
    farm_area = Column(String, nullable=True)
    farm_location = Column(String, nullable=True)
    budget = Column(String, nullable=True)
    animal_type = Column(String, nullable=True)  # poultry / pig / other

    __table_args__ = (
        UniqueConstraint("owner_id", name="uix_profile_owner"),
    )

class Shed(Base):
    __tablename__ = "sheds"

    id = Column(String, primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)

    name = Column(String, nullable=False)
    location = Column(String, nullable=True)
    capacity = Column(Integer, nullable=True)
    current_occupancy = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=True, default="active")

    age_days = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    vaccinated = Column(Boolean, nullable=False, default=False)
    last_vaccination_date = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    logs = relationship("DailyLog", back_populates="shed", cascade="all, delete-orphan")

class DailyLog(Base):
    __tablename__ = "daily_logs"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String, nullable=False)
    shed_id = Column(String, ForeignKey("sheds.id"), nullable=False)
    log_date = Column(Date, nullable=False)

    alive_count = Column(Integer, nullable=True)
    dead_count = Column(Integer, nullable=True)
    eggs_count = Column(Integer, nullable=True)
    offspring_count = Column(Integer, nullable=True)
    death_reason = Column(String, nullable=True)

    shed = relationship("Shed", back_populates="logs")

    __table_args__ = (
        UniqueConstraint("owner_id", "shed_id", "log_date", name="uix_owner_shed_date"),
        Index("idx_log_owner_date", "owner_id", "log_date"),
    )
