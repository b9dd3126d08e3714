from __future__ import annotations
from datetime import date
from pydantic import BaseModel, Field
from typing import Optional

class ProfileUpsert(BaseModel):
    full_name: Optional[str] = None
    farm_area: Optional[str] = None
    farm_location: Optional[str] = None
    budget: Optional[str] = None
    animal_type: Optional[str] = Field(default=None, description="poultry, pig or any other label")

class ShedCreate(BaseModel):
    name: str = Field(..., min_length=1)
    location: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    current_occupancy: int = Field(default=0, ge=0)
    status: Optional[str] = Field(default="active")

    age_days: Optional[int] = Field(default=None, ge=0)
    start_date: Optional[date] = None
    vaccinated: bool = False
    last_vaccination_date: Optional[date] = None

class DailyLogUpsert(BaseModel):
    shed_id: str = Field(..., min_length=1)
    log_date: date = Field(default_factory=date.today)

    alive_count: Optional[int] = Field(default=None, ge=0)
    dead_count: Optional[int] = Field(default=None, ge=0)
    eggs_count: Optional[int] = Field(default=None, ge=0)
    offspring_count: Optional[int] = Field(default=None, ge=0)
    death_reason: Optional[str] = None
