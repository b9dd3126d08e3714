from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .config import settings
from .db import Base, engine, get_db
from .models import FarmProfile, Shed, DailyLog
from .schemas import ProfileUpsert, ShedCreate, DailyLogUpsert
from .services import store
from .services.dates import date_range_ending
from .services.metrics import (
    MetricsDomainError,
    derive_age_days,
    high_mortality_alert,
    mortality_series,
    production_series,
    summarize,
    vaccination_schedule,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Farm Dashboard", version="0.1.0")
Base.metadata.create_all(bind=engine)

WindowDays = Query(default=settings.METRICS_WINDOW_DAYS, ge=1, le=365)

@app.exception_handler(MetricsDomainError)
def metrics_domain_error(request: Request, exc: MetricsDomainError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})

def profile_out(p: Optional[FarmProfile]) -> dict:
    if p is None:
        return {"full_name": None, "farm_area": None, "farm_location": None, "budget": None, "animal_type": None}
    return {
        "full_name": p.full_name,
        "farm_area": p.farm_area,
        "farm_location": p.farm_location,
        "budget": p.budget,
        "animal_type": p.animal_type,
    }

def shed_out(s: Shed, as_of: date) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "location": s.location,
        "capacity": s.capacity,
        "current_occupancy": s.current_occupancy,
        "status": s.status,
        "age_days": derive_age_days(store.to_enclosure(s), as_of),
        "start_date": s.start_date.isoformat() if s.start_date else None,
        "vaccinated": bool(s.vaccinated),
        "last_vaccination_date": s.last_vaccination_date.isoformat() if s.last_vaccination_date else None,
    }

def log_out(r: DailyLog) -> dict:
    return {
        "shed_id": r.shed_id,
        "log_date": r.log_date.isoformat(),
        "alive_count": r.alive_count,
        "dead_count": r.dead_count,
        "eggs_count": r.eggs_count,
        "offspring_count": r.offspring_count,
        "death_reason": r.death_reason,
    }

def require_shed(db: Session, owner_id: str, shed_id: str) -> Shed:
    shed = store.get_shed(db, owner_id, shed_id)
    if not shed:
        raise HTTPException(status_code=404, detail="Shed not found.")
    return shed

@app.get("/")
def root():
    return {"service": "Farm Dashboard API", "docs": "/docs", "health": "/health"}

@app.get("/health")
def health():
    return {"ok": True}

# ---------------------------
# Profile
# ---------------------------
@app.get("/farms/{owner_id}/profile")
def read_profile(owner_id: str, db: Session = Depends(get_db)):
    return profile_out(store.get_profile(db, owner_id))

@app.put("/farms/{owner_id}/profile")
def save_profile(owner_id: str, payload: ProfileUpsert, db: Session = Depends(get_db)):
    return profile_out(store.upsert_profile(db, owner_id, payload))

# ---------------------------
# Sheds
# ---------------------------
@app.get("/farms/{owner_id}/sheds")
def list_sheds(owner_id: str, db: Session = Depends(get_db)):
    today = date.today()
    return [shed_out(s, today) for s in store.list_sheds(db, owner_id)]

@app.post("/farms/{owner_id}/sheds", status_code=201)
def create_shed(owner_id: str, payload: ShedCreate, db: Session = Depends(get_db)):
    shed = store.create_shed(db, owner_id, payload)
    return shed_out(shed, date.today())

@app.put("/farms/{owner_id}/sheds/{shed_id}")
def update_shed(owner_id: str, shed_id: str, payload: ShedCreate, db: Session = Depends(get_db)):
    shed = require_shed(db, owner_id, shed_id)
    return shed_out(store.update_shed(db, shed, payload), date.today())

@app.delete("/farms/{owner_id}/sheds/{shed_id}")
def delete_shed(owner_id: str, shed_id: str, db: Session = Depends(get_db)):
    shed = require_shed(db, owner_id, shed_id)
    store.delete_shed(db, shed)
    return {"deleted": True, "id": shed_id}

# ---------------------------
# Daily logs
# ---------------------------
@app.post("/farms/{owner_id}/logs")
def save_daily_log(owner_id: str, payload: DailyLogUpsert, db: Session = Depends(get_db)):
    shed = store.get_shed(db, owner_id, payload.shed_id)
    if not shed:
        raise HTTPException(status_code=404, detail="Shed not found. Create the shed first.")

    log = store.upsert_daily_log(db, owner_id, payload)

    dead = log.dead_count or 0
    threshold = settings.HIGH_MORTALITY_THRESHOLD
    alert = high_mortality_alert(dead, threshold)
    if alert:
        logger.warning("High mortality in shed %s on %s: %d deaths", shed.name, log.log_date.isoformat(), dead)

    return {
        "saved": True,
        "log": log_out(log),
        "alert": {
            "high_mortality": alert,
            "shed_name": shed.name,
            "dead_count": dead,
            "threshold": threshold,
        },
    }

@app.get("/farms/{owner_id}/logs")
def list_logs(owner_id: str, days: int = WindowDays, db: Session = Depends(get_db)):
    since, until = date_range_ending(days)
    return [log_out(r) for r in store.load_logs(db, owner_id, since, until)]

# ---------------------------
# Analytics
# ---------------------------
@app.get("/farms/{owner_id}/summary")
def farm_summary(owner_id: str, days: int = WindowDays, db: Session = Depends(get_db)):
    today = date.today()
    since, until = date_range_ending(days, today)
    observations = store.load_observations(db, owner_id, since, until)
    enclosures = store.load_enclosures(db, owner_id)
    animal_type = store.animal_type_for(db, owner_id)

    s = summarize(observations, enclosures, animal_type, days, today)
    logger.debug("Summary for %s over %d days from %d observations", owner_id, days, len(observations))

    return {
        "window_days": s.window_days,
        "days_covered": s.days_covered,
        "animal_type": animal_type,
        "total_sheds": s.total_sheds,
        "total_animals": s.total_animals,
        "mortality_rate": s.mortality_rate,
        "production_rate": s.production_rate,
        "totals": {
            "alive": s.totals.alive,
            "dead": s.totals.dead,
            "eggs": s.totals.eggs,
            "offspring": s.totals.offspring,
        },
    }

@app.get("/farms/{owner_id}/charts/mortality")
def mortality_chart(owner_id: str, days: int = WindowDays, db: Session = Depends(get_db)):
    today = date.today()
    since, until = date_range_ending(days, today)
    observations = store.load_observations(db, owner_id, since, until)

    return [
        {"date": d.isoformat(), "mortality_rate": rate}
        for d, rate in mortality_series(observations, days, today)
    ]

@app.get("/farms/{owner_id}/charts/production")
def production_chart(owner_id: str, days: int = WindowDays, db: Session = Depends(get_db)):
    today = date.today()
    since, until = date_range_ending(days, today)
    observations = store.load_observations(db, owner_id, since, until)

    return [
        {"date": d.isoformat(), "eggs": eggs, "offspring": offspring}
        for d, eggs, offspring in production_series(observations, days, today)
    ]

@app.get("/farms/{owner_id}/vaccinations")
def vaccinations(owner_id: str, db: Session = Depends(get_db)):
    enclosures = store.load_enclosures(db, owner_id)
    animal_type = store.animal_type_for(db, owner_id)

    return [
        {
            "shed_id": v.shed_id,
            "shed_name": v.shed_name,
            "next_date": v.next_date.isoformat(),
            "days_until": v.days_until,
            "status": v.status,
        }
        for v in vaccination_schedule(enclosures, animal_type, date.today())
    ]
