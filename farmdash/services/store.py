from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import FarmProfile, Shed, DailyLog
from ..schemas import ProfileUpsert, ShedCreate, DailyLogUpsert
from .metrics import DailyObservation, Enclosure

logger = logging.getLogger(__name__)

# ---------------------------
# Row -> engine record
# ---------------------------
def to_enclosure(shed: Shed) -> Enclosure:
    return Enclosure(
        id=shed.id,
        name=shed.name,
        capacity=shed.capacity,
        current_occupancy=shed.current_occupancy or 0,
        age_days=shed.age_days,
        vaccinated=bool(shed.vaccinated),
        last_vaccination_date=shed.last_vaccination_date,
        start_date=shed.start_date,
    )

def to_observation(log: DailyLog) -> DailyObservation:
    return DailyObservation(
        date=log.log_date,
        alive_count=log.alive_count,
        dead_count=log.dead_count,
        eggs_count=log.eggs_count,
        offspring_count=log.offspring_count,
        death_reason=log.death_reason,
        shed_id=log.shed_id,
    )

# ---------------------------
# Queries
# ---------------------------
def load_logs(db: Session, owner_id: str, since: date, until: date) -> List[DailyLog]:
    return (
        db.query(DailyLog)
        .filter(DailyLog.owner_id == owner_id)
        .filter(DailyLog.log_date >= since)
        .filter(DailyLog.log_date <= until)
        .order_by(DailyLog.log_date, DailyLog.shed_id)
        .all()
    )

def load_observations(db: Session, owner_id: str, since: date, until: date) -> List[DailyObservation]:
    return [to_observation(r) for r in load_logs(db, owner_id, since, until)]

def list_sheds(db: Session, owner_id: str) -> List[Shed]:
    return (
        db.query(Shed)
        .filter(Shed.owner_id == owner_id)
        .order_by(Shed.created_at.desc(), Shed.name)
        .all()
    )

def load_enclosures(db: Session, owner_id: str) -> List[Enclosure]:
    return [to_enclosure(s) for s in list_sheds(db, owner_id)]

def get_shed(db: Session, owner_id: str, shed_id: str) -> Optional[Shed]:
    return (
        db.query(Shed)
        .filter(Shed.owner_id == owner_id)
        .filter(Shed.id == shed_id)
        .first()
    )

def get_profile(db: Session, owner_id: str) -> Optional[FarmProfile]:
    return db.query(FarmProfile).filter(FarmProfile.owner_id == owner_id).first()

def animal_type_for(db: Session, owner_id: str) -> Optional[str]:
    profile = get_profile(db, owner_id)
    return profile.animal_type if profile else None

# ---------------------------
# Writes
# ---------------------------
def upsert_profile(db: Session, owner_id: str, payload: ProfileUpsert) -> FarmProfile:
    profile = get_profile(db, owner_id)
    if profile is None:
        profile = FarmProfile(owner_id=owner_id)
        db.add(profile)

    for key, value in payload.model_dump().items():
        setattr(profile, key, value)

    db.commit()
    db.refresh(profile)
    logger.info("Saved profile for owner %s (animal_type=%s)", owner_id, profile.animal_type)
    return profile

def create_shed(db: Session, owner_id: str, payload: ShedCreate) -> Shed:
    shed = Shed(owner_id=owner_id, **payload.model_dump())
    db.add(shed)
    db.commit()
    db.refresh(shed)
    logger.info("Created shed %s (%s) for owner %s", shed.id, shed.name, owner_id)
    return shed

def update_shed(db: Session, shed: Shed, payload: ShedCreate) -> Shed:
    for key, value in payload.model_dump().items():
        setattr(shed, key, value)
    db.commit()
    db.refresh(shed)
    logger.info("Updated shed %s", shed.id)
    return shed

def delete_shed(db: Session, shed: Shed) -> None:
    db.delete(shed)
    db.commit()
    logger.info("Deleted shed %s", shed.id)

LOG_KEY = ("owner_id", "shed_id", "log_date")
LOG_FIELDS = ("alive_count", "dead_count", "eggs_count", "offspring_count", "death_reason")

_UPSERT_DIALECTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}

def find_daily_log(db: Session, owner_id: str, shed_id: str, log_date: date) -> Optional[DailyLog]:
    return (
        db.query(DailyLog)
        .filter(DailyLog.owner_id == owner_id)
        .filter(DailyLog.shed_id == shed_id)
        .filter(DailyLog.log_date == log_date)
        .first()
    )

def _log_values(owner_id: str, payload: DailyLogUpsert) -> dict:
    return {
        "owner_id": owner_id,
        "shed_id": payload.shed_id,
        "log_date": payload.log_date,
        "alive_count": payload.alive_count,
        "dead_count": payload.dead_count,
        "eggs_count": payload.eggs_count,
        "offspring_count": payload.offspring_count,
        "death_reason": payload.death_reason or None,
    }

def _insert_on_conflict(db: Session, insert, values: dict) -> None:
    stmt = insert(DailyLog).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(LOG_KEY),
        set_={name: stmt.excluded[name] for name in LOG_FIELDS},
    )
    db.execute(stmt)
    db.commit()

def _merge_by_key(db: Session, values: dict) -> None:
    """Select-then-write for dialects without ON CONFLICT. A racing insert is retried as an update."""
    for attempt in range(2):
        log = find_daily_log(db, values["owner_id"], values["shed_id"], values["log_date"])
        if log is None:
            log = DailyLog(**{k: values[k] for k in LOG_KEY})
            db.add(log)
        for name in LOG_FIELDS:
            setattr(log, name, values[name])
        try:
            db.commit()
            return
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            logger.info("Daily log %s/%s was inserted concurrently, overwriting", values["shed_id"], values["log_date"])

def upsert_daily_log(db: Session, owner_id: str, payload: DailyLogUpsert) -> DailyLog:
    """
    Insert or overwrite the log for (owner, shed, date), last write wins.

    Every field is replaced, so a later write that leaves a count empty
    clears the earlier value.
    """
    values = _log_values(owner_id, payload)
    insert = _UPSERT_DIALECTS.get(db.get_bind().dialect.name)
    if insert is not None:
        _insert_on_conflict(db, insert, values)
    else:
        _merge_by_key(db, values)

    logger.info("Saved daily log shed=%s date=%s", payload.shed_id, payload.log_date.isoformat())
    return find_daily_log(db, owner_id, payload.shed_id, payload.log_date)
