from __future__ import annotations

import random
from datetime import date, timedelta
from typing import List, Optional
from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from farmdash.db import Base, engine, SessionLocal
from farmdash.models import FarmProfile, Shed, DailyLog

DEMO_OWNER = "demo-farm"

def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

def seed_profile(db: Session, owner_id: str = DEMO_OWNER, animal_type: str = "poultry"):
    db.add(FarmProfile(
        owner_id=owner_id,
        full_name="Demo Farmer",
        farm_area="2 ha",
        farm_location="Demo Valley",
        budget="50000",
        animal_type=animal_type,
    ))

def add_log(
    db: Session,
    owner_id: str,
    shed_id: str,
    log_date: date,
    alive: int,
    dead: int,
    eggs: int,
    offspring: int,
    reason: Optional[str] = None,
):
    db.add(DailyLog(
        owner_id=owner_id,
        shed_id=shed_id,
        log_date=log_date,
        alive_count=max(0, alive),
        dead_count=max(0, dead),
        eggs_count=max(0, eggs),
        offspring_count=max(0, offspring),
        death_reason=reason,
    ))

def seed_scenarios(db: Session, owner_id: str = DEMO_OWNER, days: int = 30, rng: Optional[random.Random] = None) -> List[Shed]:
    rng = rng or random.Random(42)
    today = date.today()
    start = today - timedelta(days=days-1)

    # One shed per scenario the dashboard should show
    demo_sheds = [
        # A) Healthy layers, vaccinated recently
        dict(name="Shed A - Healthy", birds=1200, vaccinated_days_ago=10, age=None, started_months_ago=8),
        # B) Disease outbreak in the last 5 days
        dict(name="Shed B - Outbreak", birds=900, vaccinated_days_ago=40, age=None, started_months_ago=6),
        # C) Never vaccinated, explicit age
        dict(name="Shed C - Unvaccinated", birds=600, vaccinated_days_ago=None, age=21, started_months_ago=None),
        # D) Logs only every other day (chart gaps)
        dict(name="Shed D - Sparse", birds=400, vaccinated_days_ago=27, age=None, started_months_ago=3),
    ]

    sheds = []
    for s in demo_sheds:
        shed = Shed(
            owner_id=owner_id,
            name=s["name"],
            location="North block",
            capacity=int(s["birds"] * 1.2),
            current_occupancy=s["birds"],
            age_days=s["age"],
            start_date=(today - relativedelta(months=s["started_months_ago"])) if s["started_months_ago"] else None,
            vaccinated=s["vaccinated_days_ago"] is not None,
            last_vaccination_date=(today - timedelta(days=s["vaccinated_days_ago"])) if s["vaccinated_days_ago"] is not None else None,
        )
        db.add(shed)
        sheds.append(shed)
    db.commit()

    for d in range(days):
        log_date = start + timedelta(days=d)
        for shed in sheds:
            birds = shed.current_occupancy

            # default "healthy-ish" signals
            dead = max(0, int(rng.gauss(2, 1)))
            eggs = int(birds * rng.uniform(0.78, 0.9))
            reason = None

            if shed.name.startswith("Shed B"):
                if d >= days - 5:
                    dead += rng.randint(18, 35)
                    eggs = int(eggs * 0.7)
                    reason = "Respiratory infection"

            elif shed.name.startswith("Shed C"):
                eggs = int(eggs * 0.85)

            elif shed.name.startswith("Shed D"):
                if d % 2 == 1:
                    continue

            add_log(db, owner_id, shed.id, log_date, birds - dead, dead, eggs, 0, reason)

    db.commit()
    return sheds

def main():
    reset_db()
    db = SessionLocal()
    try:
        seed_profile(db)
        seed_scenarios(db, days=30)
        db.commit()
        print("Seed complete: demo sheds + 30 days of logs")
        print(f"Owner id: {DEMO_OWNER}")
    finally:
        db.close()

if __name__ == "__main__":
    main()
