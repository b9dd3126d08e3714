from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple

from .dates import DateLike, as_calendar_date, date_range_ending, days_between

POULTRY = "poultry"
PIG = "pig"

POULTRY_VACCINATION_INTERVAL_DAYS = 30
DEFAULT_VACCINATION_INTERVAL_DAYS = 90
DUE_SOON_DAYS = 7
HIGH_MORTALITY_THRESHOLD = 15

STATUS_DUE_SOON = "due-soon"
STATUS_SCHEDULED = "scheduled"

ONE_DECIMAL = Decimal("0.1")


class MetricsDomainError(ValueError):
    """Raised for counts outside the non-negative integer domain, or unreadable dates."""


def _check_count(name: str, value, *, optional: bool = True):
    if value is None:
        if optional:
            return None
        raise MetricsDomainError(f"{name} is required.")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MetricsDomainError(f"{name} must be a number, got {value!r}.")
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        raise MetricsDomainError(f"{name} must be a finite whole number, got {value!r}.")
    if value < 0:
        raise MetricsDomainError(f"{name} must be >= 0, got {value!r}.")
    return int(value)


def _check_date(name: str, value: DateLike) -> None:
    try:
        as_calendar_date(value)
    except (TypeError, ValueError):
        raise MetricsDomainError(f"{name} must be a calendar date or YYYY-MM-DD, got {value!r}.") from None


def _is_poultry(animal_type: Optional[str]) -> bool:
    return (animal_type or "").strip().lower() == POULTRY


def _pct(numerator: int, denominator: int) -> float:
    if denominator == 0:
        return 0.0
    value = Decimal(numerator) * 100 / Decimal(denominator)
    return float(value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


# ---------------------------
# Records
# ---------------------------
@dataclass(frozen=True)
class DailyObservation:
    date: DateLike
    alive_count: Optional[int] = None
    dead_count: Optional[int] = None
    eggs_count: Optional[int] = None
    offspring_count: Optional[int] = None
    death_reason: Optional[str] = None
    shed_id: Optional[str] = None

    def __post_init__(self):
        _check_date("date", self.date)
        for name in ("alive_count", "dead_count", "eggs_count", "offspring_count"):
            _check_count(name, getattr(self, name))


@dataclass(frozen=True)
class Enclosure:
    id: str
    name: str
    capacity: Optional[int] = None
    current_occupancy: int = 0
    age_days: Optional[int] = None
    vaccinated: bool = False
    last_vaccination_date: DateLike = None
    start_date: DateLike = None

    def __post_init__(self):
        _check_count("capacity", self.capacity)
        _check_count("current_occupancy", self.current_occupancy, optional=False)
        _check_count("age_days", self.age_days)
        _check_date("last_vaccination_date", self.last_vaccination_date)
        _check_date("start_date", self.start_date)


@dataclass
class DailyTotals:
    alive: int = 0
    dead: int = 0
    eggs: int = 0
    offspring: int = 0

    def add(self, obs: DailyObservation) -> None:
        self.alive += obs.alive_count or 0
        self.dead += obs.dead_count or 0
        self.eggs += obs.eggs_count or 0
        self.offspring += obs.offspring_count or 0


@dataclass(frozen=True)
class VaccinationDue:
    shed_id: str
    shed_name: str
    next_date: date
    days_until: int
    status: str


@dataclass(frozen=True)
class FarmSummary:
    total_sheds: int
    total_animals: int
    window_days: int
    days_covered: int
    mortality_rate: float
    production_rate: float
    totals: DailyTotals = field(default_factory=DailyTotals)


# ---------------------------
# Bucketing
# ---------------------------
def bucket_by_date(
    observations: Iterable[DailyObservation],
    window_days: int,
    today: Optional[date] = None,
) -> List[Tuple[date, DailyTotals]]:
    """
    Sum observations per calendar day inside [today - window_days, today].

    Days with no observation are left out, and observations without a date
    are skipped.
    """
    if window_days < 0:
        raise MetricsDomainError(f"window_days must be >= 0, got {window_days}.")
    start, end = date_range_ending(window_days, today)

    by_date: Dict[date, DailyTotals] = defaultdict(DailyTotals)
    for obs in observations:
        day = as_calendar_date(obs.date)
        if day is None or day < start or day > end:
            continue
        by_date[day].add(obs)

    return sorted(by_date.items())


def total_of(buckets: Iterable[Tuple[date, DailyTotals]]) -> DailyTotals:
    totals = DailyTotals()
    for _, day in buckets:
        totals.alive += day.alive
        totals.dead += day.dead
        totals.eggs += day.eggs
        totals.offspring += day.offspring
    return totals


# ---------------------------
# Rates
# ---------------------------
def mortality_rate(alive: int, dead: int) -> float:
    """dead / (alive + dead) as a percentage, one decimal, half-up. 0 when nothing was counted."""
    alive = _check_count("alive", alive, optional=False)
    dead = _check_count("dead", dead, optional=False)
    return _pct(dead, alive + dead)


def production_rate(
    animal_type: Optional[str],
    totals: DailyTotals,
    total_occupancy: int,
    window_days: int,
) -> float:
    """
    Poultry: eggs per animal per day over the window.
    Everything else: offspring per animal over the window.

    Returns 0 when there are no animals to divide by.
    """
    total_occupancy = _check_count("total_occupancy", total_occupancy, optional=False)
    window_days = _check_count("window_days", window_days, optional=False)
    if total_occupancy == 0:
        return 0.0

    if _is_poultry(animal_type):
        eggs = _check_count("eggs", totals.eggs, optional=False)
        return _pct(eggs, total_occupancy * window_days)

    offspring = _check_count("offspring", totals.offspring, optional=False)
    return _pct(offspring, total_occupancy)


def high_mortality_alert(dead_count_today: int, threshold: int = HIGH_MORTALITY_THRESHOLD) -> bool:
    return _check_count("dead_count_today", dead_count_today, optional=False) > threshold


# ---------------------------
# Vaccination + age
# ---------------------------
def vaccination_interval_days(animal_type: Optional[str]) -> int:
    if _is_poultry(animal_type):
        return POULTRY_VACCINATION_INTERVAL_DAYS
    return DEFAULT_VACCINATION_INTERVAL_DAYS


def next_vaccination_date(enclosure: Enclosure, animal_type: Optional[str], today: Optional[date] = None) -> date:
    interval = timedelta(days=vaccination_interval_days(animal_type))
    last = as_calendar_date(enclosure.last_vaccination_date)
    # never vaccinated: anchored to today, not to the shed's start date
    anchor = last if last is not None else (today or date.today())
    return anchor + interval


def vaccination_status(enclosure: Enclosure, animal_type: Optional[str], today: Optional[date] = None) -> VaccinationDue:
    today = today or date.today()
    nxt = next_vaccination_date(enclosure, animal_type, today)
    until = days_between(today, nxt)
    return VaccinationDue(
        shed_id=enclosure.id,
        shed_name=enclosure.name,
        next_date=nxt,
        days_until=until,
        status=STATUS_DUE_SOON if until <= DUE_SOON_DAYS else STATUS_SCHEDULED,
    )


def vaccination_schedule(
    enclosures: Iterable[Enclosure],
    animal_type: Optional[str],
    today: Optional[date] = None,
) -> List[VaccinationDue]:
    today = today or date.today()
    rows = [vaccination_status(e, animal_type, today) for e in enclosures]
    rows.sort(key=lambda r: (r.next_date, r.shed_name))
    return rows


def derive_age_days(enclosure: Enclosure, as_of: Optional[date] = None) -> Optional[int]:
    if enclosure.age_days is not None:
        return enclosure.age_days
    start = as_calendar_date(enclosure.start_date)
    if start is None:
        return None
    return max(0, days_between(start, as_of or date.today()))


# ---------------------------
# Chart series + dashboard summary
# ---------------------------
def mortality_series(
    observations: Iterable[DailyObservation],
    window_days: int,
    today: Optional[date] = None,
) -> List[Tuple[date, float]]:
    return [
        (day, mortality_rate(t.alive, t.dead))
        for day, t in bucket_by_date(observations, window_days, today)
    ]


def production_series(
    observations: Iterable[DailyObservation],
    window_days: int,
    today: Optional[date] = None,
) -> List[Tuple[date, int, int]]:
    return [
        (day, t.eggs, t.offspring)
        for day, t in bucket_by_date(observations, window_days, today)
    ]


def summarize(
    observations: Iterable[DailyObservation],
    enclosures: Iterable[Enclosure],
    animal_type: Optional[str],
    window_days: int,
    today: Optional[date] = None,
) -> FarmSummary:
    enclosures = list(enclosures)
    total_animals = sum(e.current_occupancy for e in enclosures)
    totals = total_of(bucket_by_date(observations, window_days, today))
    # the window includes both ends, so it spans window_days + 1 calendar days
    start, end = date_range_ending(window_days, today)
    days_covered = days_between(start, end) + 1

    return FarmSummary(
        total_sheds=len(enclosures),
        total_animals=total_animals,
        window_days=window_days,
        days_covered=days_covered,
        mortality_rate=mortality_rate(totals.alive, totals.dead),
        production_rate=production_rate(animal_type, totals, total_animals, days_covered),
        totals=totals,
    )
