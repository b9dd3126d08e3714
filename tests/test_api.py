"""
API tests: shed CRUD, daily log upserts with the mortality alert, and the
analytics endpoints that feed the dashboard cards and charts.
"""

from datetime import date, timedelta

OWNER = "farm-1"


def create_shed(client, **kwargs):
    payload = {"name": "Layer House 1", "current_occupancy": 100}
    payload.update(kwargs)
    r = client.post(f"/farms/{OWNER}/sheds", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def post_log(client, shed_id, day, **counts):
    r = client.post(f"/farms/{OWNER}/logs", json={"shed_id": shed_id, "log_date": day.isoformat(), **counts})
    assert r.status_code == 200, r.text
    return r.json()


# =============================================================================
# BASICS
# =============================================================================

def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_profile_roundtrip(client):
    assert client.get(f"/farms/{OWNER}/profile").json()["animal_type"] is None

    r = client.put(f"/farms/{OWNER}/profile", json={"full_name": "Ann", "animal_type": "poultry"})
    assert r.status_code == 200
    assert client.get(f"/farms/{OWNER}/profile").json()["animal_type"] == "poultry"


# =============================================================================
# SHEDS
# =============================================================================

def test_shed_listing_derives_age_from_start_date(client):
    start = date.today() - timedelta(days=10)
    create_shed(client, start_date=start.isoformat())
    create_shed(client, name="Explicit", age_days=5, start_date=start.isoformat())

    sheds = {s["name"]: s for s in client.get(f"/farms/{OWNER}/sheds").json()}
    assert sheds["Layer House 1"]["age_days"] == 10
    assert sheds["Explicit"]["age_days"] == 5


def test_update_and_delete_shed(client):
    shed = create_shed(client)

    r = client.put(f"/farms/{OWNER}/sheds/{shed['id']}", json={"name": "Renamed", "current_occupancy": 80})
    assert r.status_code == 200
    assert r.json()["name"] == "Renamed"

    assert client.delete(f"/farms/{OWNER}/sheds/{shed['id']}").json()["deleted"] is True
    assert client.get(f"/farms/{OWNER}/sheds").json() == []


def test_other_owner_cannot_touch_shed(client):
    shed = create_shed(client)
    r = client.delete(f"/farms/intruder/sheds/{shed['id']}")
    assert r.status_code == 404


def test_negative_counts_are_rejected(client):
    r = client.post(f"/farms/{OWNER}/sheds", json={"name": "Bad", "current_occupancy": -3})
    assert r.status_code == 422


# =============================================================================
# DAILY LOGS
# =============================================================================

def test_log_for_unknown_shed_is_404(client):
    r = client.post(f"/farms/{OWNER}/logs", json={"shed_id": "missing", "alive_count": 1})
    assert r.status_code == 404


def test_high_mortality_alert_in_log_response(client):
    shed = create_shed(client)

    body = post_log(client, shed["id"], date.today(), alive_count=100, dead_count=20)
    assert body["alert"] == {
        "high_mortality": True,
        "shed_name": "Layer House 1",
        "dead_count": 20,
        "threshold": 15,
    }

    body = post_log(client, shed["id"], date.today(), alive_count=100, dead_count=15)
    assert body["alert"]["high_mortality"] is False


def test_reposting_a_log_overwrites_it(client):
    shed = create_shed(client)
    post_log(client, shed["id"], date.today(), dead_count=3)
    post_log(client, shed["id"], date.today(), dead_count=7)

    logs = client.get(f"/farms/{OWNER}/logs").json()
    assert len(logs) == 1
    assert logs[0]["dead_count"] == 7


def test_negative_log_count_is_rejected(client):
    shed = create_shed(client)
    r = client.post(f"/farms/{OWNER}/logs", json={"shed_id": shed["id"], "dead_count": -1})
    assert r.status_code == 422


# =============================================================================
# ANALYTICS
# =============================================================================

def test_summary_cards(client):
    client.put(f"/farms/{OWNER}/profile", json={"animal_type": "poultry"})
    shed = create_shed(client)
    post_log(client, shed["id"], date.today() - timedelta(days=2), alive_count=100, dead_count=20, eggs_count=1500)

    s = client.get(f"/farms/{OWNER}/summary").json()
    assert s["window_days"] == 30
    assert s["days_covered"] == 31
    assert s["total_sheds"] == 1
    assert s["total_animals"] == 100
    assert s["mortality_rate"] == 16.7
    # 1500 / (100 * 31)
    assert s["production_rate"] == 48.4


def test_summary_for_empty_farm_is_zero(client):
    s = client.get(f"/farms/{OWNER}/summary").json()
    assert s["mortality_rate"] == 0.0
    assert s["production_rate"] == 0.0


def test_mortality_chart_has_gaps(client):
    shed = create_shed(client)
    today = date.today()
    post_log(client, shed["id"], today - timedelta(days=4), alive_count=90, dead_count=10)
    post_log(client, shed["id"], today - timedelta(days=2), alive_count=95, dead_count=5)
    post_log(client, shed["id"], today - timedelta(days=40), alive_count=1, dead_count=1)

    points = client.get(f"/farms/{OWNER}/charts/mortality").json()
    assert points == [
        {"date": (today - timedelta(days=4)).isoformat(), "mortality_rate": 10.0},
        {"date": (today - timedelta(days=2)).isoformat(), "mortality_rate": 5.0},
    ]


def test_production_chart(client):
    a = create_shed(client, name="A")
    b = create_shed(client, name="B")
    day = date.today() - timedelta(days=1)
    post_log(client, a["id"], day, eggs_count=40, offspring_count=1)
    post_log(client, b["id"], day, eggs_count=60)

    points = client.get(f"/farms/{OWNER}/charts/production?days=7").json()
    assert points == [{"date": day.isoformat(), "eggs": 100, "offspring": 1}]


def test_vaccination_schedule(client):
    client.put(f"/farms/{OWNER}/profile", json={"animal_type": "poultry"})
    today = date.today()
    create_shed(client, name="Recent", vaccinated=True, last_vaccination_date=(today - timedelta(days=25)).isoformat())
    create_shed(client, name="Never")

    rows = client.get(f"/farms/{OWNER}/vaccinations").json()
    assert [r["shed_name"] for r in rows] == ["Recent", "Never"]
    assert rows[0]["days_until"] == 5
    assert rows[0]["status"] == "due-soon"
    assert rows[1]["days_until"] == 30
    assert rows[1]["status"] == "scheduled"


def test_window_days_is_bounded(client):
    assert client.get(f"/farms/{OWNER}/summary?days=0").status_code == 422
    assert client.get(f"/farms/{OWNER}/summary?days=366").status_code == 422
