from datetime import datetime


def test_post_availability_accepts_camel_case(client, make_table, make_reservation):
    t1 = make_table(1, capacity=4)
    t2 = make_table(2, capacity=4)
    make_reservation(t1, datetime(2031, 6, 1, 19, 0))

    response = client.post(
        "/api/availability",
        json={"dateTime": "2031-06-01T20:30:00", "partySize": 4, "duration": 120},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["available"] is True
    assert body["total_tables"] == 1
    assert [t["id"] for t in body["recommendations"]] == [t2.id]
    assert body["recommendations"][0]["price_multiplier"] == 0.9
    assert body["alternative_times"] == []
    assert body["preferred_location"] is None


def test_post_availability_accepts_snake_case(client, make_table):
    make_table(1, capacity=6, location="TERRACE_SEA_VIEW")

    response = client.post(
        "/api/availability",
        json={"date_time": "2031-06-01T19:00:00", "party_size": 2, "preferred_location": "TERRACE_SEA_VIEW"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["duration"] == 120
    assert list(body["tables_by_location"]) == ["TERRACE_SEA_VIEW"]
    assert body["recommendations"][0]["price_multiplier"] == 1.2


def test_post_availability_rejects_invalid_party_size(client):
    response = client.post("/api/availability", json={"dateTime": "2031-06-01T19:00:00", "partySize": 0})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request data"
    assert body["details"][0]["field"] == "partySize"


def test_post_availability_rejects_out_of_range_duration(client):
    response = client.post(
        "/api/availability", json={"dateTime": "2031-06-01T19:00:00", "partySize": 2, "duration": 30}
    )
    assert response.status_code == 400


def test_get_daily_availability(client, make_table, make_reservation):
    t1 = make_table(1, capacity=2)
    make_table(2, capacity=4)
    make_reservation(t1, datetime(2031, 6, 1, 18, 0))

    response = client.get("/api/availability", params={"date": "2031-06-01"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["date"] == "2031-06-01"
    assert body["total_tables"] == 2
    assert body["total_reservations"] == 1
    slot = next(s for s in body["hourly_availability"] if s["time"] == "19:00")
    assert slot == {"time": "19:00", "available_tables": 1, "total_capacity": 4, "occupancy_rate": 50}


def test_get_daily_availability_requires_date(client):
    response = client.get("/api/availability")
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "date"
