import datetime as dt
import time
from concurrent.futures import ThreadPoolExecutor

from fastapi.testclient import TestClient

from galaxyair.main import app
from galaxyair.services.flow_store import flow_store
from galaxyair.services.payment import MockPaymentGateway

from helpers import ensure_user, seed_flight, unique_code

client = TestClient(app)

PASSENGER = {
    "name": "Jane Doe",
    "phone": "+1 555-123-4567",
    "email": "jane@example.com",
    "address": "123 Main St, Springfield, IL 62704",
}
CARD = {"method": "card", "card_number": "4242424242424242", "expiry": "12/30", "cvv": "123", "cardholder": "Jane Doe"}


def login(email: str = "traveller@example.com"):
    ensure_user(email)
    r = client.post("/auth/login-json", json={"email": email, "password": "testpass"})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def search_body(origin, destination, adults=1, trip_type="one-way", **extra):
    body = {
        "origin": origin,
        "destination": destination,
        "depart_date": "2024-01-15",
        "trip_type": trip_type,
        "passengers": {"adults": adults, "children": 0},
        "class_type": "economy",
    }
    body.update(extra)
    return body


def book(headers, origin, destination, adults=1):
    r = client.post("/flow/search", json=search_body(origin, destination, adults), headers=headers)
    assert r.status_code == 200, r.text
    offer_id = r.json()["outbound_flights"][0]["offer"]["id"]
    assert client.post("/flow/select/outbound", json={"offer_id": offer_id}, headers=headers).status_code == 200
    assert client.post("/flow/passengers/start", headers=headers).status_code == 200
    r = client.post("/flow/passengers", json={"passengers": [PASSENGER] * adults}, headers=headers)
    assert r.status_code == 200, r.text
    r = client.post("/flow/pay", json=CARD, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_flow_requires_auth():
    assert client.get("/flow/").status_code == 401


def test_end_to_end_one_way_booking():
    origin, dest = unique_code(), unique_code()
    flight_id = seed_flight(origin, dest, economy=(299, 120))
    headers = login()

    r = client.post("/flow/search", json=search_body(origin, dest, adults=2), headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["step"] == "selecting_outbound"
    assert [v["offer"]["id"] for v in data["outbound_flights"]] == [flight_id]
    assert data["outbound_flights"][0]["unit_price"] == 299

    r = client.post("/flow/select/outbound", json={"offer_id": flight_id}, headers=headers)
    assert r.json()["step"] == "reviewing"
    assert r.json()["total_price"] == 598

    r = client.post("/flow/passengers/start", headers=headers)
    assert r.json()["step"] == "entering_passengers"
    assert len(r.json()["passengers"]) == 2

    r = client.post("/flow/passengers", json={"passengers": [PASSENGER, PASSENGER]}, headers=headers)
    assert r.json()["step"] == "paying"
    assert r.json()["quoted_total"] == 598

    r = client.post("/flow/pay", json=CARD, headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["step"] == "confirmed"
    booking = data["booking"]
    assert booking["id"].startswith("BK")
    assert booking["total_price"] == 598
    assert booking["status"] == "confirmed"
    assert booking["payment_status"] == "completed"
    assert len(booking["passengers"]) == 2

    r = client.get(f"/flights/{flight_id}")
    assert r.json()["flight"]["economy"]["available"] == 118

    r = client.get(f"/bookings/{booking['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["booking"]["outbound"]["id"] == flight_id


def test_selection_without_enough_seats_is_rejected():
    origin, dest = unique_code(), unique_code()
    flight_id = seed_flight(origin, dest, economy=(199, 2))
    headers = login()
    r = client.post("/flow/search", json=search_body(origin, dest, adults=2), headers=headers)
    assert r.json()["outbound_flights"][0]["selectable"] is True
    # the cached offer drops below the party size before it is picked
    uid = ensure_user("traveller@example.com")
    flow = flow_store.get(uid)
    offer = flow.outbound_offers[0]
    short = offer.model_copy(update={"economy": offer.economy.model_copy(update={"available": 1})})
    flow_store.save(uid, flow.model_copy(update={"outbound_offers": (short,)}))

    r = client.post("/flow/select/outbound", json={"offer_id": flight_id}, headers=headers)
    assert r.status_code == 409
    assert r.json()["type"] == "AvailabilityConflict"
    assert client.get("/flow/", headers=headers).json()["step"] == "selecting_outbound"


def test_unknown_offer_is_404():
    origin, dest = unique_code(), unique_code()
    seed_flight(origin, dest)
    headers = login()
    client.post("/flow/search", json=search_body(origin, dest), headers=headers)
    r = client.post("/flow/select/outbound", json={"offer_id": "NOPE"}, headers=headers)
    assert r.status_code == 404
    assert r.json()["type"] == "UnknownOffer"


def test_out_of_order_action_is_409():
    headers = login()
    r = client.post("/flow/pay", json=CARD, headers=headers)
    assert r.status_code == 409
    assert r.json()["type"] == "InvalidTransition"
    assert client.get("/flow/", headers=headers).json()["step"] == "searching"


def test_round_trip_booking_prices_both_legs():
    a, b = unique_code(), unique_code()
    out_id = seed_flight(a, b, economy=(299, 50))
    ret_id = seed_flight(b, a, date=dt.date(2024, 1, 20), economy=(249, 50))
    headers = login()
    body = search_body(a, b, trip_type="round-trip", return_date="2024-01-20")
    data = client.post("/flow/search", json=body, headers=headers).json()
    assert [v["offer"]["id"] for v in data["return_flights"]] == [ret_id]

    data = client.post("/flow/select/outbound", json={"offer_id": out_id}, headers=headers).json()
    assert data["step"] == "selecting_return"
    data = client.post("/flow/select/return", json={"offer_id": ret_id}, headers=headers).json()
    assert data["step"] == "reviewing"
    assert data["total_price"] == 548

    client.post("/flow/passengers/start", headers=headers)
    client.post("/flow/passengers", json={"passengers": [PASSENGER]}, headers=headers)
    data = client.post("/flow/pay", json={"method": "digital"}, headers=headers).json()
    assert data["step"] == "confirmed"
    assert data["booking"]["return_flight"]["id"] == ret_id
    assert client.get(f"/flights/{ret_id}").json()["flight"]["economy"]["available"] == 49


def test_round_trip_without_return_date_is_rejected():
    headers = login()
    r = client.post("/flow/search", json=search_body("JFK", "LAX", trip_type="round-trip"), headers=headers)
    assert r.status_code == 422


def test_invalid_passengers_report_each_field():
    origin, dest = unique_code(), unique_code()
    flight_id = seed_flight(origin, dest)
    headers = login()
    client.post("/flow/search", json=search_body(origin, dest), headers=headers)
    client.post("/flow/select/outbound", json={"offer_id": flight_id}, headers=headers)
    client.post("/flow/passengers/start", headers=headers)

    bad = {**PASSENGER, "email": "not-an-email", "phone": "123"}
    r = client.post("/flow/passengers", json={"passengers": [bad]}, headers=headers)
    assert r.status_code == 422
    errors = r.json()["errors"]
    assert set(errors) == {"passengers.0.email", "passengers.0.phone"}

    # the typed values are kept for correction
    data = client.get("/flow/", headers=headers).json()
    assert data["step"] == "entering_passengers"
    assert data["passengers"][0]["email"] == "not-an-email"

    r = client.patch("/flow/passengers/0", json={"email": "jane@example.com", "phone": "+1 555-123-4567"}, headers=headers)
    assert r.status_code == 200
    assert client.post("/flow/passengers", headers=headers).json()["step"] == "paying"


def test_declined_card_keeps_flow_in_payment():
    origin, dest = unique_code(), unique_code()
    seed_flight(origin, dest)
    headers = login()
    r = client.post("/flow/search", json=search_body(origin, dest), headers=headers)
    offer_id = r.json()["outbound_flights"][0]["offer"]["id"]
    client.post("/flow/select/outbound", json={"offer_id": offer_id}, headers=headers)
    client.post("/flow/passengers/start", headers=headers)
    client.post("/flow/passengers", json={"passengers": [PASSENGER]}, headers=headers)
    r = client.post("/flow/pay", json={**CARD, "card_number": "4000000000000002"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["step"] == "paying"
    assert r.json()["error"]


def test_back_walks_the_flow_backwards():
    origin, dest = unique_code(), unique_code()
    flight_id = seed_flight(origin, dest)
    headers = login()
    client.post("/flow/search", json=search_body(origin, dest), headers=headers)
    client.post("/flow/select/outbound", json={"offer_id": flight_id}, headers=headers)
    client.post("/flow/passengers/start", headers=headers)
    client.post("/flow/passengers", json={"passengers": [PASSENGER]}, headers=headers)

    assert client.post("/flow/back", headers=headers).json()["step"] == "entering_passengers"
    data = client.post("/flow/back", headers=headers).json()
    assert data["step"] == "reviewing"
    assert data["passengers"] == []
    assert client.post("/flow/back", headers=headers).json()["step"] == "selecting_outbound"


def test_logout_discards_flow():
    origin, dest = unique_code(), unique_code()
    seed_flight(origin, dest)
    headers = login()
    client.post("/flow/search", json=search_body(origin, dest), headers=headers)
    r = client.post("/auth/logout", headers=headers)
    assert r.json() == {"status": "logged_out", "step": "searching"}
    data = client.get("/flow/", headers=headers).json()
    assert data["step"] == "searching"
    assert data["criteria"] is None


def test_restart_after_confirmation():
    origin, dest = unique_code(), unique_code()
    seed_flight(origin, dest)
    headers = login()
    assert book(headers, origin, dest)["step"] == "confirmed"
    # a confirmed flow does not accept a new search until restarted
    assert client.post("/flow/search", json=search_body(origin, dest), headers=headers).status_code == 409
    assert client.post("/flow/restart", headers=headers).json()["step"] == "searching"


def test_my_bookings_and_cancel_restores_seats():
    origin, dest = unique_code(), unique_code()
    flight_id = seed_flight(origin, dest, economy=(120, 10))
    headers = login("canceller@example.com")
    booking = book(headers, origin, dest, adults=3)["booking"]
    assert client.get(f"/flights/{flight_id}").json()["flight"]["economy"]["available"] == 7

    r = client.get("/bookings/my", params={"search": origin}, headers=headers)
    assert [b["id"] for b in r.json()["bookings"]] == [booking["id"]]

    other = login("someone-else@example.com")
    assert client.post(f"/bookings/{booking['id']}/cancel", headers=other).status_code == 403
    assert client.get(f"/bookings/{booking['id']}", headers=other).status_code == 403

    r = client.post(f"/bookings/{booking['id']}/cancel", headers=headers)
    assert r.json() == {"status": "cancelled"}
    assert client.get(f"/flights/{flight_id}").json()["flight"]["economy"]["available"] == 10
    # second cancel is a no-op
    client.post(f"/bookings/{booking['id']}/cancel", headers=headers)
    assert client.get(f"/flights/{flight_id}").json()["flight"]["economy"]["available"] == 10

    r = client.get("/bookings/my", params={"status_filter": "cancelled"}, headers=headers)
    assert booking["id"] in [b["id"] for b in r.json()["bookings"]]


def test_stateless_search_marks_selectable_offers():
    origin, dest = unique_code(), unique_code()
    seed_flight(origin, dest, economy=(99, 3))
    r = client.post("/flights/search", json=search_body(origin, dest, adults=2))
    assert r.status_code == 200
    [view] = r.json()["flights"]
    assert view["selectable"] is True
    assert view["unit_price"] == 99
    r = client.post("/flights/search", json=search_body(origin, dest, adults=4))
    assert r.json()["flights"] == []


def _slow_charges(monkeypatch, delay):
    charge = MockPaymentGateway.charge

    def slow_charge(self, amount, details):
        time.sleep(delay)
        return charge(self, amount, details)

    monkeypatch.setattr(MockPaymentGateway, "charge", slow_charge)


def _ready_to_pay(headers, origin, dest):
    r = client.post("/flow/search", json=search_body(origin, dest), headers=headers)
    offer_id = r.json()["outbound_flights"][0]["offer"]["id"]
    client.post("/flow/select/outbound", json={"offer_id": offer_id}, headers=headers)
    client.post("/flow/passengers/start", headers=headers)
    assert client.post("/flow/passengers", json={"passengers": [PASSENGER]}, headers=headers).json()["step"] == "paying"


def test_double_submitted_payment_books_once(monkeypatch):
    origin, dest = unique_code(), unique_code()
    flight_id = seed_flight(origin, dest, economy=(150, 20))
    headers = login("double-click@example.com")
    _ready_to_pay(headers, origin, dest)
    _slow_charges(monkeypatch, 0.3)

    with ThreadPoolExecutor(max_workers=2) as pool:
        responses = list(pool.map(
            lambda _: client.post("/flow/pay", json={"method": "bank"}, headers=headers), range(2)
        ))

    assert sorted(r.status_code for r in responses) == [200, 409]
    r = client.get("/bookings/my", params={"search": origin}, headers=headers)
    assert r.json()["total"] == 1
    assert client.get(f"/flights/{flight_id}").json()["flight"]["economy"]["available"] == 19


def test_logout_during_payment_is_not_overwritten(monkeypatch):
    origin, dest = unique_code(), unique_code()
    seed_flight(origin, dest)
    headers = login("early-logout@example.com")
    _ready_to_pay(headers, origin, dest)
    _slow_charges(monkeypatch, 0.4)

    with ThreadPoolExecutor(max_workers=1) as pool:
        paying = pool.submit(client.post, "/flow/pay", json={"method": "bank"}, headers=headers)
        time.sleep(0.1)
        assert client.post("/auth/logout", headers=headers).status_code == 200
        assert paying.result().json()["step"] == "confirmed"

    assert client.get("/flow/", headers=headers).json()["step"] == "searching"
