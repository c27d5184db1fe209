import pytest

from drugstock.models import StockTransaction
from drugstock.models.drug import DRUG_FORMS


def _create(client, headers, payload):
    r = client.post("/api/drugs", json=payload, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


# ---------- auth gate ----------


@pytest.mark.parametrize("method,path", [
    ("get", "/api/drugs"),
    ("get", "/api/drugs/stats"),
    ("get", "/api/drugs/forms"),
    ("get", "/api/drugs/transactions"),
    ("post", "/api/drugs"),
    ("put", "/api/drugs/1"),
    ("delete", "/api/drugs/1"),
    ("post", "/api/drugs/1/adjust-units"),
    ("post", "/api/drugs/1/dispense"),
    ("get", "/api/drugs/1/transactions"),
])
def test_drug_routes_require_a_token(client, method, path):
    r = client.request(method.upper(), path, json={})
    assert r.status_code == 401
    body = r.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "http_error"
    assert body["error"]["msg"] == "Missing token"


def test_garbage_token_is_rejected(client):
    r = client.get("/api/drugs", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["error"]["msg"] == "Invalid token"


def test_unauthorized_mutation_writes_nothing(client, db, drug_payload):
    r = client.post("/api/drugs", json=drug_payload())
    assert r.status_code == 401
    assert db.query(StockTransaction).count() == 0


# ---------- create / list ----------


def test_create_returns_camel_case_record(client, auth_headers, drug_payload):
    body = _create(client, auth_headers, drug_payload(unitsCount=20, unitsInStock=45))

    assert body["id"] > 0
    assert body["activeIngredients"] == ["Paracetamol"]
    assert body["unitsInStock"] == 45
    assert body["expirationDate"] == "2027-03-01"
    assert body["isEmergency"] is False
    assert body["packCount"] == 2
    assert body["leftoverUnits"] == 5
    assert "units_in_stock" not in body


def test_create_accepts_iso_datetime_expiration(client, auth_headers, drug_payload):
    body = _create(client, auth_headers, drug_payload(expirationDate="2026-05-01T00:00:00.000Z"))
    assert body["expirationDate"] == "2026-05-01"


@pytest.mark.parametrize("raw,expected", [
    ("2026-05-01T23:30:00-05:00", "2026-05-02"),
    ("2026-05-01T01:00:00+03:00", "2026-04-30"),
    ("2026-05-01T12:00:00", "2026-05-01"),
])
def test_create_resolves_offset_expiration_to_utc_day(client, auth_headers, drug_payload, raw, expected):
    body = _create(client, auth_headers, drug_payload(expirationDate=raw))
    assert body["expirationDate"] == expected


def test_record_carries_expired_flag(client, auth_headers, drug_payload):
    old = _create(client, auth_headers, drug_payload(name="Old", expirationDate="2000-01-31"))
    fresh = _create(client, auth_headers, drug_payload(name="Fresh", expirationDate="2999-01-31"))
    undated = _create(client, auth_headers, drug_payload(name="Undated", expirationDate=None))

    assert old["isExpired"] is True
    assert fresh["isExpired"] is False
    assert undated["isExpired"] is False


def test_create_logs_initial_stock(client, auth_headers, drug_payload, staff):
    body = _create(client, auth_headers, drug_payload(unitsInStock=30))

    r = client.get(f"/api/drugs/{body['id']}/transactions", headers=auth_headers)
    assert r.status_code == 200
    rows = r.json()
    assert len(rows) == 1
    assert rows[0]["delta"] == 30
    assert rows[0]["reason"] == "initial stock"
    assert rows[0]["drugId"] == body["id"]
    assert rows[0]["userId"] == staff.id


@pytest.mark.parametrize("override", [
    {"activeIngredients": []},
    {"activeIngredients": ["  ", ""]},
    {"name": "   "},
    {"unitsInStock": None},
    {"unitsCount": -1},
])
def test_create_rejects_invalid_payload(client, auth_headers, drug_payload, override):
    r = client.post("/api/drugs", json=drug_payload(**override), headers=auth_headers)
    assert r.status_code == 422
    body = r.json()
    assert body["error"]["code"] == "validation_error"
    assert isinstance(body["error"]["details"], list)


def test_list_search_sort_and_paginate(client, auth_headers, drug_payload):
    _create(client, auth_headers, drug_payload(name="Parol", unitsInStock=30))
    _create(client, auth_headers, drug_payload(
        name="Nurofen", group="NSAID", brand="Reckitt", activeIngredients=["Ibuprofen 200mg"], unitsInStock=5))
    _create(client, auth_headers, drug_payload(
        name="Brufen", group="NSAID", brand="Abbott", activeIngredients=["Ibuprofen"], unitsInStock=40))

    r = client.get("/api/drugs", params={"pageSize": 2}, headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert body["page"] == 1
    assert body["pageSize"] == 2
    assert [d["name"] for d in body["items"]] == ["Brufen", "Nurofen"]

    r = client.get("/api/drugs", params={"search": "ibu", "sortField": "unitsInStock", "sortOrder": "desc"},
                   headers=auth_headers)
    assert [d["name"] for d in r.json()["items"]] == ["Brufen", "Nurofen"]

    r = client.get("/api/drugs", params={"ingredient": "Ibuprofen"}, headers=auth_headers)
    body = r.json()
    assert body["total"] == 1
    assert body["items"][0]["name"] == "Brufen"


def test_list_page_past_end(client, auth_headers, drug_payload):
    _create(client, auth_headers, drug_payload())
    r = client.get("/api/drugs", params={"page": 5}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["items"] == []
    assert r.json()["total"] == 1


@pytest.mark.parametrize("params", [
    {"page": 0},
    {"pageSize": 101},
    {"sortField": "dosage"},
    {"sortOrder": "sideways"},
])
def test_list_rejects_bad_query(client, auth_headers, params):
    r = client.get("/api/drugs", params=params, headers=auth_headers)
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "validation_error"


# ---------- update / delete ----------


def test_update_logs_difference(client, auth_headers, drug_payload):
    drug = _create(client, auth_headers, drug_payload(unitsInStock=30))

    r = client.put(f"/api/drugs/{drug['id']}", json=drug_payload(id=drug["id"], unitsInStock=10),
                   headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["unitsInStock"] == 10

    rows = client.get(f"/api/drugs/{drug['id']}/transactions", headers=auth_headers).json()
    assert [(t["delta"], t["reason"]) for t in rows] == [(-20, "update stock"), (30, "initial stock")]


def test_update_with_mismatched_body_id(client, auth_headers, drug_payload):
    drug = _create(client, auth_headers, drug_payload())
    r = client.put(f"/api/drugs/{drug['id']}", json=drug_payload(id=drug["id"] + 1), headers=auth_headers)
    assert r.status_code == 422
    error = r.json()["error"]
    assert error["code"] == "validation_error"
    assert error["details"][0]["loc"] == ["body", "id"]


def test_update_missing_drug_is_404(client, auth_headers, drug_payload):
    r = client.put("/api/drugs/999", json=drug_payload(), headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error"]["msg"] == "Drug 999 not found"


def test_delete_returns_record_and_keeps_history(client, auth_headers, drug_payload):
    drug = _create(client, auth_headers, drug_payload())

    r = client.delete(f"/api/drugs/{drug['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Parol"

    r = client.delete(f"/api/drugs/{drug['id']}", headers=auth_headers)
    assert r.status_code == 404

    rows = client.get("/api/drugs/transactions", params={"drugId": drug["id"]}, headers=auth_headers).json()
    assert [t["delta"] for t in rows] == [30]


# ---------- stock movements ----------


def test_adjust_units_can_go_negative(client, auth_headers, drug_payload):
    drug = _create(client, auth_headers, drug_payload(unitsInStock=3))

    r = client.post(f"/api/drugs/{drug['id']}/adjust-units", json={"delta": -5, "reason": "sale"},
                    headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["unitsInStock"] == -2
    assert body["packCount"] == 0
    assert body["leftoverUnits"] == -2


def test_adjust_units_missing_drug_is_404_but_logged(client, auth_headers, db):
    r = client.post("/api/drugs/4242/adjust-units", json={"delta": 3}, headers=auth_headers)
    assert r.status_code == 404
    assert db.query(StockTransaction).filter(StockTransaction.drug_id == 4242).count() == 1


def test_dispense(client, auth_headers, drug_payload):
    drug = _create(client, auth_headers, drug_payload(unitsCount=10, unitsInStock=50))

    r = client.post(f"/api/drugs/{drug['id']}/dispense", json={"packCount": 2, "leftoverUnits": 3},
                    headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["unitsInStock"] == 27

    rows = client.get(f"/api/drugs/{drug['id']}/transactions", headers=auth_headers).json()
    assert (rows[0]["delta"], rows[0]["reason"]) == (-23, "dispense")


def test_dispense_nothing_is_400(client, auth_headers, drug_payload):
    drug = _create(client, auth_headers, drug_payload())
    r = client.post(f"/api/drugs/{drug['id']}/dispense", json={"packCount": 0, "leftoverUnits": 0},
                    headers=auth_headers)
    assert r.status_code == 400


def test_dispense_rejects_negative_counts(client, auth_headers, drug_payload):
    drug = _create(client, auth_headers, drug_payload())
    r = client.post(f"/api/drugs/{drug['id']}/dispense", json={"packCount": -1}, headers=auth_headers)
    assert r.status_code == 422


# ---------- reads ----------


def test_stats(client, auth_headers, drug_payload):
    _create(client, auth_headers, drug_payload(name="a1", group="A", unitsInStock=10))
    _create(client, auth_headers, drug_payload(name="a2", group="A", unitsInStock=5))
    _create(client, auth_headers, drug_payload(name="b1", group="B", unitsInStock=7))

    r = client.get("/api/drugs/stats", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {
        "totalUnits": 22,
        "totalDrugs": 3,
        "groupSummary": [
            {"group": "A", "drugCount": 2, "unitCount": 15},
            {"group": "B", "drugCount": 1, "unitCount": 7},
        ],
    }


def test_forms(client, auth_headers):
    r = client.get("/api/drugs/forms", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == list(DRUG_FORMS)


def test_transactions_limit_bounds(client, auth_headers):
    assert client.get("/api/drugs/transactions", params={"limit": 0}, headers=auth_headers).status_code == 422
    assert client.get("/api/drugs/transactions", params={"limit": 501}, headers=auth_headers).status_code == 422
    assert client.get("/api/drugs/transactions", params={"limit": 500}, headers=auth_headers).json() == []


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["message"] == "DrugStock API running"
