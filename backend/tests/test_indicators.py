import uuid

import pytest

from portfolio.models.indicator import IndicatorStatus
from portfolio.services.indicators import derive_status


@pytest.mark.parametrize(
    "flags,expected",
    [
        ([], IndicatorStatus.pending),
        ([False, False], IndicatorStatus.pending),
        ([True, False, False], IndicatorStatus.in_progress),
        ([True, True], IndicatorStatus.completed),
    ],
)
def test_derive_status(flags, expected):
    assert derive_status(flags) == expected


def test_create_indicator_with_criteria(client, teacher, create_indicator):
    _, headers = teacher
    body = create_indicator(headers, criteria=["Plan", "  ", "Deliver"])
    assert body["status"] == "pending"
    assert body["witnessCount"] == 0
    assert [c["title"] for c in body["criteria"]] == ["Plan", "Deliver"]
    assert [c["order"] for c in body["criteria"]] == [1, 2]
    assert all(c["isCompleted"] is False for c in body["criteria"])

    second = create_indicator(headers, title="Assessment")
    assert second["order"] == body["order"] + 1

    listed = client.get("/api/indicators", headers=headers).json()
    assert [i["id"] for i in listed] == [body["id"], second["id"]]
    assert len(listed[0]["criteria"]) == 2


def test_create_indicator_rejects_blank_title(client, teacher):
    _, headers = teacher
    r = client.post("/api/indicators", json={"title": "   ", "criteria": ["x"]}, headers=headers)
    assert r.status_code == 400
    body = r.json()
    assert body["ok"] is False
    assert body["error_code"] == "validation_error"
    assert "title" in body["message"]


def test_status_follows_criteria(client, teacher, create_indicator):
    _, headers = teacher
    ind = create_indicator(headers, criteria=["A", "B"])
    base = f"/api/indicators/{ind['id']}"
    a, b = (c["id"] for c in ind["criteria"])

    r = client.patch(f"{base}/criteria/{a}", json={"isCompleted": True}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["isCompleted"] is True
    assert client.get(base, headers=headers).json()["status"] == "in_progress"

    client.patch(f"{base}/criteria/{b}", json={"isCompleted": True}, headers=headers)
    assert client.get(base, headers=headers).json()["status"] == "completed"

    # A new criterion starts incomplete, so the indicator is no longer complete.
    r = client.post(f"{base}/criteria", json={"title": "C"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["order"] == 3
    assert client.get(base, headers=headers).json()["status"] == "in_progress"

    client.delete(f"{base}/criteria/{r.json()['id']}", headers=headers)
    assert client.get(base, headers=headers).json()["status"] == "completed"

    client.patch(f"{base}/criteria/{a}", json={"isCompleted": False}, headers=headers)
    client.patch(f"{base}/criteria/{b}", json={"isCompleted": False}, headers=headers)
    assert client.get(base, headers=headers).json()["status"] == "pending"


def test_removing_last_criteria_leaves_indicator_pending(client, teacher, create_indicator):
    _, headers = teacher
    ind = create_indicator(headers, criteria=["Only"])
    base = f"/api/indicators/{ind['id']}"
    cid = ind["criteria"][0]["id"]
    client.patch(f"{base}/criteria/{cid}", json={"isCompleted": True}, headers=headers)
    assert client.get(base, headers=headers).json()["status"] == "completed"

    assert client.delete(f"{base}/criteria/{cid}", headers=headers).status_code == 200
    body = client.get(base, headers=headers).json()
    assert body["criteria"] == []
    assert body["status"] == "pending"


def test_update_indicator_ignores_status(client, teacher, create_indicator):
    _, headers = teacher
    ind = create_indicator(headers)
    r = client.patch(
        f"/api/indicators/{ind['id']}",
        json={"title": "Renamed", "description": "notes", "status": "completed", "witnessCount": 9},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["title"] == "Renamed"
    assert body["description"] == "notes"
    assert body["status"] == "pending"
    assert body["witnessCount"] == 0


def test_ownership_rules(client, teacher, other_teacher, principal, create_indicator):
    _, owner = teacher
    _, stranger = other_teacher
    _, boss = principal
    ind = create_indicator(owner)
    url = f"/api/indicators/{ind['id']}"

    assert client.get(url, headers=stranger).status_code == 403
    assert client.patch(url, json={"title": "x"}, headers=stranger).status_code == 403
    assert client.delete(url, headers=stranger).status_code == 403
    assert client.post(f"{url}/criteria", json={"title": "x"}, headers=stranger).status_code == 403

    # Principals review but never edit someone else's work.
    assert client.get(url, headers=boss).status_code == 200
    assert client.get(f"{url}/witnesses", headers=boss).status_code == 200
    assert client.patch(url, json={"title": "x"}, headers=boss).status_code == 403

    assert client.get(f"/api/indicators/{uuid.uuid4()}", headers=owner).status_code == 404
    bad = client.get("/api/indicators/not-a-uuid", headers=owner)
    assert bad.status_code == 400
    assert bad.json()["message"] == "invalid indicator_id"


def test_unknown_criteria_is_404(client, teacher, other_teacher, create_indicator):
    _, headers = teacher
    _, other = other_teacher
    mine = create_indicator(headers)
    theirs = create_indicator(other)
    foreign_cid = theirs["criteria"][0]["id"]

    r = client.patch(
        f"/api/indicators/{mine['id']}/criteria/{foreign_cid}",
        json={"isCompleted": True},
        headers=headers,
    )
    assert r.status_code == 404
    assert r.json()["message"] == "criteria not found"


def test_delete_indicator_cascades(client, teacher, create_indicator):
    _, headers = teacher
    ind = create_indicator(headers)
    url = f"/api/indicators/{ind['id']}"
    client.post(f"{url}/witnesses", json={"title": "Lesson plan"}, headers=headers)
    client.post("/api/signatures", json={"indicatorId": ind["id"]}, headers=headers)

    assert client.delete(url, headers=headers).status_code == 200
    assert client.get(url, headers=headers).status_code == 404
    assert all(s["indicatorId"] != ind["id"] for s in client.get("/api/signatures", headers=headers).json())


def test_re_evaluate_resets_progress(client, teacher, create_indicator):
    _, headers = teacher
    ind = create_indicator(headers, criteria=["A", "B"])
    url = f"/api/indicators/{ind['id']}"
    a = ind["criteria"][0]["id"]
    client.patch(f"{url}/criteria/{a}", json={"isCompleted": True}, headers=headers)
    client.post(f"{url}/witnesses", json={"title": "Photo", "criteriaId": a, "fileType": "image"}, headers=headers)
    assert client.get(url, headers=headers).json()["witnessCount"] == 1

    r = client.post("/api/indicators/re-evaluate", json={"indicatorIds": [ind["id"], ind["id"]]}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True}

    body = client.get(url, headers=headers).json()
    assert body["status"] == "pending"
    assert body["witnessCount"] == 0
    assert body["witnesses"] == []
    assert [c["isCompleted"] for c in body["criteria"]] == [False, False]


def test_re_evaluate_requires_ownership(client, teacher, other_teacher, create_indicator):
    _, owner = teacher
    _, stranger = other_teacher
    ind = create_indicator(owner)

    r = client.post("/api/indicators/re-evaluate", json={"indicatorIds": [ind["id"]]}, headers=stranger)
    assert r.status_code == 403

    r = client.post("/api/indicators/re-evaluate", json={"indicatorIds": []}, headers=owner)
    assert r.status_code == 400


def test_dashboard_stats_are_per_teacher(client, make_user, create_indicator):
    _, headers = make_user()
    done = create_indicator(headers, criteria=["A"])
    create_indicator(headers, criteria=["B", "C"])
    client.patch(
        f"/api/indicators/{done['id']}/criteria/{done['criteria'][0]['id']}",
        json={"isCompleted": True},
        headers=headers,
    )
    client.post(f"/api/indicators/{done['id']}/witnesses", json={"title": "Report"}, headers=headers)

    r = client.get("/api/stats", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["totalIndicators"] == 2
    assert body["completedIndicators"] == 1
    assert body["pendingIndicators"] == 1
    assert body["inProgressIndicators"] == 0
    assert body["totalWitnesses"] == 1


def test_re_evaluate_keeps_signature_history(client, teacher, principal, create_indicator):
    _, headers = teacher
    _, boss = principal
    ind = create_indicator(headers)
    sig = client.post("/api/signatures", json={"indicatorId": ind["id"]}, headers=headers).json()
    client.post(f"/api/principal/signatures/{sig['id']}/approve", headers=boss)

    r = client.post("/api/indicators/re-evaluate", json={"indicatorIds": [ind["id"]]}, headers=headers)
    assert r.status_code == 200

    mine = client.get("/api/signatures", headers=headers).json()
    assert [(s["id"], s["status"]) for s in mine] == [(sig["id"], "approved")]
    assert client.get(f"/api/indicators/{ind['id']}", headers=headers).json()["status"] == "pending"


def test_long_criteria_titles_are_rejected(client, teacher, create_indicator):
    _, headers = teacher
    long_title = "x" * 300

    r = client.post("/api/indicators", json={"title": "Too long", "criteria": ["ok", long_title]}, headers=headers)
    assert r.status_code == 400
    assert r.json()["error_code"] == "validation_error"
    assert client.get("/api/indicators", headers=headers).json() == []

    ind = create_indicator(headers)
    r = client.post(f"/api/indicators/{ind['id']}/criteria", json={"title": long_title}, headers=headers)
    assert r.status_code == 400

    fits = client.post("/api/indicators", json={"title": "Fits", "criteria": ["y" * 255]}, headers=headers)
    assert fits.status_code == 200
    assert len(fits.json()["criteria"][0]["title"]) == 255
