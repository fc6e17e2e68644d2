def test_witness_count_tracks_evidence(client, teacher, create_indicator):
    _, headers = teacher
    ind = create_indicator(headers)
    url = f"/api/indicators/{ind['id']}"
    cid = ind["criteria"][0]["id"]

    r = client.post(
        f"{url}/witnesses",
        json={
            "title": "Lesson plan",
            "criteriaId": cid,
            "fileType": "pdf",
            "fileUrl": "https://files.example.com/plan.pdf",
            "fileName": "plan.pdf",
        },
        headers=headers,
    )
    assert r.status_code == 200, r.text
    first = r.json()
    assert first["criteriaId"] == cid
    assert first["fileType"] == "pdf"

    client.post(f"{url}/witnesses", json={"title": "Class photo", "fileType": "image"}, headers=headers)
    assert client.get(url, headers=headers).json()["witnessCount"] == 2

    listed = client.get(f"{url}/witnesses", headers=headers).json()
    assert [w["title"] for w in listed] == ["Lesson plan", "Class photo"]

    assert client.delete(f"/api/witnesses/{first['id']}", headers=headers).status_code == 200
    assert client.get(url, headers=headers).json()["witnessCount"] == 1


def test_witness_criteria_must_belong_to_indicator(client, teacher, create_indicator):
    _, headers = teacher
    a = create_indicator(headers)
    b = create_indicator(headers, title="Other")

    r = client.post(
        f"/api/indicators/{a['id']}/witnesses",
        json={"title": "Misfiled", "criteriaId": b["criteria"][0]["id"]},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()["message"] == "criteria does not belong to indicator"
    assert client.get(f"/api/indicators/{a['id']}", headers=headers).json()["witnessCount"] == 0


def test_witness_validation(client, teacher, create_indicator):
    _, headers = teacher
    ind = create_indicator(headers)
    url = f"/api/indicators/{ind['id']}/witnesses"

    assert client.post(url, json={"title": ""}, headers=headers).status_code == 400
    assert client.post(url, json={"title": "x", "fileType": "spreadsheet"}, headers=headers).status_code == 400


def test_deleting_criteria_removes_its_witnesses(client, teacher, create_indicator):
    _, headers = teacher
    ind = create_indicator(headers, criteria=["A", "B"])
    url = f"/api/indicators/{ind['id']}"
    a, b = (c["id"] for c in ind["criteria"])
    client.post(f"{url}/witnesses", json={"title": "for A", "criteriaId": a}, headers=headers)
    client.post(f"{url}/witnesses", json={"title": "for B", "criteriaId": b}, headers=headers)
    client.post(f"{url}/witnesses", json={"title": "general"}, headers=headers)

    client.delete(f"{url}/criteria/{a}", headers=headers)
    body = client.get(url, headers=headers).json()
    assert body["witnessCount"] == 2
    assert sorted(w["title"] for w in body["witnesses"]) == ["for B", "general"]


def test_only_owner_manages_witnesses(client, teacher, other_teacher, principal, create_indicator):
    _, owner = teacher
    _, stranger = other_teacher
    _, boss = principal
    ind = create_indicator(owner)
    url = f"/api/indicators/{ind['id']}/witnesses"
    w = client.post(url, json={"title": "Evidence"}, headers=owner).json()

    assert client.post(url, json={"title": "Sneaky"}, headers=stranger).status_code == 403
    assert client.get(url, headers=stranger).status_code == 403
    assert client.delete(f"/api/witnesses/{w['id']}", headers=stranger).status_code == 403
    assert client.delete(f"/api/witnesses/{w['id']}", headers=boss).status_code == 403

    assert client.get(f"/api/indicators/{ind['id']}", headers=owner).json()["witnessCount"] == 1


def test_delete_missing_witness(client, teacher):
    _, headers = teacher
    r = client.delete("/api/witnesses/00000000-0000-0000-0000-000000000000", headers=headers)
    assert r.status_code == 404
