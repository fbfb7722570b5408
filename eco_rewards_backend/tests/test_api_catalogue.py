def test_scheme_organisation_group_lifecycle(client, auth_headers):
    scheme = client.post("/api/schemes", json={"name": "Solent", "vacClientId": 155}, headers=auth_headers)
    assert scheme.status_code == 201, scheme.text
    scheme_id = scheme.json()["id"]
    assert scheme.json()["vacClientId"] == 155

    organisation = client.post(
        "/api/organisations", json={"name": "Portsmouth City Council", "schemeId": scheme_id}, headers=auth_headers
    )
    assert organisation.status_code == 201, organisation.text
    organisation_id = organisation.json()["id"]

    group = client.post("/api/groups", json={"name": "Staff", "organisationId": organisation_id}, headers=auth_headers)
    assert group.status_code == 201, group.text

    assert client.get(f"/api/schemes/{scheme_id}", headers=auth_headers).json()["name"] == "Solent"
    assert client.get(f"/api/organisations/{organisation_id}", headers=auth_headers).json()["schemeId"] == scheme_id
    assert client.get(f"/api/groups/{group.json()['id']}", headers=auth_headers).json()["organisationId"] == organisation_id


def test_lists_are_paginated_and_filtered(client, auth_headers):
    first = client.post("/api/schemes", json={"name": "Alpha"}, headers=auth_headers).json()["id"]
    second = client.post("/api/schemes", json={"name": "Beta"}, headers=auth_headers).json()["id"]
    client.post("/api/organisations", json={"name": "A1", "schemeId": first}, headers=auth_headers)
    client.post("/api/organisations", json={"name": "B1", "schemeId": second}, headers=auth_headers)

    page = client.get("/api/schemes", params={"limit": 1, "offset": 1}, headers=auth_headers).json()
    assert page["total"] == 2
    assert [item["name"] for item in page["items"]] == ["Beta"]

    organisations = client.get("/api/organisations", params={"schemeId": second}, headers=auth_headers).json()
    assert organisations["total"] == 1
    assert organisations["items"][0]["name"] == "B1"


def test_unknown_parent_is_404(client, auth_headers):
    response = client.post("/api/organisations", json={"name": "Orphan", "schemeId": 999}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"detail": "Scheme not found"}

    response = client.post("/api/groups", json={"name": "Orphan", "organisationId": 999}, headers=auth_headers)
    assert response.status_code == 404


def test_missing_records_are_404(client, auth_headers):
    assert client.get("/api/schemes/999", headers=auth_headers).status_code == 404
    assert client.get("/api/organisations/999", headers=auth_headers).status_code == 404
    assert client.get("/api/groups/999", headers=auth_headers).status_code == 404


def test_blank_names_are_rejected(client, auth_headers):
    assert client.post("/api/schemes", json={"name": "   "}, headers=auth_headers).status_code == 422
