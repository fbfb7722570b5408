from dataclasses import replace

import pytest

from eco_rewards.core.settings import get_settings


@pytest.fixture
def members(client, auth_headers, group):
    payload = {"group": group.id, "defaultTransportMode": "bus", "defaultDistance": 4.2, "quantity": 2}
    response = client.post("/api/members", json=payload, headers=auth_headers)
    assert response.status_code == 201, response.text
    return [member["id"] for member in response.json()]


def upload(client, headers, content, filename="journeys.csv"):
    if isinstance(content, str):
        content = content.encode("utf-8")
    return client.post(
        "/api/journeys/import",
        files={"file": (filename, content, "text/csv")},
        headers=headers,
    )


def test_submit_single_journey(client, auth_headers, members):
    response = client.post(
        "/api/journeys",
        json={"memberId": members[0], "date": "2023-01-01", "mode": "train", "distance": 10},
        headers=auth_headers,
    )

    assert response.status_code == 201, response.text
    journey = response.json()
    assert journey["memberId"] == members[0]
    assert journey["travelDate"] == "2023-01-01"
    assert journey["sequenceNumber"] == 1
    assert journey["rewards"] == 1
    assert journey["carbonSaving"] == pytest.approx(1.3)
    assert journey["source"] == "api"

    member = client.get(f"/api/members/{members[0]}", headers=auth_headers).json()
    assert member["rewards"] == 1
    assert member["carbonSaving"] == pytest.approx(1.3)


def test_submit_journey_by_smartcard_uses_member_defaults(client, auth_headers, group):
    account = {"group": group.id, "defaultTransportMode": "cycle", "defaultDistance": 2.0, "smartcard": "SC-9"}
    member_id = client.post("/api/members/account", json=account, headers=auth_headers).json()["id"]

    response = client.post("/api/journeys", json={"memberId": "SC-9", "date": "2023-05-01"}, headers=auth_headers)

    assert response.status_code == 201, response.text
    assert response.json()["memberId"] == member_id
    assert response.json()["mode"] == "cycle"
    assert response.json()["distance"] == 2.0


def test_invalid_journey_lists_every_reason(client, auth_headers, members):
    response = client.post(
        "/api/journeys",
        json={"memberId": 9999, "date": "2023-13-40", "distance": "far"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"detail": {"errors": ["unknown member", "invalid date", "invalid distance"]}}
    assert client.get("/api/journeys", headers=auth_headers).json()["total"] == 0


def test_submit_requires_admin(client, members):
    response = client.post("/api/journeys", json={"memberId": members[0], "date": "2023-01-01"})

    assert response.status_code == 401


def test_csv_import_credits_members(client, auth_headers, members):
    first, second = members
    content = (
        "memberId,date,mode,distance\n"
        f"{first},2023-01-01,bus,4.2\n"
        f"{second},2023-01-01,cycle,3.0\n"
        f"{first},2023-01-02,bus,4.2\n"
        "9999,2023-01-02,bus,4.2\n"
        f"{second},01/02/2023,bus,1\n"
    )

    response = upload(client, auth_headers, content)

    assert response.status_code == 200, response.text
    report = response.json()
    assert report["imported"] == 3
    assert report["failed"] == 2
    assert report["errors"] == [
        {"row": 4, "line": 5, "reasons": ["unknown member"]},
        {"row": 5, "line": 6, "reasons": ["invalid date"]},
    ]
    assert len(report["ids"]) == 3
    assert report["cancelled"] is False

    first_member = client.get(f"/api/members/{first}", headers=auth_headers).json()
    assert first_member["rewards"] == 2
    assert first_member["carbonSaving"] == pytest.approx(2 * 0.294)

    journeys = client.get("/api/journeys", params={"memberId": first}, headers=auth_headers).json()
    assert journeys["total"] == 2
    assert [j["sequenceNumber"] for j in journeys["items"]] == [2, 1]
    assert {j["source"] for j in journeys["items"]} == {"csv"}


def test_csv_import_with_bad_header_stores_nothing(client, auth_headers, members):
    response = upload(client, auth_headers, f"memberId,mode\n{members[0]},bus\n")

    assert response.status_code == 400
    assert response.json()["detail"]["missing"] == ["date"]
    assert client.get("/api/journeys", headers=auth_headers).json()["total"] == 0
    assert client.get(f"/api/members/{members[0]}", headers=auth_headers).json()["rewards"] == 0


def test_csv_import_accepts_byte_order_mark(client, auth_headers, members):
    response = upload(client, auth_headers, f"\ufeffmemberId,date\n{members[0]},2023-01-01\n")

    assert response.status_code == 200, response.text
    assert response.json()["imported"] == 1


def test_journeys_export_as_csv(client, auth_headers, members):
    upload(client, auth_headers, f"memberId,date\n{members[0]},2023-01-01\n{members[1]},2023-01-02\n")

    response = client.get("/api/journeys", headers={**auth_headers, "Accept": "text/csv"})

    assert response.status_code == 200
    lines = response.text.strip().split("\n")
    assert lines[0] == "id,memberId,travelDate,mode,distance,sequenceNumber,rewards,carbonSaving,source,createdAt"
    assert len(lines) == 3
    assert lines[1].split(",")[1:4] == [str(members[1]), "2023-01-02", "bus"]


def test_undecodable_line_keeps_earlier_rows_and_names_the_line(client, auth_headers, members):
    first = members[0]
    good = "".join(f"{first},2023-01-0{day},bus,4.2\n" for day in (1, 2, 3))
    content = b"memberId,date,mode,distance\n" + good.encode() + b"\xff\xfe,2023-01-04,bus,4.2\n" + f"{first},2023-01-05\n".encode()

    response = upload(client, auth_headers, content)

    assert response.status_code == 400, response.text
    detail = response.json()["detail"]
    assert (detail["row"], detail["line"]) == (4, 5)
    assert detail["report"]["imported"] == 3
    assert len(detail["report"]["ids"]) == 3
    assert client.get("/api/journeys", headers=auth_headers).json()["total"] == 3
    assert client.get(f"/api/members/{first}", headers=auth_headers).json()["rewards"] == 3

    rest = upload(client, auth_headers, f"memberId,date\n{first},2023-01-05\n")
    assert rest.json()["imported"] == 1
    assert client.get("/api/journeys", headers=auth_headers).json()["total"] == 4


def test_undecodable_line_after_a_committed_batch(client, auth_headers, members):
    app = client.app
    settings = replace(get_settings(), import_batch_size=1)
    app.dependency_overrides[get_settings] = lambda: settings
    content = f"memberId,date\n{members[0]},2023-01-01\n{members[1]},2023-01-01\n".encode() + b"\xff,2023-01-02\n"

    response = upload(client, auth_headers, content)

    assert response.status_code == 400
    assert response.json()["detail"]["report"]["imported"] == 2
    assert client.get("/api/journeys", headers=auth_headers).json()["total"] == 2


def test_unclosed_quote_is_reported_instead_of_swallowing_rows(client, auth_headers, members):
    first = members[0]
    content = "memberId,date,mode,distance\n" + f'{first},"2023-01-01,bus,1\n' + "".join(
        f"{first},2023-01-0{day},bus,1\n" for day in (2, 3, 4, 5)
    )

    response = upload(client, auth_headers, content)

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert (detail["row"], detail["line"]) == (1, 2)
    assert detail["report"]["imported"] == 0
    assert client.get("/api/journeys", headers=auth_headers).json()["total"] == 0
