"""Integration tests for the seller/agent application endpoints."""

from protean import current_domain

from marketplace.user.user import User


def _apply(client, headers, application_type="seller", region="Rajshahi"):
    return client.post(
        "/applications",
        json={
            "application_type": application_type,
            "business_name": "Green Fields",
            "region": region,
            "district": "Bogra",
            "details": {"farm_size": "3 acres"},
        },
        headers=headers,
    )


def test_submit_and_list_mine(client, make_user, auth_header):
    applicant = make_user()
    headers = auth_header(applicant)

    response = _apply(client, headers)
    assert response.status_code == 201
    assert response.json()["application"]["status"] == "pending"

    mine = client.get("/applications/mine", headers=headers).json()["applications"]
    assert [a["details"] for a in mine] == [{"farm_size": "3 acres"}]


def test_duplicate_application(client, make_user, auth_header):
    headers = auth_header(make_user())
    _apply(client, headers)
    response = _apply(client, headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Your application is pending. Don't make duplicate applications."


def test_admin_review_promotes_applicant(client, make_user, auth_header):
    applicant = make_user()
    admin = make_user(role="admin")
    application_id = _apply(client, auth_header(applicant), application_type="agent").json()["application"]["id"]

    response = client.patch(
        f"/applications/{application_id}/review",
        json={"status": "approved", "note": "Interview passed"},
        headers=auth_header(admin),
    )

    assert response.status_code == 200
    assert response.json()["application"]["notes"][0]["text"] == "Interview passed"
    user = current_domain.repository_for(User).get(applicant.id)
    assert user.role == "agent"
    assert user.region == "Rajshahi"


def test_other_users_cannot_read_application(client, make_user, auth_header):
    application_id = _apply(client, auth_header(make_user())).json()["application"]["id"]

    response = client.get(f"/applications/{application_id}", headers=auth_header(make_user()))
    assert response.status_code == 403


def test_listing_all_applications_is_admin_only(client, make_user, auth_header):
    _apply(client, auth_header(make_user()))

    assert client.get("/applications", headers=auth_header(make_user())).status_code == 403
    response = client.get("/applications", params={"status": "pending"}, headers=auth_header(make_user(role="admin")))
    assert len(response.json()["applications"]) == 1


def test_admin_adds_note(client, make_user, auth_header):
    application_id = _apply(client, auth_header(make_user())).json()["application"]["id"]
    response = client.post(
        f"/applications/{application_id}/notes",
        json={"text": "Needs land documents"},
        headers=auth_header(make_user(role="admin")),
    )
    assert response.status_code == 200
    assert [n["text"] for n in response.json()["application"]["notes"]] == ["Needs land documents"]
