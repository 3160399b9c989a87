from .conftest import bearer


def add_location(api, headers, **body):
    response = api.post("/client/locations", json=body, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["location"]


def test_only_one_default_location(api, client_headers):
    home = add_location(api, client_headers, label="Home", address="1 Lake View", isDefault=True)
    office = add_location(api, client_headers, name="Office", address="9 Park St", isPrimary=True)

    listed = api.get("/client/locations", headers=client_headers).json()["locations"]
    locations = {loc["id"]: loc for loc in listed}
    assert locations[home["id"]]["is_default"] is False
    assert locations[office["id"]]["is_default"] is True
    assert locations[office["id"]]["label"] == "Office"
    assert locations[office["id"]]["address"]["full_address"] == "9 Park St"

    profile = api.get("/client/profile", headers=client_headers).json()
    assert profile["client"]["default_location_id"] == office["id"]

    api.put(f"/client/locations/{home['id']}", json={"isDefault": True}, headers=client_headers)
    defaults = [
        loc
        for loc in api.get("/client/locations", headers=client_headers).json()["locations"]
        if loc["is_default"]
    ]
    assert [loc["id"] for loc in defaults] == [home["id"]]


def test_delete_default_location_clears_pointer(api, client_headers):
    home = add_location(api, client_headers, label="Home", address="1 Lake View", isDefault=True)

    response = api.delete(f"/client/locations/{home['id']}", headers=client_headers)
    assert response.status_code == 200

    profile = api.get("/client/profile", headers=client_headers).json()
    assert profile["locations"] == []
    assert profile["client"]["default_location_id"] is None


def test_locations_are_scoped_to_owner(api, client_headers, auth):
    home = add_location(api, client_headers, label="Home", address="1 Lake View")
    stranger = bearer(auth.issue("other@example.com", role="client"))

    response = api.put(f"/client/locations/{home['id']}", json={"label": "Mine"}, headers=stranger)
    assert response.status_code == 404
    assert response.json()["code"] == "LOCATION_NOT_FOUND"


def test_family_member_lifecycle(api, client_headers):
    created = api.post(
        "/client/family-members",
        json={"name": "Kamala", "relationship": "mother", "age": 82, "phone": "98765 43210"},
        headers=client_headers,
    )
    assert created.status_code == 200
    member = created.json()["familyMember"]
    assert member["relation"] == "mother"
    assert member["metadata"]["age"] == 82

    updated = api.put(
        f"/client/family-members/{member['id']}",
        json={"notes": "Diabetic, needs insulin at 8pm"},
        headers=client_headers,
    )
    assert updated.json()["familyMember"]["name"] == "Kamala"
    assert updated.json()["familyMember"]["metadata"]["notes"] == "Diabetic, needs insulin at 8pm"

    listed = api.get("/client/family-members", headers=client_headers).json()["familyMembers"]
    assert len(listed) == 1

    assert api.delete(
        f"/client/family-members/{member['id']}", headers=client_headers
    ).status_code == 200
    missing = api.delete(f"/client/family-members/{member['id']}", headers=client_headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "FAMILY_MEMBER_NOT_FOUND"


def test_family_member_requires_name(api, client_headers):
    response = api.post("/client/family-members", json={"name": "  "}, headers=client_headers)
    assert response.status_code == 400


def test_favorites(api, client_headers, approved_provider):
    _, provider_id = approved_provider

    added = api.post(
        "/client/favorites/add", json={"providerId": provider_id}, headers=client_headers
    )
    assert added.status_code == 200

    duplicate = api.post(
        "/client/favorites/add", json={"providerId": provider_id}, headers=client_headers
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "ALREADY_FAVORITE"

    favorites = api.get("/client/favorites", headers=client_headers).json()
    assert favorites["count"] == 1
    assert favorites["favorites"][0]["provider_id"] == provider_id

    removed = api.post(
        "/client/favorites/remove", json={"providerId": provider_id}, headers=client_headers
    )
    assert removed.json()["removed"] is True
    assert api.get("/client/favorites", headers=client_headers).json()["count"] == 0


def test_favorite_unknown_provider(api, client_headers):
    response = api.post(
        "/client/favorites/add",
        json={"providerId": "00000000-0000-0000-0000-000000000000"},
        headers=client_headers,
    )
    assert response.status_code == 404
    assert response.json()["code"] == "PROVIDER_NOT_FOUND"
