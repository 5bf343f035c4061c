def test_update_own_profile(client, make_user):
    headers, session = make_user("ana@example.com", "Ana Souza")

    response = client.put(
        f"/perfiles/{session['id']}",
        json={"full_name": "Ana Souza Lima"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["full_name"] == "Ana Souza Lima"
    assert response.json()["role"] == "user"
    assert client.get("/auth/sesion", headers=headers).json()["full_name"] == "Ana Souza Lima"


def test_cannot_update_someone_elses_profile(client, make_user):
    headers, _ = make_user("ana@example.com", "Ana Souza")
    _, otra = make_user("bruno@example.com", "Bruno Lima")

    response = client.put(
        f"/perfiles/{otra['id']}", json={"full_name": "Hackeado"}, headers=headers
    )

    assert response.status_code == 403
    perfil = client.get(f"/perfiles/{otra['id']}", headers=headers).json()
    assert perfil["full_name"] == "Bruno Lima"


def test_list_profiles(client, make_user):
    headers, _ = make_user("ana@example.com", "Ana Souza")
    make_user("bruno@example.com", "Bruno Lima")

    body = client.get("/perfiles/", headers=headers).json()
    assert [p["full_name"] for p in body["data"]] == ["Ana Souza", "Bruno Lima"]

    body = client.get("/perfiles/?search=bru", headers=headers).json()
    assert body["total"] == 1


def test_profile_validation(client, make_user):
    headers, session = make_user()

    response = client.put(
        f"/perfiles/{session['id']}", json={"full_name": "Al"}, headers=headers
    )
    assert response.status_code == 422

    response = client.put(
        f"/perfiles/{session['id']}", json={"full_name": "     "}, headers=headers
    )
    assert response.status_code == 422
    assert client.get("/auth/sesion", headers=headers).json()["full_name"] == "Ana Souza"


def test_profile_name_is_stored_trimmed(client, make_user):
    headers, session = make_user()

    response = client.put(
        f"/perfiles/{session['id']}", json={"full_name": "  Ana Lima  "}, headers=headers
    )

    assert response.status_code == 200
    assert response.json()["full_name"] == "Ana Lima"
