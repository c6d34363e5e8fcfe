from db import database


def test_register_then_me_returns_profile_without_password(make_client):
    client = make_client("Ada", major="Mathematics", year="Junior")

    response = client.get("/api/auth/me")

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["firstName"] == "Ada"
    assert user["major"] == "Mathematics"
    assert "password" not in user
    assert user["email"] == client.user["email"]


def test_login_sets_session_and_logout_clears_it(make_client):
    registered = make_client("Grace")
    email = registered.user["email"]
    client = make_client()

    assert client.get("/api/auth/me").status_code == 401
    login = client.post("/api/auth/login", json={"email": email.upper(), "password": "secret123"})
    assert login.status_code == 200
    assert "password" not in login.json()["user"]
    assert client.get("/api/auth/me").status_code == 200

    assert client.post("/api/auth/logout").json() == {"message": "Logged out"}
    client.cookies.clear()
    assert client.get("/api/auth/me").status_code == 401
    with database.get_conn() as conn:
        count = conn.execute("SELECT COUNT(*) FROM sessions WHERE user_id = ?", (registered.user["id"],)).fetchone()[0]
    assert count == 1


def test_login_with_wrong_password_is_unauthorized(make_client):
    registered = make_client("Alan")
    client = make_client()

    response = client.post("/api/auth/login", json={"email": registered.user["email"], "password": "wrong-pass"})

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}


def test_duplicate_email_is_rejected(make_client):
    first = make_client("Linus")
    client = make_client()

    response = client.post(
        "/api/auth/register",
        json={"email": first.user["email"], "password": "secret123", "firstName": "L", "lastName": "T"},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "User already exists"


def test_register_validation_errors_are_400_with_message(make_client):
    client = make_client()

    response = client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "secret123", "firstName": "A", "lastName": "B"},
    )

    assert response.status_code == 400
    assert "email" in response.json()["message"]


def test_profile_update_and_user_search(make_client):
    ada = make_client("Ada")
    make_client("Adele")
    make_client("Bob")

    updated = ada.put("/api/users/profile", json={"bio": "Loves proofs", "graduationYear": "2027"})
    assert updated.status_code == 200
    assert updated.json()["bio"] == "Loves proofs"
    assert updated.json()["graduationYear"] == "2027"
    assert updated.json()["firstName"] == "Ada"

    results = ada.get("/api/users/search", params={"q": "ad"}).json()
    assert [user["firstName"] for user in results] == ["Adele"]
    assert all("password" not in user for user in results)
    assert ada.get("/api/users/search", params={"q": ""}).json() == []


def test_profile_picture_upload_sets_url(make_client, app_env):
    client = make_client("Ada")

    response = client.post(
        "/api/users/profile-picture",
        files={"profilePicture": ("me.png", b"\x89PNG fake", "image/png")},
    )

    assert response.status_code == 200
    url = response.json()["profilePicture"]
    assert url.startswith("/uploads/")
    assert (app_env["upload_dir"] / url.rsplit("/", 1)[1]).exists()
    assert client.get(url).content == b"\x89PNG fake"


def test_login_with_short_password_is_just_invalid_credentials(make_client):
    registered = make_client("Ada")
    client = make_client()

    response = client.post("/api/auth/login", json={"email": registered.user["email"], "password": "abc"})

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}


def test_register_rejects_malformed_emails_and_lowercases_valid_ones(make_client):
    client = make_client()
    base = {"password": "secret123", "firstName": "Ada", "lastName": "Lovelace"}

    for email in ("ada@", "@campus.edu", "ada campus.edu", "ada@@campus.edu"):
        response = client.post("/api/auth/register", json={**base, "email": email})
        assert response.status_code == 400, email
        assert response.json()["message"].startswith("email")

    created = client.post("/api/auth/register", json={**base, "email": "Ada.Lovelace@Campus.edu"})
    assert created.status_code == 200
    assert created.json()["user"]["email"] == "ada.lovelace@campus.edu"


def test_user_search_treats_wildcards_literally(make_client):
    searcher = make_client("Ada")
    make_client("Bob")
    make_client("Cy")
    underscored = make_client("Dee", lastName="O_Neil")

    assert searcher.get("/api/users/search", params={"q": "%"}).json() == []
    assert searcher.get("/api/users/search", params={"q": "_"}).json()[0]["id"] == underscored.user["id"]
    assert len(searcher.get("/api/users/search", params={"q": "_"}).json()) == 1
