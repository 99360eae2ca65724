from fastapi.testclient import TestClient
from sqlalchemy import select, text
from sqlalchemy.orm import Session

from factories import create_product, create_user
from shopsmart.core.security import verify_password
from shopsmart.models.cart import CartItem
from shopsmart.models.user import User, UserSession

REGISTER_URL = "/api/auth/register"
LOGIN_URL = "/api/auth/login"


def _registration(**overrides) -> dict:
    payload = {
        "full_name": "Register User",
        "email": "register@example.com",
        "password": "StrongPass1",
        "confirm_password": "StrongPass1",
    }
    payload.update(overrides)
    return payload


def _login(client: TestClient, email: str, password: str = "StrongPass1"):
    return client.post(LOGIN_URL, json={"email": email, "password": password})


def test_register_success(client: TestClient, db_session: Session):
    response = client.post(
        REGISTER_URL,
        json=_registration(phone="5551234567", date_of_birth="1990-04-01", gender="female"),
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["message"] == "User registered successfully"

    user = payload["data"]["user"]
    assert user["email"] == "register@example.com"
    assert user["full_name"] == "Register User"
    assert user["date_of_birth"] == "1990-04-01"
    assert user["is_verified"] is False
    assert "password" not in response.text
    assert "verification_token" not in response.text

    stored = db_session.scalar(select(User).where(User.email == "register@example.com"))
    assert stored.password_hash != "StrongPass1"
    assert verify_password("StrongPass1", stored.password_hash)
    assert len(stored.email_verification_token) == 64


def test_register_rejects_duplicate_email(client: TestClient):
    assert client.post(REGISTER_URL, json=_registration()).status_code == 201

    response = client.post(REGISTER_URL, json=_registration(full_name="Someone Else"))

    assert response.status_code == 400
    assert response.json() == {"error": "Email already registered"}


def test_register_validation_messages(client: TestClient):
    cases = [
        (_registration(full_name=""), "Field 'full_name' is required"),
        ({"email": "a@example.com", "password": "StrongPass1", "confirm_password": "StrongPass1"},
         "Field 'full_name' is required"),
        (_registration(email="not-an-email"), "Invalid email format"),
        (_registration(password="Sh0rt", confirm_password="Sh0rt"),
         "Password must be at least 8 characters long"),
        (_registration(password="alllowercase1", confirm_password="alllowercase1"),
         "Password must contain at least one uppercase letter, one lowercase letter, and one number"),
        (_registration(confirm_password="StrongPass2"), "Passwords do not match"),
    ]

    for payload, message in cases:
        response = client.post(REGISTER_URL, json=payload)
        assert response.status_code == 400, payload
        assert response.json() == {"error": message}


def test_register_rejects_invalid_json(client: TestClient):
    response = client.post(
        REGISTER_URL,
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON input"}


def test_login_success_records_audit_row(client: TestClient, db_session: Session):
    user = create_user(db_session, email="login@example.com")

    response = _login(client, "login@example.com")

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    data = payload["data"]
    assert data["user"]["email"] == "login@example.com"
    assert data["user"]["last_login"] is not None
    assert "password_hash" not in data["user"]
    assert data["session_id"]

    audit = db_session.scalars(select(UserSession).where(UserSession.user_id == user.user_id)).all()
    assert len(audit) == 1
    assert audit[0].session_id == data["session_id"]
    assert audit[0].ip_address == "testclient"
    assert audit[0].user_agent == "testclient"

    db_session.refresh(user)
    assert user.last_login is not None


def test_each_login_issues_a_new_session(client: TestClient, db_session: Session):
    create_user(db_session, email="rotate@example.com")

    first = _login(client, "rotate@example.com").json()["data"]["session_id"]
    second = _login(client, "rotate@example.com").json()["data"]["session_id"]

    assert first != second


def test_login_failures_are_indistinguishable(client: TestClient, db_session: Session):
    create_user(db_session, email="known@example.com")

    wrong_password = _login(client, "known@example.com", "WrongPass1")
    unknown_email = _login(client, "nobody@example.com", "WrongPass1")

    assert wrong_password.status_code == unknown_email.status_code == 400
    assert wrong_password.content == unknown_email.content
    assert wrong_password.json() == {"error": "Invalid email or password"}


def test_login_deactivated_account(client: TestClient, db_session: Session):
    create_user(db_session, email="inactive@example.com", is_active=False)

    response = _login(client, "inactive@example.com")
    assert response.status_code == 400
    assert response.json() == {"error": "Account is deactivated. Please contact support."}

    # A wrong password must not reveal that the account exists.
    response = _login(client, "inactive@example.com", "WrongPass1")
    assert response.json() == {"error": "Invalid email or password"}


def test_login_requires_email_and_password(client: TestClient):
    response = client.post(LOGIN_URL, json={"email": "someone@example.com"})

    assert response.status_code == 400
    assert response.json() == {"error": "Email and password are required"}


def test_login_rejects_get(client: TestClient):
    response = client.get(LOGIN_URL)

    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}


def test_logout_returns_to_guest_cart(client: TestClient, db_session: Session):
    create_user(db_session, email="logout@example.com")
    assert _login(client, "logout@example.com").status_code == 200

    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json()["message"] == "Logout successful"
    cart = client.get("/api/cart").json()["data"]
    assert cart["cart_items"] == []


def test_register_rejects_password_over_bcrypt_limit(client: TestClient, db_session: Session):
    password = "StrongPass1" + "x" * 69

    response = client.post(REGISTER_URL, json=_registration(password=password, confirm_password=password))

    assert response.status_code == 400
    assert response.json() == {"error": "Password is too long"}
    assert db_session.scalars(select(User)).all() == []


def test_login_that_cannot_be_recorded_leaves_client_anonymous(client: TestClient, db_session: Session):
    user = create_user(db_session, email="audit@example.com")
    product = create_product(db_session, "Notebook", 5.0)
    db_session.execute(text("DROP TABLE user_sessions"))
    db_session.commit()

    response = _login(client, "audit@example.com")

    assert response.status_code == 400
    assert response.json() == {"error": "Login failed. Please try again."}

    added = client.post("/api/cart", json={"product_id": product.product_id, "quantity": 1})
    assert added.status_code == 200

    line = db_session.scalars(select(CartItem)).one()
    assert line.user_id is None
    assert line.session_id is not None

    db_session.refresh(user)
    assert user.last_login is None
