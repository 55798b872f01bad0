from datetime import datetime, timedelta

from common.models import Otp, User

REGISTER_PAYLOAD = {
    "fullName": "Nguyen Van A",
    "email": "vana@example.com",
    "phoneNumber": "0912345678",
    "dateOfBirth": "1995-04-12",
    "gender": "male",
}


def issued_code(db_session, phone_number: str) -> str:
    db_session.expire_all()
    user = db_session.query(User).filter(User.phone_number == phone_number).one()
    return db_session.query(Otp).filter(Otp.user_id == user.id).one().code


def test_registration_activation_and_login(users_client, db_session):
    register = users_client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    assert register.status_code == 200
    assert register.json()["data"]["enabled"] is False

    code = issued_code(db_session, "0912345678")
    verify = users_client.post("/api/v1/auth/verify-otp", json={"phoneNumber": "0912345678", "otpCode": code})
    assert verify.status_code == 200
    assert verify.json()["data"]["enabled"] is True
    assert db_session.query(Otp).count() == 0

    set_password = users_client.post(
        "/api/v1/auth/set-password", json={"phoneNumber": "0912345678", "password": "Passw0rd!"}
    )
    assert set_password.status_code == 200

    login = users_client.post("/api/v1/auth/login", json={"email": "vana@example.com", "password": "Passw0rd!"})
    assert login.status_code == 200
    token = login.json()["data"]["accessToken"]
    assert login.json()["data"]["tokenType"] == "bearer"

    me = users_client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "vana@example.com"
    assert me.json()["data"]["fullName"] == "Nguyen Van A"


def test_duplicate_email_is_rejected(users_client):
    users_client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)

    response = users_client.post("/api/v1/auth/register", json={**REGISTER_PAYLOAD, "phoneNumber": "0987654321"})

    assert response.status_code == 400
    assert response.json()["message"] == "Email is already registered"


def test_wrong_and_expired_codes(users_client, db_session):
    users_client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)
    code = issued_code(db_session, "0912345678")
    wrong = "000000" if code != "000000" else "111111"

    bad = users_client.post("/api/v1/auth/verify-otp", json={"phoneNumber": "0912345678", "otpCode": wrong})
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid activation code"

    otp = db_session.query(Otp).one()
    otp.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db_session.commit()

    expired = users_client.post("/api/v1/auth/verify-otp", json={"phoneNumber": "0912345678", "otpCode": code})
    assert expired.status_code == 400
    assert expired.json()["message"] == "Activation code has expired"


def test_resend_replaces_code(users_client, db_session):
    users_client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)

    response = users_client.post("/api/v1/auth/resend-otp", json={"phoneNumber": "0912345678"})

    assert response.status_code == 200
    assert db_session.query(Otp).count() == 1


def test_login_before_activation_fails(users_client):
    users_client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)

    response = users_client.post("/api/v1/auth/login", json={"email": "vana@example.com", "password": "whatever1"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_set_password_requires_activation(users_client):
    users_client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)

    response = users_client.post(
        "/api/v1/auth/set-password", json={"phoneNumber": "0912345678", "password": "Passw0rd!"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Account must be activated before setting a password"


def test_set_password_refuses_to_overwrite_existing_password(users_client, make_user):
    holder = make_user(email="holder@example.com")

    response = users_client.post(
        "/api/v1/auth/set-password", json={"phoneNumber": holder.phone_number, "password": "Changed123"}
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Password has already been set for this account"

    login = users_client.post("/api/v1/auth/login", json={"email": "holder@example.com", "password": "Changed123"})
    assert login.status_code == 400


def test_malformed_codes_are_rejected_with_envelope(users_client):
    users_client.post("/api/v1/auth/register", json=REGISTER_PAYLOAD)

    for code in ("\u00e9\u00e9\u00e9\u00e9\u00e9", "abcdef"):
        response = users_client.post("/api/v1/auth/verify-otp", json={"phoneNumber": "0912345678", "otpCode": code})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["message"].startswith("otpCode")


def test_me_rejects_bad_token(users_client):
    response = users_client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"
