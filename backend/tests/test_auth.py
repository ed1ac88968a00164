import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import select

from xabzedin.config import settings
from xabzedin.models.profile import Profile
from xabzedin.models.referral import ReferralCode
from xabzedin.models.user import AuthToken, TokenPurpose, User
from xabzedin.services.auth import issue_token


def _sign_up_payload(code: str, **overrides) -> dict:
    payload = {
        "email": "new@xabzedin.org",
        "password": "secret123",
        "full_name": "Nart Sosruko",
        "referral_code": code,
    }
    payload.update(overrides)
    return payload


async def _get_user(db, email: str) -> User:
    return (await db.execute(select(User).where(User.email == email))).scalar_one()


class TestSignUp:
    @pytest.mark.asyncio
    async def test_creates_account_profile_and_consumes_code(self, client, db_session, referral_code):
        resp = await client.post("/api/auth/sign-up", json=_sign_up_payload(referral_code.lower()))
        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "new@xabzedin.org"
        user_id = uuid.UUID(body["user_id"])

        profile = (await db_session.execute(
            select(Profile.full_name, Profile.role, Profile.referral_code_rights).where(Profile.id == user_id)
        )).one()
        assert profile.full_name == "Nart Sosruko"
        assert profile.role is None
        assert profile.referral_code_rights == settings.default_referral_code_rights

        code = (await db_session.execute(
            select(ReferralCode.is_used, ReferralCode.used_by_id).where(ReferralCode.code == referral_code)
        )).one()
        assert code.is_used is True
        assert code.used_by_id == user_id

    @pytest.mark.asyncio
    async def test_email_is_lower_cased(self, client, referral_code):
        resp = await client.post("/api/auth/sign-up", json=_sign_up_payload(referral_code, email="Mixed@XabzedIn.org"))
        assert resp.status_code == 201
        assert resp.json()["email"] == "mixed@xabzedin.org"

    @pytest.mark.asyncio
    async def test_invalid_code_creates_nothing(self, client, db_session):
        resp = await client.post("/api/auth/sign-up", json=_sign_up_payload("WRONG123"))
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_referral_code"

        users = (await db_session.execute(select(User.id))).all()
        assert users == []

    @pytest.mark.asyncio
    async def test_used_code_rejected(self, client, referral_code):
        resp = await client.post("/api/auth/sign-up", json=_sign_up_payload(referral_code))
        assert resp.status_code == 201

        resp = await client.post("/api/auth/sign-up", json=_sign_up_payload(referral_code, email="other@xabzedin.org"))
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_referral_code"

    @pytest.mark.asyncio
    async def test_short_password_keeps_code_unused(self, client, db_session, referral_code):
        resp = await client.post("/api/auth/sign-up", json=_sign_up_payload(referral_code, password="123"))
        assert resp.status_code == 400
        assert resp.json()["code"] == "password_too_short"
        assert "6" in resp.json()["detail"]

        is_used = (await db_session.execute(
            select(ReferralCode.is_used).where(ReferralCode.code == referral_code)
        )).scalar_one()
        assert is_used is False

    @pytest.mark.asyncio
    async def test_duplicate_email_keeps_code_unused(self, client, db_session, make_account, referral_code):
        await make_account("taken@xabzedin.org")

        resp = await client.post("/api/auth/sign-up", json=_sign_up_payload(referral_code, email="taken@xabzedin.org"))
        assert resp.status_code == 409
        assert resp.json()["code"] == "email_taken"

        is_used = (await db_session.execute(
            select(ReferralCode.is_used).where(ReferralCode.code == referral_code)
        )).scalar_one()
        assert is_used is False

    @pytest.mark.asyncio
    async def test_sends_confirmation_email(self, client, referral_code):
        with patch("xabzedin.tasks.email_tasks.send_email") as mock_send:
            resp = await client.post("/api/auth/sign-up", json=_sign_up_payload(referral_code))
        assert resp.status_code == 201
        mock_send.assert_called_once()
        to, subject, html = mock_send.call_args.args
        assert to == "new@xabzedin.org"
        assert "/auth/confirm?token=" in html

    @pytest.mark.asyncio
    async def test_missing_fields_are_validation_errors(self, client):
        resp = await client.post("/api/auth/sign-up", json={"email": "x@xabzedin.org", "password": "secret123"})
        assert resp.status_code == 422


class TestSignIn:
    @pytest.mark.asyncio
    async def test_session_round_trip(self, client, make_account):
        account = await make_account("me@xabzedin.org", role="seeker", full_name="Me")

        resp = await client.get("/api/auth/session", headers=account.headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["email"] == "me@xabzedin.org"
        assert body["user"]["last_sign_in_at"] is not None
        assert body["profile"]["role"] == "seeker"

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, client, make_account):
        await make_account("me@xabzedin.org")

        wrong = await client.post("/api/auth/sign-in", json={"email": "me@xabzedin.org", "password": "nope-nope"})
        unknown = await client.post("/api/auth/sign-in", json={"email": "ghost@xabzedin.org", "password": "nope-nope"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["code"] == "invalid_credentials"

    @pytest.mark.asyncio
    async def test_unconfirmed_email_blocked_when_required(self, client, make_account):
        await make_account("me@xabzedin.org")

        with patch.object(settings, "require_email_confirmation", True):
            resp = await client.post("/api/auth/sign-in", json={"email": "me@xabzedin.org", "password": "secret123"})
        assert resp.status_code == 403
        assert resp.json()["code"] == "email_not_confirmed"

    @pytest.mark.asyncio
    async def test_missing_or_bad_token(self, client):
        resp = await client.get("/api/auth/session")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

        resp = await client.get("/api/auth/session", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_sign_out_revokes_token(self, client, make_account):
        account = await make_account("me@xabzedin.org")

        resp = await client.post("/api/auth/sign-out", headers=account.headers)
        assert resp.status_code == 204

        resp = await client.get("/api/auth/session", headers=account.headers)
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_session_rejected(self, client, db_session, make_account):
        account = await make_account("me@xabzedin.org")
        user = await _get_user(db_session, "me@xabzedin.org")
        raw, token = await issue_token(db_session, user, TokenPurpose.SESSION)
        token.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        await db_session.commit()

        resp = await client.get("/api/auth/session", headers={"Authorization": f"Bearer {raw}"})
        assert resp.status_code == 401
        resp = await client.get("/api/auth/session", headers=account.headers)
        assert resp.status_code == 200


class TestEmailConfirmation:
    @pytest.mark.asyncio
    async def test_confirm_once(self, client, db_session, make_account):
        await make_account("me@xabzedin.org")
        user = await _get_user(db_session, "me@xabzedin.org")
        raw, _ = await issue_token(db_session, user, TokenPurpose.EMAIL_CONFIRMATION)
        await db_session.commit()

        resp = await client.post("/api/auth/confirm-email", json={"token": raw})
        assert resp.status_code == 200
        confirmed_at = (await db_session.execute(
            select(User.email_confirmed_at).where(User.id == user.id)
        )).scalar_one()
        assert confirmed_at is not None

        resp = await client.post("/api/auth/confirm-email", json={"token": raw})
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_token"

    @pytest.mark.asyncio
    async def test_session_token_cannot_confirm(self, client, make_account):
        account = await make_account("me@xabzedin.org")
        raw = account.headers["Authorization"].removeprefix("Bearer ")
        resp = await client.post("/api/auth/confirm-email", json={"token": raw})
        assert resp.status_code == 400


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_request_is_silent_for_unknown_email(self, client):
        with patch("xabzedin.tasks.email_tasks.send_email") as mock_send:
            resp = await client.post("/api/auth/password-reset", json={"email": "ghost@xabzedin.org"})
        assert resp.status_code == 202
        mock_send.assert_not_called()

    @pytest.mark.asyncio
    async def test_request_emails_reset_link(self, client, make_account):
        await make_account("me@xabzedin.org")
        with patch("xabzedin.tasks.email_tasks.send_email") as mock_send:
            resp = await client.post("/api/auth/password-reset", json={"email": "ME@xabzedin.org"})
        assert resp.status_code == 202
        to, subject, html = mock_send.call_args.args
        assert to == "me@xabzedin.org"
        assert f"{settings.site_url}/auth/reset-password?token=" in html

    @pytest.mark.asyncio
    async def test_confirm_changes_password_and_revokes_sessions(self, client, db_session, make_account):
        account = await make_account("me@xabzedin.org")
        user = await _get_user(db_session, "me@xabzedin.org")
        raw, _ = await issue_token(db_session, user, TokenPurpose.PASSWORD_RESET)
        await db_session.commit()

        resp = await client.post(
            "/api/auth/password-reset/confirm",
            json={"token": raw, "password": "brandnew1", "password_confirm": "brandnew1"},
        )
        assert resp.status_code == 200

        assert (await client.get("/api/auth/session", headers=account.headers)).status_code == 401
        old = await client.post("/api/auth/sign-in", json={"email": "me@xabzedin.org", "password": "secret123"})
        assert old.status_code == 401
        new = await client.post("/api/auth/sign-in", json={"email": "me@xabzedin.org", "password": "brandnew1"})
        assert new.status_code == 200

        resp = await client.post(
            "/api/auth/password-reset/confirm",
            json={"token": raw, "password": "again123", "password_confirm": "again123"},
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_token"

    @pytest.mark.asyncio
    async def test_confirm_requires_matching_passwords(self, client, db_session, make_account):
        await make_account("me@xabzedin.org")
        user = await _get_user(db_session, "me@xabzedin.org")
        raw, _ = await issue_token(db_session, user, TokenPurpose.PASSWORD_RESET)
        await db_session.commit()

        resp = await client.post(
            "/api/auth/password-reset/confirm",
            json={"token": raw, "password": "brandnew1", "password_confirm": "brandnew2"},
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "passwords_do_not_match"

        # The token survives a rejected attempt
        unused = (await db_session.execute(
            select(AuthToken.used_at).where(AuthToken.purpose == TokenPurpose.PASSWORD_RESET)
        )).scalar_one()
        assert unused is None
