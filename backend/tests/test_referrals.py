import string
import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import select

from xabzedin.errors import ConflictError, ForbiddenError, ValidationFailed
from xabzedin.models.profile import Profile
from xabzedin.models.referral import ReferralCode
from xabzedin.models.user import User
from xabzedin.security import hash_password
from xabzedin.services.referrals import (
    CODE_LENGTH,
    consume_referral_code,
    generate_code_string,
    generate_referral_code,
    get_referral_summary,
    is_code_valid,
    issue_referral_codes,
    normalize_code,
)


async def _create_profile(db, email: str, rights: int = 3) -> Profile:
    user = User(email=email, password_hash=hash_password("secret1", iterations=1000))
    db.add(user)
    await db.flush()
    profile = Profile(id=user.id, email=email, full_name=email.split("@")[0], skills=[], referral_code_rights=rights)
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


class TestCodeFormat:
    def test_normalize(self):
        assert normalize_code("  ab12cd34 ") == "AB12CD34"

    def test_generated_codes(self):
        code = generate_code_string()
        assert len(code) == CODE_LENGTH
        assert set(code) <= set(string.ascii_uppercase + string.digits)


class TestConsume:
    @pytest.mark.asyncio
    async def test_consume_returns_owner(self, db_session):
        owner = await _create_profile(db_session, "owner@xabzedin.org")
        [referral] = await issue_referral_codes(db_session, 1, owner_id=owner.id)
        await db_session.commit()

        new_user = uuid.uuid4()
        assert await consume_referral_code(db_session, referral.code.lower(), new_user) == owner.id
        await db_session.commit()

        row = (await db_session.execute(
            select(ReferralCode.is_used, ReferralCode.used_by_id, ReferralCode.used_at)
            .where(ReferralCode.code == referral.code)
        )).one()
        assert row.is_used is True
        assert row.used_by_id == new_user
        assert row.used_at is not None

    @pytest.mark.asyncio
    async def test_bootstrap_code_has_no_owner(self, db_session, referral_code):
        assert await consume_referral_code(db_session, referral_code, uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_second_use_rejected(self, db_session, referral_code):
        await consume_referral_code(db_session, referral_code, uuid.uuid4())
        await db_session.commit()

        with pytest.raises(ValidationFailed) as exc_info:
            await consume_referral_code(db_session, referral_code, uuid.uuid4())
        assert exc_info.value.code == "invalid_referral_code"

    @pytest.mark.asyncio
    async def test_unknown_code_rejected(self, db_session):
        with pytest.raises(ValidationFailed):
            await consume_referral_code(db_session, "ZZZZZZZZ", uuid.uuid4())

    @pytest.mark.asyncio
    async def test_is_code_valid(self, db_session, referral_code):
        assert await is_code_valid(db_session, f" {referral_code.lower()} ")
        assert not await is_code_valid(db_session, "")
        await consume_referral_code(db_session, referral_code, uuid.uuid4())
        await db_session.commit()
        assert not await is_code_valid(db_session, referral_code)


class TestGenerate:
    @pytest.mark.asyncio
    async def test_spends_one_right(self, db_session):
        profile = await _create_profile(db_session, "gen@xabzedin.org", rights=2)
        referral = await generate_referral_code(db_session, profile)
        await db_session.commit()

        assert referral.owner_id == profile.id
        assert referral.is_used is False
        assert profile.referral_code_rights == 1
        stored = (await db_session.execute(
            select(Profile.referral_code_rights).where(Profile.id == profile.id)
        )).scalar_one()
        assert stored == 1

    @pytest.mark.asyncio
    async def test_no_rights(self, db_session):
        profile = await _create_profile(db_session, "none@xabzedin.org", rights=0)
        with pytest.raises(ForbiddenError) as exc_info:
            await generate_referral_code(db_session, profile)
        assert exc_info.value.code == "no_referral_rights"

    @pytest.mark.asyncio
    async def test_one_active_code_at_a_time(self, db_session):
        profile = await _create_profile(db_session, "active@xabzedin.org", rights=3)
        await generate_referral_code(db_session, profile)
        await db_session.commit()

        with pytest.raises(ConflictError) as exc_info:
            await generate_referral_code(db_session, profile)
        assert exc_info.value.code == "active_referral_code_exists"

    @pytest.mark.asyncio
    async def test_retries_on_collision(self, db_session, referral_code):
        profile = await _create_profile(db_session, "retry@xabzedin.org")
        with patch(
            "xabzedin.services.referrals.generate_code_string",
            side_effect=[referral_code, referral_code, "FRESH001"],
        ):
            referral = await generate_referral_code(db_session, profile)
        assert referral.code == "FRESH001"

    @pytest.mark.asyncio
    async def test_gives_up_after_repeated_collisions(self, db_session, referral_code):
        profile = await _create_profile(db_session, "unlucky@xabzedin.org")
        with patch("xabzedin.services.referrals.generate_code_string", return_value=referral_code):
            with pytest.raises(ConflictError) as exc_info:
                await generate_referral_code(db_session, profile)
        assert exc_info.value.code == "referral_code_generation_failed"
        assert profile.referral_code_rights == 3


class TestSummary:
    @pytest.mark.asyncio
    async def test_summary_lists_referred_users(self, db_session):
        owner = await _create_profile(db_session, "owner@xabzedin.org", rights=1)
        referral = await generate_referral_code(db_session, owner)
        await db_session.commit()

        invited = await _create_profile(db_session, "invited@xabzedin.org")
        await consume_referral_code(db_session, referral.code, invited.id)
        invited.referred_by = owner.id
        await db_session.commit()
        await db_session.refresh(referral)

        summary = await get_referral_summary(db_session, owner)
        assert summary.active_code is None
        assert summary.rights_remaining == 0
        assert summary.has_rights is False
        assert [u.email for u in summary.referred_users] == ["invited@xabzedin.org"]
        assert [c.code for c in summary.used_codes] == [referral.code]

        invited_summary = await get_referral_summary(db_session, invited)
        assert invited_summary.referrer_name == "owner"
        assert invited_summary.has_rights is True


class TestReferralEndpoints:
    @pytest.mark.asyncio
    async def test_validate(self, client, referral_code):
        resp = await client.post("/api/referrals/validate", json={"code": referral_code.lower()})
        assert resp.status_code == 200
        assert resp.json() == {"code": referral_code, "valid": True}

        resp = await client.post("/api/referrals/validate", json={"code": "NOPE1234"})
        assert resp.json()["valid"] is False

    @pytest.mark.asyncio
    async def test_validate_does_not_consume(self, client, referral_code):
        await client.post("/api/referrals/validate", json={"code": referral_code})
        resp = await client.post("/api/referrals/validate", json={"code": referral_code})
        assert resp.json()["valid"] is True

    @pytest.mark.asyncio
    async def test_generate_and_invite(self, client, make_account):
        owner = await make_account("owner@xabzedin.org", full_name="Owner Person")

        resp = await client.post("/api/referrals/generate", headers=owner.headers)
        assert resp.status_code == 201
        body = resp.json()
        assert body["rights_remaining"] == 2
        code = body["code"]

        resp = await client.post("/api/referrals/generate", headers=owner.headers)
        assert resp.status_code == 409
        assert resp.json()["code"] == "active_referral_code_exists"

        resp = await client.post(
            "/api/auth/sign-up",
            json={"email": "friend@xabzedin.org", "password": "secret123", "full_name": "Friend", "referral_code": code},
        )
        assert resp.status_code == 201

        resp = await client.get("/api/referrals/me", headers=owner.headers)
        assert resp.status_code == 200
        summary = resp.json()
        assert summary["active_code"] is None
        assert summary["rights_remaining"] == 2
        assert summary["has_rights"] is True
        assert summary["referred_users"][0]["email"] == "friend@xabzedin.org"
        assert summary["used_codes"][0]["code"] == code

    @pytest.mark.asyncio
    async def test_referrer_is_recorded(self, client, db_session, make_account):
        owner = await make_account("owner@xabzedin.org", full_name="Owner Person")
        code = (await client.post("/api/referrals/generate", headers=owner.headers)).json()["code"]

        resp = await client.post(
            "/api/auth/sign-up",
            json={"email": "friend@xabzedin.org", "password": "secret123", "full_name": "Friend", "referral_code": code},
        )
        friend_id = uuid.UUID(resp.json()["user_id"])
        referred_by = (await db_session.execute(
            select(Profile.referred_by).where(Profile.id == friend_id)
        )).scalar_one()
        assert referred_by == owner.id

    @pytest.mark.asyncio
    async def test_summary_requires_sign_in(self, client):
        resp = await client.get("/api/referrals/me")
        assert resp.status_code == 401
        assert resp.json()["code"] == "auth_required"
