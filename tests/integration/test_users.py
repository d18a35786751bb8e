"""Integration tests for user registration."""

import re
from decimal import Decimal

import pytest

from app.services.referral_service import ReferralService
from app.services.user import UserService
from app.utils.exceptions import ConflictError, InvalidCodeError, NotFoundError


INVITE_CODE_PATTERN = re.compile(r"^VX-[0-9A-F]{6}$")


class TestCreateUser:
    """Test UserService.create_user."""

    @pytest.mark.asyncio
    async def test_creates_user_with_zero_balances(self, session):
        """New users start empty with a unique invite code."""
        service = UserService(session)

        user = await service.create_user(
            email="  Ann@Example.com ",
            username="ann",
            first_name="Ann",
            last_name="Lee",
        )

        assert user.id is not None
        assert user.email == "ann@example.com"
        assert user.full_name == "Ann Lee"
        assert INVITE_CODE_PATTERN.match(user.invite_code)
        assert user.referred_by_code is None

        balances = await service.get_balances(user.id)
        assert balances.main == Decimal("0")
        assert balances.profit == Decimal("0")
        assert balances.referral == Decimal("0")
        assert balances.bonus == Decimal("0")

    @pytest.mark.asyncio
    async def test_invite_codes_are_unique(self, make_user):
        """Every user gets a different code."""
        users = [await make_user(f"user{i}") for i in range(5)]

        assert len({u.invite_code for u in users}) == 5

    @pytest.mark.asyncio
    async def test_duplicate_email(self, session, make_user):
        """Email must be unique, case-insensitively."""
        await make_user("ann")

        with pytest.raises(ConflictError, match="Email already in use"):
            await UserService(session).create_user("ANN@example.com", "ann2")

    @pytest.mark.asyncio
    async def test_duplicate_username(self, session, make_user):
        """Username must be unique."""
        await make_user("ann")

        with pytest.raises(ConflictError, match="Username already in use"):
            await UserService(session).create_user("other@example.com", "ann")

    @pytest.mark.asyncio
    async def test_with_referral_code(self, session, make_user):
        """A referral code links the new user under its owner."""
        referrer = await make_user("ann")

        user = await make_user("bob", referral_code=referrer.invite_code)

        assert user.referred_by_code == referrer.invite_code
        assert await ReferralService(session).get_referral_ids(referrer.id) == [
            user.id
        ]

    @pytest.mark.asyncio
    async def test_with_unknown_referral_code(self, session, make_user):
        """An unknown referral code creates nothing."""
        with pytest.raises(InvalidCodeError):
            await make_user("bob", referral_code="VX-FFFFFF")

        assert await UserService(session).get_by_email("bob@example.com") is None


class TestUserQueries:
    """Test user lookups."""

    @pytest.mark.asyncio
    async def test_get_user(self, session, make_user):
        """Users are found by ID and invite code."""
        ann = await make_user("ann")
        service = UserService(session)

        assert (await service.get_user(ann.id)).username == "ann"
        found = await service.get_by_invite_code(ann.invite_code.lower())
        assert found.id == ann.id

    @pytest.mark.asyncio
    async def test_missing_user(self, session):
        """Unknown IDs raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await UserService(session).get_user(999)

        with pytest.raises(NotFoundError):
            await UserService(session).get_balances(999)
