"""Tests for resolving the acting user from request headers."""

import uuid

import jwt
import pytest

from schoolhub.auth.adapters.base import AuthenticationError
from schoolhub.auth.adapters.jwt import JWTAuthAdapter
from schoolhub.auth.adapters.none import NoAuthAdapter
from schoolhub.auth.middleware import get_actor_context


SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def jwt_adapter() -> JWTAuthAdapter:
    return JWTAuthAdapter(secret_key=SECRET)


class TestJWTAuthAdapter:
    @pytest.mark.asyncio
    async def test_issue_and_verify(self, jwt_adapter):
        user_id = uuid.uuid4()
        token = await jwt_adapter.issue_token(user_id)

        principal = await jwt_adapter.verify_token(token)

        assert principal["provider"] == "jwt"
        assert principal["subject"] == str(user_id)

    @pytest.mark.asyncio
    async def test_wrong_secret(self, jwt_adapter):
        other = JWTAuthAdapter(secret_key="another-secret-key-that-is-long-enough-for-hs256")
        token = await other.issue_token(uuid.uuid4())
        with pytest.raises(AuthenticationError):
            await jwt_adapter.verify_token(token)

    @pytest.mark.asyncio
    async def test_wrong_audience(self, jwt_adapter):
        other = JWTAuthAdapter(secret_key=SECRET, audience="elsewhere")
        token = await other.issue_token(uuid.uuid4())
        with pytest.raises(AuthenticationError):
            await jwt_adapter.verify_token(token)

    @pytest.mark.asyncio
    async def test_missing_subject(self, jwt_adapter):
        token = jwt.encode(
            {"iss": "schoolhub", "aud": "schoolhub-api"}, SECRET, algorithm="HS256"
        )
        with pytest.raises(AuthenticationError, match="sub"):
            await jwt_adapter.verify_token(token)


class TestGetActorContext:
    @pytest.mark.asyncio
    async def test_no_header_is_anonymous(self, jwt_adapter):
        actor = await get_actor_context(None, jwt_adapter)
        assert not actor.is_authenticated

    @pytest.mark.asyncio
    async def test_non_bearer_is_anonymous(self, jwt_adapter):
        actor = await get_actor_context("Basic abc", jwt_adapter)
        assert actor.user_id is None

    @pytest.mark.asyncio
    async def test_valid_jwt(self, jwt_adapter):
        user_id = uuid.uuid4()
        token = await jwt_adapter.issue_token(user_id)

        actor = await get_actor_context(f"Bearer {token}", jwt_adapter)

        assert actor.is_authenticated
        assert actor.user_id == user_id
        assert actor.token == token

    @pytest.mark.asyncio
    async def test_invalid_jwt_is_anonymous(self, jwt_adapter):
        actor = await get_actor_context("Bearer not-a-token", jwt_adapter)
        assert actor.user_id is None

    @pytest.mark.asyncio
    async def test_no_auth_mode_trusts_user_id(self):
        user_id = uuid.uuid4()
        actor = await get_actor_context(f"Bearer {user_id}", NoAuthAdapter())
        assert actor.user_id == user_id

    @pytest.mark.asyncio
    async def test_no_auth_mode_rejects_non_uuid_subject(self):
        actor = await get_actor_context("Bearer someone", NoAuthAdapter())
        assert actor.user_id is None
