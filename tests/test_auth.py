"""
Tests for caller identity resolution, including the demo override that is
only honored outside production.
"""

from datetime import timedelta

import pytest

from finchat.api.dependencies.auth import decode_user_id
from finchat.config.settings import settings
from tests.conftest import USER_A, make_token

DEMO_USER = "33333333-3333-3333-3333-333333333333"


class TestDecodeUserId:

    def test_valid_token_yields_sub(self):
        assert decode_user_id(make_token(USER_A)) == USER_A

    @pytest.mark.parametrize("token", [
        "",
        "garbage",
        make_token(secret="a-completely-different-signing-secret-32b"),
        make_token(audience="service_role"),
        make_token(sub=None),
        make_token(expires_in=timedelta(seconds=-30)),
    ])
    def test_invalid_tokens_yield_none(self, token):
        assert decode_user_id(token) is None

    def test_empty_sub_yields_none(self):
        assert decode_user_id(make_token(sub="")) is None


class TestDemoOverride:

    def test_override_replaces_identity_in_dev(self, client, store, monkeypatch):
        monkeypatch.setattr(settings, "ENV", "dev")
        monkeypatch.setattr(settings, "DEMO_USER_ID", DEMO_USER)

        response = client.post(
            "/",
            json={"question": "hi"},
            headers={"Authorization": f"Bearer {make_token(USER_A)}"}
        )

        assert response.status_code == 200
        assert len(store.turns_for(DEMO_USER)) == 2
        assert store.turns_for(USER_A) == []

    def test_override_resolves_identity_without_credential_in_dev(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ENV", "dev")
        monkeypatch.setattr(settings, "DEMO_USER_ID", DEMO_USER)

        response = client.post("/", json={"question": "hi"})

        assert response.status_code == 200

    def test_override_is_ignored_in_prod(self, client, store, monkeypatch):
        monkeypatch.setattr(settings, "ENV", "prod")
        monkeypatch.setattr(settings, "DEMO_USER_ID", DEMO_USER)

        assert client.post("/", json={"question": "hi"}).status_code == 401

        response = client.post(
            "/",
            json={"question": "hi"},
            headers={"Authorization": f"Bearer {make_token(USER_A)}"}
        )
        assert response.status_code == 200
        assert store.turns_for(DEMO_USER) == []
        assert len(store.turns_for(USER_A)) == 2
