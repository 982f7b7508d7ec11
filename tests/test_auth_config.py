# SPDX-License-Identifier: Apache-2.0
"""
API key handling and client configuration.
"""

import pytest

from aetherfy_vectors.auth import APIKeyManager
from aetherfy_vectors.client import AetherfyVectorsClient
from aetherfy_vectors.config import DEFAULT_ENDPOINT, ClientConfig
from aetherfy_vectors.exceptions import AuthenticationError
from tests.mock.mock_transport import API_KEY, ScriptedTransport

LIVE_KEY = "afy_live_ABCDEFGHIJKLMNOP"


def test_valid_keys_accepted():
    """Verify live and test keys are recognised."""
    live = APIKeyManager(LIVE_KEY)
    test = APIKeyManager(API_KEY)
    assert live.is_live_key() and not live.is_test_key()
    assert test.is_test_key() and not test.is_live_key()


@pytest.mark.parametrize(
    "key",
    ["", "sk_live_ABCDEFGHIJKLMNOP", "afy_prod_ABCDEFGHIJKLMNOP", "afy_test_short", "afy_test_ABCDEFGH-IJKLMNOP"],
)
def test_invalid_keys_rejected(key):
    """Verify malformed keys raise AuthenticationError."""
    with pytest.raises(AuthenticationError):
        APIKeyManager(key)


def test_auth_headers():
    """Verify the Authorization header uses the bearer scheme."""
    assert APIKeyManager(API_KEY).auth_headers() == {"Authorization": f"Bearer {API_KEY}"}


def test_repr_does_not_leak_key():
    """Verify the key is not fully exposed in repr output."""
    assert API_KEY not in repr(APIKeyManager(API_KEY))
    assert API_KEY not in repr(ClientConfig(api_key=API_KEY))


def test_from_env_prefers_explicit_key():
    """Verify an explicit key beats the environment."""
    cfg = ClientConfig.from_env(api_key=LIVE_KEY, environ={"AETHERFY_API_KEY": API_KEY})
    assert cfg.api_key == LIVE_KEY


def test_from_env_lookup_order():
    """Verify AETHERFY_API_KEY is read before AETHERFY_VECTORS_API_KEY."""
    env = {"AETHERFY_API_KEY": API_KEY, "AETHERFY_VECTORS_API_KEY": LIVE_KEY}
    assert ClientConfig.from_env(environ=env).api_key == API_KEY
    assert ClientConfig.from_env(environ={"AETHERFY_VECTORS_API_KEY": LIVE_KEY}).api_key == LIVE_KEY


def test_from_env_without_key_fails():
    """Verify a missing key raises AuthenticationError."""
    with pytest.raises(AuthenticationError):
        ClientConfig.from_env(environ={})


def test_from_env_endpoint_override():
    """Verify AETHERFY_ENDPOINT applies unless an endpoint is passed."""
    env = {"AETHERFY_API_KEY": API_KEY, "AETHERFY_ENDPOINT": "https://eu.vectors.test/"}
    assert ClientConfig.from_env(environ=env).endpoint == "https://eu.vectors.test"
    assert ClientConfig.from_env(environ=env, endpoint="https://x.test").endpoint == "https://x.test"


def test_defaults():
    """Verify documented defaults."""
    cfg = ClientConfig(api_key=API_KEY)
    assert cfg.endpoint == DEFAULT_ENDPOINT
    assert cfg.timeout == 30.0
    assert cfg.enforce_payload_schema is True
    policy = cfg.retry_policy()
    assert (policy.max_retries, policy.base_delay, policy.max_delay) == (3, 1.0, 30.0)


def test_from_env_ignores_none_overrides():
    """Verify None keyword overrides keep the defaults."""
    cfg = ClientConfig.from_env(api_key=API_KEY, environ={}, timeout=None, enforce_payload_schema=None)
    assert cfg.timeout == 30.0
    assert cfg.enforce_payload_schema is True


def test_invalid_timeout_rejected():
    """Verify a non-positive timeout is rejected."""
    with pytest.raises(ValueError):
        ClientConfig(api_key=API_KEY, timeout=0)


def test_client_builds_config_from_keywords():
    """Verify the client resolves configuration from keyword arguments."""
    client = AetherfyVectorsClient(
        api_key=API_KEY,
        endpoint="https://vectors.test",
        enforce_payload_schema=False,
        transport=ScriptedTransport(),
        environ={},
    )
    assert client.config.endpoint == "https://vectors.test"
    assert client.config.enforce_payload_schema is False


def test_client_rejects_bad_key():
    """Verify the client validates the API key at construction."""
    with pytest.raises(AuthenticationError):
        AetherfyVectorsClient(ClientConfig(api_key="nope"), transport=ScriptedTransport())
