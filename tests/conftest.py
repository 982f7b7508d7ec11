# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures for the Aetherfy Vectors test suite."""

from __future__ import annotations

import asyncio
from typing import List

import pytest

from aetherfy_vectors.cache import SchemaCache
from aetherfy_vectors.client import AetherfyVectorsClient
from aetherfy_vectors.config import ClientConfig
from aetherfy_vectors.orchestrator import UpsertOrchestrator
from aetherfy_vectors.retry import RetryPolicy
from tests.mock.mock_transport import API_KEY, ScriptedTransport


@pytest.fixture
def sleeps(monkeypatch) -> List[float]:
    """Replace asyncio.sleep with a recorder so backoff does not slow tests down."""
    delays: List[float] = []

    async def fake_sleep(delay, result=None):
        delays.append(delay)
        return result

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return delays


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def cache() -> SchemaCache:
    return SchemaCache()


@pytest.fixture
def orchestrator(transport, cache, sleeps) -> UpsertOrchestrator:
    return UpsertOrchestrator(transport, cache, RetryPolicy(jitter=False))


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(api_key=API_KEY, endpoint="https://vectors.test")


@pytest.fixture
def client(config, transport, sleeps) -> AetherfyVectorsClient:
    return AetherfyVectorsClient(config, transport=transport)
