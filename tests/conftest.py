"""Shared pytest fixtures for commitsight tests."""

import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"
