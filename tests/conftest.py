"""Shared pytest fixtures."""

import pytest

from health_registry.registries import CallContext, FixedClock, RegistryService

START_TIME = 1625097600
ADMIN = "SP-ADMIN"
ALICE = "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7"
BOB = "SP3FGQ8Z7JY9BWYZ5WM53E0M9NK7WHJF0691NZ159"

PATIENT_ID = "123e4567-e89b-12d3-a456-426614174000"
HASH_1 = bytes([1] * 32)
HASH_2 = bytes([2] * 32)


@pytest.fixture
def clock():
    """A clock pinned to a fixed start time."""
    return FixedClock(START_TIME)


@pytest.fixture
def service(clock):
    """A fresh in-memory registry service per test."""
    svc = RegistryService(ADMIN, clock=clock)
    yield svc
    svc.close()


@pytest.fixture
def ctx(clock):
    """Build a call context for a caller at the clock's current time."""
    def _ctx(caller: str) -> CallContext:
        return CallContext(caller=caller, now=clock.now())
    return _ctx
