# tests/conftest.py
"""Shared test configuration.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/engine/test_property_based.py

Test doubles for the pipeline collaborators (transport, spill store,
context provider, clock) live in tests/fixtures.py and are exposed here
as pytest fixtures.
"""

import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from sessionlog.delivery.orchestrator import DeliveryOrchestrator
from sessionlog.engine.state import SessionState
from sessionlog.environment.connectivity import StaticConnectivityProbe
from tests.fixtures import FixedContextProvider, FrozenClock, MemorySpillStore, RecordingTransport

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Pipeline Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def state(clock: FrozenClock) -> SessionState:
    """Enabled session state with debug logging on."""
    return SessionState(debug_enabled=True, clock=clock)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def spill_store() -> MemorySpillStore:
    return MemorySpillStore()


@pytest.fixture
def probe() -> StaticConnectivityProbe:
    return StaticConnectivityProbe(connected=True)


@pytest.fixture
def context_provider() -> FixedContextProvider:
    return FixedContextProvider()


@pytest.fixture
def orchestrator(
    state: SessionState,
    transport: RecordingTransport,
    spill_store: MemorySpillStore,
    probe: StaticConnectivityProbe,
    context_provider: FixedContextProvider,
) -> Iterator[DeliveryOrchestrator]:
    orchestrator = DeliveryOrchestrator(
        state,
        context_provider=context_provider,
        connectivity_probe=probe,
        spill_store=spill_store,
        transport=transport,
    )
    yield orchestrator
    orchestrator.close()
