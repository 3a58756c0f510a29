"""
Shared pytest fixtures and configuration for trigger-spine tests.

This module provides:
- Registry and settings cleanup fixtures for test isolation
- An ExecutionContext wired to in-memory collaborators
- Batch builders
"""

import sys
from pathlib import Path
from typing import Any, Generator

import pytest

# Ensure trigger_spine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from trigger_spine.core.bypass import BypassRegistry
from trigger_spine.core.deactivation import StaticDeactivationLookup
from trigger_spine.core.error_sink import MemoryErrorSink
from trigger_spine.core.orm import dispose_engines
from trigger_spine.core.phases import LifecyclePhase
from trigger_spine.core.settings import TriggerSpineSettings, reset_settings
from trigger_spine.framework.batch import TriggerBatch
from trigger_spine.framework.context import ExecutionContext
from trigger_spine.framework.registry import clear_registry


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_handler_registry() -> Generator[None, None, None]:
    """Clear the handler registry before and after each test."""
    clear_registry()
    yield
    clear_registry()


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Reset cached settings and keep stray .env files out of tests."""
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def clean_engines() -> Generator[None, None, None]:
    """Dispose shared database engines after each test."""
    yield
    dispose_engines()


# =============================================================================
# Context Fixtures
# =============================================================================


@pytest.fixture
def settings() -> TriggerSpineSettings:
    return TriggerSpineSettings()


@pytest.fixture
def error_sink() -> MemoryErrorSink:
    return MemoryErrorSink()


@pytest.fixture
def deactivation() -> StaticDeactivationLookup:
    return StaticDeactivationLookup()


@pytest.fixture
def context(
    settings: TriggerSpineSettings,
    error_sink: MemoryErrorSink,
    deactivation: StaticDeactivationLookup,
) -> ExecutionContext:
    """Execution context with in-memory lookup and sink."""
    return ExecutionContext.create(
        settings,
        bypasses=BypassRegistry(),
        deactivation=deactivation,
        error_sink=error_sink,
    )


@pytest.fixture
def make_batch():
    """Factory for batches: make_batch("Account", "after_update", new=[...])."""

    def _make(
        entity_type: str = "Account",
        phase: LifecyclePhase | str = LifecyclePhase.AFTER_UPDATE,
        new: list[dict[str, Any]] | None = None,
        old: list[dict[str, Any]] | None = None,
    ) -> TriggerBatch:
        if new is None and old is None:
            new = [{"id": "001A", "name": "Acme"}, {"id": "001B", "name": "Globex"}]
            old = [{"id": "001A", "name": "Acme Corp"}, {"id": "001B", "name": "Globex"}]
        return TriggerBatch(entity_type=entity_type, phase=phase, new=new or [], old=old or [])

    return _make
