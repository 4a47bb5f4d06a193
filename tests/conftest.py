"""Shared test fixtures and configuration."""

from __future__ import annotations

import contextlib
import io
import logging
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

if TYPE_CHECKING:
    from collections.abc import Iterator


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Set default timeout for all tests."""
    for item in items:
        with contextlib.suppress(AttributeError):
            item.add_marker(pytest.mark.timeout(5))


@pytest.fixture
def mock_console() -> Console:
    """Provide a console that writes to a StringIO for testing."""
    return Console(file=io.StringIO(), width=80, force_terminal=True)


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Undo the root logger changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def long_document() -> str:
    """A multi-paragraph document well above the default chunk size."""
    paragraph = (
        "The river rises in the northern hills and flows south through farmland. "
        "Farmers depend on it for irrigation during the dry summer months. "
    ) * 6
    return "\n\n".join(f"Section {i}. {paragraph}" for i in range(40))
