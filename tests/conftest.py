"""Configuration file for pytest containing fixtures and configuration.

This module provides fixtures that can be used across multiple test files:
- reset_config_cache: Clears the cached configuration around every test
- make_workspace: Builds an in-memory workspace from ``{name: text}`` pairs
- write_files: Writes a file tree below ``tmp_path``
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from agentlint.config import clear_config_cache
from agentlint.linting.document import parse_document
from agentlint.linting.models import LintContext, Workspace


@pytest.fixture(autouse=True)
def reset_config_cache():
    """Every test starts and ends with an empty configuration cache."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def make_workspace() -> Callable[..., Workspace]:
    """Fixture building a workspace from document names and their text."""

    def _make(
        files: dict[str, str], context: LintContext = LintContext.UNIVERSAL
    ) -> Workspace:
        documents = tuple(
            parse_document(text, name, context=context) for name, text in files.items()
        )
        return Workspace(root="/workspace", documents=documents, context=context)

    return _make


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Fixture writing ``{relative path: text}`` below ``tmp_path``."""

    def _write(files: dict[str, str]) -> Path:
        for relative, text in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return tmp_path

    return _write
