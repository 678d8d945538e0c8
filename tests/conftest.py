"""Shared test fixtures for fieldwalk."""

from __future__ import annotations

import pytest

from fieldwalk import Parser, Settings
from fieldwalk.walk.scanner import default_scanner


@pytest.fixture
def settings() -> Settings:
    """Settings that ignore the environment and any local .env file."""
    return Settings(_env_file=None, log_level="DEBUG", partial_strict=False)


@pytest.fixture
def parser() -> Parser:
    return Parser()


@pytest.fixture
def strict_parser() -> Parser:
    """Parser that reads a raw newline inside a string as a truncation."""
    return Parser(strict=True)


@pytest.fixture(autouse=True)
def _fresh_scanner_cache() -> None:
    default_scanner.clear()
