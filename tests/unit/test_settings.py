"""Tests for settings, logging setup and the partial-state report."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from fieldwalk import PartialState, Settings, configure_logging
from fieldwalk.models.errors import ErrorType, ValidationError, ValidationErrors
from fieldwalk.models.parse import TruncatedAt


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FIELDWALK_LOG_LEVEL", raising=False)
        monkeypatch.delenv("FIELDWALK_PARTIAL_STRICT", raising=False)
        settings = Settings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.partial_strict is False

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FIELDWALK_LOG_LEVEL", "debug")
        monkeypatch.setenv("FIELDWALK_PARTIAL_STRICT", "true")
        settings = Settings(_env_file=None)
        assert settings.log_level == "debug"
        assert settings.partial_strict is True

    def test_configure_logging(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict[str, Any]] = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        configure_logging(Settings(_env_file=None, log_level="warning"))
        assert calls == [{"level": "WARNING"}]


class TestPartialState:
    def test_complete_when_nothing_is_cut(self) -> None:
        state = PartialState.from_paths([], TruncatedAt.COMPLETE)
        assert state.is_complete
        assert state.waiting_for() == []
        assert state.is_field_complete("anything")

    def test_incomplete_fields(self) -> None:
        state = PartialState.from_paths([["user", "email"], ["items", "[0]"]], TruncatedAt.STRING)
        assert not state.is_complete
        assert state.waiting_for() == ["user.email", "items[0]"]
        assert [f.reason for f in state.incomplete_fields] == ["string", "string"]
        assert not state.is_field_complete("user", "email")
        assert not state.is_field_complete("items", "[0]")
        assert state.is_field_complete("user", "name")

    def test_merge_normalizes_reason(self) -> None:
        state = PartialState()
        state.merge_incomplete_fields([["a"]], TruncatedAt.COMPLETE)
        state.merge_incomplete_fields([["b"]], "")
        assert not state.is_complete
        assert [(f.json_path, f.reason) for f in state.incomplete_fields] == [
            ("a", "incomplete"),
            ("b", "incomplete"),
        ]

    def test_merge_nothing_keeps_complete(self) -> None:
        state = PartialState()
        state.merge_incomplete_fields([], TruncatedAt.OBJECT)
        assert state.is_complete


class TestValidationErrors:
    def test_formatting(self) -> None:
        one = ValidationError(
            loc=["user", "name"], message="required field", type=ErrorType.REQUIRED
        )
        two = ValidationError(loc=[], message="bad json", type=ErrorType.JSON_DECODE)
        assert str(one) == "user.name: required field"
        assert str(ValidationErrors([one])) == "user.name: required field"
        assert str(ValidationErrors([one, two])) == (
            "validation errors (2): user.name: required field; bad json"
        )
        assert str(ValidationErrors([])) == "validation errors: (none)"

    def test_container(self) -> None:
        two = ValidationError(message="bad json", type=ErrorType.JSON_DECODE)
        errors = ValidationErrors([two])
        assert len(errors) == 1
        assert list(errors) == [two]
        assert errors.has_json_decode_error()

    def test_error_type_values(self) -> None:
        assert ErrorType.TYPE_MISMATCH == "type_error"
        assert ErrorType.HOOK_ERROR == "hook_error"
