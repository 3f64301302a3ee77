"""
Tests for Grepsight configuration and logging setup.

Tests cover:
- SearchOptions validation
- Environment overrides (GREPSIGHT_*)
- CancelToken cancellation and deadlines
- configure_logging() levels
"""

import logging
import time

import pytest

from grepsight.tools.config import CancelToken, SearchOptions
from grepsight.tools.errors import InputError, SearchCancelled
from grepsight.tools.logging import configure_logging, get_logger

ENV_VARS = (
    "GREPSIGHT_CONTEXT_LINES",
    "GREPSIGHT_STOP_AT_FIRST",
    "GREPSIGHT_MAX_EDIT_DISTANCE",
    "GREPSIGHT_WORKERS",
    "GREPSIGHT_DEADLINE",
    "GREPSIGHT_IGNORE_CASE",
    "GREPSIGHT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without GREPSIGHT_* variables."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield root
    root.setLevel(level)


class TestSearchOptions:
    """Tests for SearchOptions validation."""

    def test_defaults(self):
        options = SearchOptions()
        assert options.context_lines == 1
        assert options.stop_at_first_match is False
        assert options.max_edit_distance == 2
        assert options.workers == 1
        assert options.deadline is None

    def test_frozen(self):
        with pytest.raises(AttributeError):
            SearchOptions().context_lines = 5

    @pytest.mark.parametrize("kwargs", [
        {"context_lines": -1},
        {"context_lines": True},
        {"max_edit_distance": -3},
        {"workers": 0},
        {"workers": 2.5},
        {"deadline": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(InputError):
            SearchOptions(**kwargs)


class TestFromEnv:
    """Tests for SearchOptions.from_env()."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GREPSIGHT_CONTEXT_LINES", "3")
        monkeypatch.setenv("GREPSIGHT_IGNORE_CASE", "yes")
        monkeypatch.setenv("GREPSIGHT_WORKERS", "4")
        options = SearchOptions.from_env()
        assert options.context_lines == 3
        assert options.ignore_case is True
        assert options.workers == 4

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("GREPSIGHT_CONTEXT_LINES", "3")
        assert SearchOptions.from_env(context_lines=0).context_lines == 0

    def test_none_override_ignored(self, monkeypatch):
        monkeypatch.setenv("GREPSIGHT_MAX_EDIT_DISTANCE", "1")
        assert SearchOptions.from_env(max_edit_distance=None).max_edit_distance == 1

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("GREPSIGHT_WORKERS", "many")
        with pytest.raises(InputError):
            SearchOptions.from_env()

    def test_unknown_override(self):
        with pytest.raises(InputError):
            SearchOptions.from_env(colour=True)


class TestCancelToken:
    """Tests for CancelToken."""

    def test_not_cancelled_by_default(self):
        token = CancelToken()
        assert not token.cancelled
        token.raise_if_cancelled()

    def test_cancel(self):
        token = CancelToken()
        token.cancel()
        assert token.cancelled
        with pytest.raises(SearchCancelled):
            token.raise_if_cancelled()

    def test_deadline_expires(self):
        token = CancelToken(deadline=0.01)
        time.sleep(0.05)
        assert token.cancelled


class TestLogging:
    """Tests for configure_logging()."""

    def test_explicit_level(self, restore_root_level):
        configure_logging(level=logging.DEBUG)
        assert restore_root_level.level == logging.DEBUG

    def test_level_from_env(self, monkeypatch, restore_root_level):
        monkeypatch.setenv("GREPSIGHT_LOG_LEVEL", "info")
        configure_logging()
        assert restore_root_level.level == logging.INFO

    def test_unknown_level_falls_back(self, monkeypatch, restore_root_level):
        monkeypatch.setenv("GREPSIGHT_LOG_LEVEL", "chatty")
        configure_logging()
        assert restore_root_level.level == logging.WARNING

    def test_get_logger_name(self):
        assert get_logger("grepsight.tools.scanner").name == "grepsight.tools.scanner"
