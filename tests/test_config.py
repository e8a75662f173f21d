"""
Tests for build configuration and dialect selection.
"""

import logging
from pathlib import Path

import pytest

from bbcx_sdk.assembler import Assembly
from bbcx_sdk.bbc3 import Bbc3Assembly
from bbcx_sdk.config import BuildConfig
from bbcx_sdk.dialects import DIALECTS, get_dialect
from bbcx_sdk.errors import AssemblyFailed, DialectError


ENV_NAMES = ("BBCX_LANGUAGE", "BBCX_LIST_PATH", "BBCX_TRACE_PATH", "BBCX_MAX_STEPS")


@pytest.fixture
def env(monkeypatch):
    """Clean BBCX_* environment; returns monkeypatch for setting values."""
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# =============================================================================
# BuildConfig
# =============================================================================

class TestBuildConfigDefaults:
    """Defaults and implied switches."""

    def test_defaults(self, env):
        config = BuildConfig.from_env()
        assert config.language == "bbcx"
        assert config.origin == 8
        assert not config.list
        assert not config.run
        assert not config.trace
        assert config.max_steps is None

    def test_trace_implies_run(self):
        config = BuildConfig(trace=True).normalized()
        assert config.run

    def test_trace_path_implies_trace_and_run(self):
        config = BuildConfig(trace_path=Path("out")).normalized()
        assert config.trace
        assert config.run

    def test_list_path_implies_listing(self):
        assert BuildConfig(list_path=Path("out")).normalized().list

    def test_normalized_is_a_copy(self):
        config = BuildConfig(trace=True)
        config.normalized()
        assert not config.run


class TestBuildConfigFromEnv:
    """Environment variables."""

    def test_language(self, env):
        env.setenv("BBCX_LANGUAGE", "BBC3")
        assert BuildConfig.from_env().language == "bbc3"

    def test_bad_language_ignored(self, env, caplog):
        env.setenv("BBCX_LANGUAGE", "cobol")
        with caplog.at_level(logging.WARNING, logger="bbcx_sdk"):
            config = BuildConfig.from_env()
        assert config.language == "bbcx"
        assert "BBCX_LANGUAGE" in caplog.text

    def test_paths(self, env):
        env.setenv("BBCX_LIST_PATH", "listings")
        env.setenv("BBCX_TRACE_PATH", "traces")
        config = BuildConfig.from_env()
        assert config.list and config.list_path == Path("listings")
        assert config.trace and config.run
        assert config.trace_path == Path("traces")

    def test_max_steps(self, env):
        env.setenv("BBCX_MAX_STEPS", "500")
        assert BuildConfig.from_env().max_steps == 500

    @pytest.mark.parametrize("value", ["0", "-5", "lots"])
    def test_bad_max_steps_ignored(self, env, value):
        env.setenv("BBCX_MAX_STEPS", value)
        assert BuildConfig.from_env().max_steps is None


class TestOutputFiles:
    """Listing and trace file names."""

    def test_beside_source(self):
        config = BuildConfig()
        assert config.listing_file(Path("src/prog.bbcx")) == Path("src/prog.lst")
        assert config.trace_file(Path("src/prog.bbcx")) == Path("src/prog.out")

    def test_in_directory(self):
        config = BuildConfig(list_path=Path("l"), trace_path=Path("t"))
        assert config.listing_file(Path("src/prog.bbcx")) == Path("l/prog.lst")
        assert config.trace_file(Path("src/prog.bbcx")) == Path("t/prog.out")


# =============================================================================
# Dialects
# =============================================================================

class TestDialects:
    """Tests for get_dialect() and the two dialects."""

    def test_default_is_bbcx(self):
        assert get_dialect(None).name == "bbcx"

    def test_case_insensitive(self):
        assert get_dialect("BBC3") is DIALECTS["bbc3"]

    def test_unknown(self):
        with pytest.raises(DialectError, match="unknown language"):
            get_dialect("algol")

    def test_executable(self):
        assert get_dialect("bbcx").executable
        assert not get_dialect("bbc3").executable

    def test_bbcx_assemble(self):
        assert isinstance(get_dialect("bbcx").assemble("STOP\n"), Assembly)

    def test_bbc3_assemble(self):
        assert isinstance(get_dialect("bbc3").assemble("0001    STOP\n"), Bbc3Assembly)

    def test_parse_collects_errors(self):
        parsed = get_dialect("bbcx").parse("STOP\nMULT 1, [\n")
        assert not parsed.ok
        assert len(parsed.errors) == 1

    def test_assemble_errors(self):
        with pytest.raises(AssemblyFailed):
            get_dialect("bbc3").assemble("STOP\n")

    def test_bbcx_assembler_origin(self):
        assembly = get_dialect("bbcx").assembler(origin=100).assemble_string("STOP\n")
        assert assembly.entry == 100
