"""
Tests for the bbcx command
==========================

Each test runs the click command in an isolated directory and checks
exit codes, console output and the files written.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from bbcx_sdk.cli.bbcx import StreamInput, main, parse_number
from bbcx_sdk.cli.errors import ExitCode


PRODUCT = "TAKE 1, +6\nMULT 1, +7\nPRINT 1,\nSTOP\n"
ADD_INPUT = "READ 1,\nREAD 2,\nADD 1, 2\nPRINT 1,\nSTOP\n"
BROKEN = "TAKE 1, +6\nMULT 1, [\nSTOP\n"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BBCX_LANGUAGE", "BBCX_LIST_PATH", "BBCX_TRACE_PATH", "BBCX_MAX_STEPS"):
        monkeypatch.delenv(name, raising=False)


def invoke(files: dict[str, str], args: list[str], **kwargs):
    """Write files into an isolated directory and run bbcx there."""
    runner = CliRunner()
    with runner.isolated_filesystem():
        for name, text in files.items():
            Path(name).write_text(text)
        result = runner.invoke(main, args, **kwargs)
        written = {
            path.name: path.read_text()
            for path in Path(".").rglob("*")
            if path.is_file() and path.name not in files
        }
    return result, written


# =============================================================================
# Exit Codes
# =============================================================================

class TestExitCodes:
    """Tests for the exit status of the command."""

    def test_assemble_only(self):
        result, written = invoke({"prog.bbcx": PRODUCT}, ["prog.bbcx"])
        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert result.output == ""
        assert written == {}

    def test_assembly_error(self):
        result, _ = invoke({"bad.bbcx": BROKEN}, ["bad.bbcx"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "bad.bbcx: 1 error(s)" in result.output

    def test_missing_file(self):
        result, _ = invoke({}, ["missing.bbcx"])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_no_files(self):
        result, _ = invoke({}, [])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_bad_max_steps(self):
        result, _ = invoke({"prog.bbcx": PRODUCT}, ["--max-steps", "0", "prog.bbcx"])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_later_files_still_processed(self):
        """A failing file does not stop the files after it."""
        result, written = invoke(
            {"bad.bbcx": BROKEN, "good.bbcx": PRODUCT},
            ["-l", "bad.bbcx", "good.bbcx"],
        )
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "good.lst" in written
        assert "bad.lst" in written

    def test_unreadable_file_does_not_stop_later_files(self):
        """A source that is not UTF-8 fails on its own."""
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("a.bbcx").write_bytes(b"STOP ; caf\xe9\n")
            Path("b.bbcx").write_text(PRODUCT)
            result = runner.invoke(main, ["-r", "a.bbcx", "b.bbcx"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "a.bbcx: cannot read source" in result.output
        assert "42" in result.output
        assert "Internal error" not in result.output

    def test_lang_alias(self):
        result, written = invoke({"old.bbc3": "0001    STOP\n"}, ["--lang", "bbc3", "-l", "old.bbc3"])
        assert result.exit_code == 0, result.output
        assert "old.lst" in written

    def test_version(self):
        result, _ = invoke({}, ["--version"])
        assert result.exit_code == 0
        assert "bbcx" in result.output


# =============================================================================
# Listings
# =============================================================================

class TestListing:
    """Tests for -l / --list-path."""

    def test_listing_written(self):
        result, written = invoke({"prog.bbcx": PRODUCT}, ["-l", "prog.bbcx"])
        assert result.exit_code == 0
        listing = written["prog.lst"]
        assert "0008" in listing
        assert "TAKE 1, +6" in listing

    def test_listing_written_on_failure(self):
        result, written = invoke({"bad.bbcx": BROKEN}, ["--list", "bad.bbcx"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        listing = written["bad.lst"]
        assert " *****  MULT 1, [" in listing
        assert "TAKE 1, +6" in listing

    def test_list_path_implies_listing(self, tmp_path):
        out = tmp_path / "listings"
        result, _ = invoke({"prog.bbcx": PRODUCT}, ["--list-path", str(out), "prog.bbcx"])
        assert result.exit_code == 0
        assert (out / "prog.lst").exists()

    def test_bbc3_listing(self):
        source = "0001    TAKE    0003\n0002    STOP\n"
        result, written = invoke({"old.bbc3": source}, ["--language", "bbc3", "-l", "old.bbc3"])
        assert result.exit_code == 0, result.output
        assert "0001" in written["old.lst"]


# =============================================================================
# Running
# =============================================================================

class TestRun:
    """Tests for -r, -t and --max-steps."""

    def test_run_prints_output(self):
        result, _ = invoke({"prog.bbcx": PRODUCT}, ["-r", "prog.bbcx"])
        assert result.exit_code == 0
        assert result.output == "42\n"

    def test_read_from_stdin(self):
        result, _ = invoke({"add.bbcx": ADD_INPUT}, ["-r", "add.bbcx"], input="3\n4\n")
        assert result.exit_code == 0
        assert result.output == "7\n"

    def test_bad_input(self):
        result, _ = invoke({"add.bbcx": ADD_INPUT}, ["-r", "add.bbcx"], input="three\n")
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "not a number" in result.output

    def test_run_fault(self):
        result, _ = invoke({"div.bbcx": "TAKE 1, +1\nDVD 1, +0\nSTOP\n"}, ["-r", "div.bbcx"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "run error" in result.output
        assert "division by zero" in result.output

    def test_input_exhausted(self):
        result, _ = invoke({"add.bbcx": ADD_INPUT}, ["-r", "add.bbcx"], input="")
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "input exhausted" in result.output

    def test_trace_implies_run(self):
        result, written = invoke({"prog.bbcx": PRODUCT}, ["-t", "prog.bbcx"])
        assert result.exit_code == 0
        assert "42" in result.output
        trace = written["prog.out"]
        assert "TAKE" in trace
        assert "STOP" in trace

    def test_trace_written_on_fault(self):
        result, written = invoke({"div.bbcx": "TAKE 1, +1\nDVD 1, +0\n"}, ["-t", "div.bbcx"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "TAKE" in written["div.out"]

    def test_max_steps(self):
        result, _ = invoke({"loop.bbcx": "L: JUMP L\n"}, ["-r", "--max-steps", "10", "loop.bbcx"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "step limit 10" in result.output

    def test_bbc3_cannot_run(self):
        result, _ = invoke({"old.bbc3": "0001    STOP\n"}, ["--language", "bbc3", "-r", "old.bbc3"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "cannot" in result.output or "not run" in result.output


# =============================================================================
# Environment
# =============================================================================

class TestEnvironment:
    """Environment variables supply defaults."""

    def test_language_from_env(self):
        result, written = invoke(
            {"old.bbc3": "0001    STOP\n"}, ["-l", "old.bbc3"],
            env={"BBCX_LANGUAGE": "bbc3"},
        )
        assert result.exit_code == 0, result.output
        assert "old.lst" in written

    def test_option_overrides_env(self):
        result, _ = invoke(
            {"prog.bbcx": PRODUCT}, ["--language", "bbcx", "prog.bbcx"],
            env={"BBCX_LANGUAGE": "bbc3"},
        )
        assert result.exit_code == 0, result.output

    def test_max_steps_from_env(self):
        result, _ = invoke(
            {"loop.bbcx": "L: JUMP L\n"}, ["-r", "loop.bbcx"],
            env={"BBCX_MAX_STEPS": "5"},
        )
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "step limit 5" in result.output


# =============================================================================
# Input Parsing
# =============================================================================

class TestInputParsing:
    """Tests for numbers typed on stdin."""

    @pytest.mark.parametrize("text,expected", [
        ("12", 12),
        ("-3", -3),
        ("2.5", 2.5),
        ("1.5@2", 150.0),
    ])
    def test_parse_number(self, text, expected):
        assert parse_number(text) == expected

    def test_stream_input(self, tmp_path):
        path = tmp_path / "numbers.txt"
        path.write_text("1 2\n\n3\n")
        with path.open() as stream:
            source = StreamInput(stream)
            assert [source.read_number() for _ in range(4)] == [1, 2, 3, None]
