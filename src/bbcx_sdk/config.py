"""
Build Configuration
===================

Settings for one ``bbcx`` invocation. Values come from, in increasing
order of precedence:
- Default values (defined here)
- Environment variables (BuildConfig.from_env)
- Command-line options

Several switches imply others:
- a listing path turns listing on
- tracing turns running on
- a trace path turns tracing on

normalized() applies those rules; the CLI calls it after merging
options.
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from bbcx_sdk.assembler.codegen import DEFAULT_ORIGIN

logger = logging.getLogger(__name__)

LANGUAGES = ("bbcx", "bbc3")


@dataclass
class BuildConfig:
    """
    Configuration for assembling, listing and running programs.

    Attributes:
        language: Source dialect, "bbcx" or "bbc3"
        list: Write a listing file per input
        list_path: Directory for listing files (default: beside the source)
        run: Run each program after assembling it
        trace: Write an execution trace per program
        trace_path: Directory for trace files (default: beside the source)
        origin: First program location
        max_steps: Cancel a run after this many instructions (None = unbounded)
        max_errors: Stop collecting errors for a file after this many
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # SOURCE
    # ═══════════════════════════════════════════════════════════════════════════

    language: str = "bbcx"
    origin: int = DEFAULT_ORIGIN
    max_errors: int = 100

    # ═══════════════════════════════════════════════════════════════════════════
    # OUTPUTS
    # ═══════════════════════════════════════════════════════════════════════════

    list: bool = False
    list_path: Optional[Path] = None

    # ═══════════════════════════════════════════════════════════════════════════
    # EXECUTION
    # ═══════════════════════════════════════════════════════════════════════════

    run: bool = False
    trace: bool = False
    trace_path: Optional[Path] = None
    max_steps: Optional[int] = None

    @classmethod
    def from_env(cls) -> "BuildConfig":
        """
        Create BuildConfig from environment variables.

        Environment variables (all optional):
            BBCX_LANGUAGE: Source dialect ("bbcx" or "bbc3")
            BBCX_LIST_PATH: Listing directory (implies listing)
            BBCX_TRACE_PATH: Trace directory (implies tracing)
            BBCX_MAX_STEPS: Instruction limit for runs (positive integer)

        Invalid values are ignored with a warning.
        """
        config = cls()

        if language := os.environ.get("BBCX_LANGUAGE"):
            if language.lower() in LANGUAGES:
                config.language = language.lower()
            else:
                logger.warning(f"Ignoring BBCX_LANGUAGE={language!r}: expected one of {', '.join(LANGUAGES)}")

        if list_path := os.environ.get("BBCX_LIST_PATH"):
            config.list_path = Path(list_path)

        if trace_path := os.environ.get("BBCX_TRACE_PATH"):
            config.trace_path = Path(trace_path)

        if max_steps := os.environ.get("BBCX_MAX_STEPS"):
            if max_steps.isdigit() and int(max_steps) > 0:
                config.max_steps = int(max_steps)
            else:
                logger.warning(f"Ignoring BBCX_MAX_STEPS={max_steps!r}: expected a positive integer")

        return config.normalized()

    def normalized(self) -> "BuildConfig":
        """Copy with implied switches turned on."""
        listing = self.list or self.list_path is not None
        trace = self.trace or self.trace_path is not None
        return replace(self, list=listing, trace=trace, run=self.run or trace)

    def listing_file(self, source: Path) -> Path:
        """Where the listing for source goes: <stem>.lst."""
        directory = self.list_path if self.list_path is not None else source.parent
        return directory / f"{source.stem}.lst"

    def trace_file(self, source: Path) -> Path:
        """Where the trace for source goes: <stem>.out."""
        directory = self.trace_path if self.trace_path is not None else source.parent
        return directory / f"{source.stem}.out"
