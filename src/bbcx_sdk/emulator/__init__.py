"""
BBC-X Emulator
==============

Runs assembled BBC-X programs.

- executor: fetch-decode-execute loop, run states and faults
- library: routines reached through EXTRA (PRINT, READ, SQRT, ...)
- io: output, input and trace interfaces with in-memory implementations
"""

from bbcx_sdk.emulator.io import (
    BufferedOutput,
    InputSource,
    OutputSink,
    RegisterSnapshot,
    ScriptedInput,
    TraceRecord,
    TraceRecorder,
    TraceSink,
)
from bbcx_sdk.emulator.executor import (
    ExecutionContext,
    ExecutionSummary,
    Executor,
    RunStatus,
)

__all__ = [
    "BufferedOutput",
    "InputSource",
    "OutputSink",
    "RegisterSnapshot",
    "ScriptedInput",
    "TraceRecord",
    "TraceRecorder",
    "TraceSink",
    "ExecutionContext",
    "ExecutionSummary",
    "Executor",
    "RunStatus",
]
