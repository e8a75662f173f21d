"""
BBC-X SDK Command-Line Interface
================================

- **bbcx**: assemble, list, run and trace BBC-X (or list BBC-3) programs

The tool is a Click application; renderers for listings and traces
live in render, exit codes and error reporting in errors.
"""

__all__ = ["bbcx"]
