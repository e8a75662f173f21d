"""
Listing and Trace Rendering
===========================

Plain-text renderers for the data produced by the assembler and the
executor. They only format; nothing here touches the file system.

Listing
-------
    0008  10100014  TAKE 1, RESULT
    0009  04100014  ADD 1, RESULT
     *****  ADD 1, [
            <why the line failed to parse>

Trace
-----
    0008  TAKE    A1: 0 -> 5
    0012  STOP
"""

from typing import Iterable, Mapping, Optional

from bbcx_sdk.assembler.assembly import ListingLine
from bbcx_sdk.emulator.io import TraceRecord

BLANK_LOCATION = " " * 4
BLANK_WORD = " " * 8
FAILED_MARK = " *****"


def render_listing_line(line: ListingLine) -> list[str]:
    """Rows for one source line (a multi-word string takes several rows)."""
    if line.error is not None:
        return [f"{FAILED_MARK}  {line.text}", f"{'':8}{line.error}"]

    if not line.locations:
        return [f"{BLANK_LOCATION}  {BLANK_WORD}  {line.text}".rstrip()]

    rows = []
    words = list(line.words) + [None] * (len(line.locations) - len(line.words))
    for i, (location, word) in enumerate(zip(line.locations, words)):
        shown = str(word) if word is not None else BLANK_WORD
        row = f"{location:04}  {shown}"
        if i == 0:
            row = f"{row}  {line.text}"
        rows.append(row.rstrip())
    return rows


def render_listing(
    listing: Iterable[ListingLine],
    title: str = "",
    labels: Optional[Mapping[str, int]] = None,
) -> str:
    """
    Whole listing file text.

    Args:
        listing: Listing data in source order
        title: Heading, usually the source file name
        labels: Label table to append (omitted when empty)
    """
    lines = []
    if title:
        lines.append(title)
        lines.append("=" * max(len(title), 40))
        lines.append("")
    for line in listing:
        lines.extend(render_listing_line(line))
    if labels:
        lines.append("")
        lines.append("Labels")
        lines.append("-" * 30)
        for name, location in sorted(labels.items()):
            lines.append(f"{name:20s} = {location:04}")
    return "\n".join(lines) + "\n"


def render_trace_record(record: TraceRecord) -> str:
    changes = record.after.changed_from(record.before)
    shown = ", ".join(f"{name}: {old} -> {new}" for name, (old, new) in changes.items())
    return f"{record.location:04}  {record.mnemonic:<6}  {shown}".rstrip()


def render_trace(records: Iterable[TraceRecord]) -> str:
    """One line per executed instruction."""
    return "".join(f"{render_trace_record(r)}\n" for r in records)
