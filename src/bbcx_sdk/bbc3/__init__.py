"""
BBC-3 Legacy Dialect
====================

The reference dialect from which BBC-X grew. It is parsed and
validated so old programs can be studied and listed, but it cannot be
run.
"""

from bbcx_sdk.bbc3.opcodes import MnemonicGroup, mnemonic_group
from bbcx_sdk.bbc3.parser import Bbc3Parser, parse_line
from bbcx_sdk.bbc3.assembler import Bbc3Assembler, Bbc3Assembly

__all__ = [
    "MnemonicGroup",
    "mnemonic_group",
    "Bbc3Parser",
    "parse_line",
    "Bbc3Assembler",
    "Bbc3Assembly",
]
