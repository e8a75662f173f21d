"""
BBC-X Assembler
===============

Assembler for the executable BBC-X dialect.

Main Components
---------------
- **opcodes**: Function codes, aliases and library routines
- **Lexer**: Tokenizes one source line
- **Parser**: Parses a line into a SourceLine; parse_lines handles whole files
- **CodeGenerator**: Two-pass location assignment and encoding
- **Assembler**: Pipeline facade producing an Assembly

Assembly Process
----------------
1. **Parsing**: every line is parsed on its own; all line errors are
   collected before failing
2. **Pass 1**: locations, labels and the literal table
3. **Pass 2**: encoding with label substitution and range checks
"""

# opcodes first: the memory layer imports it while this package initialises
from bbcx_sdk.assembler.opcodes import Mnemonic, LibraryRoutine, lookup_mnemonic
from bbcx_sdk.assembler.lexer import Lexer, Token, TokenType
from bbcx_sdk.assembler.ast import (
    SourceLine,
    PWord,
    IWord,
    FWord,
    SWord,
    AddressOperand,
    ConstOperand,
    OperandFields,
)
from bbcx_sdk.assembler.parser import Parser, ParsedProgram, LineResult, parse_line, parse_lines
from bbcx_sdk.assembler.assembly import Assembly, AssembledWord, ListingLine
from bbcx_sdk.assembler.codegen import CodeGenerator, DEFAULT_ORIGIN
from bbcx_sdk.assembler.assembler import Assembler, assemble, assemble_file

__all__ = [
    "Mnemonic",
    "LibraryRoutine",
    "lookup_mnemonic",
    "Lexer",
    "Token",
    "TokenType",
    "SourceLine",
    "PWord",
    "IWord",
    "FWord",
    "SWord",
    "AddressOperand",
    "ConstOperand",
    "OperandFields",
    "Parser",
    "ParsedProgram",
    "LineResult",
    "parse_line",
    "parse_lines",
    "Assembly",
    "AssembledWord",
    "ListingLine",
    "CodeGenerator",
    "DEFAULT_ORIGIN",
    "Assembler",
    "assemble",
    "assemble_file",
]
