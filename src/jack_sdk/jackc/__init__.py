"""
Jack Compiler
=============

This package implements a single-pass compiler from the Jack language to
Hack virtual machine code.

Jack is the small object-oriented teaching language of the Nand2Tetris
course. A Jack program is a set of classes, one per .jack file; each file
compiles independently into a .vm file of stack-machine instructions.

- A lexer (tokenizer) producing a finite list of tokens
- A two-level symbol table (class scope, subroutine scope)
- A VM writer that formats instructions
- A recursive descent compilation engine that parses, resolves and
  emits code in one walk, with no syntax tree

Pipeline
--------
    Jack Source → Lexer → TokenStream → CompilationEngine → VMWriter → .vm

Usage
-----
>>> from jack_sdk.jackc import compile_jack
>>> vm = compile_jack('class Main { function void main() { return; } }')

Language Subset
---------------
Supported features:
- Types: int, char, boolean, class types (Array, String, user classes)
- Declarations: static, field, var, parameters
- Subroutines: constructor, function, method
- Statements: let, if/else, while, do, return
- Expressions: + - * / & | < > = with flat left-to-right evaluation,
  unary - and ~, array indexing, method and function calls,
  string constants, true/false/null/this

Author: Jack SDK Contributors
"""

# =============================================================================
# Version Information
# =============================================================================

__version__ = "1.0.0"
__author__ = "Jack SDK Contributors"

# =============================================================================
# Public API Imports
# =============================================================================

from jack_sdk.jackc.compiler import (
    JackCompiler,
    CompilerOptions,
    CompilerResult,
    SourceLoader,
    OutputSink,
    compile_jack,
    compile_file,
)
from jack_sdk.jackc.errors import (
    JackError,
    JackLexError,
    JackSyntaxError,
    UnexpectedEndOfInputError,
    UnresolvedSymbolError,
    TokenTypeMismatchError,
    SourceDiscoveryError,
    SourceReadError,
)
from jack_sdk.jackc.lexer import JackLexer, TokenStream, Token, TokenKind, Keyword
from jack_sdk.jackc.symbols import SymbolTable, Symbol, SymbolKind, segment_for
from jack_sdk.jackc.vmwriter import VMWriter, Segment, ArithmeticCommand
from jack_sdk.jackc.engine import CompilationEngine

__all__ = [
    # Version
    "__version__",
    # Main API
    "JackCompiler",
    "CompilerOptions",
    "CompilerResult",
    "SourceLoader",
    "OutputSink",
    "compile_jack",
    "compile_file",
    # Errors
    "JackError",
    "JackLexError",
    "JackSyntaxError",
    "UnexpectedEndOfInputError",
    "UnresolvedSymbolError",
    "TokenTypeMismatchError",
    "SourceDiscoveryError",
    "SourceReadError",
    # Lexer
    "JackLexer",
    "TokenStream",
    "Token",
    "TokenKind",
    "Keyword",
    # Symbol table
    "SymbolTable",
    "Symbol",
    "SymbolKind",
    "segment_for",
    # VM writer
    "VMWriter",
    "Segment",
    "ArithmeticCommand",
    # Compilation engine
    "CompilationEngine",
]
