"""
Jack SDK - Toolchain for the Jack Language
==========================================

This package provides a compiler for Jack, the object-oriented teaching
language of the Nand2Tetris course, targeting the Hack virtual machine.

Main Components
---------------
- **jackc**: Jack compiler
    Converts Jack source files (.jack) to Hack VM code (.vm)

- **cli**: Command-line tools
    ``jackc`` compiles a .jack file or a directory of them

Quick Start
-----------
Compile a class:
    >>> from jack_sdk.jackc import JackCompiler
    >>> result = JackCompiler().compile_file("Main.jack")
    >>> print(result.vm_code)

Compile a program directory in parallel:
    >>> from jack_sdk.jackc import JackCompiler, CompilerOptions
    >>> results = JackCompiler(CompilerOptions(jobs=4)).compile_path("Pong")

Or use the command-line tool:
    $ jackc Pong/
    $ jackc Main.jack --stdout

Version History
---------------
1.0.0 - Initial release with the single-pass Jack compiler
"""

__version__ = "1.0.0"
__author__ = "Jack SDK Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from jack_sdk.errors import JackSDKError, SourceLocation
from jack_sdk.jackc import (
    JackCompiler,
    CompilerOptions,
    CompilerResult,
    compile_jack,
    JackError,
    JackLexError,
    JackSyntaxError,
    UnexpectedEndOfInputError,
    UnresolvedSymbolError,
    TokenTypeMismatchError,
    SourceDiscoveryError,
    SourceReadError,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Compiler
    "JackCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_jack",
    # Exception hierarchy
    "JackSDKError",
    "SourceLocation",
    "JackError",
    "JackLexError",
    "JackSyntaxError",
    "UnexpectedEndOfInputError",
    "UnresolvedSymbolError",
    "TokenTypeMismatchError",
    "SourceDiscoveryError",
    "SourceReadError",
]
