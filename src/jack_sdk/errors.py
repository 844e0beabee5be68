"""
Jack SDK Error Hierarchy
========================

This module defines the root of the exception hierarchy for the Jack SDK.
All exceptions inherit from JackSDKError, allowing callers to catch every
SDK-related error with a single except clause if desired.

Exception Hierarchy
-------------------
JackSDKError (base)
└── JackError (compiler errors, see jack_sdk.jackc.errors)
    ├── JackLexError - unrecognized or malformed source text
    ├── JackSyntaxError - grammar violation (expected vs found)
    │   └── UnexpectedEndOfInputError - tokens ran out mid-construct
    ├── UnresolvedSymbolError - identifier declared in neither scope
    ├── TokenTypeMismatchError - token accessor used on wrong kind
    ├── SourceDiscoveryError - no compilable units at a path
    └── SourceReadError - unreadable or undecodable source file

Design Philosophy
-----------------
Each exception captures source location information (filename, line, column)
when applicable. This allows for detailed error messages that help users
quickly locate and fix issues in their source code.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class JackSDKError(Exception):
    """
    Base exception for all Jack SDK errors.

    All exceptions in the SDK inherit from this class, allowing callers
    to catch all SDK-related errors with a single except clause:

        try:
            compiler.compile_file("Main.jack")
        except JackSDKError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Tokens carry their position so that every error raised while
    compiling can point at the offending text. The immutable (frozen)
    design ensures locations cannot be accidentally modified.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"
