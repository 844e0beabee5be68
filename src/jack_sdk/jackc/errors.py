"""
Jack Compiler Error Hierarchy
=============================

This module defines the exception hierarchy for the Jack compiler.
All exceptions inherit from JackError, which itself inherits from
the base JackSDKError for consistent error handling across the SDK.

Exception Hierarchy
-------------------
JackError (base for all Jack compiler errors)
├── JackLexError - source text that cannot be tokenized
├── JackSyntaxError - token present but grammar violated
│   └── UnexpectedEndOfInputError - token stream exhausted mid-construct
├── UnresolvedSymbolError - identifier declared in neither scope
├── TokenTypeMismatchError - token accessor called on the wrong kind
├── SourceDiscoveryError - driver found nothing to compile
└── SourceReadError - a source file could not be read or decoded

None of these are recovered inside the compiler. Each one aborts the
compilation of the current unit; the driver reports it and moves on to
the next unit.

Error Message Format
--------------------
All errors include source location information and follow this format:

    filename:line:column: error: description
        source_line_text
            ^ (pointer to error location)
    hint: suggestion for fixing

Example:
    Main.jack:5:13: error: expected '=' but found '5'
            let x 5;
                  ^
    hint: a let statement assigns with '='
"""

from typing import Optional, List

from jack_sdk.errors import JackSDKError, SourceLocation


# =============================================================================
# Base Jack Exception
# =============================================================================

class JackError(JackSDKError):
    """
    Base exception for all Jack compiler errors.

    This class provides common functionality for error messages including
    source location tracking, source line context, and helpful hints.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Creates a user-friendly error message that helps the programmer
        quickly identify and fix the issue. Example:

            Main.jack:7:17: error: undeclared identifier 'cnt'
                    let x = cnt + 1;
                            ^
            hint: did you mean 'count'?
        """
        parts = []

        # Location prefix: filename:line:column: error: message
        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Lexical Errors
# =============================================================================

class JackLexError(JackError):
    """
    Source text that cannot be turned into tokens.

    Raised when the lexer finds a span that is none of keyword, symbol,
    integer constant, string constant or identifier, and when the token
    stream is advanced past its last token.

    Examples:
        - Invalid character such as '#' or '$'
        - String constant missing its closing quote
        - Block comment missing its closing */
        - Integer constant above 32767
        - String character with a code above 32767
    """
    pass


# =============================================================================
# Syntax Errors
# =============================================================================

class JackSyntaxError(JackError):
    """
    Grammar violation in Jack source code.

    Raised when the compilation engine finds a token that does not match
    the production it is compiling. Carries the expected construct and
    the actual token text so callers can report both.

    Attributes:
        expected: Description of what the grammar required
        found: Text of the token actually present (None at end of input)
    """

    def __init__(
        self,
        expected: str,
        found: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.expected = expected
        self.found = found

        if found is None:
            message = f"expected {expected} but reached end of input"
        else:
            message = f"expected {expected} but found '{found}'"

        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnexpectedEndOfInputError(JackSyntaxError):
    """
    Token stream ran out in the middle of a construct.

    Example:
        class Main { function void main() {
    """

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            expected,
            found=None,
            location=location,
            source_line=source_line,
            hint="the source ends before the construct is complete",
        )


# =============================================================================
# Semantic Errors
# =============================================================================

class UnresolvedSymbolError(JackError):
    """
    Reference to an undeclared identifier.

    Raised when a name is used as a variable but is declared in neither
    the subroutine scope nor the class scope. Similarly-named symbols are
    offered as a hint to help catch typos.
    """

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_identifiers: Optional[List[str]] = None,
        message: Optional[str] = None,
    ):
        self.identifier = identifier
        self.similar_identifiers = similar_identifiers or []

        hint = None
        if self.similar_identifiers:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_identifiers[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            message or f"undeclared identifier '{identifier}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )

    def with_context(
        self,
        location: Optional[SourceLocation],
        source_line: Optional[str],
    ) -> "UnresolvedSymbolError":
        """Return a copy of this error pointing at a source location."""
        return UnresolvedSymbolError(
            self.identifier,
            location=location,
            source_line=source_line,
            similar_identifiers=self.similar_identifiers,
            message=self.message,
        )


class TokenTypeMismatchError(JackError):
    """
    Token accessor called against a token of another kind.

    This is an internal-contract violation: the compilation engine checks
    a token's kind before reading its value, so this should only surface
    when the token stream is used directly.
    """

    def __init__(
        self,
        expected_kind: str,
        actual_kind: Optional[str],
        location: Optional[SourceLocation] = None,
    ):
        self.expected_kind = expected_kind
        self.actual_kind = actual_kind
        actual = actual_kind if actual_kind is not None else "no token"
        super().__init__(
            f"current token is {actual}, not {expected_kind}",
            location=location,
        )


# =============================================================================
# Driver Errors
# =============================================================================

class SourceDiscoveryError(JackError):
    """
    Nothing compilable was found at the requested path.

    Raised by the source loader for a file that is not a .jack file or a
    directory that contains no .jack files.
    """
    pass


class SourceReadError(JackError):
    """
    A discovered source file could not be read or decoded.

    Raised by the source loader so that one unreadable unit fails on its
    own instead of aborting a whole batch.

    Attributes:
        filename: Path of the unreadable file
    """

    def __init__(self, filename: str, reason: str, hint: Optional[str] = None):
        self.filename = filename
        super().__init__(
            f"cannot read '{filename}': {reason}",
            hint=hint,
        )
