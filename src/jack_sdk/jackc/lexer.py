"""
Jack Lexer (Tokenizer)
======================

This module implements the lexer for the Jack language.
It converts source text into a finite list of classified tokens and
provides the TokenStream cursor the compilation engine reads from.

Token Categories
----------------
- Keywords: class, constructor, function, method, field, static, var,
  int, char, boolean, void, true, false, null, this, let, do, if, else,
  while, return
- Symbols: { } ( ) [ ] . , ; + - * / & | < > = ~
- Integer constants: decimal, 0..32767
- String constants: "double quoted", no embedded quote or newline,
  character codes 0..32767
- Identifiers: runs of letters, digits and underscores

Comments
--------
- Single-line: // comment
- Multi-line: /* comment */ and /** API comment */

Comments are removed before tokenization. Their text is replaced by
spaces (newlines are kept) so token positions still match the original
source for error reporting.

Classification Order
--------------------
A matched lexeme is classified by trying, in order: exact keyword,
single-character symbol, all digits (integer constant), double-quoted
text (string constant), word run (identifier). Anything else is a
JackLexError.

Example Usage
-------------
>>> from jack_sdk.jackc.lexer import JackLexer, TokenStream
>>> tokens = JackLexer('let x = 42;', "Main.jack").tokenize()
>>> for token in tokens:
...     print(token)
Token(KEYWORD, 'let', 1:1)
Token(IDENTIFIER, 'x', 1:5)
Token(SYMBOL, '=', 1:7)
Token(INT_CONST, '42', 1:9)
Token(SYMBOL, ';', 1:11)
>>> stream = TokenStream(tokens)
>>> stream.advance().lexeme
'let'
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from jack_sdk.errors import SourceLocation
from jack_sdk.jackc.errors import JackLexError, TokenTypeMismatchError


# =============================================================================
# Token Kind and Keyword Enumerations
# =============================================================================

class TokenKind(Enum):
    """
    Lexical categories of the Jack language.

    The values are the element names used by the Jack grammar
    documentation, which keeps error messages readable.
    """

    KEYWORD = "keyword"
    SYMBOL = "symbol"
    IDENTIFIER = "identifier"
    INT_CONST = "integerConstant"
    STRING_CONST = "stringConstant"


class Keyword(Enum):
    """The closed set of reserved words."""

    CLASS = "class"
    CONSTRUCTOR = "constructor"
    FUNCTION = "function"
    METHOD = "method"
    FIELD = "field"
    STATIC = "static"
    VAR = "var"
    INT = "int"
    CHAR = "char"
    BOOLEAN = "boolean"
    VOID = "void"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    THIS = "this"
    LET = "let"
    DO = "do"
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    RETURN = "return"


# Map keyword strings to their enumeration members
KEYWORDS: dict[str, Keyword] = {keyword.value: keyword for keyword in Keyword}

# Single-character symbols
SYMBOLS = frozenset("{}()[].,;+-*/&|<>=~")

# Largest value the VM "constant" segment can push
MAX_INT_CONST = 32767


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    Represents a single token from Jack source code.

    Tokens are immutable. The lexeme is the exact source text, so a
    string constant's lexeme still carries its quotes; use string_value
    for the decoded text.

    Attributes:
        kind: The TokenKind classification
        lexeme: The source text of the token
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    kind: TokenKind
    lexeme: str
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        """Format token for debugging output."""
        return f"Token({self.kind.name}, {self.lexeme!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    @property
    def keyword(self) -> Optional[Keyword]:
        """The keyword for KEYWORD tokens, None otherwise."""
        if self.kind is TokenKind.KEYWORD:
            return KEYWORDS[self.lexeme]
        return None

    @property
    def int_value(self) -> Optional[int]:
        """The parsed value for INT_CONST tokens, None otherwise."""
        if self.kind is TokenKind.INT_CONST:
            return int(self.lexeme)
        return None

    @property
    def string_value(self) -> Optional[str]:
        """The text between the quotes for STRING_CONST tokens."""
        if self.kind is TokenKind.STRING_CONST:
            return self.lexeme[1:-1]
        return None

    def is_symbol(self, *chars: str) -> bool:
        """Return True if this is a symbol (one of chars, when given)."""
        if self.kind is not TokenKind.SYMBOL:
            return False
        return not chars or self.lexeme in chars

    def is_keyword(self, *keywords: Keyword) -> bool:
        """Return True if this is a keyword (one of keywords, when given)."""
        if self.kind is not TokenKind.KEYWORD:
            return False
        return not keywords or KEYWORDS[self.lexeme] in keywords


# =============================================================================
# Lexer Implementation
# =============================================================================

class JackLexer:
    """
    Tokenizes Jack source code.

    The whole source is preprocessed (comments blanked out) and then
    scanned left to right. Whitespace separates tokens; every other span
    must match one of the five token kinds.

    Usage:
        lexer = JackLexer(source_text, filename)
        tokens = lexer.tokenize()

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    # String constants are matched so that comment markers inside them
    # are left alone. The bare "/*" alternative catches unterminated
    # block comments.
    _COMMENT_PATTERN = re.compile(
        r'"[^"\n]*"|//[^\n]*|/\*.*?\*/|/\*',
        re.DOTALL,
    )

    _TOKEN_PATTERN = re.compile(
        r'(?P<string>"[^"\n]*")'
        r"|(?P<word>\w+)"
        r"|(?P<symbol>[{}()\[\].,;+\-*/&|<>=~])",
        re.ASCII,
    )

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the lexer with source code.

        Args:
            source: The Jack source code to tokenize
            filename: Name of the source file (for error messages)
        """
        self.source = source
        self.filename = filename
        self._lines = source.splitlines()

    def tokenize(self) -> list[Token]:
        """
        Produce every token of the source, in order.

        Returns:
            List of Token objects; no end-of-file marker is appended

        Raises:
            JackLexError: If a span of the source is not a valid token
        """
        text = self.strip_comments()
        tokens: list[Token] = []

        pos = 0
        line = 1
        line_start = 0
        length = len(text)

        while pos < length:
            char = text[pos]

            if char == "\n":
                pos += 1
                line += 1
                line_start = pos
                continue

            if char.isspace():
                pos += 1
                continue

            column = pos - line_start + 1
            match = self._TOKEN_PATTERN.match(text, pos)
            if match is None:
                raise self._unrecognized(char, line, column)

            tokens.append(self._classify(match.group(), line, column))
            pos = match.end()

        return tokens

    def strip_comments(self) -> str:
        """
        Return the source with every comment blanked out.

        Comment characters become spaces and newlines are kept, so the
        result has exactly the same line and column layout as the source.

        Raises:
            JackLexError: If a block comment is never closed
        """

        def blank(match: re.Match) -> str:
            text = match.group()
            if text.startswith('"'):
                return text
            if text == "/*":
                line, column = self._position_of(match.start())
                raise JackLexError(
                    "unterminated block comment",
                    SourceLocation(self.filename, line, column),
                    hint="add closing */ to terminate the comment",
                    source_line=self._source_line(line),
                )
            return "".join(c if c == "\n" else " " for c in text)

        return self._COMMENT_PATTERN.sub(blank, self.source)

    # =========================================================================
    # Classification
    # =========================================================================

    def _classify(self, lexeme: str, line: int, column: int) -> Token:
        """Classify a matched lexeme into exactly one token kind."""
        if lexeme in KEYWORDS:
            kind = TokenKind.KEYWORD
        elif len(lexeme) == 1 and lexeme in SYMBOLS:
            kind = TokenKind.SYMBOL
        elif lexeme.isdigit():
            kind = TokenKind.INT_CONST
            if int(lexeme) > MAX_INT_CONST:
                raise JackLexError(
                    f"integer constant {lexeme} out of range",
                    SourceLocation(self.filename, line, column),
                    hint=f"integer constants must be between 0 and {MAX_INT_CONST}",
                    source_line=self._source_line(line),
                )
        elif lexeme.startswith('"'):
            kind = TokenKind.STRING_CONST
            # Each character is pushed as a constant
            for offset, char in enumerate(lexeme[1:-1], start=1):
                if ord(char) > MAX_INT_CONST:
                    raise JackLexError(
                        f"character U+{ord(char):04X} in string constant out of range",
                        SourceLocation(self.filename, line, column + offset),
                        hint=f"string characters must have codes between 0 and {MAX_INT_CONST}",
                        source_line=self._source_line(line),
                    )
        else:
            kind = TokenKind.IDENTIFIER

        return Token(kind, lexeme, line, column, self.filename)

    # =========================================================================
    # Error Helpers
    # =========================================================================

    def _unrecognized(self, char: str, line: int, column: int) -> JackLexError:
        """Build the error for a span that matches no token kind."""
        location = SourceLocation(self.filename, line, column)
        source_line = self._source_line(line)

        if char == '"':
            return JackLexError(
                "unterminated string constant",
                location,
                hint="add closing '\"' on the same line",
                source_line=source_line,
            )

        return JackLexError(
            f"invalid character '{char}' (0x{ord(char):02X})",
            location,
            source_line=source_line,
        )

    def _position_of(self, offset: int) -> tuple[int, int]:
        """Convert a character offset into (line, column)."""
        line = self.source.count("\n", 0, offset) + 1
        line_start = self.source.rfind("\n", 0, offset) + 1
        return line, offset - line_start + 1

    def _source_line(self, line: int) -> Optional[str]:
        """Get source line for error reporting."""
        if 0 < line <= len(self._lines):
            return self._lines[line - 1]
        return None


# =============================================================================
# Token Stream (read cursor)
# =============================================================================

class TokenStream:
    """
    Read cursor over an immutable token sequence.

    The stream starts positioned before the first token; advance() moves
    to the next token and makes it current. The typed accessors read the
    current token and refuse tokens of another kind.

    Example:
        stream = TokenStream(JackLexer("do f();").tokenize())
        while stream.has_more():
            stream.advance()
            print(stream.token_type())
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens = tuple(tokens)
        self._pos = -1

    def __len__(self) -> int:
        return len(self._tokens)

    @property
    def tokens(self) -> tuple[Token, ...]:
        """The full token sequence."""
        return self._tokens

    @property
    def current(self) -> Optional[Token]:
        """The current token, or None before the first advance."""
        if 0 <= self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def has_more(self) -> bool:
        """Return True if advance() would succeed."""
        return self._pos + 1 < len(self._tokens)

    def advance(self) -> Token:
        """
        Move to the next token and return it.

        Raises:
            JackLexError: If no tokens remain
        """
        if not self.has_more():
            last = self.current
            raise JackLexError(
                "token stream exhausted",
                last.location if last is not None else None,
            )
        self._pos += 1
        return self._tokens[self._pos]

    # =========================================================================
    # Typed Accessors
    # =========================================================================

    def token_type(self) -> TokenKind:
        """Return the kind of the current token."""
        return self._require(None).kind

    def keyword(self) -> Keyword:
        """Return the keyword of the current KEYWORD token."""
        return KEYWORDS[self._require(TokenKind.KEYWORD).lexeme]

    def symbol(self) -> str:
        """Return the character of the current SYMBOL token."""
        return self._require(TokenKind.SYMBOL).lexeme

    def identifier(self) -> str:
        """Return the name of the current IDENTIFIER token."""
        return self._require(TokenKind.IDENTIFIER).lexeme

    def int_val(self) -> int:
        """Return the value of the current INT_CONST token."""
        return int(self._require(TokenKind.INT_CONST).lexeme)

    def string_val(self) -> str:
        """Return the text of the current STRING_CONST token, unquoted."""
        return self._require(TokenKind.STRING_CONST).lexeme[1:-1]

    def _require(self, kind: Optional[TokenKind]) -> Token:
        token = self.current
        expected = kind.name if kind is not None else "a token"
        if token is None:
            raise TokenTypeMismatchError(expected, None)
        if kind is not None and token.kind is not kind:
            raise TokenTypeMismatchError(expected, token.kind.name, token.location)
        return token
