"""
Jack Compilation Engine
=======================

Single-pass recursive descent compiler from Jack tokens to Hack VM code.
There is no syntax tree: each method recognizes one grammar production
and emits its VM code while consuming the production's tokens.

Grammar
-------
class          ::= 'class' IDENT '{' (classVarDec | subroutineDec)* '}'
classVarDec    ::= ('static' | 'field') type IDENT (',' IDENT)* ';'
subroutineDec  ::= ('constructor' | 'function' | 'method') (type | 'void') IDENT
                   '(' parameterList ')' subroutineBody
parameterList  ::= (type IDENT (',' type IDENT)*)?
subroutineBody ::= '{' varDec* statements '}'
varDec         ::= 'var' type IDENT (',' IDENT)* ';'
statements     ::= (let | if | while | do | return)*
let            ::= 'let' IDENT ('[' expr ']' | '.' IDENT)* '=' expr ';'
if             ::= 'if' '(' expr ')' '{' statements '}' ('else' '{' statements '}')?
while          ::= 'while' '(' expr ')' '{' statements '}'
do             ::= 'do' IDENT ('.' IDENT)? '(' expressionList ')' ';'
return         ::= 'return' expr? ';'
expr           ::= term (op term)*
term           ::= INT | STRING | 'true' | 'false' | 'null' | 'this'
                 | IDENT ('[' expr ']' | '.' IDENT '(' expressionList ')')*
                 | IDENT '(' expressionList ')'
                 | '(' expr ')' | ('-' | '~') term

Cursor Contract
---------------
Every production method documents where the token cursor is when it is
called ("cursor on X") and where it leaves it ("cursor past X", i.e. on
the first token after the construct). Callers rely on these exactly.

Expression Evaluation
---------------------
Binary operators fold strictly left to right with no precedence, the way
the stack machine evaluates them: ``2 + 3 * 4`` is ``(2 + 3) * 4``.
Use parentheses for any other grouping. ``*`` and ``/`` are calls to
``Math.multiply`` and ``Math.divide``.

Labels
------
``if`` emits ELSE_n/END_n and ``while`` emits WHILE_n/END_n. Both draw n
from one counter that restarts at 0 in every subroutine.
"""

from typing import Optional

from jack_sdk.jackc.errors import (
    JackSyntaxError,
    UnexpectedEndOfInputError,
    UnresolvedSymbolError,
)
from jack_sdk.jackc.lexer import Keyword, Token, TokenKind, TokenStream
from jack_sdk.jackc.symbols import Symbol, SymbolKind, SymbolTable
from jack_sdk.jackc.vmwriter import ArithmeticCommand, Segment, VMWriter


# =============================================================================
# Operator Tables
# =============================================================================

BINARY_COMMANDS: dict[str, ArithmeticCommand] = {
    "&": ArithmeticCommand.AND,
    "<": ArithmeticCommand.LT,
    ">": ArithmeticCommand.GT,
    "+": ArithmeticCommand.ADD,
    "-": ArithmeticCommand.SUB,
    "|": ArithmeticCommand.OR,
    "=": ArithmeticCommand.EQ,
}

# Operators the VM has no command for; they call OS routines instead
BINARY_CALLS: dict[str, str] = {
    "*": "Math.multiply",
    "/": "Math.divide",
}

BINARY_OPERATORS = tuple(BINARY_COMMANDS) + tuple(BINARY_CALLS)

UNARY_COMMANDS: dict[str, ArithmeticCommand] = {
    "-": ArithmeticCommand.NEG,
    "~": ArithmeticCommand.NOT,
}

TYPE_KEYWORDS = (Keyword.INT, Keyword.CHAR, Keyword.BOOLEAN)

SUBROUTINE_KEYWORDS = (Keyword.CONSTRUCTOR, Keyword.FUNCTION, Keyword.METHOD)


class CompilationEngine:
    """
    Compiles one Jack class from a token stream into VM instructions.

    The engine owns nothing but its cursor state and label counter; the
    token stream, symbol table and writer are handed in per unit so that
    separate units never share state.

    Example:
        tokens = TokenStream(JackLexer(source, "Main.jack").tokenize())
        writer = VMWriter()
        CompilationEngine(tokens, SymbolTable(), writer).compile_class()
        print(writer.to_text())

    Attributes:
        class_name: Name of the class being compiled (set by compile_class)
    """

    def __init__(
        self,
        tokens: TokenStream,
        symbols: SymbolTable,
        writer: VMWriter,
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
    ):
        self._tokens = tokens
        self._symbols = symbols
        self._writer = writer
        self.filename = filename
        self.source_lines = source_lines or []

        self.class_name = ""
        self._label_counter = 0

        # Set once the cursor has moved past the last token
        self._exhausted = False

        self._statement_handlers = {
            Keyword.LET: self.compile_let,
            Keyword.IF: self.compile_if,
            Keyword.WHILE: self.compile_while,
            Keyword.DO: self.compile_do,
            Keyword.RETURN: self.compile_return,
        }

    # =========================================================================
    # Program Structure
    # =========================================================================

    def compile_class(self) -> None:
        """
        Compile the whole unit.

        Cursor: before the first token of the stream.
        After:  past the final '}', which must be the last token.
        """
        self._next()

        self._expect_keyword(Keyword.CLASS)
        self.class_name = self._expect_identifier("class name")
        self._expect_symbol("{")

        while not self._check_symbol("}"):
            token = self._peek("class variable or subroutine declaration")
            if token.is_keyword(Keyword.STATIC, Keyword.FIELD):
                self.compile_class_var_dec()
            elif token.is_keyword(*SUBROUTINE_KEYWORDS):
                self.compile_subroutine()
            else:
                raise self._syntax_error(
                    "class variable or subroutine declaration", token
                )

        self._expect_symbol("}")

        if not self._exhausted:
            raise self._syntax_error(
                "end of input",
                self._tokens.current,
                hint="a source file holds exactly one class",
            )

    def compile_class_var_dec(self) -> None:
        """
        Cursor: on 'static' or 'field'.
        After:  past the closing ';'.
        """
        if self._expect_keyword(Keyword.STATIC, Keyword.FIELD) is Keyword.STATIC:
            kind = SymbolKind.STATIC
        else:
            kind = SymbolKind.FIELD
        self._compile_variable_names(kind)

    def compile_subroutine(self) -> None:
        """
        Cursor: on 'constructor', 'function' or 'method'.
        After:  past the '}' closing the subroutine body.
        """
        subroutine_kind = self._expect_keyword(*SUBROUTINE_KEYWORDS)
        self._expect_type(allow_void=True)
        name = self._expect_identifier("subroutine name")

        self._symbols.start_subroutine()
        self._label_counter = 0

        # The receiver is the hidden first argument of every method
        if subroutine_kind is Keyword.METHOD:
            self._symbols.define("this", self.class_name, SymbolKind.ARG)

        self._expect_symbol("(")
        self.compile_parameter_list()
        self._expect_symbol(")")

        self.compile_subroutine_body(f"{self.class_name}.{name}", subroutine_kind)

    def compile_parameter_list(self) -> None:
        """
        Cursor: on the first token after '('.
        After:  on the closing ')' (not consumed).
        """
        if self._check_symbol(")"):
            return

        while True:
            var_type = self._expect_type()
            name = self._expect_identifier("parameter name")
            self._symbols.define(name, var_type, SymbolKind.ARG)
            if not self._check_symbol(","):
                return
            self._next()

    def compile_subroutine_body(self, qualified_name: str, subroutine_kind: Keyword) -> None:
        """
        Cursor: on the '{' opening the body.
        After:  past the closing '}'.

        The function header needs the local count, so it is written once
        every varDec has been compiled.
        """
        self._expect_symbol("{")

        while self._check_keyword(Keyword.VAR):
            self.compile_var_dec()

        self._writer.write_function(qualified_name, self._symbols.var_count(SymbolKind.VAR))

        if subroutine_kind is Keyword.CONSTRUCTOR:
            self._writer.write_push(Segment.CONSTANT, self._symbols.var_count(SymbolKind.FIELD))
            self._writer.write_call("Memory.alloc", 1)
            self._writer.write_pop(Segment.POINTER, 0)
        elif subroutine_kind is Keyword.METHOD:
            self._writer.write_push(Segment.ARGUMENT, 0)
            self._writer.write_pop(Segment.POINTER, 0)

        self.compile_statements()
        self._expect_symbol("}")

    def compile_var_dec(self) -> None:
        """
        Cursor: on 'var'.
        After:  past the closing ';'.
        """
        self._expect_keyword(Keyword.VAR)
        self._compile_variable_names(SymbolKind.VAR)

    def _compile_variable_names(self, kind: SymbolKind) -> None:
        """
        Compile ``type name (',' name)* ';'`` and define each name.

        Cursor: on the type.
        After:  past the closing ';'.
        """
        var_type = self._expect_type()
        self._symbols.define(self._expect_identifier("variable name"), var_type, kind)

        while self._check_symbol(","):
            self._next()
            self._symbols.define(self._expect_identifier("variable name"), var_type, kind)

        self._expect_symbol(";")

    # =========================================================================
    # Statements
    # =========================================================================

    def compile_statements(self) -> None:
        """
        Cursor: on the first statement keyword, or on '}' for none.
        After:  on the '}' ending the statement list (not consumed).
        """
        while True:
            token = self._peek("statement or '}'")
            if token.is_symbol("}"):
                return
            handler = self._statement_handlers.get(token.keyword)
            if handler is None:
                raise self._syntax_error(
                    "statement",
                    token,
                    hint="statements start with let, if, while, do or return",
                )
            handler()

    def compile_let(self) -> None:
        """
        Cursor: on 'let'.
        After:  past the closing ';'.

        A plain variable target is stored with one pop. A target with
        '[...]' or '.field' suffixes is an address: it is computed first,
        the value next, and the store goes through pointer 1 / that 0.
        """
        self._expect_keyword(Keyword.LET)
        name_token = self._peek("variable name")
        target = self._resolve(self._expect_identifier("variable name"), name_token)

        if not self._check_symbol("[", "."):
            self._expect_symbol("=")
            self.compile_expression()
            self._expect_symbol(";")
            self._writer.write_pop(target.segment, target.index)
            return

        self._writer.write_push(target.segment, target.index)
        value_type: Optional[str] = target.type
        first = True

        while self._check_symbol("[", "."):
            if not first:
                # Load the element the previous suffix addressed
                self._writer.write_pop(Segment.POINTER, 1)
                self._writer.write_push(Segment.THAT, 0)

            if self._check_symbol("["):
                self._next()
                self.compile_expression()
                self._expect_symbol("]")
                self._writer.write_arithmetic(ArithmeticCommand.ADD)
                value_type = None
            else:
                self._next()
                field_token = self._peek("field name")
                field = self._field_of(value_type, self._expect_identifier("field name"), field_token)
                self._writer.write_push(Segment.CONSTANT, field.index)
                self._writer.write_arithmetic(ArithmeticCommand.ADD)
                value_type = field.type

            first = False

        self._expect_symbol("=")
        self.compile_expression()
        self._expect_symbol(";")

        self._writer.write_pop(Segment.TEMP, 0)
        self._writer.write_pop(Segment.POINTER, 1)
        self._writer.write_push(Segment.TEMP, 0)
        self._writer.write_pop(Segment.THAT, 0)

    def compile_if(self) -> None:
        """
        Cursor: on 'if'.
        After:  past the '}' closing the last branch.
        """
        self._expect_keyword(Keyword.IF)
        self._compile_condition()

        number = self._new_label_number()
        else_label = f"ELSE_{number}"
        end_label = f"END_{number}"

        self._writer.write_arithmetic(ArithmeticCommand.NOT)
        self._writer.write_if(else_label)
        self._compile_block()
        self._writer.write_goto(end_label)
        self._writer.write_label(else_label)

        if self._check_keyword(Keyword.ELSE):
            self._next()
            self._compile_block()

        self._writer.write_label(end_label)

    def compile_while(self) -> None:
        """
        Cursor: on 'while'.
        After:  past the '}' closing the loop body.
        """
        self._expect_keyword(Keyword.WHILE)

        number = self._new_label_number()
        loop_label = f"WHILE_{number}"
        end_label = f"END_{number}"

        self._writer.write_label(loop_label)
        self._compile_condition()
        self._writer.write_arithmetic(ArithmeticCommand.NOT)
        self._writer.write_if(end_label)
        self._compile_block()
        self._writer.write_goto(loop_label)
        self._writer.write_label(end_label)

    def compile_do(self) -> None:
        """
        Cursor: on 'do'.
        After:  past the closing ';'.
        """
        self._expect_keyword(Keyword.DO)
        name = self._expect_identifier("subroutine name")
        self._compile_subroutine_call(name)
        self._expect_symbol(";")

        # The returned value is unused
        self._writer.write_pop(Segment.TEMP, 0)

    def compile_return(self) -> None:
        """
        Cursor: on 'return'.
        After:  past the closing ';'.

        Void subroutines still return a value (0) so the caller's stack
        stays balanced.
        """
        self._expect_keyword(Keyword.RETURN)

        if self._check_symbol(";"):
            self._writer.write_push(Segment.CONSTANT, 0)
        else:
            self.compile_expression()

        self._expect_symbol(";")
        self._writer.write_return()

    def _compile_condition(self) -> None:
        """Compile ``'(' expr ')'``; cursor on '(' to past ')'."""
        self._expect_symbol("(")
        self.compile_expression()
        self._expect_symbol(")")

    def _compile_block(self) -> None:
        """Compile ``'{' statements '}'``; cursor on '{' to past '}'."""
        self._expect_symbol("{")
        self.compile_statements()
        self._expect_symbol("}")

    # =========================================================================
    # Expressions
    # =========================================================================

    def compile_expression(self) -> None:
        """
        Cursor: on the first token of the expression.
        After:  on the first token past the expression.
        """
        self.compile_term()

        while self._check_symbol(*BINARY_OPERATORS):
            operator = self._peek().lexeme
            self._next()
            self.compile_term()

            if operator in BINARY_CALLS:
                self._writer.write_call(BINARY_CALLS[operator], 2)
            else:
                self._writer.write_arithmetic(BINARY_COMMANDS[operator])

    def compile_expression_list(self) -> int:
        """
        Cursor: on the first token of the first expression, or on ')'.
        After:  on the closing ')' (not consumed).

        Returns:
            Number of expressions compiled
        """
        if self._check_symbol(")"):
            return 0

        self.compile_expression()
        count = 1
        while self._check_symbol(","):
            self._next()
            self.compile_expression()
            count += 1
        return count

    def compile_term(self) -> None:
        """
        Cursor: on the first token of the term.
        After:  on the first token past the term.
        """
        token = self._peek("term")

        if token.kind is TokenKind.INT_CONST:
            self._writer.write_push(Segment.CONSTANT, token.int_value)
            self._next()

        elif token.kind is TokenKind.STRING_CONST:
            self._write_string_constant(token.string_value)
            self._next()

        elif token.is_keyword(Keyword.TRUE):
            # All bits set: not 0 == -1
            self._writer.write_push(Segment.CONSTANT, 0)
            self._writer.write_arithmetic(ArithmeticCommand.NOT)
            self._next()

        elif token.is_keyword(Keyword.FALSE, Keyword.NULL):
            self._writer.write_push(Segment.CONSTANT, 0)
            self._next()

        elif token.is_keyword(Keyword.THIS):
            self._writer.write_push(Segment.POINTER, 0)
            self._next()

        elif token.is_symbol("("):
            self._next()
            self.compile_expression()
            self._expect_symbol(")")

        elif token.is_symbol(*UNARY_COMMANDS):
            self._next()
            self.compile_term()
            self._writer.write_arithmetic(UNARY_COMMANDS[token.lexeme])

        elif token.kind is TokenKind.IDENTIFIER:
            self._compile_identifier_term()

        else:
            raise self._syntax_error("term", token)

    def _compile_identifier_term(self) -> None:
        """
        Compile a term that starts with an identifier.

        Cursor: on the identifier.
        After:  past the last '[...]' or '.name(...)' suffix.
        """
        token = self._peek("identifier")
        name = token.lexeme
        self._next()

        value_type: Optional[str]
        if self._check_symbol("(") or (self._check_symbol(".") and name not in self._symbols):
            self._compile_subroutine_call(name)
            value_type = None
        else:
            symbol = self._resolve(name, token)
            self._writer.write_push(symbol.segment, symbol.index)
            value_type = symbol.type

        while self._check_symbol("[", "."):
            if self._check_symbol("["):
                self._next()
                self.compile_expression()
                self._expect_symbol("]")
                self._writer.write_arithmetic(ArithmeticCommand.ADD)
                self._writer.write_pop(Segment.POINTER, 1)
                self._writer.write_push(Segment.THAT, 0)
            else:
                self._next()
                method_token = self._peek("subroutine name")
                method = self._expect_identifier("subroutine name")
                if value_type is None:
                    raise UnresolvedSymbolError(
                        method,
                        location=method_token.location,
                        source_line=self._source_line(method_token.line),
                        message=f"cannot determine the class of the receiver of '{method}'",
                    )
                # The receiver already on the stack is the hidden first argument
                self._compile_arguments_and_call(f"{value_type}.{method}", 1)

            value_type = None

    def _compile_subroutine_call(self, name: str) -> None:
        """
        Compile a call whose first identifier has been consumed.

        Cursor: on '(' (``name(...)``) or '.' (``name.sub(...)``).
        After:  past the closing ')'.

        ``sub(...)`` is a method call on the current object. ``var.sub(...)``
        is a method call on the object held by a variable, dispatched to the
        variable's declared class. ``Class.sub(...)`` is a function or
        constructor call.
        """
        if not self._check_symbol("."):
            self._writer.write_push(Segment.POINTER, 0)
            self._compile_arguments_and_call(f"{self.class_name}.{name}", 1)
            return

        self._next()
        subroutine = self._expect_identifier("subroutine name")

        receiver = self._symbols.lookup(name)
        if receiver is not None:
            self._writer.write_push(receiver.segment, receiver.index)
            self._compile_arguments_and_call(f"{receiver.type}.{subroutine}", 1)
        else:
            self._compile_arguments_and_call(f"{name}.{subroutine}", 0)

    def _compile_arguments_and_call(self, qualified_name: str, implicit_args: int) -> None:
        """Cursor on '(' to past ')'; emits the call."""
        self._expect_symbol("(")
        count = self.compile_expression_list()
        self._expect_symbol(")")
        self._writer.write_call(qualified_name, count + implicit_args)

    def _write_string_constant(self, text: str) -> None:
        """Build a String object one character at a time."""
        self._writer.write_push(Segment.CONSTANT, len(text))
        self._writer.write_call("String.new", 1)
        for char in text:
            self._writer.write_push(Segment.CONSTANT, ord(char))
            self._writer.write_call("String.appendChar", 2)

    # =========================================================================
    # Symbol Helpers
    # =========================================================================

    def _resolve(self, name: str, token: Token) -> Symbol:
        """Resolve a variable, reporting failures at token."""
        try:
            return self._symbols.resolve(name)
        except UnresolvedSymbolError as e:
            raise e.with_context(token.location, self._source_line(token.line)) from None

    def _field_of(self, receiver_type: Optional[str], name: str, token: Token) -> Symbol:
        """
        Find field name of an object of receiver_type.

        Only the fields of the class being compiled are known, so the
        receiver must be of that class.
        """
        field = self._symbols.class_symbol(name)
        if receiver_type != self.class_name or field is None or field.kind is not SymbolKind.FIELD:
            raise UnresolvedSymbolError(
                name,
                location=token.location,
                source_line=self._source_line(token.line),
                message=f"no field '{name}' in class '{receiver_type or 'unknown'}'",
            )
        return field

    def _new_label_number(self) -> int:
        number = self._label_counter
        self._label_counter += 1
        return number

    # =========================================================================
    # Token Cursor
    # =========================================================================

    def _next(self) -> None:
        """Move the cursor one token forward (past the end is allowed once)."""
        if self._tokens.has_more():
            self._tokens.advance()
        else:
            self._exhausted = True

    def _peek(self, expected: str = "more input") -> Token:
        """
        Return the token under the cursor.

        Raises:
            UnexpectedEndOfInputError: If the cursor is past the last token
        """
        token = self._tokens.current
        if self._exhausted or token is None:
            last = self._tokens.tokens[-1] if len(self._tokens) else None
            raise UnexpectedEndOfInputError(
                expected,
                location=last.location if last is not None else None,
                source_line=self._source_line(last.line) if last is not None else None,
            )
        return token

    def _check_symbol(self, *chars: str) -> bool:
        expected = " or ".join(f"'{c}'" for c in chars)
        return self._peek(expected).is_symbol(*chars)

    def _check_keyword(self, *keywords: Keyword) -> bool:
        expected = " or ".join(f"'{k.value}'" for k in keywords)
        return self._peek(expected).is_keyword(*keywords)

    def _expect_symbol(self, char: str) -> Token:
        """Consume the symbol char or raise JackSyntaxError."""
        expected = f"'{char}'"
        token = self._peek(expected)
        if not token.is_symbol(char):
            raise self._syntax_error(expected, token)
        self._next()
        return token

    def _expect_keyword(self, *keywords: Keyword) -> Keyword:
        """Consume one of keywords and return it."""
        expected = " or ".join(f"'{k.value}'" for k in keywords)
        token = self._peek(expected)
        if not token.is_keyword(*keywords):
            raise self._syntax_error(expected, token)
        self._next()
        return token.keyword

    def _expect_identifier(self, what: str = "identifier") -> str:
        """Consume an identifier and return its name."""
        token = self._peek(what)
        if token.kind is not TokenKind.IDENTIFIER:
            raise self._syntax_error(what, token)
        self._next()
        return token.lexeme

    def _expect_type(self, allow_void: bool = False) -> str:
        """Consume a type (int, char, boolean, class name, optionally void)."""
        keywords = TYPE_KEYWORDS + ((Keyword.VOID,) if allow_void else ())
        expected = "type" if not allow_void else "type or 'void'"
        token = self._peek(expected)
        if token.kind is not TokenKind.IDENTIFIER and not token.is_keyword(*keywords):
            raise self._syntax_error(expected, token)
        self._next()
        return token.lexeme

    # =========================================================================
    # Error Helpers
    # =========================================================================

    def _syntax_error(
        self,
        expected: str,
        token: Optional[Token],
        hint: Optional[str] = None,
    ) -> JackSyntaxError:
        if token is None:
            return UnexpectedEndOfInputError(expected)
        return JackSyntaxError(
            expected,
            found=token.lexeme,
            location=token.location,
            source_line=self._source_line(token.line),
            hint=hint,
        )

    def _source_line(self, line: int) -> Optional[str]:
        """Get source line for error reporting."""
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None
