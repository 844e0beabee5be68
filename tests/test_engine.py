# =============================================================================
# test_engine.py - Compilation Engine Tests
# =============================================================================
# Tests for the single-pass Jack compilation engine: every statement and
# expression form is compiled and the exact VM instruction sequence is
# checked.
#
# Test coverage includes:
#   - Class structure, subroutine headers, local counts
#   - Constructor and method prologues
#   - let / if / while / do / return lowering
#   - Flat left-to-right expression evaluation
#   - Terms: constants, strings, keywords, arrays, calls, unary operators
#   - Label numbering
#   - Syntax and resolution errors with their locations
# =============================================================================

import textwrap

import pytest

from jack_sdk.jackc import compile_jack
from jack_sdk.jackc.engine import CompilationEngine
from jack_sdk.jackc.errors import (
    JackLexError,
    JackSyntaxError,
    UnexpectedEndOfInputError,
    UnresolvedSymbolError,
)
from jack_sdk.jackc.lexer import JackLexer, TokenStream
from jack_sdk.jackc.symbols import SymbolTable
from jack_sdk.jackc.vmwriter import VMWriter


# =============================================================================
# Helper Functions
# =============================================================================

def compile_lines(source: str) -> list[str]:
    """Compile a class and return its VM instructions."""
    return compile_jack(textwrap.dedent(source), "Test.jack").splitlines()


def compile_body(body: str, declarations: str = "") -> list[str]:
    """
    Compile statements inside ``function void f()`` of class Main.

    The function header line is dropped so tests can focus on the body.
    """
    source = (
        "class Main {\n"
        f"{declarations}\n"
        "function void f() {\n"
        f"{body}\n"
        "}\n"
        "}\n"
    )
    return compile_jack(source, "Main.jack").splitlines()[1:]


def compile_expression(expression: str, locals_: str = "") -> list[str]:
    """Compile ``return <expression>;`` and return the expression code."""
    lines = compile_body(f"{locals_}\nreturn {expression};")
    assert lines[-1] == "return"
    return lines[:-1]


# =============================================================================
# Class Structure
# =============================================================================

class TestClassStructure:
    """Subroutine headers and the overall unit."""

    def test_minimal_main(self):
        assert compile_lines("""
            class Main {
                function void main() {
                    return;
                }
            }
        """) == [
            "function Main.main 0",
            "push constant 0",
            "return",
        ]

    def test_empty_class(self):
        assert compile_lines("class Empty { }") == []

    def test_local_count_in_header(self):
        lines = compile_lines("""
            class Main {
                function int f() {
                    var int a, b;
                    var char c;
                    return 0;
                }
            }
        """)
        assert lines[0] == "function Main.f 3"

    def test_subroutines_in_source_order(self):
        lines = compile_lines("""
            class Main {
                function void b() { return; }
                function void a() { return; }
            }
        """)
        assert [l for l in lines if l.startswith("function")] == [
            "function Main.b 0",
            "function Main.a 0",
        ]

    def test_class_variables_emit_nothing(self):
        lines = compile_lines("""
            class Main {
                static int count;
                field int x, y;
                function void main() { return; }
            }
        """)
        assert lines == ["function Main.main 0", "push constant 0", "return"]

    def test_engine_records_class_name(self):
        tokens = TokenStream(JackLexer("class Ball { }").tokenize())
        engine = CompilationEngine(tokens, SymbolTable(), VMWriter())
        engine.compile_class()
        assert engine.class_name == "Ball"

    def test_comments_are_ignored(self):
        lines = compile_lines("""
            /** The entry point. */
            class Main {
                // nothing to do
                function void main() { /* inline */ return; }
            }
        """)
        assert lines == ["function Main.main 0", "push constant 0", "return"]


# =============================================================================
# Constructors and Methods
# =============================================================================

class TestSubroutineKinds:
    """Prologues that establish the 'this' pointer."""

    def test_constructor_allocates_fields(self):
        assert compile_lines("""
            class Point {
                field int x, y;
                static int created;
                constructor Point new(int ax) {
                    let x = ax;
                    return this;
                }
            }
        """) == [
            "function Point.new 0",
            "push constant 2",
            "call Memory.alloc 1",
            "pop pointer 0",
            "push argument 0",
            "pop this 0",
            "push pointer 0",
            "return",
        ]

    def test_method_sets_this_from_argument_0(self):
        assert compile_lines("""
            class Point {
                field int x;
                method int getX() {
                    return x;
                }
            }
        """) == [
            "function Point.getX 0",
            "push argument 0",
            "pop pointer 0",
            "push this 0",
            "return",
        ]

    def test_method_parameters_start_at_argument_1(self):
        lines = compile_lines("""
            class Point {
                field int x;
                method void setX(int v) {
                    let x = v;
                    return;
                }
            }
        """)
        assert lines[3:5] == ["push argument 1", "pop this 0"]

    def test_locals_restart_in_each_subroutine(self):
        lines = compile_lines("""
            class Main {
                function void a() { var int x; let x = 1; return; }
                function void b() { var int y; let y = 2; return; }
            }
        """)
        assert lines.count("pop local 0") == 2
        assert "function Main.b 1" in lines

    def test_function_parameters_start_at_argument_0(self):
        lines = compile_lines("""
            class Main {
                function int second(int a, int b) {
                    return b;
                }
            }
        """)
        assert lines == ["function Main.second 0", "push argument 1", "return"]

    def test_constructor_locals_in_header(self):
        lines = compile_lines("""
            class Box {
                field int w;
                constructor Box new() {
                    var int tmp;
                    return this;
                }
            }
        """)
        assert lines[:4] == [
            "function Box.new 1",
            "push constant 1",
            "call Memory.alloc 1",
            "pop pointer 0",
        ]


# =============================================================================
# Statements
# =============================================================================

class TestLet:
    """Assignments to variables, array elements and fields."""

    def test_let_local(self):
        assert compile_body("var int x;\nlet x = 7;\nreturn;") == [
            "push constant 7",
            "pop local 0",
            "push constant 0",
            "return",
        ]

    def test_let_static(self):
        lines = compile_body(
            "let count = count + 1;\nreturn;",
            declarations="static int count;",
        )
        assert lines[:4] == [
            "push static 0",
            "push constant 1",
            "add",
            "pop static 0",
        ]

    def test_let_array_element(self):
        lines = compile_body("var Array a;\nlet a[1] = 5;\nreturn;")
        assert lines[:8] == [
            "push local 0",
            "push constant 1",
            "add",
            "push constant 5",
            "pop temp 0",
            "pop pointer 1",
            "push temp 0",
            "pop that 0",
        ]

    def test_let_array_element_from_array_element(self):
        """The right side may use 'that' freely; temp 0 holds the value."""
        lines = compile_body(
            "var Array a, b;\nlet a[0] = b[1];\nreturn;"
        )
        assert lines[:12] == [
            "push local 0",
            "push constant 0",
            "add",
            "push local 1",
            "push constant 1",
            "add",
            "pop pointer 1",
            "push that 0",
            "pop temp 0",
            "pop pointer 1",
            "push temp 0",
            "pop that 0",
        ]

    def test_let_field_of_object(self):
        lines = compile_lines("""
            class Node {
                field int value;
                field Node next;
                method void copy(Node n) {
                    let n.value = 3;
                    return;
                }
            }
        """)
        assert lines == [
            "function Node.copy 0",
            "push argument 0",
            "pop pointer 0",
            "push argument 1",
            "push constant 0",
            "add",
            "push constant 3",
            "pop temp 0",
            "pop pointer 1",
            "push temp 0",
            "pop that 0",
            "push constant 0",
            "return",
        ]

    def test_let_unknown_field(self):
        with pytest.raises(UnresolvedSymbolError, match="no field 'size'"):
            compile_lines("""
                class Node {
                    field int value;
                    method void f(Node n) {
                        let n.size = 3;
                        return;
                    }
                }
            """)


class TestIf:
    """Conditional statements and their labels."""

    def test_if_without_else(self):
        assert compile_body("var boolean b;\nif (b) { }\nreturn;") == [
            "push local 0",
            "not",
            "if-goto ELSE_0",
            "goto END_0",
            "label ELSE_0",
            "label END_0",
            "push constant 0",
            "return",
        ]

    def test_if_with_else(self):
        lines = compile_body(
            "var int x;\nif (x) { let x = 1; } else { let x = 2; }\nreturn;"
        )
        assert lines[:10] == [
            "push local 0",
            "not",
            "if-goto ELSE_0",
            "push constant 1",
            "pop local 0",
            "goto END_0",
            "label ELSE_0",
            "push constant 2",
            "pop local 0",
            "label END_0",
        ]

    def test_sibling_ifs_get_distinct_labels(self):
        lines = compile_body(
            "var boolean b;\nif (b) { }\nif (b) { } else { }\nreturn;"
        )
        labels = [l for l in lines if l.startswith("label")]
        assert labels == [
            "label ELSE_0",
            "label END_0",
            "label ELSE_1",
            "label END_1",
        ]

    def test_nested_if_numbering(self):
        """The outer statement takes its number before its body is compiled."""
        lines = compile_body(
            "var boolean b;\nif (b) { if (b) { } }\nreturn;"
        )
        assert "if-goto ELSE_0" in lines
        assert "if-goto ELSE_1" in lines
        assert lines.index("if-goto ELSE_0") < lines.index("if-goto ELSE_1")

    def test_labels_restart_in_each_subroutine(self):
        lines = compile_lines("""
            class Main {
                function void a(boolean b) { if (b) { } return; }
                function void c(boolean b) { if (b) { } return; }
            }
        """)
        assert lines.count("label ELSE_0") == 2
        assert "label ELSE_1" not in lines


class TestWhile:
    """Loops."""

    def test_while(self):
        lines = compile_body(
            "var int i;\nwhile (i < 10) { let i = i + 1; }\nreturn;"
        )
        assert lines[:12] == [
            "label WHILE_0",
            "push local 0",
            "push constant 10",
            "lt",
            "not",
            "if-goto END_0",
            "push local 0",
            "push constant 1",
            "add",
            "pop local 0",
            "goto WHILE_0",
            "label END_0",
        ]

    def test_while_and_if_share_counter(self):
        lines = compile_body(
            "var boolean b;\nwhile (b) { if (b) { } }\nreturn;"
        )
        assert lines[0] == "label WHILE_0"
        assert "if-goto ELSE_1" in lines
        assert lines[-3] == "label END_0"


class TestDoAndReturn:
    """Calls for effect and subroutine exits."""

    def test_do_function_discards_result(self):
        assert compile_body("do Output.printInt(5);\nreturn;") == [
            "push constant 5",
            "call Output.printInt 1",
            "pop temp 0",
            "push constant 0",
            "return",
        ]

    def test_do_method_on_variable(self):
        lines = compile_body("var Point p;\ndo p.move(1, 2);\nreturn;")
        assert lines[:5] == [
            "push local 0",
            "push constant 1",
            "push constant 2",
            "call Point.move 3",
            "pop temp 0",
        ]

    def test_do_method_on_this(self):
        lines = compile_lines("""
            class Ball {
                method void draw() { return; }
                method void run() {
                    do draw();
                    return;
                }
            }
        """)
        assert lines[8:11] == [
            "push pointer 0",
            "call Ball.draw 1",
            "pop temp 0",
        ]

    def test_return_value(self):
        lines = compile_lines("""
            class Main {
                function int answer() { return 42; }
            }
        """)
        assert lines == ["function Main.answer 0", "push constant 42", "return"]

    def test_statements_after_return_are_compiled(self):
        lines = compile_body("return;\nreturn;")
        assert lines == ["push constant 0", "return", "push constant 0", "return"]


# =============================================================================
# Expressions
# =============================================================================

class TestExpressions:
    """Binary operators fold left to right with no precedence."""

    def test_flat_left_to_right_fold(self):
        """2 + 3 * 4 evaluates as (2 + 3) * 4."""
        assert compile_expression("2 + 3 * 4") == [
            "push constant 2",
            "push constant 3",
            "add",
            "push constant 4",
            "call Math.multiply 2",
        ]

    def test_parentheses_group(self):
        assert compile_expression("2 + (3 * 4)") == [
            "push constant 2",
            "push constant 3",
            "push constant 4",
            "call Math.multiply 2",
            "add",
        ]

    def test_division(self):
        assert compile_expression("8 / 2") == [
            "push constant 8",
            "push constant 2",
            "call Math.divide 2",
        ]

    @pytest.mark.parametrize("op, command", [
        ("+", "add"),
        ("-", "sub"),
        ("&", "and"),
        ("|", "or"),
        ("<", "lt"),
        (">", "gt"),
        ("=", "eq"),
    ])
    def test_binary_commands(self, op, command):
        assert compile_expression(f"1 {op} 2") == [
            "push constant 1",
            "push constant 2",
            command,
        ]

    def test_subtraction_chain_is_left_associative(self):
        assert compile_expression("10 - 3 - 2") == [
            "push constant 10",
            "push constant 3",
            "sub",
            "push constant 2",
            "sub",
        ]

    def test_unary_minus(self):
        assert compile_expression("-x", "var int x;") == ["push local 0", "neg"]

    def test_unary_not(self):
        assert compile_expression("~x", "var boolean x;") == ["push local 0", "not"]

    def test_unary_binds_to_term(self):
        assert compile_expression("-1 + 2") == [
            "push constant 1",
            "neg",
            "push constant 2",
            "add",
        ]


class TestTerms:
    """Constants, keywords, arrays and calls inside expressions."""

    def test_true(self):
        assert compile_expression("true") == ["push constant 0", "not"]

    @pytest.mark.parametrize("keyword", ["false", "null"])
    def test_false_and_null(self, keyword):
        assert compile_expression(keyword) == ["push constant 0"]

    def test_this(self):
        lines = compile_lines("""
            class Point {
                method Point self() { return this; }
            }
        """)
        assert lines[3] == "push pointer 0"

    def test_string_constant(self):
        assert compile_expression('"Hi"') == [
            "push constant 2",
            "call String.new 1",
            "push constant 72",
            "call String.appendChar 2",
            "push constant 105",
            "call String.appendChar 2",
        ]

    def test_string_with_non_ascii_characters(self):
        assert compile_expression('"€"') == [
            "push constant 1",
            "call String.new 1",
            "push constant 8364",
            "call String.appendChar 2",
        ]

    def test_string_character_beyond_constant_range(self):
        with pytest.raises(JackLexError, match="out of range"):
            compile_expression('"\U0001F600"')

    def test_empty_string_constant(self):
        assert compile_expression('""') == [
            "push constant 0",
            "call String.new 1",
        ]

    def test_array_read(self):
        assert compile_expression("a[2]", "var Array a;") == [
            "push local 0",
            "push constant 2",
            "add",
            "pop pointer 1",
            "push that 0",
        ]

    def test_field_read_in_method(self):
        lines = compile_lines("""
            class Counter {
                field int a, b;
                method int second() { return b; }
            }
        """)
        assert lines[3] == "push this 1"

    def test_function_call(self):
        assert compile_expression("Math.max(1, 2)") == [
            "push constant 1",
            "push constant 2",
            "call Math.max 2",
        ]

    def test_call_without_arguments(self):
        assert compile_expression("Keyboard.keyPressed()") == [
            "call Keyboard.keyPressed 0",
        ]

    def test_method_call_on_variable(self):
        assert compile_expression("p.getX()", "var Point p;") == [
            "push local 0",
            "call Point.getX 1",
        ]

    def test_method_call_on_field(self):
        lines = compile_lines("""
            class Game {
                field Ball ball;
                method int x() { return ball.getX(); }
            }
        """)
        assert lines[3:5] == ["push this 0", "call Ball.getX 1"]

    def test_implicit_method_call(self):
        lines = compile_lines("""
            class List {
                method int size() { return 0; }
                method int twice() { return size() * 2; }
            }
        """)
        assert lines[-5:] == [
            "push pointer 0",
            "call List.size 1",
            "push constant 2",
            "call Math.multiply 2",
            "return",
        ]

    def test_nested_call_arguments(self):
        assert compile_expression("Math.abs(Math.min(a, 3))", "var int a;") == [
            "push local 0",
            "push constant 3",
            "call Math.min 2",
            "call Math.abs 1",
        ]

    def test_array_of_array(self):
        assert compile_expression("a[b[0]]", "var Array a, b;") == [
            "push local 0",
            "push local 1",
            "push constant 0",
            "add",
            "pop pointer 1",
            "push that 0",
            "add",
            "pop pointer 1",
            "push that 0",
        ]


# =============================================================================
# Errors
# =============================================================================

class TestSyntaxErrors:
    """Grammar violations carry the expected construct and found token."""

    def test_missing_equals(self):
        source = (
            "class Main {\n"
            "  function void main() {\n"
            "    var int x;\n"
            "    let x 5;\n"
            "    return;\n"
            "  }\n"
            "}\n"
        )
        with pytest.raises(JackSyntaxError) as exc_info:
            compile_jack(source, "Main.jack")
        err = exc_info.value
        assert err.expected == "'='"
        assert err.found == "5"
        assert err.location.line == 4
        assert err.location.column == 11
        assert err.source_line == "    let x 5;"
        assert str(err).startswith("Main.jack:4:11: error: expected '=' but found '5'")

    def test_missing_semicolon(self):
        with pytest.raises(JackSyntaxError) as exc_info:
            compile_body("return\n}")
        assert exc_info.value.found == "}"

    def test_unexpected_end_of_input(self):
        with pytest.raises(UnexpectedEndOfInputError) as exc_info:
            compile_jack("class Main { function void main() {")
        assert exc_info.value.found is None
        assert "reached end of input" in str(exc_info.value)

    def test_empty_source(self):
        with pytest.raises(UnexpectedEndOfInputError):
            compile_jack("")

    def test_missing_closing_brace_of_class(self):
        with pytest.raises(UnexpectedEndOfInputError):
            compile_jack("class Main { function void main() { return; }")

    def test_only_one_class_per_unit(self):
        with pytest.raises(JackSyntaxError) as exc_info:
            compile_jack("class A { } class B { }")
        assert exc_info.value.expected == "end of input"
        assert exc_info.value.found == "class"

    def test_unknown_statement(self):
        with pytest.raises(JackSyntaxError) as exc_info:
            compile_body("foo();\nreturn;")
        assert exc_info.value.expected == "statement"
        assert exc_info.value.found == "foo"

    def test_bad_class_member(self):
        with pytest.raises(JackSyntaxError) as exc_info:
            compile_jack("class Main { var int x; }")
        assert exc_info.value.found == "var"

    def test_bad_term(self):
        with pytest.raises(JackSyntaxError) as exc_info:
            compile_expression("1 + ;")
        assert exc_info.value.expected == "term"

    def test_missing_type(self):
        with pytest.raises(JackSyntaxError) as exc_info:
            compile_jack("class Main { field 5 x; }")
        assert exc_info.value.expected == "type"

    def test_class_keyword_required(self):
        with pytest.raises(JackSyntaxError) as exc_info:
            compile_jack("klass Main { }")
        assert exc_info.value.expected == "'class'"


class TestResolutionErrors:
    """Names used as variables must be declared."""

    def test_undeclared_variable(self):
        with pytest.raises(UnresolvedSymbolError) as exc_info:
            compile_body("let y = 1;\nreturn;")
        err = exc_info.value
        assert err.identifier == "y"
        assert err.location.line == 4

    def test_undeclared_variable_in_expression(self):
        with pytest.raises(UnresolvedSymbolError) as exc_info:
            compile_body("var int count;\nlet count = cuont + 1;\nreturn;")
        assert "did you mean 'count'?" in str(exc_info.value)

    def test_locals_do_not_leak_between_subroutines(self):
        with pytest.raises(UnresolvedSymbolError):
            compile_lines("""
                class Main {
                    function void a() { var int x; return; }
                    function int b() { return x; }
                }
            """)

    def test_method_on_array_element_has_no_class(self):
        with pytest.raises(UnresolvedSymbolError, match="class of the receiver"):
            compile_expression("a[0].size()", "var Array a;")
