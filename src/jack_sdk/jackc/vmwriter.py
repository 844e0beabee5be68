"""
VM Instruction Writer
=====================

Append-only emitter for Hack VM instructions. The writer knows the text
format of each instruction family and nothing about the program being
compiled; operand legality is the compilation engine's business.

Instruction Format
------------------
    push <segment> <index>
    pop <segment> <index>
    add | sub | neg | eq | gt | lt | and | or | not
    label <name>
    goto <name>
    if-goto <name>
    call <name> <nArgs>
    function <name> <nLocals>
    return

Example:
    >>> writer = VMWriter()
    >>> writer.write_function("Main.main", 0)
    >>> writer.write_push(Segment.CONSTANT, 0)
    >>> writer.write_return()
    >>> print(writer.to_text(), end="")
    function Main.main 0
    push constant 0
    return
"""

from enum import Enum


class Segment(Enum):
    """VM memory segments addressed by push and pop."""

    CONSTANT = "constant"
    ARGUMENT = "argument"
    LOCAL = "local"
    STATIC = "static"
    THIS = "this"
    THAT = "that"
    POINTER = "pointer"
    TEMP = "temp"


class ArithmeticCommand(Enum):
    """Arithmetic and logical VM commands."""

    ADD = "add"
    SUB = "sub"
    NEG = "neg"
    EQ = "eq"
    GT = "gt"
    LT = "lt"
    AND = "and"
    OR = "or"
    NOT = "not"


class VMWriter:
    """
    Collects the VM instructions of one compilation unit.

    Attributes:
        instructions: Read-only tuple of the emitted lines, in order
    """

    def __init__(self):
        self._output: list[str] = []

    @property
    def instructions(self) -> tuple[str, ...]:
        return tuple(self._output)

    def __len__(self) -> int:
        return len(self._output)

    def to_text(self) -> str:
        """Return the instructions as .vm file content."""
        if not self._output:
            return ""
        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Instruction Emitters
    # =========================================================================

    def write_push(self, segment: Segment, index: int) -> None:
        self._emit(f"push {segment.value} {index}")

    def write_pop(self, segment: Segment, index: int) -> None:
        self._emit(f"pop {segment.value} {index}")

    def write_arithmetic(self, command: ArithmeticCommand) -> None:
        self._emit(command.value)

    def write_label(self, label: str) -> None:
        self._emit(f"label {label}")

    def write_goto(self, label: str) -> None:
        self._emit(f"goto {label}")

    def write_if(self, label: str) -> None:
        self._emit(f"if-goto {label}")

    def write_call(self, name: str, n_args: int) -> None:
        self._emit(f"call {name} {n_args}")

    def write_function(self, name: str, n_locals: int) -> None:
        self._emit(f"function {name} {n_locals}")

    def write_return(self) -> None:
        self._emit("return")

    def _emit(self, line: str) -> None:
        self._output.append(line)
