"""
Jack Compiler Main Module
=========================

This module provides the main compiler interface for Jack.
It wires a fresh lexer, symbol table, VM writer and compilation engine
together for every unit:

    Source → Lex → (Parse + Resolve + Generate) → VM code

Usage
-----
Command line:
    $ jackc Main.jack
    $ jackc Pong/ -o build/ -j 4

Programmatic:
    >>> from jack_sdk.jackc import compile_jack
    >>> print(compile_jack('class Main { function void main() { return; } }'), end="")
    function Main.main 0
    push constant 0
    return

Units
-----
A unit is one .jack file holding one class. Units are compiled
independently: each gets its own component instances, so a batch can be
compiled on several threads, and a failing unit never stops its
siblings. Failures are recorded on the unit's CompilerResult and no VM
file is written for it.

Collaborators
-------------
- SourceLoader discovers the .jack files at a path and reads them.
- OutputSink decides where each unit's .vm file goes and writes it.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from jack_sdk.jackc.engine import CompilationEngine
from jack_sdk.jackc.errors import JackError, SourceDiscoveryError, SourceReadError
from jack_sdk.jackc.lexer import JackLexer, TokenStream
from jack_sdk.jackc.symbols import SymbolTable
from jack_sdk.jackc.vmwriter import VMWriter

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".jack"
OUTPUT_SUFFIX = ".vm"


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        output_dir: Directory for .vm files. None writes each .vm file
                    next to its source, as the reference toolchain does.
        jobs: Worker threads used by compile_path. 1 compiles the units
              one after another on the calling thread.
        encoding: Text encoding of sources and outputs
        write_output: If False, units are compiled but nothing is written
                      (used by ``jackc --check``).
    """
    output_dir: Optional[Path] = None
    jobs: int = 1
    encoding: str = "utf-8"
    write_output: bool = True

    def __post_init__(self):
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)
        if self.jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {self.jobs}")


@dataclass
class CompilerResult:
    """
    Result of compiling one unit.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        class_name: Name of the compiled class (empty if not reached)
        instructions: Generated VM instructions (empty on failure)
        token_count: Number of tokens lexed
        output_path: Where the .vm file was written, if it was
        error: The error that stopped compilation, if any
    """
    filename: str = ""
    success: bool = False
    class_name: str = ""
    instructions: tuple[str, ...] = ()
    token_count: int = 0
    output_path: Optional[Path] = None
    error: Optional[JackError] = None

    @property
    def vm_code(self) -> str:
        """Instructions as .vm file content."""
        if not self.instructions:
            return ""
        return "\n".join(self.instructions) + "\n"


# =============================================================================
# Collaborators
# =============================================================================

class SourceLoader:
    """
    Finds and reads the .jack units at a path.

    A file path names a single unit. A directory path names every .jack
    file directly inside it, in name order.
    """

    def __init__(self, path: Path, encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding

    def discover(self) -> list[Path]:
        """
        Return the source files to compile.

        Raises:
            FileNotFoundError: If the path does not exist
            SourceDiscoveryError: If there is nothing to compile there
        """
        if not self.path.exists():
            raise FileNotFoundError(f"Source path not found: {self.path}")

        if self.path.is_dir():
            sources = sorted(
                p for p in self.path.iterdir()
                if p.is_file() and p.suffix == SOURCE_SUFFIX
            )
            if not sources:
                raise SourceDiscoveryError(
                    f"no {SOURCE_SUFFIX} files in directory '{self.path}'"
                )
            return sources

        if self.path.suffix != SOURCE_SUFFIX:
            raise SourceDiscoveryError(
                f"'{self.path}' is not a {SOURCE_SUFFIX} file",
                hint=f"pass a {SOURCE_SUFFIX} file or a directory containing them",
            )
        return [self.path]

    def load(self, source: Path) -> str:
        """
        Read one source file.

        Raises:
            SourceReadError: If the file cannot be read or decoded
        """
        try:
            return Path(source).read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise SourceReadError(
                str(source),
                f"not valid {self.encoding} (byte 0x{e.object[e.start]:02X} at offset {e.start})",
                hint=f"save the file as {self.encoding}",
            ) from e
        except OSError as e:
            raise SourceReadError(str(source), e.strerror or str(e)) from e


class OutputSink:
    """
    Writes finished VM code.

    Output goes to ``<stem>.vm`` next to the source, or inside output_dir
    when one is given (created on first write).
    """

    def __init__(self, output_dir: Optional[Path] = None, encoding: str = "utf-8"):
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.encoding = encoding

    def target_for(self, source: Path) -> Path:
        source = Path(source)
        if self.output_dir is None:
            return source.with_suffix(OUTPUT_SUFFIX)
        return self.output_dir / (source.stem + OUTPUT_SUFFIX)

    def write(self, source: Path, instructions: Sequence[str]) -> Path:
        """
        Write one unit's VM code and return the file written.

        Raises:
            JackError: If the output file cannot be written
        """
        target = self.target_for(source)
        text = "\n".join(instructions) + "\n" if instructions else ""
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding=self.encoding)
        except OSError as e:
            raise JackError(f"cannot write '{target}': {e.strerror or e}") from e
        logger.debug("wrote %d instructions to %s", len(instructions), target)
        return target


# =============================================================================
# Compiler
# =============================================================================

class JackCompiler:
    """
    Jack compiler for the Hack virtual machine.

    Example:
        compiler = JackCompiler()
        result = compiler.compile_source(source, "Main.jack")
        print(result.vm_code)

        results = JackCompiler(CompilerOptions(jobs=4)).compile_path("Pong/")
        failed = [r for r in results if not r.success]

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile Jack source code to VM instructions.

        Args:
            source: Jack source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult for the unit

        Raises:
            JackError: If compilation fails
        """
        logger.debug("compiling %s", filename)
        result = CompilerResult(filename=filename)

        tokens = TokenStream(JackLexer(source, filename).tokenize())
        result.token_count = len(tokens)

        writer = VMWriter()
        engine = CompilationEngine(
            tokens,
            SymbolTable(),
            writer,
            filename=filename,
            source_lines=source.splitlines(),
        )
        engine.compile_class()

        result.class_name = engine.class_name
        result.instructions = writer.instructions
        result.success = True
        logger.debug("compiled %s: %d tokens, %d instructions",
                     filename, result.token_count, len(writer))
        return result

    def compile_file(self, filepath: Path) -> CompilerResult:
        """
        Compile a Jack source file, writing its .vm file on success.

        Raises:
            JackError: If the file cannot be read, compiled or written
            FileNotFoundError: If source file not found
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        loader = SourceLoader(path, self.options.encoding)
        result = self.compile_source(loader.load(path), str(path))

        if self.options.write_output:
            sink = OutputSink(self.options.output_dir, self.options.encoding)
            result.output_path = sink.write(path, result.instructions)

        return result

    def compile_path(self, path: Path) -> list[CompilerResult]:
        """
        Compile every unit at path (a .jack file or a directory).

        Errors in one unit are captured in that unit's result; the other
        units are still compiled and written.

        Returns:
            One CompilerResult per source, in discovery order

        Raises:
            FileNotFoundError: If path does not exist
            SourceDiscoveryError: If there are no units at path
        """
        sources = SourceLoader(Path(path), self.options.encoding).discover()
        logger.info("compiling %d unit(s) from %s", len(sources), path)

        if self.options.jobs == 1 or len(sources) == 1:
            return [self._compile_unit(source) for source in sources]

        with ThreadPoolExecutor(max_workers=self.options.jobs) as pool:
            return list(pool.map(self._compile_unit, sources))

    def _compile_unit(self, source: Path) -> CompilerResult:
        """Compile one file, turning compiler errors into a failed result."""
        try:
            return self.compile_file(source)
        except FileNotFoundError:
            # Removed between discovery and compilation
            error = SourceReadError(str(source), "file not found")
        except JackError as e:
            error = e
        logger.debug("%s failed: %s", source, error.message)
        return CompilerResult(filename=str(source), success=False, error=error)


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_jack(source: str, filename: str = "<input>") -> str:
    """
    Compile Jack source code to VM code text.

    Raises:
        JackError: If compilation fails

    Example:
        >>> vm = compile_jack('class Main { function void main() { return; } }')
    """
    return JackCompiler().compile_source(source, filename).vm_code


def compile_file(
    filepath: str,
    output_dir: Optional[str] = None,
) -> str:
    """
    Compile a Jack source file and write its .vm file.

    Args:
        filepath: Path to the .jack file
        output_dir: Directory for the .vm file (default: next to the source)

    Returns:
        Generated VM code

    Raises:
        JackError: If compilation fails
        FileNotFoundError: If source file not found
    """
    options = CompilerOptions(output_dir=Path(output_dir) if output_dir else None)
    return JackCompiler(options).compile_file(Path(filepath)).vm_code
