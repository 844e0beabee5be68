"""
Jack Symbol Table
=================

Two-level scope table used by the compilation engine.

Scopes
------
| Scope      | Kinds         | Lifetime                         |
|------------|---------------|----------------------------------|
| class      | STATIC, FIELD | one class compilation            |
| subroutine | ARG, VAR      | reset by start_subroutine()      |

Every kind has its own counter; a symbol's index is the counter value at
the moment it was defined, so indices are dense and zero-based per kind.
Lookups try the subroutine scope first, which lets a parameter or local
shadow a class variable of the same name.

Segment Mapping
---------------
| Kind   | VM segment |
|--------|------------|
| STATIC | static     |
| FIELD  | this       |
| ARG    | argument   |
| VAR    | local      |
"""

import difflib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from jack_sdk.jackc.errors import UnresolvedSymbolError
from jack_sdk.jackc.vmwriter import Segment

logger = logging.getLogger(__name__)


class SymbolKind(Enum):
    """Storage kind of a declared variable."""

    STATIC = "static"
    FIELD = "field"
    ARG = "argument"
    VAR = "local"

    @property
    def is_class_scope(self) -> bool:
        return self in (SymbolKind.STATIC, SymbolKind.FIELD)


_SEGMENTS = {
    SymbolKind.STATIC: Segment.STATIC,
    SymbolKind.FIELD: Segment.THIS,
    SymbolKind.ARG: Segment.ARGUMENT,
    SymbolKind.VAR: Segment.LOCAL,
}


@dataclass(frozen=True)
class Symbol:
    """
    One symbol table entry.

    Attributes:
        name: Declared name
        type: Declared type (int, char, boolean or a class name)
        kind: Storage kind
        index: Slot within the kind's segment
    """
    name: str
    type: str
    kind: SymbolKind
    index: int

    @property
    def segment(self) -> Segment:
        return segment_for(self.kind)


def segment_for(kind: SymbolKind) -> Segment:
    """
    Map a storage kind to the VM segment that holds it.

    Raises:
        ValueError: If kind is not a SymbolKind
    """
    try:
        return _SEGMENTS[kind]
    except (KeyError, TypeError):
        raise ValueError(f"no segment for storage kind {kind!r}") from None


class SymbolTable:
    """
    Class and subroutine scopes for one compilation unit.

    Example:
        table = SymbolTable()
        table.define("count", "int", SymbolKind.FIELD)
        table.start_subroutine()
        table.define("count", "int", SymbolKind.ARG)
        table.kind_of("count")   # SymbolKind.ARG (shadows the field)
    """

    def __init__(self):
        self._class_scope: dict[str, Symbol] = {}
        self._subroutine_scope: dict[str, Symbol] = {}
        self._counts: dict[SymbolKind, int] = {kind: 0 for kind in SymbolKind}

    def start_subroutine(self) -> None:
        """Discard the subroutine scope and zero the ARG and VAR counters."""
        self._subroutine_scope = {}
        self._counts[SymbolKind.ARG] = 0
        self._counts[SymbolKind.VAR] = 0

    def define(self, name: str, var_type: str, kind: SymbolKind) -> None:
        """
        Define a new symbol in the scope that owns its kind.

        A name already defined in the same scope is replaced by the new
        entry; the kind's counter still advances.
        """
        if not isinstance(kind, SymbolKind):
            raise ValueError(f"unknown storage kind {kind!r}")

        scope = self._class_scope if kind.is_class_scope else self._subroutine_scope
        if name in scope:
            logger.warning("redefinition of '%s' replaces the earlier %s declaration",
                           name, scope[name].kind.value)

        symbol = Symbol(name, var_type, kind, self._counts[kind])
        scope[name] = symbol
        self._counts[kind] += 1
        logger.debug("defined %s %s %s %d", kind.value, var_type, name, symbol.index)

    def var_count(self, kind: SymbolKind) -> int:
        """Return how many symbols of kind are defined in the current scope."""
        return self._counts[kind]

    def lookup(self, name: str) -> Optional[Symbol]:
        """Find name, subroutine scope first. Returns None if undeclared."""
        symbol = self._subroutine_scope.get(name)
        if symbol is None:
            symbol = self._class_scope.get(name)
        return symbol

    def class_symbol(self, name: str) -> Optional[Symbol]:
        """Find name in the class scope only, ignoring any shadowing."""
        return self._class_scope.get(name)

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def kind_of(self, name: str) -> SymbolKind:
        return self.resolve(name).kind

    def type_of(self, name: str) -> str:
        return self.resolve(name).type

    def index_of(self, name: str) -> int:
        return self.resolve(name).index

    def resolve(self, name: str) -> Symbol:
        """
        Find name, subroutine scope first.

        Raises:
            UnresolvedSymbolError: If name is declared in neither scope
        """
        symbol = self.lookup(name)
        if symbol is None:
            known = list(self._subroutine_scope) + list(self._class_scope)
            raise UnresolvedSymbolError(
                name,
                similar_identifiers=difflib.get_close_matches(name, known, n=3),
            )
        return symbol
