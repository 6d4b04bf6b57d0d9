"""
Tree-sitter function extractor for JavaScript and TypeScript sources.

Collects every *addressable* function-like declaration: something with a
name a test can import or call. Inline anonymous callbacks are skipped.

Uses tree-sitter >= 0.22 API with individual language packages.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import tree_sitter as ts
import tree_sitter_javascript
import tree_sitter_typescript

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Language mapping
# ---------------------------------------------------------------------------

EXTENSION_TO_LANGUAGE: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

_LANGUAGE_FUNCS: dict[str, Callable[[], object]] = {
    "javascript": tree_sitter_javascript.language,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
}

# Language objects are immutable and safe to share; parsers are created per
# call because a Parser must not be used from two threads at once.
_LANG_CACHE: dict[str, ts.Language] = {}


def detect_language(file_path: str) -> Optional[str]:
    """Return the grammar name for *file_path*, or None if unsupported."""
    ext = os.path.splitext(file_path)[1].lower()
    return EXTENSION_TO_LANGUAGE.get(ext)


def _get_ts_language(language: str) -> ts.Language:
    if language not in _LANG_CACHE:
        func = _LANGUAGE_FUNCS.get(language)
        if func is None:
            raise ValueError(f"Unsupported language: {language!r}")
        _LANG_CACHE[language] = ts.Language(func())
    return _LANG_CACHE[language]


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class FunctionKind(str, Enum):
    FUNCTION = "function"
    METHOD = "method"
    ARROW_FUNCTION = "arrow-function"
    CLASS_METHOD = "class-method"


@dataclass(frozen=True)
class FunctionRecord:
    """An addressable function with its span as character offsets."""
    name: str
    kind: FunctionKind
    start_offset: int
    end_offset: int

    def line_span(self, source: str) -> tuple[int, int]:
        """Return the 1-indexed ``(start_line, end_line)`` in *source*."""
        return (
            line_number(source, self.start_offset),
            line_number(source, self.end_offset),
        )


def line_number(source: str, offset: int) -> int:
    """1-indexed line containing character *offset* of *source*."""
    return source.count("\n", 0, offset) + 1


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------

_FUNCTION_EXPRESSIONS = {"function_expression", "function", "generator_function"}
_FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration"}
_VARIABLE_STATEMENTS = {"lexical_declaration", "variable_declaration"}


def _text(node) -> str:
    if node is None or not node.text:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _is_function_expression(node) -> bool:
    return node is not None and node.is_named and node.type in _FUNCTION_EXPRESSIONS


def _unwrap_parens(node):
    while node is not None and node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        node = inner[0] if len(inner) == 1 else None
    return node


def _identifier_name(node, *types: str) -> Optional[str]:
    if node is None or node.type not in types:
        return None
    return _text(node) or None


def _export_span(node):
    """Widen *node* to its ``export`` statement when it is the exported item."""
    parent = node.parent
    if parent is not None and parent.type == "export_statement":
        return parent
    return node


def _declarator_span(declarator):
    """Give a lone declarator the span of its whole ``const``/``let`` statement."""
    statement = declarator.parent
    if statement is None or statement.type not in _VARIABLE_STATEMENTS:
        return declarator
    declarators = [
        c for c in statement.named_children if c.type == "variable_declarator"
    ]
    if len(declarators) != 1:
        return declarator
    return _export_span(statement)


# ---------------------------------------------------------------------------
# Visitor: one handler per structural category
# ---------------------------------------------------------------------------
#
# Each handler returns (name, kind, span_node) or None. The handler table is
# the single place that decides what counts as a function.

_Match = Optional[tuple[str, FunctionKind, object]]


def _visit_function_declaration(node) -> _Match:
    name = _identifier_name(node.child_by_field_name("name"), "identifier")
    if name is None:
        return None
    return name, FunctionKind.FUNCTION, _export_span(node)


def _visit_export_statement(node) -> _Match:
    if not any(c.type == "default" for c in node.children):
        return None
    value = _unwrap_parens(node.child_by_field_name("value"))
    if not _is_function_expression(value):
        return None
    name = _identifier_name(value.child_by_field_name("name"), "identifier")
    return name or "default", FunctionKind.FUNCTION, node


_ACCESSOR_TOKENS = {"get", "set"}


def _is_accessor(node) -> bool:
    return any(not c.is_named and c.type in _ACCESSOR_TOKENS for c in node.children)


def _visit_method_definition(node) -> _Match:
    name = _identifier_name(node.child_by_field_name("name"), "property_identifier")
    if name is None or _is_accessor(node):
        return None
    parent = node.parent
    if parent is not None and parent.type == "class_body":
        if name == "constructor":
            return None
        return name, FunctionKind.CLASS_METHOD, node
    if parent is not None and parent.type == "object":
        return name, FunctionKind.METHOD, node
    return None


def _visit_variable_declarator(node) -> _Match:
    name = _identifier_name(node.child_by_field_name("name"), "identifier")
    if name is None:
        return None
    value = _unwrap_parens(node.child_by_field_name("value"))
    if value is None:
        return None
    if value.type == "arrow_function":
        return name, FunctionKind.ARROW_FUNCTION, _declarator_span(node)
    if _is_function_expression(value):
        return name, FunctionKind.FUNCTION, _declarator_span(node)
    return None


def _visit_pair(node) -> _Match:
    name = _identifier_name(node.child_by_field_name("key"), "property_identifier")
    if name is None:
        return None
    value = _unwrap_parens(node.child_by_field_name("value"))
    if value is not None and (
        value.type == "arrow_function" or _is_function_expression(value)
    ):
        return name, FunctionKind.METHOD, node
    return None


_VISITORS: dict[str, Callable[[object], _Match]] = {
    "function_declaration": _visit_function_declaration,
    "generator_function_declaration": _visit_function_declaration,
    "export_statement": _visit_export_statement,
    "method_definition": _visit_method_definition,
    "variable_declarator": _visit_variable_declarator,
    "pair": _visit_pair,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_source(source: str, language: str) -> ts.Tree:
    """Parse *source* with the tree-sitter grammar for *language*."""
    parser = ts.Parser(_get_ts_language(language))
    return parser.parse(source.encode("utf-8"))


def extract_functions(
    source: str,
    language: str,
    logger: logging.Logger = logger,
) -> list[FunctionRecord]:
    """Return every addressable function in *source*, in document order.

    Parameters
    ----------
    source:
        Full text of one file.
    language:
        ``"javascript"``, ``"typescript"`` or ``"tsx"``
        (see :func:`detect_language`).
    logger:
        Receives a debug line when the source only partially parses.

    Returns
    -------
    list[FunctionRecord]
        Spans are character offsets into *source*. Nested functions are
        reported alongside their enclosing function.
    """
    tree = parse_source(source, language)
    source_bytes = source.encode("utf-8")
    is_ascii = len(source_bytes) == len(source)

    def to_char_offset(byte_offset: int) -> int:
        if is_ascii:
            return byte_offset
        return len(source_bytes[:byte_offset].decode("utf-8", errors="replace"))

    records: list[FunctionRecord] = []
    # Explicit stack so deeply nested sources cannot hit the recursion limit
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        visitor = _VISITORS.get(node.type)
        if visitor is not None:
            match = visitor(node)
            if match is not None:
                name, kind, span = match
                records.append(FunctionRecord(
                    name=name,
                    kind=kind,
                    start_offset=to_char_offset(span.start_byte),
                    end_offset=to_char_offset(span.end_byte),
                ))
        stack.extend(reversed(node.children))

    if tree.root_node.has_error:
        logger.debug(
            "[Targets] Source has syntax errors; extracted %d function(s) "
            "from the recoverable parts", len(records),
        )
    return records
