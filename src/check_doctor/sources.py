"""R source analysis built on tree-sitter.

Parses a source unit with the tree-sitter R grammar and exposes what the
checks and fixers need: top-level function definitions with their roxygen
(``#'``) blocks, string literal and comment spans, and the packages a unit
uses through ``pkg::`` access or ``library()``-style calls.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cache

from tree_sitter import Language, Node, Parser
from tree_sitter_language_pack import get_language

DOC_PREFIX = "#'"

_ENCODING = "utf-8"
_TAG = re.compile(r"@(?P<tag>[A-Za-z]+)(?:\s+(?P<arg>[^\s,]+))?")

# R grammar node types
_ASSIGNMENT_OPERATORS = frozenset({"<-", "<<-", "="})
_FUNCTION_TYPE = "function_definition"
_STRING_TYPE = "string"
_COMMENT_TYPE = "comment"
_CALL_TYPE = "call"
_NAMESPACE_TYPE = "namespace_operator"

_ATTACH_FUNCTIONS = frozenset({"library", "require", "requireNamespace", "loadNamespace"})


@cache
def _r_language() -> Language:
    return get_language("r")


def _get_parser() -> Parser:
    """Return a parser configured for R."""
    parser = Parser()
    parser.language = _r_language()
    return parser


@dataclass
class FunctionDef:
    """A top-level function definition and its documentation block."""

    name: str
    line: int
    """Zero-based index of the definition line."""

    params: list[str] = field(default_factory=list)
    doc_start: int | None = None
    """Zero-based index of the first ``#'`` line, None if undocumented."""

    doc_lines: list[str] = field(default_factory=list)

    @property
    def documented(self) -> bool:
        """Whether a roxygen block precedes the definition."""
        return self.doc_start is not None

    def tags(self) -> set[str]:
        """Return the roxygen tag names used in the block."""
        return {m["tag"] for line in self.doc_lines for m in _TAG.finditer(line)}

    def documented_params(self) -> set[str]:
        """Return parameter names covered by ``@param`` tags."""
        names: set[str] = set()
        for line in self.doc_lines:
            for match in _TAG.finditer(line):
                if match["tag"] == "param" and match["arg"]:
                    names.add(match["arg"])
        return names


@dataclass(frozen=True)
class SourceSpan:
    """A string literal or comment located in the source text."""

    start: int
    end: int
    """Character offsets of the whole node, quotes and ``#`` included."""

    row: int
    """Zero-based line of the first character."""

    raw: bool = False
    """Whether the literal is a raw string, where escapes are not interpreted."""


class ParsedSource:
    """An R source unit parsed with tree-sitter."""

    def __init__(self, text: str) -> None:
        """Parse the source text.

        Args:
            text: R source code

        """
        self.text = text
        self._bytes = text.encode(_ENCODING)
        self.root = _get_parser().parse(self._bytes).root_node
        self.lines = text.split("\n")

    @property
    def has_error(self) -> bool:
        """Whether the parse tree contains syntax errors."""
        return self.root.has_error

    def node_text(self, node: Node) -> str:
        """Return the source text covered by a node."""
        return self._bytes[node.start_byte : node.end_byte].decode(_ENCODING)

    def _offset(self, byte: int) -> int:
        return len(self._bytes[:byte].decode(_ENCODING))

    def _span(self, node: Node) -> SourceSpan:
        raw = node.type == _STRING_TYPE and self.node_text(node)[:1] in ("r", "R")
        return SourceSpan(
            start=self._offset(node.start_byte),
            end=self._offset(node.end_byte),
            row=node.start_point[0],
            raw=raw,
        )

    def strings(self) -> list[SourceSpan]:
        """Return every string literal in source order."""
        return [self._span(node) for node in find_nodes_by_type(self.root, _STRING_TYPE)]

    def comments(self) -> list[SourceSpan]:
        """Return every comment in source order."""
        return [self._span(node) for node in find_nodes_by_type(self.root, _COMMENT_TYPE)]

    def functions(self) -> list[FunctionDef]:
        """Return the top-level function definitions."""
        doc_rows = {
            node.start_point[0]
            for node in find_nodes_by_type(self.root, _COMMENT_TYPE)
            if self.node_text(node).startswith(DOC_PREFIX)
            and self.lines[node.start_point[0]].lstrip().startswith(DOC_PREFIX)
        }
        functions = []
        for node in self.root.named_children:
            definition = self._definition(node)
            if definition is None:
                continue
            name, function = definition
            row = node.start_point[0]
            doc_start = row
            while doc_start - 1 in doc_rows:
                doc_start -= 1
            functions.append(
                FunctionDef(
                    name=name,
                    line=row,
                    params=self._params(function),
                    doc_start=doc_start if doc_start < row else None,
                    doc_lines=self.lines[doc_start:row],
                )
            )
        return functions

    def _definition(self, node: Node) -> tuple[str, Node] | None:
        """Return the name and function node of a ``name <- function(...)`` assignment."""
        if node.type != "binary_operator":
            return None
        operator = node.child_by_field_name("operator")
        lhs = node.child_by_field_name("lhs")
        rhs = node.child_by_field_name("rhs")
        if operator is None or lhs is None or rhs is None:
            return None
        if operator.type not in _ASSIGNMENT_OPERATORS or rhs.type != _FUNCTION_TYPE:
            return None
        if lhs.type != "identifier":
            return None
        return self.node_text(lhs).strip("`"), rhs

    def _params(self, function: Node) -> list[str]:
        parameters = function.child_by_field_name("parameters")
        if parameters is None:
            return []
        names = []
        for parameter in find_children_by_type(parameters, "parameter"):
            name = parameter.child_by_field_name("name")
            if name is not None:
                names.append(self.node_text(name).strip("`"))
        return names

    def used_packages(self) -> list[tuple[str, int]]:
        """Return ``(package, line)`` for each package use, in source order.

        Lines are one-based. A use is ``pkg::name``, ``pkg:::name`` or a
        ``library()``-style call naming the package literally.
        """
        uses: list[tuple[int, str, int]] = []
        for node in find_nodes_by_type(self.root, _NAMESPACE_TYPE):
            lhs = node.child_by_field_name("lhs")
            package = self._name(lhs) if lhs is not None else None
            if package:
                uses.append((node.start_byte, package, node.start_point[0] + 1))
        for node in find_nodes_by_type(self.root, _CALL_TYPE):
            package = self._attached_package(node)
            if package:
                uses.append((node.start_byte, package, node.start_point[0] + 1))
        return [(package, line) for _, package, line in sorted(uses)]

    def _attached_package(self, call: Node) -> str | None:
        function = call.child_by_field_name("function")
        if function is None or self.node_text(function) not in _ATTACH_FUNCTIONS:
            return None
        arguments = call.child_by_field_name("arguments")
        if arguments is None:
            return None
        args = find_children_by_type(arguments, "argument")
        # library(pkg, character.only = TRUE) names the package through a variable.
        for arg in args:
            name = arg.child_by_field_name("name")
            if name is not None and self.node_text(name) == "character.only":
                return None
        positional = [arg for arg in args if arg.child_by_field_name("name") is None]
        if not positional:
            return None
        value = positional[0].child_by_field_name("value")
        return self._name(value) if value is not None else None

    def _name(self, node: Node) -> str | None:
        """Return the name an identifier or plain string literal spells."""
        if node.type == "identifier":
            return self.node_text(node).strip("`")
        if node.type == _STRING_TYPE:
            content = find_child_by_type(node, "string_content")
            return self.node_text(content) if content is not None else None
        return None

    def exported_names(self) -> set[str]:
        """Return names listed in ``export(...)`` calls, for NAMESPACE units."""
        names: set[str] = set()
        for call in find_nodes_by_type(self.root, _CALL_TYPE):
            function = call.child_by_field_name("function")
            arguments = call.child_by_field_name("arguments")
            if function is None or arguments is None or self.node_text(function) != "export":
                continue
            for arg in find_children_by_type(arguments, "argument"):
                value = arg.child_by_field_name("value")
                name = self._name(value) if value is not None else None
                if name:
                    names.add(name)
        return names


def find_nodes_by_type(node: Node, node_type: str) -> list[Node]:
    """Return all descendants of a type, depth-first."""
    results: list[Node] = []
    _collect_nodes_by_type(node, node_type, results)
    return results


def _collect_nodes_by_type(node: Node, node_type: str, results: list[Node]) -> None:
    if node.type == node_type:
        results.append(node)
    for child in node.children:
        _collect_nodes_by_type(child, node_type, results)


def find_child_by_type(node: Node, child_type: str) -> Node | None:
    """Return the first direct child of a type, or None."""
    for child in node.children:
        if child.type == child_type:
            return child
    return None


def find_children_by_type(node: Node, child_type: str) -> list[Node]:
    """Return the direct children of a type."""
    return [child for child in node.children if child.type == child_type]


def find_functions(text: str) -> list[FunctionDef]:
    """Return every top-level function definition in the text."""
    return ParsedSource(text).functions()


def find_function(text: str, name: str) -> FunctionDef | None:
    """Return the first definition of ``name``, or None."""
    for function in find_functions(text):
        if function.name == name:
            return function
    return None


def exported_names(namespace: str) -> set[str]:
    """Return names listed in ``export(...)`` directives of a NAMESPACE unit."""
    return ParsedSource(namespace).exported_names()
