"""
JavaScript AST adapter: tree-sitter parse trees reduced to typed records.

The segmenter only needs a handful of facts from the parser: where the
top-level structure and its braces are, where each member starts and
ends, and where every comment sits.  tree-sitter reports byte offsets
into the UTF-8 encoding, so everything exposed here is converted to
character offsets into the Python ``str`` first.

tree-sitter is error tolerant; a tree containing ERROR or MISSING nodes
is treated as a failed parse and reported as ``SourceSyntaxError``.
"""

from __future__ import annotations

import logging
import re
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from ..errors import SourceSyntaxError

logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tree_sitter_javascript.language())

_FUNCTION_VALUE_TYPES = frozenset({
    "function", "function_expression", "arrow_function",
    "generator_function", "generator_function_expression",
})

_BLANK_LINE = re.compile(r"\n[ \t]*\r?\n")


# ---------------------------------------------------------------------------
# Source text with offset bookkeeping
# ---------------------------------------------------------------------------

class SourceText:
    """Source string plus byte→char and offset→line lookups."""

    def __init__(self, text: str):
        self.text = text
        self.data = text.encode("utf-8")
        self._ascii = len(self.data) == len(text)
        self._byte_to_char: list[int] | None = None
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", text)]

    def __len__(self) -> int:
        return len(self.text)

    def char_offset(self, byte_offset: int) -> int:
        if self._ascii:
            return byte_offset
        if self._byte_to_char is None:
            table = [0] * (len(self.data) + 1)
            pos = 0
            for index, ch in enumerate(self.text):
                width = len(ch.encode("utf-8"))
                for k in range(width):
                    table[pos + k] = index
                pos += width
            table[pos] = len(self.text)
            self._byte_to_char = table
        return self._byte_to_char[byte_offset]

    def node_start(self, node: Node) -> int:
        return self.char_offset(node.start_byte)

    def node_end(self, node: Node) -> int:
        return self.char_offset(node.end_byte)

    def node_text(self, node: Node) -> str:
        return self.text[self.node_start(node):self.node_end(node)]

    def line_of(self, offset: int) -> int:
        """1-based line number of the character at *offset*."""
        return bisect_right(self._line_starts, offset)

    def column_of(self, offset: int) -> int:
        """0-based column of *offset* within its line."""
        return offset - self._line_starts[self.line_of(offset) - 1]


# ---------------------------------------------------------------------------
# Typed node records
# ---------------------------------------------------------------------------

class StructureKind(str, Enum):
    CLASS = "Class"
    OBJECT_LITERAL = "Object"


class MemberKind(str, Enum):
    METHOD = "method"
    GETTER = "getter"
    SETTER = "setter"
    FUNCTION_PROPERTY = "function_property"


@dataclass(frozen=True)
class Comment:
    start: int
    end: int
    text: str


@dataclass(frozen=True)
class MemberNode:
    """A method definition or function-valued property."""
    name: str
    kind: MemberKind
    start: int
    end: int
    separator_end: Optional[int] = None  # end of a trailing ',' in object literals
    occurrence: int = 1

    @property
    def base_name(self) -> str:
        """Name without the " (n)" suffix given to repeated names."""
        if self.occurrence == 1:
            return self.name
        return self.name[:-len(f" ({self.occurrence})")]

    @property
    def syntax_end(self) -> int:
        return self.separator_end if self.separator_end is not None else self.end


@dataclass(frozen=True)
class StructureNode:
    """The class declaration or object literal being edited."""
    kind: StructureKind
    name: str
    start: int
    end: int
    body_start: int   # just past the opening brace
    body_end: int     # at the closing brace
    body: Node


@dataclass
class JsModule:
    source: SourceText
    root: Node
    comments: list[Comment]

    def top_level_statements(self) -> Iterator[Node]:
        for child in self.root.named_children:
            if child.type != "comment":
                yield child


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_module(text: str) -> JsModule:
    """Parse *text* as an ES module.

    Raises ``SourceSyntaxError`` at the first ERROR / MISSING node.
    """
    source = SourceText(text)
    tree = Parser(JS_LANGUAGE).parse(source.data)
    root = tree.root_node

    if root.has_error:
        bad = _first_error_node(root)
        offset = source.node_start(bad) if bad is not None else len(text)
        message = _describe_error(source, bad)
        line, column = source.line_of(offset), source.column_of(offset)
        logger.debug("[JsAst] Parse error at %d:%d: %s", line, column, message)
        raise SourceSyntaxError(message, line, column)

    return JsModule(source=source, root=root, comments=_collect_comments(root, source))


def _first_error_node(root: Node) -> Optional[Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        stack.extend(
            child for child in reversed(node.children)
            if child.has_error or child.is_missing
        )
    return None


def _describe_error(source: SourceText, node: Optional[Node]) -> str:
    if node is None:
        return "Unexpected syntax"
    if node.is_missing:
        return f"Missing '{node.type}'"
    snippet = source.node_text(node).strip()
    if not snippet:
        return "Unexpected end of input"
    first_line = snippet.splitlines()[0]
    if len(first_line) > 40:
        first_line = first_line[:40] + "..."
    return f"Unexpected token '{first_line}'"


def _collect_comments(root: Node, source: SourceText) -> list[Comment]:
    comments: list[Comment] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "comment":
            start, end = source.node_start(node), source.node_end(node)
            comments.append(Comment(start, end, source.text[start:end]))
            continue
        stack.extend(reversed(node.children))
    comments.sort(key=lambda c: c.start)
    return comments


# ---------------------------------------------------------------------------
# Structure and member extraction
# ---------------------------------------------------------------------------

def class_structure(module: JsModule, node: Node, name: Optional[str] = None) -> StructureNode:
    """Build a StructureNode for a ``class_declaration`` or ``class`` node."""
    source = module.source
    if name is None:
        name_node = node.child_by_field_name("name")
        name = source.node_text(name_node) if name_node is not None else "AnonymousClass"
    body = node.child_by_field_name("body")
    return StructureNode(
        kind=StructureKind.CLASS,
        name=name,
        start=source.node_start(node),
        end=source.node_end(node),
        body_start=source.node_start(body) + 1,
        body_end=source.node_end(body) - 1,
        body=body,
    )


def object_structure(module: JsModule, node: Node, name: str) -> StructureNode:
    """Build a StructureNode for an ``object`` literal node."""
    source = module.source
    return StructureNode(
        kind=StructureKind.OBJECT_LITERAL,
        name=name,
        start=source.node_start(node),
        end=source.node_end(node),
        body_start=source.node_start(node) + 1,
        body_end=source.node_end(node) - 1,
        body=node,
    )


def structure_members(module: JsModule, structure: StructureNode) -> list[MemberNode]:
    """Members of *structure* in source order, with unique names."""
    if structure.kind is StructureKind.CLASS:
        members = _class_members(module, structure.body)
    else:
        members = _object_members(module, structure.body)
    members.sort(key=lambda m: m.start)
    return _dedupe_names(members)


def _class_members(module: JsModule, body: Node) -> list[MemberNode]:
    source = module.source
    members = []
    for child in body.named_children:
        if child.type != "method_definition":
            continue
        name = _property_name(source, child.child_by_field_name("name"))
        if name is None:
            continue
        kind = _accessor_kind(child)
        members.append(MemberNode(
            name=_qualified_name(name, kind),
            kind=kind,
            start=source.node_start(child),
            end=source.node_end(child),
        ))
    return members


def _object_members(module: JsModule, obj: Node) -> list[MemberNode]:
    source = module.source
    members = []
    children = obj.children
    for index, child in enumerate(children):
        if child.type == "method_definition":
            name = _property_name(source, child.child_by_field_name("name"))
            kind = _accessor_kind(child)
        elif child.type == "pair":
            value = child.child_by_field_name("value")
            if value is None or value.type not in _FUNCTION_VALUE_TYPES:
                continue
            name = _property_name(source, child.child_by_field_name("key"))
            kind = MemberKind.FUNCTION_PROPERTY
        else:
            continue
        if name is None:
            continue

        separator_end = None
        for follower in children[index + 1:]:
            if follower.type == "comment":
                continue
            if follower.type == ",":
                separator_end = source.node_end(follower)
            break

        members.append(MemberNode(
            name=_qualified_name(name, kind),
            kind=kind,
            start=source.node_start(child),
            end=source.node_end(child),
            separator_end=separator_end,
        ))
    return members


def _property_name(source: SourceText, node: Optional[Node]) -> Optional[str]:
    if node is None:
        return None
    text = source.node_text(node)
    if node.type == "string":
        return text[1:-1]
    return text


def _accessor_kind(method: Node) -> MemberKind:
    for child in method.children:
        if child.is_named:
            if child.type != "decorator":
                break
            continue
        if child.type in ("get", "static get"):
            return MemberKind.GETTER
        if child.type == "set":
            return MemberKind.SETTER
    return MemberKind.METHOD


def _qualified_name(name: str, kind: MemberKind) -> str:
    if kind is MemberKind.GETTER:
        return f"get {name}"
    if kind is MemberKind.SETTER:
        return f"set {name}"
    return name


def _dedupe_names(members: list[MemberNode]) -> list[MemberNode]:
    seen: dict[str, int] = {}
    result = []
    for member in members:
        count = seen.get(member.name, 0) + 1
        seen[member.name] = count
        if count > 1:
            logger.warning(
                "[JsAst] Duplicate member name '%s'; keyed as occurrence %d",
                member.name, count,
            )
            member = MemberNode(
                name=f"{member.name} ({count})",
                kind=member.kind,
                start=member.start,
                end=member.end,
                separator_end=member.separator_end,
                occurrence=count,
            )
        result.append(member)
    return result


# ---------------------------------------------------------------------------
# Text predicates shared by the boundary calculator
# ---------------------------------------------------------------------------

def has_blank_line(text: str) -> bool:
    return _BLANK_LINE.search(text) is not None


def strip_comments(text: str, offset: int, comments: list[Comment]) -> str:
    """Remove every comment lying inside ``text`` (which starts at *offset*)."""
    end = offset + len(text)
    pieces = []
    cursor = offset
    for comment in comments:
        if comment.start < cursor or comment.end > end:
            continue
        pieces.append(text[cursor - offset:comment.start - offset])
        cursor = comment.end
    pieces.append(text[cursor - offset:])
    return "".join(pieces)
