"""
Structure parser: locate the one class / object literal a document edits.

Scans top-level statements in order and picks the first class
declaration.  If there is none, the first ``const``/``let``/``var``
declarator initialised with an object literal is used instead.  One
level of ``export`` / ``export default`` is unwrapped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from tree_sitter import Node

from ..errors import NoStructureFound
from .js_ast import (
    Comment,
    JsModule,
    MemberNode,
    SourceText,
    StructureKind,
    StructureNode,
    class_structure,
    object_structure,
    parse_module,
    structure_members,
)

logger = logging.getLogger(__name__)

_VARIABLE_DECLARATIONS = ("lexical_declaration", "variable_declaration")


@dataclass(frozen=True)
class SourceStructure:
    """Identity of the structure being edited; fixed for a document's lifetime."""
    kind: StructureKind
    name: str

    @property
    def definition_key(self) -> str:
        return f"{self.name} (Definition)"

    @property
    def closing_key(self) -> str:
        return f"{self.name} (Closing)"

    def member_key(self, member_name: str) -> str:
        return f"{self.name}::{member_name}"


@dataclass
class ParsedStructure:
    structure: SourceStructure
    node: StructureNode
    members: list[MemberNode]
    comments: list[Comment] = field(default_factory=list)
    source: Optional[SourceText] = None

    @property
    def text(self) -> str:
        return self.source.text if self.source is not None else ""


def parse_structure(text: str) -> ParsedStructure:
    """Parse *text* and return its editable structure.

    Raises ``SourceSyntaxError`` when the text does not parse and
    ``NoStructureFound`` when it holds neither a class nor an object
    literal declaration.
    """
    module = parse_module(text)
    node = find_structure(module)
    if node is None:
        raise NoStructureFound()

    members = structure_members(module, node)
    logger.debug(
        "[StructureParser] Found %s '%s' with %d member(s)",
        node.kind.value, node.name, len(members),
    )
    return ParsedStructure(
        structure=SourceStructure(node.kind, node.name),
        node=node,
        members=members,
        comments=module.comments,
        source=module.source,
    )


def find_structure(module: JsModule) -> Optional[StructureNode]:
    """First top-level class, else first object-literal variable."""
    object_candidate: Optional[StructureNode] = None

    for statement in module.top_level_statements():
        if statement.type == "export_statement":
            statement = _unwrap_export(module, statement)
            if statement is None:
                continue
            if isinstance(statement, StructureNode):
                if statement.kind is StructureKind.CLASS:
                    return statement
                if object_candidate is None:
                    object_candidate = statement
                continue

        if statement.type == "class_declaration":
            return class_structure(module, statement)

        if object_candidate is None and statement.type in _VARIABLE_DECLARATIONS:
            object_candidate = _object_from_declaration(module, statement)

    return object_candidate


def _unwrap_export(module: JsModule, statement: Node):
    """Return the exported declaration node, or a StructureNode for
    ``export default class {}`` / ``export default {...}``."""
    declaration = statement.child_by_field_name("declaration")
    if declaration is not None:
        return declaration

    value = statement.child_by_field_name("value")
    if value is None:
        return None
    if value.type == "class":
        return class_structure(module, value)
    if value.type == "object":
        return object_structure(module, value, "DefaultExportedObject")
    return None


def _object_from_declaration(module: JsModule, declaration: Node) -> Optional[StructureNode]:
    for declarator in declaration.named_children:
        if declarator.type != "variable_declarator":
            continue
        name_node = declarator.child_by_field_name("name")
        value = declarator.child_by_field_name("value")
        if value is None or value.type != "object":
            continue
        if name_node is not None and name_node.type == "identifier":
            name = module.source.node_text(name_node)
        else:
            name = "AnonymousObject"
        return object_structure(module, value, name)
    return None
