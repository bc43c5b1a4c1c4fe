"""Name resolution over a single tree-sitter syntax tree.

The index is intentionally shallow: it knows which node declares a name and
which scope that declaration lives in, which is enough to render quick-info in
the style of the TypeScript language service and to spot a handful of
semantic mistakes.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

from tree_sitter import Node

from codex_twoslash.engine.documents import Document

IDENTIFIER_TYPES = frozenset(
    {
        "identifier",
        "type_identifier",
        "property_identifier",
        "private_property_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
    }
)

_FUNCTION_TYPES = frozenset(
    {
        "arrow_function",
        "function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "generator_function_declaration",
        "method_definition",
    }
)

_SCOPE_TYPES = _FUNCTION_TYPES | {
    "program",
    "statement_block",
    "class_body",
    "interface_body",
    "object_type",
    "for_statement",
    "for_in_statement",
}

_MEMBER_KINDS = frozenset({"method", "property"})

_CONTAINER_TYPES = frozenset(
    {"class_declaration", "abstract_class_declaration", "class", "interface_declaration"}
)

_JSDOC_LINE_RE = re.compile(r"^\s*\*\s?")


@dataclass(frozen=True)
class Declaration:
    name: str
    kind: str
    name_node: Node
    node: Node
    statement: Node
    scope: Node
    container: str | None = None


def walk(node: Node, prune: frozenset[str] = frozenset()) -> Iterator[Node]:
    """Pre-order traversal; children of node types in ``prune`` are not visited."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if current.type in prune:
            continue
        stack.extend(reversed(current.children))


def _enclosing(node: Node | None, types: frozenset[str]) -> Node | None:
    while node is not None and node.type not in types:
        node = node.parent
    return node


def _statement_for(node: Node) -> Node:
    parent = node.parent
    if parent is not None and parent.type == "export_statement":
        return parent
    return node


def _container_name(document: Document, node: Node) -> str | None:
    container = _enclosing(node.parent, _CONTAINER_TYPES)
    if container is None:
        return None
    name = container.child_by_field_name("name")
    return document.node_text(name) if name is not None else None


class DeclarationIndex:
    def __init__(self, document: Document) -> None:
        self.document = document
        self.declarations: list[Declaration] = []
        self._by_name_node: dict[tuple[int, int], Declaration] = {}
        if document.root is not None:
            for node in walk(document.root):
                self._visit(node)

    def _add(self, kind: str, name_node: Node | None, node: Node, statement: Node, scope_from: Node | None) -> None:
        if name_node is None or name_node.type not in IDENTIFIER_TYPES:
            return
        scope = _enclosing(scope_from, _SCOPE_TYPES) or self.document.root
        if scope is None:
            return
        container = _container_name(self.document, node) if kind in _MEMBER_KINDS else None
        declaration = Declaration(
            name=self.document.node_text(name_node),
            kind=kind,
            name_node=name_node,
            node=node,
            statement=statement,
            scope=scope,
            container=container,
        )
        self.declarations.append(declaration)
        self._by_name_node[(name_node.start_byte, name_node.end_byte)] = declaration

    def _visit(self, node: Node) -> None:
        kind = node.type
        name = node.child_by_field_name("name")

        if kind == "variable_declarator":
            declaration = node.parent
            if declaration is None:
                return
            keyword = declaration.children[0].type if declaration.children else "var"
            variable_kind = keyword if keyword in ("const", "let") else "var"
            self._add(variable_kind, name, node, _statement_for(declaration), declaration.parent)
        elif kind in ("function_declaration", "generator_function_declaration", "function_signature"):
            self._add("function", name, node, _statement_for(node), node.parent)
        elif kind in ("class_declaration", "abstract_class_declaration"):
            self._add("class", name, node, _statement_for(node), node.parent)
        elif kind == "interface_declaration":
            self._add("interface", name, node, _statement_for(node), node.parent)
        elif kind == "type_alias_declaration":
            self._add("type", name, node, _statement_for(node), node.parent)
        elif kind == "enum_declaration":
            self._add("enum", name, node, _statement_for(node), node.parent)
        elif kind in ("required_parameter", "optional_parameter"):
            self._add("parameter", node.child_by_field_name("pattern"), node, node, _enclosing(node, _FUNCTION_TYPES))
        elif kind == "formal_parameters":
            # plain JavaScript parameters are bare identifiers
            for child in node.named_children:
                if child.type == "identifier":
                    self._add("parameter", child, child, child, _enclosing(node, _FUNCTION_TYPES))
        elif kind in ("method_definition", "method_signature", "abstract_method_signature"):
            self._add("method", name, node, node, node.parent)
        elif kind in ("public_field_definition", "property_signature"):
            self._add("property", name, node, node, node.parent)
        elif kind == "field_definition":
            self._add("property", node.child_by_field_name("property"), node, node, node.parent)
        elif kind == "import_specifier":
            alias = node.child_by_field_name("alias")
            self._add("alias", alias or name, node, node, node.parent)
        elif kind in ("import_clause", "namespace_import"):
            for child in node.named_children:
                if child.type == "identifier":
                    self._add("alias", child, node, node, node.parent)

    def declaration_at(self, name_node: Node) -> Declaration | None:
        return self._by_name_node.get((name_node.start_byte, name_node.end_byte))

    def resolve(self, reference: Node) -> Declaration | None:
        declared = self.declaration_at(reference)
        if declared is not None:
            return declared

        name = self.document.node_text(reference)
        wants_member = reference.type in ("property_identifier", "private_property_identifier")
        candidates = [d for d in self.declarations if d.name == name]
        # a property access only ever names a member
        preferred = [d for d in candidates if (d.kind in _MEMBER_KINDS) == wants_member]
        if not preferred and not wants_member:
            preferred = candidates
        if not preferred:
            return None

        enclosing = [
            d for d in preferred if d.scope.start_byte <= reference.start_byte <= d.scope.end_byte
        ]
        if enclosing:
            # innermost scope wins, then the closest declaration above the reference
            return min(
                enclosing,
                key=lambda d: (d.scope.end_byte - d.scope.start_byte, abs(reference.start_byte - d.node.start_byte)),
            )
        return preferred[0]


def identifier_at(document: Document, position: int) -> Node | None:
    root = document.root
    if root is None:
        return None
    offset = document.to_byte(position)
    for start in (offset, offset - 1):
        if start < 0:
            continue
        node = root.descendant_for_byte_range(start, start + 1)
        if node is not None and node.type in IDENTIFIER_TYPES:
            return node
    return None


def _annotation_text(document: Document, annotation: Node | None) -> str | None:
    if annotation is None:
        return None
    text = document.node_text(annotation).strip()
    if annotation.type == "type_annotation" or text.startswith(":"):
        text = text[1:].strip()
    return text or None


def _returns_value(body: Node | None) -> bool:
    if body is None:
        return False
    if body.type != "statement_block":
        return True
    for node in walk(body, prune=_FUNCTION_TYPES):
        if node.type == "return_statement" and node.named_child_count > 0:
            return True
    return False


def _signature_parts(document: Document, node: Node) -> tuple[str, str, str]:
    type_parameters = node.child_by_field_name("type_parameters")
    parameters = node.child_by_field_name("parameters")
    single = node.child_by_field_name("parameter")
    if parameters is not None:
        params = document.node_text(parameters)
    elif single is not None:
        params = f"({document.node_text(single)})"
    else:
        params = "()"
    returns = _annotation_text(document, node.child_by_field_name("return_type"))
    if returns is None:
        returns = "any" if _returns_value(node.child_by_field_name("body")) else "void"
    prefix = document.node_text(type_parameters) if type_parameters is not None else ""
    return prefix, params, returns


def _signature(document: Document, node: Node) -> str:
    prefix, params, returns = _signature_parts(document, node)
    return f"{prefix}{params}: {returns}"


def _infer_value_type(document: Document, value: Node | None, widen: bool) -> str:
    if value is None:
        return "any"
    kind = value.type
    if kind == "number":
        return "number" if widen else document.node_text(value)
    if kind == "string":
        return "string" if widen else document.node_text(value)
    if kind == "template_string":
        return "string"
    if kind in ("true", "false"):
        return "boolean" if widen else kind
    if kind in ("null", "undefined"):
        return kind
    if kind in ("arrow_function", "function_expression", "function"):
        prefix, params, returns = _signature_parts(document, value)
        return f"{prefix}{params} => {returns}"
    if kind == "new_expression":
        constructor = value.child_by_field_name("constructor")
        return document.node_text(constructor) if constructor is not None else "any"
    if kind in ("as_expression", "satisfies_expression") and value.named_child_count > 1:
        return document.node_text(value.named_children[-1])
    if kind == "array":
        return "any[]"
    return "any"


def display_text(document: Document, declaration: Declaration) -> str:
    """Render a declaration the way a TypeScript quick-info popover reads."""
    node = declaration.node
    name = declaration.name
    kind = declaration.kind
    type_parameters = node.child_by_field_name("type_parameters")
    generics = document.node_text(type_parameters) if type_parameters is not None else ""

    if kind in ("const", "let", "var"):
        annotated = _annotation_text(document, node.child_by_field_name("type"))
        type_text = annotated or _infer_value_type(document, node.child_by_field_name("value"), widen=kind != "const")
        return f"{kind} {name}: {type_text}"
    if kind == "function":
        return f"function {name}{_signature(document, node)}"
    if kind in ("class", "interface", "enum"):
        return f"{kind} {name}{generics}"
    if kind == "type":
        value = node.child_by_field_name("value")
        return f"type {name}{generics} = {document.node_text(value) if value is not None else 'any'}"
    if kind == "parameter":
        annotated = _annotation_text(document, node.child_by_field_name("type"))
        optional = "?" if node.type == "optional_parameter" else ""
        return f"(parameter) {name}{optional}: {annotated or 'any'}"

    owner = f"{declaration.container}." if declaration.container else ""
    if kind == "method":
        return f"(method) {owner}{name}{_signature(document, node)}"
    if kind == "property":
        annotated = _annotation_text(document, node.child_by_field_name("type"))
        type_text = annotated or _infer_value_type(document, node.child_by_field_name("value"), widen=True)
        return f"(property) {owner}{name}: {type_text}"
    if kind == "alias":
        return f"(alias) import {name}"
    return name


def jsdoc_for(document: Document, declaration: Declaration) -> str | None:
    comment = declaration.statement.prev_sibling
    if comment is None or comment.type != "comment":
        return None
    if comment.end_point[0] < declaration.statement.start_point[0] - 1:
        return None
    text = document.node_text(comment)
    if not text.startswith("/**"):
        return None

    lines: list[str] = []
    for raw in text[3:-2].splitlines():
        line = _JSDOC_LINE_RE.sub("", raw).rstrip()
        if line.lstrip().startswith("@"):
            break
        lines.append(line.strip())
    docs = "\n".join(lines).strip()
    return docs or None
