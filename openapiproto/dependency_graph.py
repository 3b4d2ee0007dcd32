"""
Schema dependency graph and output classification.

Every schema that contains a discriminated oneOf, is a variant of one, or
references (directly or through other schemas) such a schema cannot be
represented faithfully in proto3 and is classified for Go output instead.
"""

# pylint: disable=line-too-long

import logging
from typing import Dict, List, Optional

from openapiproto.errors import ReferenceResolutionError, schema_error, UnsupportedSchemaError
from openapiproto.openapidoc import SchemaEntry, SchemaNode

logger = logging.getLogger(__name__)

REASON_CONTAINS_ONEOF = "contains oneOf"


class GraphNode:
    """One schema in the graph, with its outbound references and classification."""

    def __init__(self, name: str, schema: Optional[SchemaNode]) -> None:
        self.name = name
        self.schema = schema
        self.edges: List[str] = []
        self.requires_go = False
        self.reason = ''
        self.root = ''


class DependencyGraph:
    """Directed graph of structural references between top-level schemas."""

    def __init__(self) -> None:
        self.nodes: Dict[str, GraphNode] = {}

    def add_schema(self, name: str, schema: Optional[SchemaNode]) -> None:
        if name not in self.nodes:
            self.nodes[name] = GraphNode(name, schema)

    def add_dependency(self, from_name: str, to_name: str) -> None:
        """Record that schema `from_name` contains a reference to schema `to_name`."""
        if not to_name:
            return
        self.add_schema(from_name, None)
        edges = self.nodes[from_name].edges
        if to_name not in edges:
            edges.append(to_name)

    def _mark(self, name: str, reason: str, root: str) -> None:
        self.add_schema(name, None)
        node = self.nodes[name]
        node.requires_go = True
        node.reason = reason
        node.root = root
        logger.debug("schema '%s' requires Go output: %s", name, reason)

    def mark_union(self, name: str, reason: str, variant_names: List[str]) -> None:
        """Mark a oneOf schema and each of its variants for Go output."""
        self._mark(name, reason, name)
        for variant in variant_names:
            existing = self.nodes.get(variant)
            if existing is not None and existing.requires_go:
                continue
            self._mark(variant, f"variant of union type {name}", name)

    def compute_closure(self) -> None:
        """
        Mark every schema that transitively references a marked schema.

        Runs full scans over all edges until a scan adds no new marks, so
        cycles and arbitrary declaration order are handled.
        """
        changed = True
        passes = 0
        while changed:
            changed = False
            passes += 1
            for node in self.nodes.values():
                if node.requires_go:
                    continue
                for target_name in node.edges:
                    target = self.nodes.get(target_name)
                    if target is not None and target.requires_go:
                        self._mark(node.name, f"references union type {target.root}", target.root)
                        changed = True
                        break
        logger.debug("classification closure converged after %d passes", passes)

    def requires_go(self, name: str) -> bool:
        node = self.nodes.get(name)
        return node is not None and node.requires_go

    def reason(self, name: str) -> str:
        node = self.nodes.get(name)
        return node.reason if node is not None else ''

    def go_schemas(self) -> List[str]:
        """Names of schemas classified for Go output, in declaration order."""
        return [n.name for n in self.nodes.values() if n.requires_go and n.schema is not None]


def extract_variant_names(schema: SchemaNode) -> List[str]:
    return [variant.reference_name for variant in schema.one_of]


def validate_top_level_schema(name: str, schema: SchemaNode) -> None:
    """
    Reject unsupported composition and malformed oneOf schemas.

    A oneOf schema needs at least two variants, a discriminator property,
    and `$ref` variants that resolve to object schemas.
    """
    if schema.raw.get('allOf'):
        raise UnsupportedSchemaError(name, 'allOf')
    if schema.raw.get('anyOf'):
        raise UnsupportedSchemaError(name, 'anyOf')

    one_of = schema.one_of
    if one_of:
        if len(one_of) < 2:
            raise schema_error(name, "oneOf must have at least 2 variants")
        if not schema.discriminator_property:
            raise schema_error(name, "oneOf requires discriminator")
        for i, variant in enumerate(one_of):
            if not variant.is_reference():
                raise schema_error(name, f"oneOf variant {i} must use $ref, inline schemas not supported")
        for variant in one_of:
            try:
                resolved = variant.resolved_schema()
            except ReferenceResolutionError as e:
                raise schema_error(name, str(e)) from e
            if resolved.kind != 'object':
                raise schema_error(name, f"oneOf variant '{variant.reference_name}' must be an object schema")
        return

    if schema.raw.get('not') is not None:
        raise UnsupportedSchemaError(name, 'not')


def collect_dependencies(schema: SchemaNode) -> List[str]:
    """
    Names of schemas referenced from the properties of `schema`, including
    array items and the properties of inline objects.
    """
    dependencies: List[str] = []

    def add(name: str) -> None:
        if name and name not in dependencies:
            dependencies.append(name)

    def walk(node: SchemaNode) -> None:
        for _, prop in node.properties:
            if prop.is_reference():
                add(prop.reference_name)
                continue
            if prop.has_type('array'):
                items = prop.items
                if items is None:
                    continue
                if items.is_reference():
                    add(items.reference_name)
                elif items.has_type('object'):
                    walk(items)
            elif prop.has_type('object'):
                walk(prop)

    walk(schema)
    return dependencies


def build_dependency_graph(entries: List[SchemaEntry]) -> DependencyGraph:
    """
    Validate top-level schemas, mark unions and their variants, record
    reference edges and compute the classification closure.
    """
    graph = DependencyGraph()

    for entry in entries:
        graph.add_schema(entry.name, entry.node)
        schema = entry.node
        if schema.is_reference():
            continue
        validate_top_level_schema(entry.name, schema)
        if schema.one_of:
            graph.mark_union(entry.name, REASON_CONTAINS_ONEOF, extract_variant_names(schema))

    for entry in entries:
        schema = entry.node
        if schema.is_reference():
            graph.add_dependency(entry.name, schema.reference_name)
            continue
        if schema.one_of:
            continue
        for dependency in collect_dependencies(schema):
            graph.add_dependency(entry.name, dependency)

    graph.compute_closure()
    return graph
