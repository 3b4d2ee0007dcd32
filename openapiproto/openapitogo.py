"""
Generates Go structs for schemas that proto3 cannot represent.

A discriminated oneOf keeps its discriminator next to the variant's own
fields on the wire. proto3 can only express that as a wrapper, so unions,
their variants and every schema referencing them are emitted as Go structs
with encoding/json marshaling instead.
"""

# pylint: disable=line-too-long

import logging
from typing import Any, Dict, List, Optional

from openapiproto.common import process_template
from openapiproto.dependency_graph import DependencyGraph
from openapiproto.errors import ConversionError, PropertyError, property_error, schema_error
from openapiproto.naming import NameTracker, go_identifier, type_name
from openapiproto.openapidoc import SchemaEntry, SchemaNode
from openapiproto.protomodel import Context

logger = logging.getLogger(__name__)

INDENT = '\t'


def go_comment(description: str) -> str:
    """Render a description as Go `//` comment lines ending with a newline."""
    if not description or not description.strip():
        return ''
    lines = []
    for line in description.rstrip().split('\n'):
        trimmed = line.rstrip()
        lines.append(f"// {trimmed}" if trimmed else "//")
    return '\n'.join(lines) + '\n'


def go_string(value: str) -> str:
    return value.replace('\\', '\\\\').replace('"', '\\"')


def go_field_name(property_name: str) -> str:
    """Exported Go field name for a property."""
    name = type_name(property_name)
    if not name or not name[0].isalpha():
        name = 'X' + name
    return name


def last_path_segment(path: str) -> str:
    return path.rstrip('/').rsplit('/', 1)[-1]


def discriminator_values(schema: SchemaNode) -> Dict[str, str]:
    """
    Discriminator literal per variant schema name.

    A `discriminator.mapping` key wins; variants without a mapping entry use
    their schema name.
    """
    values: Dict[str, str] = {}
    for literal, ref in schema.discriminator_mapping.items():
        target = ref.rsplit('/', 1)[-1]
        values.setdefault(target, literal)
    for variant in schema.one_of:
        values.setdefault(variant.reference_name, variant.reference_name)
    return values


class OpenApiToGo:
    """
    Renders Go-classified schemas as a single Go source file.

    Attributes:
        ctx: The conversion context holding the emitted name of every schema.
        graph: The classification graph.
        package_name: The Go package clause, the last segment of the Go package path.
        proto_alias: Import alias of the proto package when it lives in another Go package.
    """

    def __init__(self, ctx: Context, graph: DependencyGraph, package_path: str, go_package_path: Optional[str] = None) -> None:
        self.ctx = ctx
        self.graph = graph
        self.package_path = package_path
        self.go_package_path = go_package_path or package_path
        self.package_name = go_identifier(last_path_segment(self.go_package_path))
        self.proto_alias = ''
        if self.go_package_path != self.package_path:
            self.proto_alias = go_identifier(last_path_segment(self.package_path))
        self.uses_proto_package = False
        self.has_unions = False
        self.definitions: List[str] = []

    def map_scalar_to_go(self, schema: SchemaNode) -> str:
        """Maps an OpenAPI scalar type and format to a Go type"""
        type_name_ = schema.types[0] if schema.types else 'string'
        if type_name_ == 'integer':
            return 'int64' if schema.format == 'int64' else 'int32'
        if type_name_ == 'number':
            return 'float32' if schema.format == 'float' else 'float64'
        if type_name_ == 'string':
            return '[]byte' if schema.format in ('byte', 'binary') else 'string'
        if type_name_ == 'boolean':
            return 'bool'
        raise ConversionError(f"unsupported type: {type_name_}")

    def enum_to_go(self, schema: SchemaNode) -> str:
        if schema.has_type('integer'):
            return 'int32'
        if not schema.types or schema.has_type('string'):
            return 'string'
        return self.map_scalar_to_go(schema)

    def reference_to_go(self, schema: SchemaNode) -> str:
        """Go type for a `$ref`: a struct pointer for objects, the value type for enums."""
        resolved = schema.resolved_schema()
        target = schema.reference_name
        if resolved.enum and not resolved.has_type('object'):
            return self.enum_to_go(resolved)
        name = self.ctx.schema_names.get(target)
        if name is None:
            raise ConversionError(f"references schema '{target}' which has no generated type")
        if self.graph.requires_go(target) or not self.proto_alias:
            return f"*{name}"
        self.uses_proto_package = True
        return f"*{self.proto_alias}.{name}"

    def convert_property_to_go(self, schema: SchemaNode, property_name: str, parent_name: str, schema_name: str, path: str) -> str:
        """Converts a property schema to a Go type, generating structs for inline objects"""
        if schema.is_reference():
            return self.reference_to_go(schema)
        keywords = schema.composition_keywords()
        if keywords:
            raise ConversionError(f"uses '{keywords[0]}' which is not supported")
        if len(schema.types) > 1:
            raise ConversionError(f"uses multiple types {schema.types}; multi-type properties not supported")
        if schema.has_type('array'):
            items = schema.items
            if items is None:
                raise ConversionError("array must have items defined")
            if not items.is_reference() and items.has_type('array'):
                raise ConversionError("nested arrays not supported")
            item_type = self.convert_property_to_go(items, property_name, parent_name, schema_name, path)
            return f"[]{item_type}"
        if schema.has_type('object'):
            struct_name = self.ctx.tracker.unique_name(parent_name + type_name(property_name))
            self.generate_struct(struct_name, schema, schema_name, path)
            return f"*{struct_name}"
        if schema.enum:
            return self.enum_to_go(schema)
        if not schema.types:
            raise ConversionError("property must have type or $ref")
        return self.map_scalar_to_go(schema)

    def generate_struct(self, struct_name: str, schema: SchemaNode, schema_name: str, path: str = '') -> None:
        """Generates a Go struct with one field per property"""
        slot = len(self.definitions)
        self.definitions.append('')
        field_tracker = NameTracker()
        fields: List[Dict[str, Any]] = []
        for prop_name, prop in schema.properties:
            prop_path = path + prop_name
            try:
                go_type = self.convert_property_to_go(prop, prop_name, struct_name, schema_name, prop_path + '.')
            except PropertyError:
                raise
            except ConversionError as e:
                raise property_error(schema_name, prop_path, str(e)) from e
            fields.append({
                'name': field_tracker.unique_name(go_field_name(prop_name)),
                'type': go_type,
                'json_name': go_string(prop_name),
                'omitempty': go_type.startswith('*') or go_type.startswith('['),
            })
        context = {
            'doc_comment': go_comment(schema.description),
            'struct_name': struct_name,
            'fields': fields,
            'name_width': max((len(f['name']) for f in fields), default=0),
            'type_width': max((len(f['type']) for f in fields), default=0),
        }
        self.definitions[slot] = process_template('openapitogo/go_struct.jinja', **context).rstrip('\n')

    def generate_union(self, union_name: str, schema: SchemaNode, schema_name: str) -> None:
        """Generates a union struct with discriminator-driven JSON marshaling"""
        self.has_unions = True
        literals = discriminator_values(schema)
        field_tracker = NameTracker()
        variants: List[Dict[str, str]] = []
        for variant in schema.one_of:
            target = variant.reference_name
            variant_type = self.ctx.schema_names.get(target)
            if variant_type is None:
                raise schema_error(schema_name, f"oneOf variant '{target}' has no generated type")
            variants.append({
                'field': field_tracker.unique_name(variant_type),
                'type': variant_type,
                'discriminator_value': go_string(literals[target]),
            })
        doc = schema.description or f"{union_name} holds exactly one of its variants, selected by the \"{schema.discriminator_property}\" property."
        context = {
            'doc_comment': go_comment(doc),
            'union_name': union_name,
            'variants': variants,
            'field_width': max(len(v['field']) for v in variants),
            'discriminator': go_string(schema.discriminator_property),
        }
        self.definitions.append(process_template('openapitogo/go_union.jinja', **context).rstrip('\n'))

    def generate_schema(self, entry: SchemaEntry) -> None:
        name = self.ctx.schema_names[entry.name]
        schema = entry.node
        logger.debug("generating Go type '%s' for schema '%s' (%s)", name, entry.name, self.graph.reason(entry.name))
        if schema.is_reference():
            target = self.ctx.schema_names.get(schema.reference_name)
            if target is None:
                raise schema_error(entry.name, f"failed to resolve schema: cannot resolve reference '{schema.reference}'")
            self.definitions.append(f"type {name} = {target}")
        elif schema.one_of:
            self.generate_union(name, schema, entry.name)
        elif schema.has_type('object'):
            self.generate_struct(name, schema, entry.name)
        else:
            raise schema_error(entry.name, "only objects and oneOf schemas can be generated as Go structs")

    def imports(self) -> List[str]:
        imports = []
        if self.has_unions:
            imports.extend([f'{INDENT}"encoding/json"', f'{INDENT}"fmt"', f'{INDENT}"strings"'])
        if self.uses_proto_package:
            if imports:
                imports.append('')
            imports.append(f'{INDENT}{self.proto_alias} "{go_string(self.package_path)}"')
        return imports

    def generate(self, entries: List[SchemaEntry], go_schemas: List[str]) -> str:
        """Render all Go-classified schemas, in declaration order, as one Go file."""
        if not go_schemas:
            return ''
        wanted = set(go_schemas)
        for entry in entries:
            if entry.name in wanted:
                self.generate_schema(entry)
        return process_template('openapitogo/go_file.jinja',
                                package_name=self.package_name,
                                imports=self.imports(),
                                definitions=self.definitions)


def generate_go(entries: List[SchemaEntry], graph: DependencyGraph, ctx: Context, go_schemas: List[str],
                package_path: str, go_package_path: Optional[str] = None) -> str:
    """
    Generate Go source for the schemas classified for Go output.

    Returns:
        The Go file content, or an empty string when no schema needs Go output.
    """
    generator = OpenApiToGo(ctx, graph, package_path, go_package_path)
    return generator.generate(entries, go_schemas)
