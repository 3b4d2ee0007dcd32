"""
Builds proto3 messages and enums from OpenAPI schemas.

Definitions are appended to the context in the order they are completed,
so hoisted enums land before the message that uses them and top-level
schemas keep their declaration order.
"""

# pylint: disable=line-too-long

import logging
from typing import List, Optional

from openapiproto.dependency_graph import DependencyGraph
from openapiproto.errors import ConversionError, FieldNumberError, PropertyError, ReferenceResolutionError, property_error, schema_error
from openapiproto.naming import NameTracker, sanitize_field_name, to_enum_value_name, to_snake_case, type_name
from openapiproto.openapidoc import SchemaEntry, SchemaNode
from openapiproto.protomodel import Context, ProtoEnum, ProtoEnumValue, ProtoField, ProtoMessage
from openapiproto.typemapper import number_fields, proto_type

logger = logging.getLogger(__name__)


def reserve_schema_names(entries: List[SchemaEntry], ctx: Context) -> None:
    """Assign emitted names to all top-level schemas in declaration order."""
    for entry in entries:
        emitted = ctx.tracker.unique_name(type_name(entry.name))
        ctx.schema_names[entry.name] = emitted
        if emitted != entry.name:
            logger.debug("schema '%s' is emitted as '%s'", entry.name, emitted)


def _resolve_top_level(entry: SchemaEntry) -> SchemaNode:
    try:
        return entry.node.resolved_schema()
    except ReferenceResolutionError as e:
        raise schema_error(entry.name, f"failed to resolve schema: {e}") from e


def build_definitions(entries: List[SchemaEntry], ctx: Context, graph: DependencyGraph) -> List[str]:
    """
    Build the proto3 definitions for every schema not classified for Go output.

    Returns:
        The names of the schemas classified for Go output, in declaration order.
    """
    reserve_schema_names(entries, ctx)
    go_schemas: List[str] = []
    for entry in entries:
        if graph.requires_go(entry.name):
            go_schemas.append(entry.name)
            continue
        schema = _resolve_top_level(entry)
        emitted = ctx.schema_names[entry.name]
        if schema.enum and not schema.has_type('object'):
            build_enum(entry.name, schema, ctx, emitted)
        elif schema.has_type('object'):
            build_message(entry.name, schema, ctx, emitted)
        else:
            raise schema_error(entry.name, "only objects and enums supported at top level")
    return go_schemas


def build_message(name: str, schema: SchemaNode, ctx: Context, emitted_name: Optional[str] = None) -> ProtoMessage:
    """Create a top-level message from an object schema."""
    message = ProtoMessage(emitted_name or ctx.tracker.unique_name(type_name(name)), schema.description, [], [], name)
    _build_fields(message, schema, ctx, name, '')
    ctx.definitions.append(message)
    logger.debug("built message '%s' with %d fields", message.name, len(message.fields))
    return message


def build_nested_message(property_name: str, schema: SchemaNode, ctx: Context, parent: ProtoMessage, schema_name: str, path: str) -> ProtoMessage:
    """Create a message for an inline object property and nest it inside `parent`."""
    message = ProtoMessage(ctx.tracker.unique_name(type_name(property_name)), schema.description, [], [], property_name)
    _build_fields(message, schema, ctx, schema_name, path)
    parent.nested.append(message)
    return message


def _build_fields(message: ProtoMessage, schema: SchemaNode, ctx: Context, schema_name: str, path: str) -> None:
    properties = schema.properties
    numbers = number_fields(properties, schema_name, path)
    field_tracker = NameTracker()

    for (prop_name, prop), number in zip(properties, numbers):
        prop_path = path + prop_name
        try:
            field_name = field_tracker.unique_name(sanitize_field_name(prop_name))
            field_type = proto_type(prop, prop_name, ctx, message, schema_name, prop_path + '.')
        except (PropertyError, FieldNumberError):
            raise
        except ConversionError as e:
            raise property_error(schema_name, prop_path, str(e)) from e

        # description moves to the hoisted type
        description = '' if field_type.inline else prop.description
        message.fields.append(ProtoField(field_name, field_type.type, number, prop_name, description,
                                         field_type.repeated, field_type.enum_values))


def build_enum(name: str, schema: SchemaNode, ctx: Context, emitted_name: Optional[str] = None) -> ProtoEnum:
    """
    Create an enum from an enum schema.

    The first value is always `<NAME>_UNSPECIFIED = 0`; literals follow
    from 1 in source order.
    """
    enum_name = emitted_name or ctx.tracker.unique_name(type_name(name))
    value_tracker = NameTracker()
    values = [ProtoEnumValue(value_tracker.unique_name(f"{to_snake_case(enum_name).upper()}_UNSPECIFIED"), 0)]
    for i, literal in enumerate(schema.enum):
        values.append(ProtoEnumValue(value_tracker.unique_name(to_enum_value_name(enum_name, literal)), i + 1))
    enum = ProtoEnum(enum_name, schema.description, values)
    ctx.definitions.append(enum)
    logger.debug("built enum '%s' with %d values", enum.name, len(schema.enum))
    return enum
