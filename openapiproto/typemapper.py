"""
Maps OpenAPI property schemas to proto3 field types.

Resolution order for a property: `$ref`, array, inline object, inline enum,
scalar. Inline objects become nested messages of the enclosing message and
integer enums are hoisted to top-level enums; string enums stay `string` so
their exact wire values survive.
"""

# pylint: disable=line-too-long

import logging
import re
from typing import Any, List, NamedTuple, Optional, Tuple

from openapiproto.errors import ConversionError, FieldNumberError
from openapiproto.naming import to_pascal_case
from openapiproto.openapidoc import SchemaNode
from openapiproto.protomodel import Context, ProtoMessage, TIMESTAMP_TYPE

logger = logging.getLogger(__name__)

FieldType = NamedTuple('FieldType', [('type', str), ('repeated', bool), ('enum_values', List[str]), ('inline', bool)])

X_PROTO_NUMBER = 'x-proto-number'
MIN_FIELD_NUMBER = 1
MAX_FIELD_NUMBER = 536870911
RESERVED_RANGE_START = 19000
RESERVED_RANGE_END = 19999


def map_scalar_type(type_name: str, format_name: str, ctx: Optional[Context] = None) -> str:
    """Map an OpenAPI type and format to a proto3 scalar type."""
    if type_name == 'integer':
        if format_name == 'int64':
            return 'int64'
        return 'int32'
    if type_name == 'number':
        if format_name == 'float':
            return 'float'
        return 'double'
    if type_name == 'string':
        if format_name in ('byte', 'binary'):
            return 'bytes'
        if format_name == 'date-time' and ctx is not None and ctx.use_timestamp:
            ctx.uses_timestamp = True
            return TIMESTAMP_TYPE
        return 'string'
    if type_name == 'boolean':
        return 'bool'
    raise ConversionError(f"unsupported type: {type_name}")


def resolve_reference(schema: SchemaNode, ctx: Context) -> str:
    """Return the emitted type name of the schema a `$ref` points to."""
    schema.resolved_schema()
    name = ctx.schema_names.get(schema.reference_name)
    if name is None:
        raise ConversionError(f"references schema '{schema.reference_name}' which has no proto definition")
    return name


def _check_singular(property_name: str, kind: str) -> None:
    # no singularization: anything ending in 's' (which covers 'es') is plural
    if property_name.endswith('es') or property_name.endswith('s'):
        raise ConversionError(f"cannot derive {kind} name from plural array property '{property_name}'; use singular form or $ref")


def _check_shape(schema: SchemaNode, prefix: str) -> None:
    keywords = schema.composition_keywords()
    if keywords:
        raise ConversionError(f"{prefix}uses '{keywords[0]}' which is not supported")
    if len(schema.types) > 1:
        raise ConversionError(f"{prefix}uses multiple types {schema.types}; multi-type properties not supported")


def _enum_type(schema: SchemaNode, property_name: str, ctx: Context) -> FieldType:
    if schema.has_type('integer'):
        from openapiproto.protobuilder import build_enum
        enum = build_enum(to_pascal_case(property_name), schema, ctx)
        return FieldType(enum.name, False, [], True)
    if not schema.types or schema.has_type('string'):
        return FieldType('string', False, schema.enum, False)
    return FieldType(map_scalar_type(schema.types[0], schema.format, ctx), False, schema.enum, False)


def _array_type(schema: SchemaNode, property_name: str, ctx: Context, parent: ProtoMessage, schema_name: str, path: str) -> FieldType:
    items = schema.items
    if items is None:
        raise ConversionError("array must have items defined")
    if items.is_reference():
        return FieldType(resolve_reference(items, ctx), True, [], False)
    _check_shape(items, 'array items ')
    if items.has_type('array'):
        raise ConversionError("nested arrays not supported")
    if items.has_type('object'):
        _check_singular(property_name, 'message')
        from openapiproto.protobuilder import build_nested_message
        nested = build_nested_message(property_name, items, ctx, parent, schema_name, path)
        return FieldType(nested.name, True, [], False)
    if items.enum:
        _check_singular(property_name, 'enum')
        return _enum_type(items, property_name, ctx)._replace(repeated=True, inline=False)
    if not items.types:
        raise ConversionError("array items must have type or $ref")
    return FieldType(map_scalar_type(items.types[0], items.format, ctx), True, [], False)


def proto_type(schema: SchemaNode, property_name: str, ctx: Context, parent: ProtoMessage, schema_name: str, path: str = '') -> FieldType:
    """
    Decide the proto3 field type for a property schema.

    Args:
        schema: The property schema.
        property_name: The original property name, used to name hoisted types.
        ctx: The conversion context.
        parent: The message the field belongs to; nested messages are added to it.
        schema_name: The top-level schema being built, for error context.
        path: Dotted property path of `parent` inside the top-level schema.

    Raises:
        ConversionError: If the property cannot be represented.
    """
    if schema.is_reference():
        return FieldType(resolve_reference(schema, ctx), False, [], False)

    _check_shape(schema, '')

    if schema.has_type('array'):
        return _array_type(schema, property_name, ctx, parent, schema_name, path)

    if schema.has_type('object'):
        from openapiproto.protobuilder import build_nested_message
        nested = build_nested_message(property_name, schema, ctx, parent, schema_name, path)
        return FieldType(nested.name, False, [], True)

    if schema.enum:
        return _enum_type(schema, property_name, ctx)

    if not schema.types:
        raise ConversionError("property must have type or $ref")

    return FieldType(map_scalar_type(schema.types[0], schema.format, ctx), False, [], False)


def parse_field_number(value: Any) -> int:
    """
    Validate an x-proto-number value.

    Raises:
        ConversionError: If the value is not an integer, is out of range or
            falls into the reserved range.
    """
    if isinstance(value, bool) or not (isinstance(value, int) or (isinstance(value, str) and re.fullmatch(r'\s*[+-]?\d+\s*', value))):
        raise ConversionError(f"{X_PROTO_NUMBER} must be a valid integer, got '{value}'")
    number = int(value)
    if number < MIN_FIELD_NUMBER or number > MAX_FIELD_NUMBER:
        raise ConversionError(f"{X_PROTO_NUMBER} must be between {MIN_FIELD_NUMBER} and {MAX_FIELD_NUMBER}, got {number}")
    if RESERVED_RANGE_START <= number <= RESERVED_RANGE_END:
        raise ConversionError(f"{X_PROTO_NUMBER} {number} is in reserved range {RESERVED_RANGE_START}-{RESERVED_RANGE_END}")
    return number


def number_fields(properties: List[Tuple[str, SchemaNode]], schema_name: str, path: str = '') -> List[int]:
    """
    Field numbers for the properties of one message, in declaration order.

    Either every property carries x-proto-number or none does; without
    annotations fields are numbered 1, 2, 3, ...
    """
    numbers: List[int] = []
    used = {}
    for prop_name, prop in properties:
        if not prop.has_extension(X_PROTO_NUMBER):
            continue
        try:
            number = parse_field_number(prop.extension(X_PROTO_NUMBER))
        except ConversionError as e:
            raise FieldNumberError(schema_name, str(e), path + prop_name) from e
        if number in used:
            raise FieldNumberError(schema_name, f"duplicate {X_PROTO_NUMBER} {number} (already used by property '{used[number]}')", path + prop_name)
        used[number] = prop_name
        numbers.append(number)

    if not numbers:
        return list(range(1, len(properties) + 1))
    if len(numbers) != len(properties):
        message = f"{X_PROTO_NUMBER} must be set on all fields or none; found {len(numbers)} of {len(properties)} fields annotated"
        if path:
            raise FieldNumberError(schema_name, message, path.rstrip('.'))
        raise FieldNumberError(schema_name, message)
    return numbers
