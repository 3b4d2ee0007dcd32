""" Renders proto3 definitions as .proto file text """

from typing import Optional

from openapiproto.protomodel import Context, Definition, ProtoEnum, ProtoField, ProtoMessage, TIMESTAMP_IMPORT

indent = '  '


def format_comment(description: str, level: int = 0) -> str:
    """Render a description as `//` comment lines; blank source lines become a bare `//`."""
    if not description or not description.strip():
        return ''
    prefix = indent * level
    comment = ''
    for line in description.rstrip().split('\n'):
        trimmed = line.rstrip()
        if trimmed:
            comment += f"{prefix}// {trimmed}\n"
        else:
            comment += f"{prefix}//\n"
    return comment


def escape_string(value: str) -> str:
    return value.replace('\\', '\\\\').replace('"', '\\"')


def render_field(field: ProtoField, level: int) -> str:
    proto_str = format_comment(field.description, level)
    if field.enum_values:
        proto_str += f"{indent*level}// enum: [{', '.join(field.enum_values)}]\n"
    label = 'repeated ' if field.repeated else ''
    options = f' [json_name = "{escape_string(field.json_name)}"]' if field.json_name else ''
    proto_str += f"{indent*level}{label}{field.type} {field.name} = {field.number}{options};\n"
    return proto_str


def render_enum(enum: ProtoEnum, level: int = 0) -> str:
    proto_str = format_comment(enum.description, level)
    proto_str += f"{indent*level}enum {enum.name} {{\n"
    for value in enum.values:
        proto_str += f"{indent*level}{indent}{value.name} = {value.number};\n"
    proto_str += f"{indent*level}}}\n"
    return proto_str


def render_message(message: ProtoMessage, level: int = 0) -> str:
    """Render a message with its nested messages first, then its fields."""
    proto_str = format_comment(message.description, level)
    proto_str += f"{indent*level}message {message.name} {{\n"
    for nested in message.nested:
        proto_str += render_message(nested, level + 1)
        proto_str += "\n"
    for field in message.fields:
        proto_str += render_field(field, level + 1)
    proto_str += f"{indent*level}}}\n"
    return proto_str


def render_definition(definition: Definition) -> str:
    if isinstance(definition, ProtoEnum):
        return render_enum(definition)
    return render_message(definition)


def generate_proto(ctx: Context, package_name: str, package_path: Optional[str] = None) -> str:
    """
    Render the context's definitions as a proto3 file.

    Header: syntax, package, the optional go_package option and the
    timestamp import when a field uses google.protobuf.Timestamp, then each
    definition in build order followed by a blank line.
    """
    proto_str = 'syntax = "proto3";\n\n'
    proto_str += f"package {package_name};\n\n"
    if package_path:
        proto_str += f'option go_package = "{escape_string(package_path)}";\n\n'
    if ctx.uses_timestamp:
        proto_str += f'import "{TIMESTAMP_IMPORT}";\n\n'
    for definition in ctx.definitions:
        proto_str += render_definition(definition)
        proto_str += "\n"
    return proto_str
