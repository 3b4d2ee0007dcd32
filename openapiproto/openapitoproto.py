"""
Converts the component schemas of an OpenAPI 3.x document to proto3.

Schemas that proto3 cannot express (discriminated oneOf unions, their
variants and anything that references them) are emitted as Go structs in a
companion file instead.
"""

# pylint: disable=line-too-long

import logging
import os
from typing import Dict, NamedTuple, Optional, Union

from openapiproto.common import fetch_content, write_file
from openapiproto.dependency_graph import build_dependency_graph
from openapiproto.errors import InputError
from openapiproto.openapidoc import parse_document
from openapiproto.openapitogo import generate_go
from openapiproto.protobuilder import build_definitions
from openapiproto.protogenerator import generate_proto
from openapiproto.protomodel import Context

logger = logging.getLogger(__name__)

LOCATION_PROTO = 'proto'
LOCATION_GOLANG = 'golang'


class ConvertOptions(NamedTuple):
    """
    Options for one conversion.

    Attributes:
        package_name: The proto package, e.g. `api.v1`.
        package_path: The Go import path of the generated proto package, written as `option go_package`.
        go_package_path: The Go import path of the generated Go structs; defaults to `package_path`.
        use_timestamp: Map `string`/`date-time` to `google.protobuf.Timestamp`.
    """
    package_name: str
    package_path: str
    go_package_path: Optional[str] = None
    use_timestamp: bool = False


class TypeInfo(NamedTuple):
    """Where a top-level schema was emitted and, for Go output, why."""
    location: str
    reason: str = ''


class ConvertResult(NamedTuple):
    protobuf: bytes
    golang: bytes
    type_map: Dict[str, TypeInfo]


def validate_options(options: ConvertOptions) -> None:
    if not options.package_name:
        raise InputError("package name cannot be empty")
    if not options.package_path:
        raise InputError("package path cannot be empty")


def convert(openapi: Union[bytes, str], options: ConvertOptions) -> ConvertResult:
    """
    Convert an OpenAPI document to proto3 text plus Go text for the schemas
    proto3 cannot represent.

    Args:
        openapi: The document as YAML or JSON.
        options: The conversion options.

    Returns:
        ConvertResult: The proto file, the Go file (empty when not needed)
            and the output location of every top-level schema.

    Raises:
        ConversionError: On the first invalid input, document or schema.
            No partial output is produced.
    """
    validate_options(options)
    document = parse_document(openapi)
    entries = document.schemas()
    logger.debug("converting %d schemas into package '%s'", len(entries), options.package_name)

    graph = build_dependency_graph(entries)
    ctx = Context(use_timestamp=options.use_timestamp)
    go_schemas = build_definitions(entries, ctx, graph)

    proto_text = generate_proto(ctx, options.package_name, options.package_path)
    go_text = generate_go(entries, graph, ctx, go_schemas, options.package_path, options.go_package_path)

    type_map: Dict[str, TypeInfo] = {}
    for entry in entries:
        if graph.requires_go(entry.name):
            type_map[entry.name] = TypeInfo(LOCATION_GOLANG, graph.reason(entry.name))
        else:
            type_map[entry.name] = TypeInfo(LOCATION_PROTO)
    if go_schemas:
        logger.info("%d of %d schemas require Go output", len(go_schemas), len(entries))

    return ConvertResult(proto_text.encode('utf-8'), go_text.encode('utf-8'), type_map)


def convert_openapi_to_proto(openapi_path: str, proto_path: str, package_name: str, package_path: str,
                             go_package_path: Optional[str] = None, go_path: Optional[str] = None,
                             use_timestamp: bool = False) -> ConvertResult:
    """
    Convert an OpenAPI file or URL and write the .proto file, plus a .go file
    when any schema needs Go output.

    Args:
        openapi_path: A local path, file:// URL or http(s) URL.
        proto_path: The output .proto file.
        package_name: The proto package name.
        package_path: The Go import path of the proto package.
        go_package_path: The Go import path of the Go structs.
        go_path: The output .go file; defaults to `proto_path` with a `.go` extension.
        use_timestamp: Map date-time strings to google.protobuf.Timestamp.
    """
    if not openapi_path:
        raise InputError("openapi input cannot be empty")
    content = fetch_content(openapi_path)
    options = ConvertOptions(package_name, package_path, go_package_path, use_timestamp)
    result = convert(content, options)

    write_file(proto_path, result.protobuf.decode('utf-8'))
    if result.golang:
        if not go_path:
            go_path = os.path.splitext(proto_path)[0] + '.go'
        write_file(go_path, result.golang.decode('utf-8'))
    return result
