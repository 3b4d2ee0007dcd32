"""
OpenAPI document loading.

Parses YAML or JSON OpenAPI 3.x documents and exposes the schemas under
`components.schemas` as an ordered list of read-only SchemaNode views.
"""

# pylint: disable=line-too-long

import logging
from typing import Any, Dict, List, NamedTuple, Optional, Set, Union

import yaml

from openapiproto.errors import DocumentError, InputError, ReferenceResolutionError

logger = logging.getLogger(__name__)

COMPONENTS_SCHEMAS_PREFIX = '#/components/schemas/'

COMPOSITION_KEYWORDS = ('oneOf', 'allOf', 'anyOf', 'not')


def _literal_to_str(value: Any) -> str:
    """Render an enum literal the way it appears in the source document."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    return str(value)


class SchemaNode:
    """
    Read-only view over one schema object of an OpenAPI document.

    A node may be a `$ref`; `resolved_schema()` returns the node it points to
    within the same document.

    Attributes:
        raw: The underlying schema mapping.
        document: The document the node belongs to, used for `$ref` resolution.
    """

    def __init__(self, raw: Dict[str, Any], document: 'OpenApiDocument') -> None:
        self.raw = raw
        self.document = document

    def is_reference(self) -> bool:
        return '$ref' in self.raw

    @property
    def reference(self) -> str:
        return str(self.raw.get('$ref', ''))

    @property
    def reference_name(self) -> str:
        """The last segment of the `$ref` pointer, e.g. `Address` for `#/components/schemas/Address`."""
        return self.reference.rsplit('/', 1)[-1]

    def resolved_schema(self) -> 'SchemaNode':
        """
        Follow `$ref` chains to the referenced schema.

        Raises:
            ReferenceResolutionError: If the reference is external, points to a
                schema that does not exist, or forms a cycle of aliases.
        """
        node = self
        seen: Set[str] = set()
        while node.is_reference():
            ref = node.reference
            if ref in seen:
                raise ReferenceResolutionError(f"cannot resolve reference '{ref}': circular reference")
            seen.add(ref)
            node = self.document.lookup(ref)
        return node

    @property
    def types(self) -> List[str]:
        declared = self.raw.get('type')
        if declared is None:
            return []
        if isinstance(declared, list):
            return [str(t) for t in declared]
        return [str(declared)]

    def has_type(self, type_name: str) -> bool:
        return any(t.lower() == type_name for t in self.types)

    @property
    def format(self) -> str:
        return str(self.raw.get('format') or '')

    @property
    def description(self) -> str:
        return str(self.raw.get('description') or '')

    @property
    def properties(self) -> List[tuple]:
        """Ordered `(name, SchemaNode)` pairs in declaration order."""
        props = self.raw.get('properties') or {}
        if not isinstance(props, dict):
            raise DocumentError(f"failed to build OpenAPI model: 'properties' must be a mapping, got {type(props).__name__}")
        return [(str(name), self.document.node(value)) for name, value in props.items()]

    @property
    def items(self) -> Optional['SchemaNode']:
        items = self.raw.get('items')
        if items is None:
            return None
        return self.document.node(items)

    @property
    def enum(self) -> List[str]:
        values = self.raw.get('enum') or []
        return [_literal_to_str(v) for v in values]

    @property
    def one_of(self) -> List['SchemaNode']:
        return [self.document.node(v) for v in self.raw.get('oneOf') or []]

    @property
    def all_of(self) -> List['SchemaNode']:
        return [self.document.node(v) for v in self.raw.get('allOf') or []]

    @property
    def any_of(self) -> List['SchemaNode']:
        return [self.document.node(v) for v in self.raw.get('anyOf') or []]

    @property
    def not_(self) -> Optional['SchemaNode']:
        value = self.raw.get('not')
        return self.document.node(value) if value is not None else None

    @property
    def discriminator_property(self) -> str:
        discriminator = self.raw.get('discriminator')
        if isinstance(discriminator, dict):
            return str(discriminator.get('propertyName') or '')
        return ''

    @property
    def discriminator_mapping(self) -> Dict[str, str]:
        discriminator = self.raw.get('discriminator')
        if isinstance(discriminator, dict) and isinstance(discriminator.get('mapping'), dict):
            return {str(k): str(v) for k, v in discriminator['mapping'].items()}
        return {}

    def composition_keywords(self) -> List[str]:
        """The composition keywords (oneOf, allOf, anyOf, not) present on this node."""
        return [k for k in COMPOSITION_KEYWORDS if self.raw.get(k)]

    def extension(self, name: str) -> Any:
        return self.raw.get(name)

    def has_extension(self, name: str) -> bool:
        return name in self.raw

    @property
    def kind(self) -> str:
        """
        Structural kind of the node, one of: reference, union, array, object,
        enum, scalar, untyped.
        """
        if self.is_reference():
            return 'reference'
        if self.raw.get('oneOf'):
            return 'union'
        if self.has_type('array'):
            return 'array'
        if self.has_type('object'):
            return 'object'
        if self.raw.get('enum'):
            return 'enum'
        if self.types:
            return 'scalar'
        return 'untyped'


SchemaEntry = NamedTuple('SchemaEntry', [('name', str), ('node', SchemaNode)])


class OpenApiDocument:
    """A parsed OpenAPI 3.x document."""

    def __init__(self, model: Dict[str, Any]) -> None:
        self.model = model
        self.schema_map: Dict[str, Any] = self._extract_schema_map(model)

    @staticmethod
    def _extract_schema_map(model: Dict[str, Any]) -> Dict[str, Any]:
        components = model.get('components')
        if components is None:
            return {}
        if not isinstance(components, dict):
            raise DocumentError("failed to build OpenAPI model: 'components' must be a mapping")
        schemas = components.get('schemas')
        if schemas is None:
            return {}
        if not isinstance(schemas, dict):
            raise DocumentError("failed to build OpenAPI model: 'components.schemas' must be a mapping")
        schema_map = {}
        for name, schema in schemas.items():
            if not isinstance(schema, dict):
                raise DocumentError(f"failed to build OpenAPI model: schema '{name}' must be a mapping")
            schema_map[str(name)] = schema
        return schema_map

    def node(self, raw: Any) -> SchemaNode:
        if not isinstance(raw, dict):
            raise DocumentError(f"failed to build OpenAPI model: schema must be a mapping, got {raw!r}")
        return SchemaNode(raw, self)

    def lookup(self, ref: str) -> SchemaNode:
        """Resolve a `#/components/schemas/<name>` pointer to its node."""
        if not ref.startswith('#'):
            raise ReferenceResolutionError(f"cannot resolve reference '{ref}': external references are not supported")
        if not ref.startswith(COMPONENTS_SCHEMAS_PREFIX):
            raise ReferenceResolutionError(f"cannot resolve reference '{ref}': only {COMPONENTS_SCHEMAS_PREFIX}* references are supported")
        name = ref[len(COMPONENTS_SCHEMAS_PREFIX):].replace('~1', '/').replace('~0', '~')
        if name not in self.schema_map:
            raise ReferenceResolutionError(f"cannot resolve reference '{ref}'")
        return SchemaNode(self.schema_map[name], self)

    def schemas(self) -> List[SchemaEntry]:
        """Schemas from components/schemas in declaration order."""
        return [SchemaEntry(name, SchemaNode(raw, self)) for name, raw in self.schema_map.items()]


def parse_document(data: Union[bytes, str]) -> OpenApiDocument:
    """
    Parse OpenAPI bytes (YAML or JSON) and return the document.

    Raises:
        InputError: If the input is empty.
        DocumentError: If the input cannot be parsed or is not OpenAPI 3.x.
    """
    if not data:
        raise InputError("openapi input cannot be empty")
    if isinstance(data, bytes):
        try:
            data = data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DocumentError(f"failed to parse OpenAPI document: {e}") from e

    try:
        model = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise DocumentError(f"failed to parse OpenAPI document: {e}") from e

    if not isinstance(model, dict):
        raise DocumentError("spec type not supported")
    if 'openapi' not in model:
        if 'swagger' in model:
            raise DocumentError(f"supplied spec is a different version (swagger {model['swagger']}), only OpenAPI 3.x is supported")
        raise DocumentError("spec type not supported")
    version = str(model['openapi'])
    if not version.startswith('3.'):
        raise DocumentError(f"supplied spec is a different version ({version}), only OpenAPI 3.x is supported")

    logger.debug("parsed OpenAPI %s document", version)
    return OpenApiDocument(model)
