""" Intermediate representation of proto3 definitions built from OpenAPI schemas """

from typing import Dict, List, NamedTuple, Union

from openapiproto.naming import NameTracker

ProtoField = NamedTuple('ProtoField', [('name', str), ('type', str), ('number', int), ('json_name', str),
                                       ('description', str), ('repeated', bool), ('enum_values', List[str])])
ProtoMessage = NamedTuple('ProtoMessage', [('name', str), ('description', str), ('fields', List['ProtoField']),
                                           ('nested', List['ProtoMessage']), ('original_schema', str)])
ProtoEnumValue = NamedTuple('ProtoEnumValue', [('name', str), ('number', int)])
ProtoEnum = NamedTuple('ProtoEnum', [('name', str), ('description', str), ('values', List['ProtoEnumValue'])])

Definition = Union[ProtoMessage, ProtoEnum]

TIMESTAMP_TYPE = 'google.protobuf.Timestamp'
TIMESTAMP_IMPORT = 'google/protobuf/timestamp.proto'


class Context:
    """
    State of one conversion.

    Attributes:
        tracker: Name tracker for top-level and hoisted type names.
        definitions: Messages and enums in the order they were built.
        schema_names: Emitted type name per top-level schema name.
        use_timestamp: Map string/date-time to google.protobuf.Timestamp.
        uses_timestamp: Set once any field maps to google.protobuf.Timestamp.
    """

    def __init__(self, use_timestamp: bool = False) -> None:
        self.tracker = NameTracker()
        self.definitions: List[Definition] = []
        self.schema_names: Dict[str, str] = {}
        self.use_timestamp = use_timestamp
        self.uses_timestamp = False

    @property
    def messages(self) -> List[ProtoMessage]:
        return [d for d in self.definitions if isinstance(d, ProtoMessage)]

    @property
    def enums(self) -> List[ProtoEnum]:
        return [d for d in self.definitions if isinstance(d, ProtoEnum)]
