"""Exceptions raised while converting OpenAPI schemas."""


class ConversionError(ValueError):
    """Base exception for all conversion errors."""
    pass


class InputError(ConversionError):
    """Exception raised for empty or missing inputs and options."""
    pass


class DocumentError(ConversionError):
    """Exception raised when the document cannot be parsed or is not OpenAPI 3.x."""
    pass


class SchemaError(ConversionError):
    """Exception raised for an unsupported or invalid top-level schema shape."""

    def __init__(self, schema_name: str, message: str):
        super().__init__(f"schema '{schema_name}': {message}")
        self.schema_name = schema_name


class UnsupportedSchemaError(SchemaError):
    """Exception raised when a top-level schema uses an unsupported keyword."""

    def __init__(self, schema_name: str, feature: str):
        super().__init__(schema_name, f"uses '{feature}' which is not supported")
        self.feature = feature


class PropertyError(ConversionError):
    """Exception raised for a property that cannot be mapped."""

    def __init__(self, schema_name: str, property_name: str, message: str):
        super().__init__(f"schema '{schema_name}': property '{property_name}' {message}")
        self.schema_name = schema_name
        self.property_name = property_name


class ReferenceResolutionError(ConversionError):
    """Exception raised when a $ref cannot be resolved inside the document."""
    pass


class InvalidNameError(ConversionError):
    """Exception raised when an identifier cannot be sanitized."""
    pass


class FieldNumberError(ConversionError):
    """Exception raised for invalid x-proto-number annotations."""

    def __init__(self, schema_name: str, message: str, property_name: str = ''):
        if property_name:
            super().__init__(f"schema '{schema_name}': property '{property_name}' {message}")
        else:
            super().__init__(f"schema '{schema_name}': {message}")
        self.schema_name = schema_name
        self.property_name = property_name


def schema_error(schema_name: str, message: str) -> SchemaError:
    """Format: schema '<name>': <message>"""
    return SchemaError(schema_name, message)


def property_error(schema_name: str, property_name: str, message: str) -> PropertyError:
    """Format: schema '<schema>': property '<prop>' <message>"""
    return PropertyError(schema_name, property_name, message)
