"""
Identifier conversion for proto3 and Go output.

All conversions are pure except for NameTracker, which keeps the names
already handed out within one scope.
"""

import re
from typing import Dict

from openapiproto.errors import InvalidNameError


def to_snake_case(string: str) -> str:
    """
    Convert camelCase or PascalCase to snake_case.

    Every uppercase letter except the first character is prefixed with an
    underscore and lowercased. Acronyms are not grouped, so ``HTTPStatus``
    becomes ``h_t_t_p_status``.
    """
    if not string:
        return string
    result = []
    for i, char in enumerate(string):
        if char.isupper():
            if i > 0:
                result.append('_')
            result.append(char.lower())
        else:
            result.append(char)
    return ''.join(result)


def to_pascal_case(string: str) -> str:
    """
    Convert snake_case, camelCase or ALLCAPS to PascalCase.

    The character after each underscore (and the first character) is
    capitalized; other characters keep their casing unless the whole input
    is uppercase without underscores, in which case it is lowercased first.
    ``user_id`` -> ``UserId``, ``OrderStatus`` -> ``OrderStatus``, ``USER`` -> ``User``.
    """
    if not string:
        return string
    all_caps = not any(c.islower() for c in string if c != '_')
    lower_rest = all_caps and '_' not in string
    result = []
    capitalize_next = True
    for char in string:
        if char == '_':
            capitalize_next = True
            continue
        if capitalize_next:
            result.append(char.upper())
            capitalize_next = False
        elif lower_rest:
            result.append(char.lower())
        else:
            result.append(char)
    return ''.join(result)


def to_enum_value_name(enum_name: str, value: str) -> str:
    """
    Build an enum constant name as ``<ENUM>_<VALUE>``.

    (Status, active) -> STATUS_ACTIVE, (Status, in-progress) -> STATUS_IN_PROGRESS,
    (Code, 404) -> CODE_404.
    """
    upper_enum = to_snake_case(enum_name).upper()
    upper_value = to_snake_case(value).upper().replace('-', '_')
    upper_value = re.sub(r'[^A-Z0-9_]', '_', upper_value)
    return f"{upper_enum}_{upper_value}"


def type_name(name: str) -> str:
    """PascalCase type name for a schema or property name, with invalid characters dropped."""
    return to_pascal_case(re.sub(r'[^A-Za-z0-9_]', '_', name))


def _is_ascii_letter(char: str) -> bool:
    return 'a' <= char <= 'z' or 'A' <= char <= 'Z'


def _is_valid_field_char(char: str) -> bool:
    return _is_ascii_letter(char) or '0' <= char <= '9' or char == '_'


def sanitize_field_name(name: str) -> str:
    """
    Sanitize a property name so it is a valid proto3 field identifier.

    The name must start with an ASCII letter. Any run of invalid characters
    is replaced with a single underscore and an underscore synthesized for a
    trailing invalid character is dropped. Valid names are returned as-is.

    Raises:
        InvalidNameError: If the name is empty, starts with a digit or
            underscore, or has no valid characters left.
    """
    if not name:
        raise InvalidNameError("field name cannot be empty")
    first = name[0]
    if not _is_ascii_letter(first):
        if first == '_':
            raise InvalidNameError(f"field name cannot start with underscore, got '{name}'")
        raise InvalidNameError(f"field name must start with a letter, got '{name}'")

    result = []
    last_written = ''
    for char in name:
        if _is_valid_field_char(char):
            result.append(char)
            last_written = char
        elif last_written != '_':
            result.append('_')
            last_written = '_'

    sanitized = ''.join(result)
    if not _is_valid_field_char(name[-1]) and sanitized.endswith('_'):
        sanitized = sanitized[:-1]
    if not sanitized:
        raise InvalidNameError("field name contains no valid characters")
    return sanitized


GO_KEYWORDS = frozenset([
    'break', 'case', 'chan', 'const', 'continue', 'default', 'defer', 'else', 'fallthrough', 'for',
    'func', 'go', 'goto', 'if', 'import', 'interface', 'map', 'package', 'range', 'return', 'select',
    'struct', 'switch', 'type', 'var',
])


def go_identifier(name: str) -> str:
    """Convert a path segment into a Go package identifier; keywords get a trailing underscore."""
    val = re.sub(r'[^a-zA-Z0-9_]', '_', name)
    if re.match(r'^[0-9]', val):
        val = '_' + val
    if val in GO_KEYWORDS:
        val += '_'
    return val


class NameTracker:
    """Hands out unique names within one scope, suffixing repeats with _2, _3, ..."""

    def __init__(self) -> None:
        self.used: Dict[str, int] = {}

    def unique_name(self, name: str) -> str:
        """
        Return name on first use and name_<n> (n starting at 2) on every repeat.

        Generated names are recorded too, so a later literal request for
        ``User_2`` cannot hand out a name that is already taken.
        """
        if name not in self.used:
            self.used[name] = 1
            return name
        while True:
            self.used[name] += 1
            candidate = f"{name}_{self.used[name]}"
            if candidate not in self.used:
                self.used[candidate] = 1
                return candidate
