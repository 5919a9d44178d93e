# -*- coding: utf-8 -*-
"""
Property value coercion for GraphML <data> text.

Converts the raw text of a <data> element into a typed Python value according
to the declaring PropertyKey. Scalar keys parse the text as their attr.type;
list keys (attr.list) hold a bracketed, comma-separated encoding such as
"[1, 2, 3]" or '["a,b", "c\\"d"]'.

Numeric parse failures, including integers outside the 32-bit (int) or
64-bit (long) range, raise PropertyValueError. Boolean parsing never fails:
any text other than "true" (case-insensitive) is False.

Examples:
    from graphml_importer.graphml.coercion import coerce
    from graphml_importer.utils.dataclasses import PropertyKey

    ages = PropertyKey(id="d1", owner_kind="node", name="ages",
                       scalar_type="string", list_element_type="int")
    coerce(ages, "[1, 2, 3]")   # [1, 2, 3]

"""
from typing import Callable, Dict, List, Optional

from graphml_importer.utils.dataclasses import PropertyKey, Scalar, TypedValue

LIST_WRAPPING = "[] \t\n\r"


class PropertyValueError(ValueError):
    """Raised when <data> text cannot be parsed as its declared type."""

    def __init__(self, key: PropertyKey, raw_text: str, type_name: str):
        self.key = key
        self.raw_text = raw_text
        self.type_name = type_name
        super().__init__(
            f"Cannot parse value {raw_text!r} of {key.owner_kind} property "
            f"'{key.name}' as {type_name}"
        )


def _parse_bool(text: str) -> bool:
    return text.lower() == "true"


def _bounded_int(bits: int) -> Callable[[str], int]:
    """Integer parser rejecting values outside the signed range of `bits`."""
    low, high = -2 ** (bits - 1), 2 ** (bits - 1) - 1

    def parse(text: str) -> int:
        value = int(text)
        if not low <= value <= high:
            raise ValueError(f"{value} is outside the {bits}-bit integer range")
        return value
    return parse


_SCALAR_PARSERS: Dict[str, Callable[[str], Scalar]] = {
    "boolean": _parse_bool,
    "bool": _parse_bool,
    "int": _bounded_int(32),
    "long": _bounded_int(64),
    "float": float,
    "double": float,
}


def _parser_for(type_name: Optional[str]) -> Optional[Callable[[str], Scalar]]:
    if not type_name:
        return None
    return _SCALAR_PARSERS.get(type_name.lower())


def parse_quoted_strings(text: str) -> List[str]:
    """
    Extract the double-quoted tokens of a string list encoding.

    A quote closes the current token only when preceded by an even number of
    backslashes. Text outside quotes (separators, blanks) is discarded and
    escaped quotes are unescaped in the emitted tokens.

    Example:
        >>> parse_quoted_strings('"a,b", "c\\\\"d"')
        ['a,b', 'c"d']
    """
    parts = []
    inside_string = False
    start = 0
    escape_count = 0
    for i, char in enumerate(text):
        if char == '"':
            if inside_string and escape_count % 2 == 0:
                parts.append(text[start:i].replace('\\"', '"'))
                inside_string = False
            elif not inside_string:
                inside_string = True
                start = i + 1
        escape_count = escape_count + 1 if char == '\\' else 0
    return parts


def _coerce_scalar(key: PropertyKey, text: str, type_name: Optional[str]) -> Scalar:
    parser = _parser_for(type_name)
    if parser is None:
        return text
    try:
        return parser(text)
    except ValueError as e:
        raise PropertyValueError(key, text, type_name) from e


def _coerce_list(key: PropertyKey, text: str) -> List[Scalar]:
    text = text.strip(LIST_WRAPPING)
    element_type = key.list_element_type
    if _parser_for(element_type) is None:
        return parse_quoted_strings(text)
    # Adjacent commas produce no token
    tokens = [token.strip() for token in text.split(",") if token]
    return [_coerce_scalar(key, token, element_type) for token in tokens]


def coerce(key: PropertyKey, raw_text: Optional[str]) -> Optional[TypedValue]:
    """
    Convert raw <data> text into the value declared by key.

    Args:
        key: Declaring property key
        raw_text: Element text, None when the element had no readable text

    Returns:
        Typed scalar, list of typed scalars, or None for missing text

    Raises:
        PropertyValueError: If numeric text does not parse
    """
    if raw_text is None:
        return None
    if key.is_list:
        return _coerce_list(key, raw_text)
    return _coerce_scalar(key, raw_text, key.scalar_type)
