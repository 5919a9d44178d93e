# -*- coding: utf-8 -*-
"""
Property schema index built from GraphML <key> declarations.

Maps (owner kind, key id) to the declared PropertyKey. The index is filled
during the schema pass and then only read, except for keys that a file uses
without declaring them: those are registered on first use as string
properties named after their id, with a single warning. Schema drift is
tolerated, never fatal.

Keys declared for="all" apply to both nodes and edges. The property names
"label" and "labels" are reserved: labels travel on the record itself, so
these properties are never written as data properties.

Example:
    schema = PropertySchema()
    for match in scanner.iter_tag("key"):
        schema.register_element(match.attrib)

    key = schema.resolve("node", "d0")
    value = coerce(key, "42")
"""
# Standard library
from typing import Dict, Iterator, Mapping, Optional, Tuple

# Local
from graphml_importer.utils.dataclasses import PropertyKey
from graphml_importer.utils.logger import get_logger

logger = get_logger(__name__)

NODE = "node"
EDGE = "edge"
ALL = "all"
DEFAULT_TYPE = "string"
RESERVED_NAMES = frozenset({"label", "labels"})


def is_reserved(name: str) -> bool:
    """True for property names carrying label information."""
    return name in RESERVED_NAMES


class PropertySchema:
    """
    Registry of PropertyKey declarations keyed by (owner_kind, id).

    Example:
        schema = PropertySchema()
        schema.register("node", "d0", "age", "int")
        schema.resolve("node", "d0").name   # "age"
    """

    def __init__(self):
        self._keys: Dict[Tuple[str, str], PropertyKey] = {}
        self.undeclared_count = 0

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, identity: Tuple[str, str]) -> bool:
        return identity in self._keys

    def __iter__(self) -> Iterator[PropertyKey]:
        return iter(self._keys.values())

    def register(
        self,
        owner_kind: str,
        key_id: str,
        name: Optional[str] = None,
        scalar_type: Optional[str] = None,
        list_element_type: Optional[str] = None
    ) -> PropertyKey:
        """
        Insert or overwrite a key declaration.

        Args:
            owner_kind: "node", "edge" or "all"
            key_id: Value of the key's id attribute
            name: attr.name (defaults to key_id)
            scalar_type: attr.type (defaults to string)
            list_element_type: attr.list, only for list properties

        Returns:
            The registered PropertyKey
        """
        key = PropertyKey(
            id=key_id,
            owner_kind=(owner_kind or ALL).lower(),
            name=name or key_id,
            scalar_type=(scalar_type or DEFAULT_TYPE).lower(),
            list_element_type=list_element_type.lower() if list_element_type else None,
        )
        identity = (key.owner_kind, key.id)
        if identity in self._keys:
            logger.debug(f"Redeclared {key.owner_kind} property key '{key.id}'")
        self._keys[identity] = key
        return key

    def register_element(self, attrib: Mapping[str, str]) -> Optional[PropertyKey]:
        """Register a key from the attributes of a <key> element."""
        key_id = attrib.get("id")
        if not key_id:
            logger.warning(f"Ignoring <key> declaration without id: {dict(attrib)}")
            return None
        return self.register(
            attrib.get("for"),
            key_id,
            attrib.get("attr.name"),
            attrib.get("attr.type"),
            attrib.get("attr.list"),
        )

    def resolve(self, owner_kind: str, key_id: str) -> PropertyKey:
        """
        Look up a key, synthesizing a string fallback for undeclared ids.

        Args:
            owner_kind: "node" or "edge"
            key_id: Value of the <data> element's key attribute

        Returns:
            Declared key, key declared for="all", or a newly registered fallback
        """
        key = self._keys.get((owner_kind, key_id)) or self._keys.get((ALL, key_id))
        if key is not None:
            return key
        logger.warning(f"{owner_kind} property '{key_id}' wasn't defined, fallback to string property")
        self.undeclared_count += 1
        return self.register(owner_kind, key_id, key_id, DEFAULT_TYPE)
