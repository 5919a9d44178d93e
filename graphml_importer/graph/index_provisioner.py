# -*- coding: utf-8 -*-
"""
Version-aware index provisioning.

Creates the requested single-property node indexes once the graph is loaded.
Neo4j 4.1.3 introduced CREATE INDEX IF NOT EXISTS; older servers reject a
duplicate index, so for them the existing index catalog is read first
(CALL db.indexes) and pairs that already exist are skipped. The catalog
column holding the labels was renamed in 4.0 (tokenNames -> labelsOrTypes).

Both version-dependent choices are table lookups over (minimum version,
behavior) pairs, ordered from newest to oldest.

Example:
    provisioner = IndexProvisioner(importer)
    created, skipped = provisioner.ensure_indexes(
        session, ServerVersion(3, 5, 0), {"Person": ["name"]}
    )
"""
# Standard library
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, TypeVar

# Third-party
from neo4j import Session

# Local
from graphml_importer.graph.neo4j_importer import Neo4jImporter
from graphml_importer.utils.config import NEO4J_4_VERSION, NEW_INDEX_CREATION_VERSION
from graphml_importer.utils.dataclasses import IndexRequests
from graphml_importer.utils.logger import get_logger
from graphml_importer.utils.version import ServerVersion

logger = get_logger(__name__)

T = TypeVar("T")

# Whether CREATE INDEX IF NOT EXISTS is available
IF_NOT_EXISTS_SUPPORT: List[Tuple[ServerVersion, bool]] = [
    (ServerVersion(*NEW_INDEX_CREATION_VERSION), True),
    (ServerVersion(0), False),
]

# db.indexes column listing the labels of an index (compared on major.minor)
CATALOG_LABEL_FIELDS: List[Tuple[ServerVersion, str]] = [
    (ServerVersion(*NEO4J_4_VERSION), "labelsOrTypes"),
    (ServerVersion(0), "tokenNames"),
]


def lookup(table: Iterable[Tuple[ServerVersion, T]], version: Optional[ServerVersion], default: T) -> T:
    """Return the behavior of the first entry whose minimum version is reached."""
    if version is None:
        return default
    for min_version, behavior in table:
        if version >= min_version:
            return behavior
    return default


def catalog_label_field(version: Optional[ServerVersion], entry: Any = None) -> str:
    """Name of the db.indexes column holding index labels for this server."""
    if version is None and entry is not None:
        # Unknown version: use whichever column the row actually carries
        return "labelsOrTypes" if "labelsOrTypes" in entry.keys() else "tokenNames"
    major_minor = version.major_minor if version is not None else None
    return lookup(CATALOG_LABEL_FIELDS, major_minor, "tokenNames")


def parse_index_requests(text: Optional[str]) -> IndexRequests:
    """
    Parse "Label1.prop1;Label2.prop2" into {label: [properties]}.

    A leading colon on the label is dropped. Parts without exactly one dot are
    logged and ignored. Duplicate pairs are kept once.
    """
    indices: IndexRequests = {}
    if not text:
        return indices
    for part in text.split(";"):
        if not part:
            continue
        label_property = [token for token in part.split(".") if token]
        if len(label_property) != 2:
            logger.warning(
                f"Failed to parse index '{part}' will be ignored. "
                f"Ensure the syntax <label1>.<property1>;<label2>.<property2>;..."
            )
            continue
        label = label_property[0].lstrip(":")
        properties = indices.setdefault(label, [])
        if label_property[1] not in properties:
            properties.append(label_property[1])
    return indices


class IndexProvisioner:
    """Creates missing indexes using the dialect of the connected server."""

    def __init__(self, importer: Neo4jImporter):
        self.importer = importer

    def existing_indexes(self, session: Session, version: Optional[ServerVersion]) -> Dict[str, Set[str]]:
        """
        Read the index catalog grouped as {label: {property, ...}}.

        Entries spanning several labels are reduced to their first label.
        """
        indices: Dict[str, Set[str]] = {}
        tx = session.begin_transaction()
        try:
            entries = self.importer.list_indexes(tx)
            tx.commit()
        finally:
            if not tx.closed():
                tx.close()
        for entry in entries:
            labels = entry.get(catalog_label_field(version, entry)) or []
            properties = entry.get("properties") or []
            if not labels:
                logger.debug(f"Ignoring index without labels: {entry}")
                continue
            if len(labels) > 1:
                logger.warning(f"Found multiple labels for index {entry}. Ignoring all but first label.")
            indices.setdefault(labels[0], set()).update(properties)
        return indices

    def ensure_indexes(
        self,
        session: Session,
        version: Optional[ServerVersion],
        requested: IndexRequests
    ) -> Tuple[int, int]:
        """
        Create every requested (label, property) index that is missing.

        Args:
            session: Open session
            version: Detected server version (None when unknown)
            requested: {label: [properties]}

        Returns:
            (indexes created, indexes skipped because they already existed)
        """
        if not requested:
            return 0, 0

        if_not_exists = lookup(IF_NOT_EXISTS_SUPPORT, version, False)
        existing = {} if if_not_exists else self.existing_indexes(session, version)

        created = skipped = 0
        tx = session.begin_transaction()
        try:
            for label, properties in requested.items():
                for property_key in properties:
                    if not if_not_exists and property_key in existing.get(label, ()):
                        logger.info(
                            f"Skipping index creation on :{label} ({property_key}) "
                            f"because a similar index already exists"
                        )
                        skipped += 1
                        continue
                    logger.info(f"Create index on label '{label}' and property '{property_key}'")
                    self.importer.create_index(tx, label, property_key, if_not_exists)
                    created += 1
            tx.commit()
        finally:
            if not tx.closed():
                tx.close()
        return created, skipped
