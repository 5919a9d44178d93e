# -*- coding: utf-8 -*-
"""
Neo4j statement layer for the GraphML importer.

Wraps the driver connection and the Cypher statements the loader needs: server
version detection, batched node and relationship creation with the UNWIND
pattern, and index catalog/creation statements. Every method that writes takes
the caller's open transaction, so transaction boundaries stay with the
orchestrator (Neo4jImportProcessor).

Node batches return the ids Neo4j assigned to the new nodes, keyed by the
GraphML node id, so relationships can be matched by internal id in the edge
pass instead of by a property lookup.

Example:
    importer = Neo4jImporter("bolt://localhost:7687", "neo4j", "password")
    with importer.driver.session() as session:
        version, edition = importer.get_server_version(session)
        tx = session.begin_transaction()
        ids = importer.create_node_batch(tx, ":Person", nodes)
        tx.commit()
    importer.close()

References:
    Neo4j Python driver: explicit transactions (session.begin_transaction)
    dbms.components(): kernel version and edition
"""
# Standard library
from typing import Any, Dict, List, Optional, Sequence, Tuple

# Third-party
from neo4j import GraphDatabase, Session, Transaction

# Local
from graphml_importer.graph.labels import cypher_labels, quote_name, relationship_type
from graphml_importer.utils.dataclasses import EdgeRecord, IdentityMap, NodeRecord
from graphml_importer.utils.logger import get_logger
from graphml_importer.utils.version import ServerVersion

logger = get_logger(__name__)


class Neo4jImporter:
    """
    Neo4j connection plus the batched statements used by the import passes.

    Example:
        importer = Neo4jImporter(uri, user, password)
        with importer.driver.session() as session:
            importer.create_node_batch(tx, labels, nodes)
    """

    def __init__(self, uri: str, user: Optional[str] = None, password: Optional[str] = None):
        """
        Initialize Neo4j connection.

        Args:
            uri: Neo4j connection URI (e.g., bolt://localhost:7687)
            user: Username, no authentication when empty
            password: Database password
        """
        auth = (user, password or "") if user else None
        self.driver = GraphDatabase.driver(uri, auth=auth)
        logger.info(f"Connecting to Neo4j at {uri}")

    def close(self):
        """Close Neo4j driver connection."""
        self.driver.close()
        logger.info("Neo4j connection closed")

    def __enter__(self) -> "Neo4jImporter":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # =========================================================================
    # SERVER METADATA
    # =========================================================================

    def get_server_version(self, session: Session) -> Tuple[Optional[ServerVersion], Optional[str]]:
        """
        Read the kernel version and edition via dbms.components().

        Returns:
            (parsed version or None if unparseable, edition string)
        """
        query = """
        CALL dbms.components() YIELD versions, edition
        UNWIND versions AS version
        RETURN version, edition
        """
        tx = session.begin_transaction()
        try:
            record = tx.run(query).single()
            tx.commit()
        finally:
            if not tx.closed():
                tx.close()
        if record is None:
            logger.warning("dbms.components() returned no rows, server version unknown")
            return None, None
        raw_version, edition = record["version"], record["edition"]
        logger.info(f"Detected Neo4j database version {raw_version} ({edition})")
        version = ServerVersion.try_parse(raw_version)
        if version is None:
            logger.warning(f"Could not parse Neo4j version '{raw_version}'")
        return version, edition

    # =========================================================================
    # NODE / RELATIONSHIP BATCHES
    # =========================================================================

    def create_node_batch(self, tx: Transaction, labels: str, nodes: Sequence[NodeRecord]) -> IdentityMap:
        """
        Create one node per record with a single UNWIND statement.

        Args:
            tx: Open transaction
            labels: Decorated colon-delimited labels shared by the batch
            nodes: Records to create

        Returns:
            GraphML node id -> id assigned by Neo4j
        """
        query = f"""
        UNWIND $batch AS row
        CREATE (n{cypher_labels(labels)})
        SET n += row.properties
        RETURN row.id AS file_id, id(n) AS node_id
        """
        result = tx.run(query, batch=[node.to_row() for node in nodes])
        return {record["file_id"]: record["node_id"] for record in result}

    def create_edge_batch(
        self,
        tx: Transaction,
        label: str,
        edges: Sequence[EdgeRecord],
        identity_map: IdentityMap
    ) -> int:
        """
        Create one relationship per record with a single UNWIND statement.

        Endpoints are matched by the Neo4j ids recorded during the node pass.
        An endpoint missing from identity_map is sent as null, so that row
        matches nothing and creates no relationship.

        Args:
            tx: Open transaction
            label: Decorated relationship type (a leading colon is ignored)
            edges: Records to create
            identity_map: GraphML node id -> Neo4j id

        Returns:
            Number of rows with at least one endpoint missing from identity_map
        """
        rows: List[Dict[str, Any]] = []
        misses = 0
        for edge in edges:
            row = edge.to_row(identity_map)
            if row["source"] is None or row["target"] is None:
                misses += 1
                logger.debug(
                    f"Edge {edge.source} -> {edge.target} ({label}) references unknown node, "
                    f"no relationship will be created"
                )
            rows.append(row)
        query = f"""
        UNWIND $batch AS row
        MATCH (a), (b) WHERE id(a) = row.source AND id(b) = row.target
        CREATE (a)-[e:{quote_name(relationship_type(label))}]->(b)
        SET e += row.properties
        """
        tx.run(query, batch=rows).consume()
        return misses

    # =========================================================================
    # INDEXES
    # =========================================================================

    def list_indexes(self, tx: Transaction) -> List[Any]:
        """Return the rows of the legacy index catalog (CALL db.indexes)."""
        return list(tx.run("CALL db.indexes"))

    def create_index(self, tx: Transaction, label: str, property_key: str, if_not_exists: bool):
        """
        Create a single-property node index.

        Args:
            tx: Open transaction
            label: Node label
            property_key: Property to index
            if_not_exists: Use the idempotent syntax (Neo4j >= 4.1.3) instead
                of the legacy CREATE INDEX ON form
        """
        if if_not_exists:
            query = (
                f"CREATE INDEX IF NOT EXISTS FOR (t:{quote_name(label)}) "
                f"ON (t.{quote_name(property_key)})"
            )
        else:
            query = f"CREATE INDEX ON :{quote_name(label)}({quote_name(property_key)})"
        tx.run(query).consume()
