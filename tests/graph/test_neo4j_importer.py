# -*- coding: utf-8 -*-
"""
Module: test_neo4j_importer.py
Package: tests.graph
Purpose: Unit tests for the Neo4j statement layer

Tests:
- Driver construction and auth
- Server version detection
- Node/edge UNWIND statements and parameters
- Index statements per dialect
"""

# Local
from graphml_importer.graph.neo4j_importer import Neo4jImporter
from graphml_importer.utils.dataclasses import EdgeRecord, NodeRecord
from graphml_importer.utils.version import ServerVersion


# ============================================================================
# CONNECTION
# ============================================================================

class TestConnection:

    def test_auth_with_username(self, mock_graph_database):
        Neo4jImporter("bolt://db:7687", "neo4j", "secret")

        mock_graph_database.driver.assert_called_once_with("bolt://db:7687", auth=("neo4j", "secret"))

    def test_no_auth_without_username(self, mock_graph_database):
        Neo4jImporter("bolt://db:7687", "", "ignored")

        mock_graph_database.driver.assert_called_once_with("bolt://db:7687", auth=None)

    def test_context_manager_closes_driver(self, mock_graph_database):
        with Neo4jImporter("bolt://db:7687") as importer:
            driver = importer.driver

        assert driver.closed


class TestServerVersion:

    def test_version_and_edition(self, importer, fake_session):
        fake_session.version = "4.1.3"
        fake_session.edition = "enterprise"

        version, edition = importer.get_server_version(fake_session)

        assert version == ServerVersion(4, 1, 3)
        assert edition == "enterprise"
        assert fake_session.transactions[0].committed

    def test_unparseable_version(self, importer, fake_session):
        fake_session.version = "dev"

        version, edition = importer.get_server_version(fake_session)

        assert version is None
        assert edition == "community"

    def test_no_rows(self, importer, fake_session):
        fake_session.version = None

        assert importer.get_server_version(fake_session) == (None, None)


# ============================================================================
# BATCHES
# ============================================================================

class TestNodeBatch:

    def test_statement_and_returned_ids(self, importer, fake_session):
        nodes = [
            NodeRecord("n0", ":Person:Admin", {"name": "Alice"}),
            NodeRecord("n1", ":Person:Admin", {"name": "Bob"}),
        ]
        tx = fake_session.begin_transaction()

        ids = importer.create_node_batch(tx, ":Person:Admin", nodes)

        query, params = tx.statements[0]
        assert "UNWIND $batch AS row" in query
        assert "CREATE (n:`Person`:`Admin`)" in query
        assert "SET n += row.properties" in query
        assert params["batch"] == [
            {"id": "n0", "properties": {"name": "Alice"}},
            {"id": "n1", "properties": {"name": "Bob"}},
        ]
        assert ids == {"n0": 100, "n1": 101}

    def test_unlabeled_nodes(self, importer, fake_session):
        tx = fake_session.begin_transaction()

        importer.create_node_batch(tx, "", [NodeRecord("n0", "", {})])

        assert "CREATE (n)" in tx.statements[0][0]


class TestEdgeBatch:

    def test_statement_matches_by_internal_id(self, importer, fake_session):
        edges = [EdgeRecord("KNOWS", "n0", "n1", {"since": 2001})]
        tx = fake_session.begin_transaction()

        misses = importer.create_edge_batch(tx, "KNOWS", edges, {"n0": 100, "n1": 101})

        query, params = tx.statements[0]
        assert "id(a) = row.source AND id(b) = row.target" in query
        assert "CREATE (a)-[e:`KNOWS`]->(b)" in query
        assert params["batch"] == [{"source": 100, "target": 101, "properties": {"since": 2001}}]
        assert misses == 0

    def test_leading_colon_removed_from_type(self, importer, fake_session):
        tx = fake_session.begin_transaction()

        importer.create_edge_batch(tx, ":KNOWS", [EdgeRecord(":KNOWS", "n0", "n1")], {"n0": 1, "n1": 2})

        assert "[e:`KNOWS`]" in tx.statements[0][0]

    def test_unknown_endpoint_sent_as_null(self, importer, fake_session):
        edges = [
            EdgeRecord("R", "n0", "ghost"),
            EdgeRecord("R", "n0", "n1"),
        ]
        tx = fake_session.begin_transaction()

        misses = importer.create_edge_batch(tx, "R", edges, {"n0": 1, "n1": 2})

        rows = tx.statements[0][1]["batch"]
        assert rows[0]["target"] is None
        assert rows[1]["target"] == 2
        assert misses == 1


# ============================================================================
# INDEXES
# ============================================================================

class TestIndexStatements:

    def test_if_not_exists(self, importer, make_session):
        session = make_session()
        tx = session.begin_transaction()

        importer.create_index(tx, "Person", "name", if_not_exists=True)

        assert tx.statements[0][0] == "CREATE INDEX IF NOT EXISTS FOR (t:`Person`) ON (t.`name`)"

    def test_legacy(self, importer, make_session):
        session = make_session()
        tx = session.begin_transaction()

        importer.create_index(tx, "Person", "name", if_not_exists=False)

        assert tx.statements[0][0] == "CREATE INDEX ON :`Person`(`name`)"

    def test_list_indexes(self, importer, make_session):
        session = make_session(indexes=[{"tokenNames": ["Person"], "properties": ["name"]}])

        rows = importer.list_indexes(session.begin_transaction())

        assert rows == [{"tokenNames": ["Person"], "properties": ["name"]}]
