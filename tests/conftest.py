# -*- coding: utf-8 -*-
"""
Module: conftest.py
Package: tests
Purpose: Shared fixtures for GraphML importer tests

Provides in-memory stand-ins for the Neo4j driver, session and transaction
(they record every statement and answer the handful of queries the importer
issues) and a writer for small GraphML documents, plain or gzipped.
"""

# Standard library
import gzip
from unittest.mock import patch

# Third-party
import pytest

# Local
from graphml_importer.graph.neo4j_importer import Neo4jImporter


GRAPHML_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<graphml xmlns="http://graphml.graphdrawing.org/xmlns">\n'
)

SAMPLE_BODY = """
<key id="d0" for="node" attr.name="name" attr.type="string"/>
<key id="d1" for="node" attr.name="age" attr.type="int"/>
<key id="d2" for="edge" attr.name="since" attr.type="long"/>
<key id="d3" for="all" attr.name="weight" attr.type="double"/>
<key id="d4" for="node" attr.name="tags" attr.type="string" attr.list="string"/>
<graph id="G" edgedefault="directed">
  <node id="n0" labels=":Person">
    <data key="d0">Alice</data>
    <data key="d1">42</data>
    <data key="d4">["x", "y"]</data>
  </node>
  <node id="n1" labels=":Person:Admin">
    <data key="d0">Bob</data>
    <data key="d3">0.5</data>
  </node>
  <node id="n2" labels=":Movie">
    <data key="d0">Heat</data>
  </node>
  <edge id="e0" source="n0" target="n1" label="KNOWS">
    <data key="d2">2001</data>
    <data key="d3">1.5</data>
  </edge>
  <edge id="e1" source="n1" target="n2" label="WATCHED"/>
</graph>
"""


# ============================================================================
# GRAPHML FILES
# ============================================================================

def make_graphml(body: str) -> str:
    """Wrap a body in the GraphML root element."""
    return GRAPHML_HEADER + body + "</graphml>\n"


@pytest.fixture
def write_graphml(tmp_path):
    """Write a GraphML body to tmp_path, gzipped when the name ends in .gz/.gzip."""
    def _write(body: str = SAMPLE_BODY, name: str = "graph.graphml"):
        path = tmp_path / name
        data = make_graphml(body).encode("utf-8")
        if name.lower().endswith((".gz", ".gzip")):
            with gzip.open(path, "wb") as f:
                f.write(data)
        else:
            path.write_bytes(data)
        return path
    return _write


@pytest.fixture
def sample_graphml(write_graphml):
    return write_graphml(SAMPLE_BODY)


# ============================================================================
# FAKE NEO4J DRIVER
# ============================================================================

class FakeResult:
    """Iterable result with the Result methods used by the importer."""

    def __init__(self, records):
        self._records = list(records)

    def __iter__(self):
        return iter(self._records)

    def single(self):
        return self._records[0] if self._records else None

    def consume(self):
        return None


class FakeTransaction:

    def __init__(self, session):
        self.session = session
        self.statements = []
        self.committed = False
        self.rolled_back = False
        self._closed = False

    def run(self, query, **parameters):
        self.statements.append((query, parameters))
        self.session.statements.append((query, parameters))
        return FakeResult(self.session.respond(query, parameters))

    def commit(self):
        if self.session.fail_on_commit:
            raise RuntimeError("commit failed")
        self.committed = True
        self._closed = True

    def close(self):
        self.rolled_back = True
        self._closed = True

    def closed(self):
        return self._closed


class FakeSession:
    """
    Records statements and answers version, catalog and node-creation queries.

    Node ids are handed out sequentially starting at 100 so that they never
    coincide with small GraphML ids in assertions.
    """

    def __init__(self, version="5.15.0", edition="community", indexes=None):
        self.version = version
        self.edition = edition
        self.indexes = indexes or []
        self.statements = []
        self.transactions = []
        self.fail_on_commit = False
        self.closed = False
        self._next_id = 100

    def begin_transaction(self):
        tx = FakeTransaction(self)
        self.transactions.append(tx)
        return tx

    def respond(self, query, parameters):
        if "dbms.components" in query:
            if self.version is None:
                return []
            return [{"version": self.version, "edition": self.edition}]
        if "CALL db.indexes" in query:
            return self.indexes
        if "RETURN row.id" in query:
            rows = []
            for row in parameters["batch"]:
                rows.append({"file_id": row["id"], "node_id": self._next_id})
                self._next_id += 1
            return rows
        return []

    def queries(self, fragment):
        """Statements containing fragment, in execution order."""
        return [(query, params) for query, params in self.statements if fragment in query]

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class FakeDriver:

    def __init__(self, session):
        self._session = session
        self.closed = False

    def session(self, **kwargs):
        return self._session

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def mock_graph_database(fake_session):
    """Patch GraphDatabase so Neo4jImporter connects to fake_session."""
    with patch("graphml_importer.graph.neo4j_importer.GraphDatabase") as graph_database:
        graph_database.driver.return_value = FakeDriver(fake_session)
        yield graph_database


@pytest.fixture
def importer(mock_graph_database):
    return Neo4jImporter("bolt://localhost:7687", "neo4j", "secret")


@pytest.fixture
def make_session():
    """Factory for standalone fake sessions (version, edition, indexes)."""
    return FakeSession
