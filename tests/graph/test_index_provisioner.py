# -*- coding: utf-8 -*-
"""
Module: test_index_provisioner.py
Package: tests.graph
Purpose: Unit tests for version-aware index provisioning

Tests:
- Index request parsing
- Version lookup tables
- IF NOT EXISTS dialect (>= 4.1.3) vs catalog pre-check (older)
"""

# Standard library
import logging

# Third-party
import pytest

# Local
from graphml_importer.graph.index_provisioner import (
    CATALOG_LABEL_FIELDS,
    IF_NOT_EXISTS_SUPPORT,
    IndexProvisioner,
    catalog_label_field,
    lookup,
    parse_index_requests,
)
from graphml_importer.utils.version import ServerVersion


# ============================================================================
# PARSING
# ============================================================================

class TestParseIndexRequests:

    def test_multiple_labels(self):
        assert parse_index_requests("Person.name;Movie.title;Person.age") == {
            "Person": ["name", "age"],
            "Movie": ["title"],
        }

    def test_leading_colon_stripped(self):
        assert parse_index_requests(":Person.name") == {"Person": ["name"]}

    def test_duplicates_kept_once(self):
        assert parse_index_requests("A.x;A.x;") == {"A": ["x"]}

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty(self, text):
        assert parse_index_requests(text) == {}

    def test_malformed_parts_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            indices = parse_index_requests("Person;A.b.c;Movie.title")

        assert indices == {"Movie": ["title"]}
        assert caplog.text.count("will be ignored") == 2


# ============================================================================
# VERSION TABLES
# ============================================================================

class TestVersionLookup:

    @pytest.mark.parametrize("version,expected", [
        (ServerVersion(5, 15, 0), True),
        (ServerVersion(4, 1, 3), True),
        (ServerVersion(4, 1, 2), False),
        (ServerVersion(3, 5, 0), False),
        (None, False),
    ])
    def test_if_not_exists_support(self, version, expected):
        assert lookup(IF_NOT_EXISTS_SUPPORT, version, False) is expected

    @pytest.mark.parametrize("version,expected", [
        (ServerVersion(4, 0, 0), "labelsOrTypes"),
        (ServerVersion(4, 0, 11), "labelsOrTypes"),
        (ServerVersion(3, 5, 35), "tokenNames"),
    ])
    def test_catalog_label_field(self, version, expected):
        assert catalog_label_field(version) == expected
        assert lookup(CATALOG_LABEL_FIELDS, version.major_minor, "tokenNames") == expected

    def test_catalog_field_unknown_version_uses_row(self):
        assert catalog_label_field(None, {"labelsOrTypes": ["A"]}) == "labelsOrTypes"
        assert catalog_label_field(None, {"tokenNames": ["A"]}) == "tokenNames"


# ============================================================================
# PROVISIONING
# ============================================================================

class TestEnsureIndexes:

    def test_new_server_single_idempotent_statement(self, importer, fake_session):
        created, skipped = IndexProvisioner(importer).ensure_indexes(
            fake_session, ServerVersion(4, 1, 3), {"Person": ["name"]}
        )

        assert fake_session.queries("CALL db.indexes") == []
        create_statements = fake_session.queries("CREATE INDEX")
        assert len(create_statements) == 1
        assert "IF NOT EXISTS" in create_statements[0][0]
        assert (created, skipped) == (1, 0)
        assert fake_session.transactions[-1].committed

    def test_legacy_server_skips_existing(self, importer, fake_session):
        fake_session.indexes = [{"tokenNames": ["Person"], "properties": ["name"]}]

        created, skipped = IndexProvisioner(importer).ensure_indexes(
            fake_session, ServerVersion(3, 5, 0), {"Person": ["name"]}
        )

        assert len(fake_session.queries("CALL db.indexes")) == 1
        assert fake_session.queries("CREATE INDEX") == []
        assert (created, skipped) == (0, 1)

    def test_legacy_server_creates_missing(self, importer, fake_session):
        fake_session.indexes = [{"labelsOrTypes": ["Person"], "properties": ["name"]}]

        created, skipped = IndexProvisioner(importer).ensure_indexes(
            fake_session, ServerVersion(4, 0, 0), {"Person": ["name", "age"], "Movie": ["title"]}
        )

        statements = [query for query, _ in fake_session.queries("CREATE INDEX")]
        assert statements == [
            "CREATE INDEX ON :`Person`(`age`)",
            "CREATE INDEX ON :`Movie`(`title`)",
        ]
        assert (created, skipped) == (2, 1)

    def test_multi_label_catalog_entry_uses_first_label(self, importer, fake_session, caplog):
        fake_session.indexes = [{"labelsOrTypes": ["A", "B"], "properties": ["x"]}]
        provisioner = IndexProvisioner(importer)

        with caplog.at_level(logging.WARNING):
            existing = provisioner.existing_indexes(fake_session, ServerVersion(4, 0, 0))

        assert existing == {"A": {"x"}}
        assert "multiple labels" in caplog.text

    def test_catalog_entry_without_labels_ignored(self, importer, fake_session):
        fake_session.indexes = [{"labelsOrTypes": None, "properties": None}]

        existing = IndexProvisioner(importer).existing_indexes(fake_session, ServerVersion(4, 0, 0))

        assert existing == {}

    def test_nothing_requested(self, importer, fake_session):
        assert IndexProvisioner(importer).ensure_indexes(fake_session, ServerVersion(5, 0), {}) == (0, 0)
        assert fake_session.statements == []
