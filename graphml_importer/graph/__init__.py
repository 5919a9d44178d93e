# -*- coding: utf-8 -*-
"""
Graph construction package for Neo4j import.

Contains neo4j_importer (batched UNWIND statements), neo4j_import_processor
(phase orchestrator and CLI), index_provisioner (version-aware index creation),
batching (per-label batches) and labels (label decoration and quoting).
"""
