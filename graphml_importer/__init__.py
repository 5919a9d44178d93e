# -*- coding: utf-8 -*-
"""
GraphML to Neo4j importer package.

Top-level package containing the streaming GraphML decoder (graphml), the
batched Neo4j loading pipeline (graph) and shared helpers for logging,
configuration and data structures (utils).
"""

__version__ = "0.1.0"
