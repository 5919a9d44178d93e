# -*- coding: utf-8 -*-
"""
Utilities package shared by the GraphML decoder and the Neo4j loader.

Contains logging setup, environment-backed configuration, the core data
structures, the comparable server version value and the release update check.
"""
