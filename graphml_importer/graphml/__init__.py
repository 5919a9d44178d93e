# -*- coding: utf-8 -*-
"""
Streaming GraphML decoding package.

Contains scanner (per-tag iterparse passes over plain or gzipped files),
schema (property key index with undeclared-key fallback) and coercion (typed
scalar and list values from <data> text).
"""
