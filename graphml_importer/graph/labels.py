# -*- coding: utf-8 -*-
"""
Label decoration and Cypher label formatting.

LabelTransformer applies the configured prefix/suffix to node label strings
(GraphML multi-label convention ":A:B", each label decorated independently)
and to edge type names. The helpers below turn the decorated strings into
backtick-quoted Cypher fragments.

Example:
    options = LabelOptions(prefix="p_", suffix="_s")
    labels = LabelTransformer(options)
    labels.transform_node_labels(":A:B")   # ":p_A_s:p_B_s"
    labels.transform_edge_label("KNOWS")    # "p_KNOWS_s"
"""
from typing import List, Optional

from graphml_importer.utils.dataclasses import LabelOptions


def split_labels(labels: Optional[str]) -> List[str]:
    """Split a colon-delimited label string, dropping empty segments."""
    if not labels:
        return []
    return [part for part in labels.split(":") if part]


def relationship_type(label: Optional[str]) -> str:
    """Strip the label-reference colon so the name can be used as a type."""
    label = label or ""
    return label[1:] if label.startswith(":") else label


def quote_name(name: str) -> str:
    """Backtick-quote a label, type or property name for Cypher."""
    return "`" + name.replace("`", "``") + "`"


def cypher_labels(labels: Optional[str]) -> str:
    """Render ":A:B" as ":`A`:`B`" (empty string when there are no labels)."""
    return "".join(":" + quote_name(part) for part in split_labels(labels))


class LabelTransformer:
    """Applies LabelOptions to node labels and edge types."""

    def __init__(self, options: Optional[LabelOptions] = None):
        self.options = options or LabelOptions()

    def _decorate(self, name: str) -> str:
        return f"{self.options.prefix or ''}{name}{self.options.suffix or ''}"

    def transform_node_labels(self, labels: Optional[str]) -> Optional[str]:
        if not self.options.modify_node_labels or not labels or not self.options.has_decoration:
            return labels
        return "".join(":" + self._decorate(part) for part in split_labels(labels))

    def transform_edge_label(self, label: Optional[str]) -> Optional[str]:
        if not self.options.modify_edge_labels or not label or not self.options.has_decoration:
            return label
        return self._decorate(relationship_type(label))
