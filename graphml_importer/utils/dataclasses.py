# -*- coding: utf-8 -*-
"""
Core data structures for the GraphML importer.

Single source of truth for the records passed between the GraphML decoder and
the Neo4j loader: property key declarations, node/edge records, label options,
per-run configuration and import statistics. Import from this module rather
than redefining shapes locally.

Examples:
    from graphml_importer.utils.dataclasses import PropertyKey, NodeRecord

    key = PropertyKey(id="d0", owner_kind="node", name="age", scalar_type="int")
    node = NodeRecord(file_id="n0", labels=":Person", properties={"age": 42})

"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from graphml_importer.utils.version import ServerVersion


# ============================================================================
# TYPED VALUES
# ============================================================================

Scalar = Union[bool, int, float, str]
TypedValue = Union[Scalar, List[Scalar]]
Properties = Dict[str, Optional[TypedValue]]

# file-local node id -> id assigned by Neo4j
IdentityMap = Dict[str, int]

# label -> property keys to index
IndexRequests = Dict[str, List[str]]


class ImportPhase(Enum):
    """Loader states, always traversed in this order."""
    SCHEMA = "schema"
    NODES = "nodes"
    EDGES = "edges"
    INDEXES = "indexes"
    DONE = "done"


# ============================================================================
# GRAPHML SCHEMA
# ============================================================================

@dataclass(frozen=True)
class PropertyKey:
    """
    Declared GraphML property (<key> element).

    Identity is (owner_kind, id). list_element_type is set only for keys
    carrying attr.list, in which case values are encoded lists.
    """
    id: str
    owner_kind: str                         # "node", "edge" or "all"
    name: str
    scalar_type: str = "string"
    list_element_type: Optional[str] = None

    @property
    def is_list(self) -> bool:
        return self.list_element_type is not None


# ============================================================================
# GRAPH RECORDS
# ============================================================================

@dataclass
class NodeRecord:
    """Node parsed from a <node> element, labels already decorated."""
    file_id: str
    labels: str
    properties: Properties = field(default_factory=dict)

    def to_row(self) -> Dict[str, Any]:
        return {"id": self.file_id, "properties": self.properties}


@dataclass
class EdgeRecord:
    """Edge parsed from an <edge> element, label already decorated."""
    label: str
    source: Optional[str]
    target: Optional[str]
    properties: Properties = field(default_factory=dict)

    def to_row(self, identity_map: IdentityMap) -> Dict[str, Any]:
        # Misses stay None so the MATCH finds nothing for this row
        return {
            "source": identity_map.get(self.source),
            "target": identity_map.get(self.target),
            "properties": self.properties,
        }


# ============================================================================
# RUN CONFIGURATION
# ============================================================================

@dataclass(frozen=True)
class LabelOptions:
    """Prefix/suffix decoration applied to node labels and edge types."""
    modify_node_labels: bool = True
    modify_edge_labels: bool = True
    prefix: Optional[str] = None
    suffix: Optional[str] = None

    @property
    def has_decoration(self) -> bool:
        return bool(self.prefix) or bool(self.suffix)


@dataclass
class ImportConfig:
    """Settings for one import run, supplied by the CLI layer."""
    input_path: Path
    endpoint: str
    username: Optional[str] = None
    password: Optional[str] = None
    label_options: LabelOptions = field(default_factory=LabelOptions)
    indices: IndexRequests = field(default_factory=dict)
    show_progress: bool = True
    huge_tree: bool = False


# ============================================================================
# STATISTICS
# ============================================================================

@dataclass
class ImportStats:
    """Counters collected across all passes of one run."""
    nodes_total: int = 0
    edges_total: int = 0
    nodes_imported: int = 0
    edges_imported: int = 0
    edges_unlabeled: int = 0
    edge_endpoint_misses: int = 0
    duplicate_node_ids: int = 0
    undeclared_keys: int = 0
    indexes_created: int = 0
    indexes_skipped: int = 0
    server_version: Optional[ServerVersion] = None
    server_edition: Optional[str] = None

    def summary(self) -> str:
        return (
            f"{self.nodes_imported}/{self.nodes_total} nodes, "
            f"{self.edges_imported}/{self.edges_total} edges imported "
            f"({self.edge_endpoint_misses} edges with unresolved endpoints, "
            f"{self.edges_unlabeled} unlabeled edges skipped), "
            f"{self.indexes_created} indexes created, {self.indexes_skipped} skipped"
        )
