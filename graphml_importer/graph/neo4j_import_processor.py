# -*- coding: utf-8 -*-
"""
GraphML to Neo4j import orchestrator.

Runs a complete GraphML import as a fixed sequence of passes over the input
file: SCHEMA (count nodes/edges, register <key> declarations) -> NODES
(create nodes in per-label UNWIND batches and record the id Neo4j assigns to
every GraphML node id) -> EDGES (create relationships between the recorded
ids) -> INDEXES (create requested indexes with the server's dialect) -> DONE.
No pass starts before the previous one has flushed its last partial batches
and committed, since the edge pass needs the complete id map.

The input is never loaded as a whole. Each pass re-opens the file and streams
it, keeping at most one batch per label in memory. Transactions are committed
every TRANSACTION_SIZE records independent of batch boundaries, so a failure
only loses the current uncommitted window.

Examples:
    # Command line
    # graphml-importer -i graph.graphml.gz -e bolt://localhost:7687 \\
    #     --username neo4j --password secret \\
    #     --label-prefix Src_ --indices "Person.name;Movie.title"

    # Python API
    from pathlib import Path
    from graphml_importer.graph.neo4j_import_processor import Neo4jImportProcessor
    from graphml_importer.utils.dataclasses import ImportConfig

    processor = Neo4jImportProcessor(ImportConfig(
        input_path=Path("graph.graphml"),
        endpoint="bolt://localhost:7687",
        username="neo4j",
        password="secret",
        indices={"Person": ["name"]},
    ))
    stats = processor.run_import()
    print(stats.summary())

References:
    Neo4jImporter: statement layer (UNWIND batches, version, index catalog)
    IndexProvisioner: version-dependent index creation
    GraphMLScanner: per-tag streaming passes
"""
# Standard library
import argparse
from contextlib import closing
import sys
from pathlib import Path
from typing import List, Optional

# Third-party
from neo4j import Session
from neo4j.exceptions import DriverError, Neo4jError
from tqdm import tqdm

# Local
from graphml_importer import __version__
from graphml_importer.graph.batching import LabelBatcher
from graphml_importer.graph.index_provisioner import IndexProvisioner, parse_index_requests
from graphml_importer.graph.labels import LabelTransformer, relationship_type
from graphml_importer.graph.neo4j_importer import Neo4jImporter
from graphml_importer.graphml.coercion import PropertyValueError, coerce
from graphml_importer.graphml.scanner import ElementMatch, GraphMLParseError, GraphMLScanner
from graphml_importer.graphml.schema import EDGE, NODE, PropertySchema, is_reserved
from graphml_importer.utils import config
from graphml_importer.utils.dataclasses import (
    EdgeRecord,
    IdentityMap,
    ImportConfig,
    ImportPhase,
    ImportStats,
    LabelOptions,
    NodeRecord,
    Properties,
)
from graphml_importer.utils.logger import get_logger, setup_logging
from graphml_importer.utils.update_check import check_for_update
from graphml_importer.utils.version import ServerVersion

logger = get_logger(__name__)

PHASE_ORDER = list(ImportPhase)


class TransactionWindow:
    """
    Exactly one open transaction, swapped for a fresh one every `size` records.

    Whatever is still open when the window is closed (error paths) is rolled
    back; windows committed earlier stay durable.
    """

    def __init__(self, session: Session, size: int):
        self.session = session
        self.size = size
        self.count = 0
        self.commits = 0
        self.tx = session.begin_transaction()

    def tick(self) -> int:
        """Count one processed record, committing when the window is full."""
        self.count += 1
        if self.count % self.size == 0:
            self.commit()
            self.tx = self.session.begin_transaction()
        return self.count

    def commit(self):
        self.tx.commit()
        self.commits += 1

    def close(self):
        if not self.tx.closed():
            self.tx.close()

    def __enter__(self) -> "TransactionWindow":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class Neo4jImportProcessor:
    """
    Orchestrates one GraphML import run.

    Owns all run-scoped state: the property schema, the GraphML id -> Neo4j id
    map and the statistics. Nothing is shared between runs.
    """

    def __init__(
        self,
        import_config: ImportConfig,
        batch_size: int = config.BATCH_SIZE,
        transaction_size: int = config.TRANSACTION_SIZE,
        progress_interval: int = config.PROGRESS_INTERVAL
    ):
        """
        Initialize import processor.

        Args:
            import_config: Input path, endpoint, credentials, label options, indexes
            batch_size: Records per UNWIND statement
            transaction_size: Records per committed transaction
            progress_interval: Records between progress log lines
        """
        self.config = import_config
        self.batch_size = batch_size
        self.transaction_size = transaction_size
        self.progress_interval = progress_interval

        self.scanner = GraphMLScanner(import_config.input_path, huge_tree=import_config.huge_tree)
        self.labels = LabelTransformer(import_config.label_options)
        self.schema = PropertySchema()
        self.identity_map: IdentityMap = {}
        self.stats = ImportStats()
        self.phase: Optional[ImportPhase] = None

    def _advance(self, phase: ImportPhase):
        """Move to the next phase; phases can be neither skipped nor repeated."""
        expected = PHASE_ORDER[0] if self.phase is None else PHASE_ORDER[PHASE_ORDER.index(self.phase) + 1]
        if phase is not expected:
            raise RuntimeError(f"Cannot enter phase {phase.value} after {self.phase.value if self.phase else 'start'}")
        self.phase = phase
        logger.debug(f"Entering phase {phase.value}")

    # =========================================================================
    # RECORD ASSEMBLY
    # =========================================================================

    def collect_properties(self, match: ElementMatch, owner_kind: str) -> Properties:
        """
        Read the <data> children of a node/edge into a typed property map.

        Undeclared keys fall back to string properties; label/labels are
        skipped because labels travel on the record itself.
        """
        properties: Properties = {}
        for key_id, text in match.iter_data():
            key = self.schema.resolve(owner_kind, key_id)
            if is_reserved(key.name):
                continue
            properties[key.name] = coerce(key, text)
        return properties

    def parse_node(self, match: ElementMatch) -> NodeRecord:
        return NodeRecord(
            file_id=match.get("id"),
            labels=self.labels.transform_node_labels(match.get("labels")) or "",
            properties=self.collect_properties(match, NODE),
        )

    def parse_edge(self, match: ElementMatch) -> EdgeRecord:
        # An empty type (e.g. label=":") leaves the edge unlabeled, never just decorated
        label = relationship_type(match.get("label"))
        return EdgeRecord(
            label=self.labels.transform_edge_label(label) if label else "",
            source=match.get("source"),
            target=match.get("target"),
            properties=self.collect_properties(match, EDGE),
        )

    # =========================================================================
    # PHASE 0: SCHEMA
    # =========================================================================

    def load_schema(self) -> PropertySchema:
        """Count nodes and edges, then register every <key> declaration."""
        self._advance(ImportPhase.SCHEMA)
        logger.info("Parsing property definitions...")
        self.stats.nodes_total = self.scanner.count("node")
        self.stats.edges_total = self.scanner.count("edge")
        logger.info(f"{self.stats.nodes_total} nodes, {self.stats.edges_total} edges")

        with closing(self.scanner.iter_tag("key")) as matches:
            for match in matches:
                self.schema.register_element(match.attrib)
        logger.info(f"Registered {len(self.schema)} property keys")
        return self.schema

    # =========================================================================
    # PHASE 1: NODES
    # =========================================================================

    def _flush_nodes(self, importer: Neo4jImporter, window: TransactionWindow, labels: str,
                     batch: List[NodeRecord]):
        seen = set()
        for node in batch:
            if node.file_id in self.identity_map or node.file_id in seen:
                self.stats.duplicate_node_ids += 1
                logger.warning(f"Duplicate node id '{node.file_id}', edges will attach to the last node imported")
            seen.add(node.file_id)
        ids = importer.create_node_batch(window.tx, labels, batch)
        self.identity_map.update((file_id, node_id) for file_id, node_id in ids.items() if file_id is not None)
        self.stats.nodes_imported += len(batch)

    def import_nodes(self, session: Session, importer: Neo4jImporter) -> IdentityMap:
        """
        Stream all nodes into Neo4j and build the GraphML id -> Neo4j id map.

        Returns:
            The completed identity map
        """
        self._advance(ImportPhase.NODES)
        logger.info("\n=== IMPORTING NODES ===")
        batcher: LabelBatcher[NodeRecord] = LabelBatcher(self.batch_size)

        with TransactionWindow(session, self.transaction_size) as window, \
                tqdm(total=self.stats.nodes_total, desc="Nodes", disable=not self.config.show_progress) as pbar, \
                closing(self.scanner.iter_tag("node")) as matches:
            for match in matches:
                node = self.parse_node(match)
                batch = batcher.add(node.labels, node)
                if batch:
                    self._flush_nodes(importer, window, node.labels, batch)
                count = window.tick()
                pbar.update(1)
                if count % self.progress_interval == 0:
                    logger.info(f"Nodes progress: {count}/{self.stats.nodes_total}")

            for labels, batch in batcher.drain():
                self._flush_nodes(importer, window, labels, batch)
            window.commit()

        logger.info(f"Imported {self.stats.nodes_imported} nodes")
        return self.identity_map

    # =========================================================================
    # PHASE 2: EDGES
    # =========================================================================

    def _flush_edges(self, importer: Neo4jImporter, window: TransactionWindow, label: str,
                     batch: List[EdgeRecord]):
        misses = importer.create_edge_batch(window.tx, label, batch, self.identity_map)
        self.stats.edge_endpoint_misses += misses
        self.stats.edges_imported += len(batch) - misses

    def import_edges(self, session: Session, importer: Neo4jImporter):
        """Stream all edges into Neo4j, matching endpoints through the identity map."""
        self._advance(ImportPhase.EDGES)
        logger.info("\n=== IMPORTING EDGES ===")
        batcher: LabelBatcher[EdgeRecord] = LabelBatcher(self.batch_size)

        with TransactionWindow(session, self.transaction_size) as window, \
                tqdm(total=self.stats.edges_total, desc="Edges", disable=not self.config.show_progress) as pbar, \
                closing(self.scanner.iter_tag("edge")) as matches:
            for match in matches:
                edge = self.parse_edge(match)
                if edge.label:
                    batch = batcher.add(edge.label, edge)
                    if batch:
                        self._flush_edges(importer, window, edge.label, batch)
                else:
                    self.stats.edges_unlabeled += 1
                    logger.warning(f"Skipping edge {edge.source} -> {edge.target} without label")
                count = window.tick()
                pbar.update(1)
                if count % self.progress_interval == 0:
                    logger.info(f"Edges progress: {count}/{self.stats.edges_total}")

            for label, batch in batcher.drain():
                self._flush_edges(importer, window, label, batch)
            window.commit()

        if self.stats.edge_endpoint_misses:
            logger.warning(
                f"{self.stats.edge_endpoint_misses} edges reference node ids that were not imported; "
                f"no relationships were created for them"
            )
        logger.info(f"Imported {self.stats.edges_imported} edges")

    # =========================================================================
    # PHASE 3: INDEXES
    # =========================================================================

    def create_indexes(self, session: Session, importer: Neo4jImporter, version: Optional[ServerVersion]):
        self._advance(ImportPhase.INDEXES)
        if not self.config.indices:
            return
        logger.info("\n=== CREATING INDEXES ===")
        created, skipped = IndexProvisioner(importer).ensure_indexes(session, version, self.config.indices)
        self.stats.indexes_created += created
        self.stats.indexes_skipped += skipped

    # =========================================================================
    # RUN
    # =========================================================================

    def run_import(self, importer: Optional[Neo4jImporter] = None) -> ImportStats:
        """
        Execute the complete import.

        Args:
            importer: Pre-built statement layer (a new connection to
                config.endpoint is opened when omitted)

        Returns:
            Statistics of the run

        Raises:
            FileNotFoundError: If the input file does not exist (checked
                before connecting)
            GraphMLParseError: If the input is truncated or malformed
            PropertyValueError: If a value does not parse as its declared type
        """
        input_path = self.config.input_path
        if not input_path.exists():
            raise FileNotFoundError(f"Input file '{input_path}' not found")

        self.load_schema()

        if importer is None:
            importer = Neo4jImporter(self.config.endpoint, self.config.username, self.config.password)
        try:
            with importer.driver.session() as session:
                version, edition = importer.get_server_version(session)
                self.stats.server_version, self.stats.server_edition = version, edition
                self.import_nodes(session, importer)
                self.import_edges(session, importer)
                self.create_indexes(session, importer, version)
        finally:
            importer.close()

        self.stats.undeclared_keys = self.schema.undeclared_count
        self._advance(ImportPhase.DONE)
        logger.info("\n=== IMPORT COMPLETE ===")
        logger.info(self.stats.summary())
        return self.stats


# ============================================================================
# CLI
# ============================================================================

def flag_enabled(value: Optional[str]) -> bool:
    """Label decoration toggles are on unless explicitly "false" or "0"."""
    value = (value or "").strip().lower()
    return value not in ("false", "0")


def parse_label_options(
    prefix: Optional[str],
    suffix: Optional[str],
    modify_node_labels: Optional[str] = None,
    modify_edge_labels: Optional[str] = None
) -> LabelOptions:
    return LabelOptions(
        modify_node_labels=flag_enabled(modify_node_labels),
        modify_edge_labels=flag_enabled(modify_edge_labels),
        prefix=prefix,
        suffix=suffix,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='graphml-importer',
        description='Import a GraphML file into a running Neo4j database'
    )
    parser.add_argument(
        '-i', '--input',
        dest='input_path',
        metavar='GRAPHML_FILE',
        help='Path to the GraphML file (.gz/.gzip files are decompressed on the fly)'
    )
    parser.add_argument(
        '-e', '--endpoint',
        default=config.NEO4J_URI,
        help='Endpoint of a running Neo4j instance (default: NEO4J_URI env var)'
    )
    parser.add_argument(
        '--username',
        default=config.NEO4J_USER,
        help='Neo4j username (default: NEO4J_USER env var, no auth when empty)'
    )
    parser.add_argument(
        '--password',
        default=config.NEO4J_PASSWORD,
        help='Neo4j password (default: NEO4J_PASSWORD env var)'
    )
    parser.add_argument(
        '--label-prefix',
        default=config.LABEL_PREFIX,
        help='Prefix added to every node label and edge type'
    )
    parser.add_argument(
        '--label-suffix',
        default=config.LABEL_SUFFIX,
        help='Suffix added to every node label and edge type'
    )
    parser.add_argument(
        '--modify-node-labels',
        default=config.MODIFY_NODE_LABELS,
        metavar='BOOL',
        help='Apply prefix/suffix to node labels (default: true, "false" or "0" disables)'
    )
    parser.add_argument(
        '--modify-edge-labels',
        default=config.MODIFY_EDGE_LABELS,
        metavar='BOOL',
        help='Apply prefix/suffix to edge types (default: true, "false" or "0" disables)'
    )
    parser.add_argument(
        '--indices',
        default=config.INDICES,
        help='Indexes to create, e.g. "Person.name;Movie.title"'
    )
    parser.add_argument(
        '--log-file',
        default=config.LOG_FILE,
        help='Also append log output to this file'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars'
    )
    parser.add_argument(
        '--huge-tree',
        action='store_true',
        default=config.XML_HUGE_TREE,
        help='Lift libxml2 text size and depth limits (trusted inputs with very large <data> values only)'
    )
    parser.add_argument(
        '--skip-update-check',
        action='store_true',
        default=config.SKIP_UPDATE_CHECK,
        help='Do not check for a newer release'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for GraphML import."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level='DEBUG' if args.verbose else config.LOG_LEVEL, log_file=args.log_file)

    if not args.skip_update_check:
        check_for_update()

    if not args.input_path or not args.endpoint:
        parser.error("--input and --endpoint required (or set NEO4J_URI env var)")

    import_config = ImportConfig(
        input_path=Path(args.input_path),
        endpoint=args.endpoint,
        username=args.username,
        password=args.password,
        label_options=parse_label_options(
            args.label_prefix, args.label_suffix, args.modify_node_labels, args.modify_edge_labels
        ),
        indices=parse_index_requests(args.indices),
        show_progress=not args.no_progress,
        huge_tree=args.huge_tree,
    )

    try:
        Neo4jImportProcessor(import_config).run_import()
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    except (GraphMLParseError, PropertyValueError) as e:
        logger.error(f"Failed to load GraphML: {e}")
        return 1
    except (Neo4jError, DriverError) as e:
        logger.error(f"Neo4j import failed: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
