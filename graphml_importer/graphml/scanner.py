# -*- coding: utf-8 -*-
"""
Streaming tag scanner for GraphML files.

Replays the XML event stream of a GraphML file once per requested element name
without materializing the document. GraphMLScanner.iter_tag() re-opens the
input (gunzipping it when the path ends in a compressed suffix), runs a single
forward lxml iterparse pass and yields an ElementMatch for every start element
with the requested local name, in document order. A match exposes the element
attributes and can keep reading forward from the same cursor to pull the
nested <data> children of its node or edge.

Elements are cleared as soon as their end event is seen, so peak memory stays
at a single element regardless of file size. The loader therefore makes
several sequential passes over the file (counting, keys, nodes, edges) instead
of a single pass that would need to keep state for the whole graph.

Malformed <data> elements (no key attribute, or nested markup instead of text)
are logged and skipped. A <graph> nested inside a node or edge is skipped with
a warning: neither its elements nor their <data> are matched or counted, so
counts and imports agree. A truncated or syntactically broken stream raises
GraphMLParseError and ends the pass.

Examples:
    from pathlib import Path
    from graphml_importer.graphml.scanner import GraphMLScanner

    scanner = GraphMLScanner(Path("graph.graphml.gz"))
    print(scanner.count("node"))

    for match in scanner.iter_tag("node"):
        node_id = match.get("id")
        for key, text in match.iter_data():
            print(node_id, key, text)

"""
# Standard library
import gzip
import zlib
from pathlib import Path
from typing import IO, Dict, Iterator, Optional, Tuple, Union

# Third-party
from lxml import etree

# Local
from graphml_importer.utils.config import COMPRESSED_SUFFIXES, XML_HUGE_TREE
from graphml_importer.utils.logger import get_logger

logger = get_logger(__name__)

DATA_TAG = "data"
GRAPH_TAG = "graph"


class GraphMLParseError(Exception):
    """Raised when the GraphML stream is truncated or not well-formed."""


def local_name(element) -> str:
    return etree.QName(element).localname


def _release(element) -> None:
    # Drop the finished element and already-processed siblings
    element.clear(keep_tail=True)
    parent = element.getparent()
    if parent is not None:
        while element.getprevious() is not None:
            del parent[0]


class ElementMatch:
    """
    A start element matched by GraphMLScanner.iter_tag().

    Attributes are copied at match time. iter_data() shares the scanner's
    cursor: it must be consumed before the scanner advances to the next match,
    and whatever it reads is not seen again by the scanner.
    """

    def __init__(self, tag: str, attrib: Dict[str, str], events: Iterator):
        self.tag = tag
        self.attrib = attrib
        self._events = events
        self._consumed = False

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrib.get(name, default)

    def iter_data(self) -> Iterator[Tuple[str, Optional[str]]]:
        """
        Yield (key, text) for every <data> element until the owning element ends.

        Text is None for empty elements. <data> nested inside other children
        (e.g. GraphML <port>) is read as well. Reading stops at the end event
        of the matched element.
        """
        if self._consumed:
            return
        self._consumed = True
        depth = 0
        nested_graph_depth = None
        for event, element in self._events:
            name = local_name(element)
            if event == "start":
                depth += 1
                if name == GRAPH_TAG and nested_graph_depth is None:
                    nested_graph_depth = depth
                    logger.warning(
                        f"Skipping nested <graph> inside {self.tag} '{self.get('id')}' "
                        f"on line {element.sourceline}: nested graphs are not imported"
                    )
                continue
            if depth == 0:
                # End of the matched element itself
                _release(element)
                return
            inside_nested_graph = nested_graph_depth is not None
            if depth == nested_graph_depth:
                nested_graph_depth = None
            depth -= 1
            if name == DATA_TAG and not inside_nested_graph:
                data = self._read_data(element)
                if data is not None:
                    yield data
            _release(element)

    def _read_data(self, element) -> Optional[Tuple[str, Optional[str]]]:
        key = element.get("key")
        if key is None:
            logger.warning(f"Skipping <data> without key attribute on line {element.sourceline}")
            return None
        if len(element):
            logger.warning(
                f"Failed to read text of <data key=\"{key}\"> on line {element.sourceline}: "
                f"element contains nested markup"
            )
            return key, None
        return key, element.text


class GraphMLScanner:
    """
    Forward-only scanner over a GraphML file, restartable by re-opening.

    Example:
        scanner = GraphMLScanner(Path("graph.graphml"))
        keys = [match.attrib for match in scanner.iter_tag("key")]
    """

    def __init__(self, path: Union[str, Path], huge_tree: bool = XML_HUGE_TREE):
        """
        Args:
            path: GraphML file, gunzipped on the fly for .gz/.gzip names
            huge_tree: Lift libxml2's safety limits (text node size, tree
                depth). Only needed for inputs whose <data> text exceeds
                10 MB; leave off for untrusted files
        """
        self.path = Path(path)
        self.huge_tree = huge_tree

    @property
    def is_compressed(self) -> bool:
        return self.path.name.lower().endswith(COMPRESSED_SUFFIXES)

    def open(self) -> IO[bytes]:
        """Open the input as a binary stream, transparently gunzipped."""
        if self.is_compressed:
            return gzip.open(self.path, "rb")
        return open(self.path, "rb")

    def iter_tag(self, tag: str) -> Iterator[ElementMatch]:
        """
        Yield a match for every start element named tag, in document order.

        Elements inside a nested <graph> are not matched. Close the generator
        (contextlib.closing) when abandoning a pass early so the input is
        released.

        Args:
            tag: Local element name, e.g. "key", "node" or "edge"

        Raises:
            GraphMLParseError: If the stream is truncated or malformed
        """
        with self.open() as stream:
            # Matches read from the same guarded cursor
            events = self._guarded(etree.iterparse(
                stream,
                events=("start", "end"),
                huge_tree=self.huge_tree,
                remove_comments=True,
                remove_pis=True,
            ))
            graph_depth = 0
            for event, element in events:
                name = local_name(element)
                if event == "end":
                    if name == GRAPH_TAG:
                        graph_depth -= 1
                    _release(element)
                    continue
                if name == GRAPH_TAG:
                    graph_depth += 1
                if name != tag or graph_depth > 1:
                    continue
                yield ElementMatch(tag, dict(element.attrib), events)

    def _guarded(self, events: Iterator) -> Iterator:
        try:
            yield from events
        except etree.XMLSyntaxError as e:
            raise GraphMLParseError(f"Failed to parse GraphML file {self.path}: {e}") from e
        except (EOFError, gzip.BadGzipFile, zlib.error) as e:
            raise GraphMLParseError(f"Truncated or corrupt input {self.path}: {e}") from e

    def count(self, tag: str) -> int:
        """Count elements named tag. Pure, reads the file once."""
        return sum(1 for _ in self.iter_tag(tag))
