"""
Data models for the chart-ready shapes built from the financial-risk CSV.

This module is the **schema layer** between the raw CSV rows and the Plotly
figure builders.  Each chart consumes a different shape:

    SankeyGraph
        Deduplicated categorical nodes plus aggregated stage-to-stage links.

    numeric records
        A plain ``pandas.DataFrame`` (one row per borrower, four numeric
        columns plus ``RiskRating``); no dataclass is needed.

    HierarchyNode
        A named tree (root -> risk rating -> marital status -> gender) whose
        leaves carry row counts.

All of these are transient: they are rebuilt from the DataFrame on every load
and never persisted.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple


# ============================================================================
# SANKEY
# ============================================================================

@dataclass
class SankeyNode:
    """One (category, name) pair, e.g. ``('Loan Purpose', 'Auto')``."""
    id: int                # Dense, assigned in order of first appearance
    name: str              # Display label
    category: str          # Stage the node belongs to

    @property
    def key(self) -> Tuple[str, str]:
        return (self.category, self.name)


@dataclass
class SankeyLink:
    """Flow between two node ids; ``value`` counts the rows sharing it."""
    source: int
    target: int
    value: int = 0


@dataclass
class SankeyGraph:
    """Nodes and links for the Sankey trace, in first-appearance order.

    ``add_node`` and ``add_link`` are the only ways to grow the graph, so
    every link endpoint is guaranteed to be an id already handed out.
    """
    nodes: List[SankeyNode] = field(default_factory=list)
    links: List[SankeyLink] = field(default_factory=list)
    _node_index: Dict[Tuple[str, str], SankeyNode] = field(default_factory=dict, repr=False)
    _link_index: Dict[Tuple[int, int], SankeyLink] = field(default_factory=dict, repr=False)

    def add_node(self, name: str, category: str) -> SankeyNode:
        """Return the node for (category, name), creating it on first sight."""
        key = (category, name)
        node = self._node_index.get(key)
        if node is None:
            node = SankeyNode(id=len(self.nodes), name=name, category=category)
            self._node_index[key] = node
            self.nodes.append(node)
        return node

    def add_link(self, source: SankeyNode, target: SankeyNode, count: int = 1) -> SankeyLink:
        """Add ``count`` to the source -> target link, creating it if needed."""
        if self._node_index.get(source.key) is not source or self._node_index.get(target.key) is not target:
            raise ValueError(f"Link endpoints must be nodes of this graph: {source.key} -> {target.key}")
        key = (source.id, target.id)
        link = self._link_index.get(key)
        if link is None:
            link = SankeyLink(source=source.id, target=target.id)
            self._link_index[key] = link
            self.links.append(link)
        link.value += count
        return link

    def node_value(self, node_id: int) -> int:
        """Flow through a node: the larger of its inbound and outbound totals."""
        inbound = sum(l.value for l in self.links if l.target == node_id)
        outbound = sum(l.value for l in self.links if l.source == node_id)
        return max(inbound, outbound)

    def nodes_in(self, category: str) -> List[SankeyNode]:
        return [n for n in self.nodes if n.category == category]

    def is_empty(self) -> bool:
        return not self.nodes or not self.links


# ============================================================================
# SUNBURST HIERARCHY
# ============================================================================

@dataclass
class HierarchyNode:
    """A node in the sunburst tree.

    Leaves carry ``value`` (row count).  Inner nodes leave ``value`` as None
    and derive their size from ``total()``.
    """
    name: str
    value: Optional[int] = None
    children: List["HierarchyNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def child(self, name: str) -> "HierarchyNode":
        """Return the child called ``name``, appending it if absent."""
        for c in self.children:
            if c.name == name:
                return c
        node = HierarchyNode(name=name)
        self.children.append(node)
        return node

    def total(self) -> int:
        """Sum of all leaf values below (or at) this node."""
        if self.is_leaf:
            return self.value or 0
        return sum(c.total() for c in self.children)

    def leaves(self) -> Iterator["HierarchyNode"]:
        if self.is_leaf:
            yield self
            return
        for c in self.children:
            yield from c.leaves()

    def walk(self, path: Tuple[str, ...] = ()) -> Iterator[Tuple[Tuple[str, ...], "HierarchyNode"]]:
        """Depth-first (pre-order) walk yielding ``(path, node)`` pairs.

        ``path`` includes the node's own name, starting from the root.
        """
        path = path + (self.name,)
        yield path, self
        for c in self.children:
            yield from c.walk(path)

    def to_dict(self) -> dict:
        """Nested ``{name, value?, children?}`` dict, the shape d3/JSON tools expect."""
        out: dict = {'name': self.name}
        if self.value is not None:
            out['value'] = self.value
        if self.children:
            out['children'] = [c.to_dict() for c in self.children]
        return out
