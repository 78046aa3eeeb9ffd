"""
Per-occupation work list over the NAICS hierarchy.

Depth-first (LIFO): a found node's children are explored before its
siblings, which keeps the stack small. Each node moves through

    PENDING -> RESOLVED -> EXPANDED
    PENDING -> TERMINAL

and is pushed at most once per frontier, so the crawl terminates even when
every node in the hierarchy has data.
"""
import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional

from oews_collector.crawl.hierarchy import MAX_LEVEL, ClassificationNode

log = logging.getLogger(__name__)


class NodeState(str, Enum):
    PENDING = 'pending'
    RESOLVED = 'resolved'
    EXPANDED = 'expanded'
    TERMINAL = 'terminal'


class CrawlFrontier:
    """LIFO frontier of classification nodes for one grouping key (an occupation)"""

    def __init__(self, grouping_key: str, max_level: int = MAX_LEVEL):
        self.grouping_key = grouping_key
        self.max_level = max_level
        self._stack: List[ClassificationNode] = []
        self._states: Dict[str, NodeState] = {}

    def __len__(self) -> int:
        return len(self._stack)

    def __bool__(self) -> bool:
        return bool(self._stack)

    def seed(self, nodes: Iterable[ClassificationNode]) -> int:
        return self.push(nodes)

    def push(self, nodes: Iterable[ClassificationNode]) -> int:
        """Push nodes not seen before; returns how many were added"""
        added = 0
        # Reversed so the first node given is the first popped
        for node in reversed(list(nodes)):
            if node.code in self._states:
                continue
            self._states[node.code] = NodeState.PENDING
            self._stack.append(node)
            added += 1
        return added

    def pop(self) -> ClassificationNode:
        if not self._stack:
            raise IndexError(f"Frontier for {self.grouping_key} is empty")
        return self._stack.pop()

    def mark_resolved(self, node: ClassificationNode, found: bool) -> bool:
        """
        Record the outcome for a popped node.

        Returns True when the node should be expanded: it was found and sits
        above the deepest level. Otherwise the node becomes TERMINAL.
        """
        current = self._states.get(node.code)
        if current is not NodeState.PENDING:
            raise ValueError(f"Cannot resolve {node.code} in state {current}")

        if found and node.level < self.max_level:
            self._states[node.code] = NodeState.RESOLVED
            return True
        self._states[node.code] = NodeState.TERMINAL
        return False

    def expand(self, node: ClassificationNode, children: Iterable[ClassificationNode]) -> int:
        """Push the children of a RESOLVED node and mark it EXPANDED"""
        current = self._states.get(node.code)
        if current is not NodeState.RESOLVED:
            raise ValueError(f"Cannot expand {node.code} in state {current}")
        added = self.push(children)
        self._states[node.code] = NodeState.EXPANDED
        return added

    def state(self, code: str) -> Optional[NodeState]:
        return self._states.get(code)
