"""
tests/unit/test_frontier.py

Frontier ordering, state transitions and the at-most-once guarantee.
"""
import warnings
from pathlib import Path

import pytest

from oews_collector.crawl import frontier as frontier_module
from oews_collector.crawl.frontier import CrawlFrontier, NodeState
from oews_collector.crawl.hierarchy import ClassificationNode


def node(code: str) -> ClassificationNode:
    return ClassificationNode.from_code(code, f"Industry {code}")


class TestCrawlFrontier:

    def test_seeded_nodes_pop_in_given_order(self):
        frontier = CrawlFrontier("11-1011")
        frontier.seed([node("11"), node("21"), node("22")])
        assert [frontier.pop().code for _ in range(3)] == ["11", "21", "22"]
        assert not frontier

    def test_children_are_explored_before_siblings(self):
        frontier = CrawlFrontier("11-1011")
        frontier.seed([node("11"), node("21")])

        parent = frontier.pop()
        assert frontier.mark_resolved(parent, found=True)
        frontier.expand(parent, [node("111"), node("112")])

        assert [frontier.pop().code for _ in range(3)] == ["111", "112", "21"]

    def test_node_is_pushed_at_most_once(self):
        frontier = CrawlFrontier("11-1011")
        assert frontier.push([node("11")]) == 1
        assert frontier.push([node("11")]) == 0

        popped = frontier.pop()
        frontier.mark_resolved(popped, found=False)
        assert frontier.push([node("11")]) == 0
        assert len(frontier) == 0

    def test_not_found_node_is_terminal(self):
        frontier = CrawlFrontier("11-1011")
        frontier.seed([node("11")])
        popped = frontier.pop()

        assert frontier.mark_resolved(popped, found=False) is False
        assert frontier.state("11") is NodeState.TERMINAL

    def test_found_node_at_max_level_is_terminal(self):
        frontier = CrawlFrontier("11-1011")
        frontier.seed([node("111110")])
        popped = frontier.pop()

        assert frontier.mark_resolved(popped, found=True) is False
        assert frontier.state("111110") is NodeState.TERMINAL

    def test_custom_max_level(self):
        frontier = CrawlFrontier("11-1011", max_level=3)
        frontier.seed([node("111")])
        assert frontier.mark_resolved(frontier.pop(), found=True) is False

    def test_state_progression(self):
        frontier = CrawlFrontier("11-1011")
        assert frontier.state("11") is None
        frontier.seed([node("11")])
        assert frontier.state("11") is NodeState.PENDING

        popped = frontier.pop()
        frontier.mark_resolved(popped, found=True)
        assert frontier.state("11") is NodeState.RESOLVED

        frontier.expand(popped, [node("111")])
        assert frontier.state("11") is NodeState.EXPANDED
        assert frontier.state("111") is NodeState.PENDING

    def test_resolving_twice_raises(self):
        frontier = CrawlFrontier("11-1011")
        frontier.seed([node("11")])
        popped = frontier.pop()
        frontier.mark_resolved(popped, found=False)
        with pytest.raises(ValueError):
            frontier.mark_resolved(popped, found=True)

    def test_expanding_terminal_node_raises(self):
        frontier = CrawlFrontier("11-1011")
        frontier.seed([node("11")])
        popped = frontier.pop()
        frontier.mark_resolved(popped, found=False)
        with pytest.raises(ValueError):
            frontier.expand(popped, [node("111")])

    def test_pop_from_empty_frontier_raises(self):
        with pytest.raises(IndexError):
            CrawlFrontier("11-1011").pop()


def test_module_source_compiles_without_warnings():
    source = Path(frontier_module.__file__).read_text(encoding="utf-8")
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(source, frontier_module.__file__, "exec")
