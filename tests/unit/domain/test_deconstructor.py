"""
Unit tests for Deconstructor.

Tests unwrapping of engine envelopes: connections, typed object wrappers,
collections and deferred values.
"""

import asyncio
from dataclasses import dataclass
from unittest.mock import MagicMock

import pytest

from graphql_cache.domain.deconstructor import UNCACHEABLE, Deconstructor
from graphql_cache.domain.deferred import Deferred


@dataclass
class Post:
    id: int
    title: str


class PostType:
    def __init__(self, obj):
        self.object = obj


class Edge:
    def __init__(self, node, cursor):
        self.node = node
        self.cursor = cursor


class PostConnection:
    def __init__(self, nodes):
        self.nodes = nodes
        self.total_count = 99
        self.page_info = {"has_next_page": True}


class EdgeConnection:
    def __init__(self, edges):
        self.edges = edges


class LazyConnection:
    def __init__(self, items):
        self._items = items

    def edge_nodes(self):
        return self._items


class EmptyConnection:
    pass


class Rows:
    def __init__(self, rows):
        self._rows = rows

    def __len__(self):
        return len(self._rows)

    def __iter__(self):
        return iter(self._rows)


def post_dict(post):
    return {"id": post.id, "title": post.title, "class": "Post"}


class TestDeconstruct:
    """Test synchronous deconstruction."""

    def test_empty_list(self):
        """Test an empty list short-circuits without element logic."""
        sanitizer = MagicMock()
        deconstructor = Deconstructor(sanitizer)

        assert deconstructor.deconstruct([]) == []
        sanitizer.clean.assert_not_called()

    def test_plain_value_is_sanitized(self, deconstructor):
        """Test plain values go straight to the sanitizer."""
        assert deconstructor.deconstruct({"a": 1, "fn": print}) == {"a": 1}

    def test_connection_nodes(self, deconstructor):
        """Test a connection yields exactly its node sequence."""
        posts = [Post(1, "a"), Post(2, "b")]

        result = deconstructor.deconstruct(PostConnection(posts))

        assert result == [post_dict(p) for p in posts]

    def test_connection_edges(self, deconstructor):
        """Test edge-only connections yield each edge's node."""
        connection = EdgeConnection([Edge({"id": 1}, "c1"), Edge({"id": 2}, "c2")])
        assert deconstructor.deconstruct(connection) == [{"id": 1}, {"id": 2}]

    def test_connection_edge_nodes_method(self, deconstructor):
        """Test edge_nodes accessors are called."""
        assert deconstructor.deconstruct(LazyConnection([1, 2])) == [1, 2]

    def test_connection_without_nodes(self, deconstructor):
        """Test a connection exposing nothing has no cacheable form."""
        assert deconstructor.deconstruct(EmptyConnection()) is UNCACHEABLE

    def test_iterator_has_no_cacheable_form(self, deconstructor):
        """Test one-shot iterators are never stored as null."""
        assert deconstructor.deconstruct(map(str, [1, 2])) is UNCACHEABLE

    def test_none_stays_cacheable(self, deconstructor):
        """Test a resolved None is a real value."""
        assert deconstructor.deconstruct(None) is None

    def test_object_wrapper(self, deconstructor):
        """Test typed wrappers are replaced by their object."""
        post = Post(1, "a")
        assert deconstructor.deconstruct(PostType(post)) == post_dict(post)

    def test_wrapper_collection(self, deconstructor):
        """Test lists of wrappers are unwrapped element-wise."""
        posts = [Post(1, "a"), Post(2, "b")]
        result = deconstructor.deconstruct([PostType(p) for p in posts])

        assert result == [post_dict(p) for p in posts]

    def test_sized_iterable(self, deconstructor):
        """Test collection proxies are materialized."""
        assert deconstructor.deconstruct(Rows([{"a": 1}])) == [{"a": 1}]


class TestDeferredDeconstruct:
    """Test deconstruction of values that are not available yet."""

    @pytest.mark.asyncio
    async def test_future(self, deconstructor):
        """Test a future produces a Deferred canonical value."""
        future = asyncio.get_running_loop().create_future()

        result = deconstructor.deconstruct(future)
        future.set_result(PostType(Post(1, "a")))

        assert isinstance(result, Deferred)
        assert await result == post_dict(Post(1, "a"))

    @pytest.mark.asyncio
    async def test_collection_with_deferred_items(self, deconstructor):
        """Test deferred elements are joined before cleaning."""
        loop = asyncio.get_running_loop()
        first = loop.create_future()

        result = deconstructor.deconstruct([first, {"b": 2}])
        first.set_result({"a": 1})

        assert await result == [{"a": 1}, {"b": 2}]

    @pytest.mark.asyncio
    async def test_failed_future_propagates(self, deconstructor):
        """Test the deferred canonical value fails with the source."""
        future = asyncio.get_running_loop().create_future()

        result = deconstructor.deconstruct(future)
        future.set_exception(RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            await result
