# RUN: python -m unittest discover -s tests -k properties
"""
Property-based tests for the visitor invariants:

1. replace_or_delete keeps length on replace, shrinks by one on delete,
   and leaves the order of other elements unchanged.
2. Visiting a graph of schemas with arbitrary cycles terminates, and the
   schema hook fires exactly once for each reachable schema.
3. Deleting arbitrary list items during a visit still visits every
   original item, and removes exactly the deleted ones.
"""

import unittest

from hypothesis import given, settings
from hypothesis import strategies as st

from voxgig_visit import JsonSchema, PathCollector, replace_or_delete, walk


class TestReplaceOrDelete(unittest.TestCase):

    @given(
        seq=st.lists(st.integers(), min_size=1, max_size=20),
        data=st.data(),
        val=st.one_of(st.none(), st.integers()),
    )
    def test_replace_or_delete(self, seq, data, val):
        index = data.draw(st.integers(min_value=0, max_value=len(seq) - 1))
        original = list(seq)

        replace_or_delete(seq, index, val)

        if val is None:
            self.assertEqual(len(seq), len(original) - 1)
            self.assertEqual(seq, original[:index] + original[index + 1:])
        else:
            self.assertEqual(len(seq), len(original))
            self.assertEqual(seq[index], val)
            self.assertEqual(seq[:index], original[:index])
            self.assertEqual(seq[index + 1:], original[index + 1:])


# Edges as (from, slot, to) over a fixed number of schema nodes.
SLOTS = ('properties', 'definitions', 'items', 'all_of', 'not_')


def build_graph(size, edges):
    nodes = [JsonSchema(title=str(i)) for i in range(size)]
    for (src, slot, dst) in edges:
        node = nodes[src % size]
        target = nodes[dst % size]
        if 'properties' == slot:
            node.properties['p' + str(len(node.properties))] = target
        elif 'definitions' == slot:
            node.definitions['d' + str(len(node.definitions))] = target
        elif 'items' == slot:
            node.items.append(target)
        elif 'all_of' == slot:
            node.all_of.append(target)
        else:
            node.not_ = target
    return nodes


def reachable(root):
    seen = {}
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen[id(node)] = node
        stack.extend(node.properties.values())
        stack.extend(node.definitions.values())
        stack.extend(node.items)
        stack.extend(node.all_of)
        if node.not_ is not None:
            stack.append(node.not_)
    return seen


edge = st.tuples(
    st.integers(min_value=0, max_value=50),
    st.sampled_from(SLOTS),
    st.integers(min_value=0, max_value=50),
)


class TestCycles(unittest.TestCase):

    @settings(max_examples=50, deadline=None)
    @given(size=st.integers(min_value=1, max_value=8), edges=st.lists(edge, max_size=30))
    def test_visit_once(self, size, edges):
        nodes = build_graph(size, edges)
        root = nodes[0]

        counts = {}

        def on_schema(schema, path, type_hint):
            counts[id(schema)] = counts.get(id(schema), 0) + 1
            return schema

        walk(root, on_schema)

        self.assertEqual(set(counts), set(reachable(root)))
        self.assertTrue(all(1 == n for n in counts.values()))

    @settings(max_examples=50, deadline=None)
    @given(size=st.integers(min_value=1, max_value=8), edges=st.lists(edge, max_size=30))
    def test_paths_unique(self, size, edges):
        root = build_graph(size, edges)[0]

        collector = PathCollector()
        collector.run(root)

        self.assertEqual(len(collector.paths), len(set(collector.paths)))
        self.assertEqual(len(collector.paths), len(reachable(root)))


class TestListDeletes(unittest.TestCase):

    @settings(max_examples=50, deadline=None)
    @given(drops=st.lists(st.booleans(), max_size=12))
    def test_delete_while_visiting(self, drops):
        children = [JsonSchema(title=str(i)) for i in range(len(drops))]
        root = JsonSchema(any_of=list(children))
        dropped = {id(c) for (c, drop) in zip(children, drops) if drop}

        seen = []

        def on_schema(schema, path, type_hint):
            if schema is root:
                return schema
            seen.append(schema)
            return None if id(schema) in dropped else schema

        walk(root, on_schema)

        self.assertEqual(seen, children)
        self.assertEqual(root.any_of, [c for c in children if id(c) not in dropped])


if __name__ == "__main__":
    unittest.main()
