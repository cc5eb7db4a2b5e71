"""Tests for CategoryNode, NodePatch and NodeStore."""

from django.test import SimpleTestCase

from categories.reordering import CategoryNode, NodePatch, NodeStore

from .helpers import node, sample_store, store_of


class CategoryNodeTest(SimpleTestCase):
    """Test the node wire format."""

    def test_from_dict_reads_camel_case_keys(self):
        """parentId and tenantId map to the snake_case attributes."""
        parsed = CategoryNode.from_dict(
            {"id": "a", "parentId": "p", "order": "2", "tenantId": 7, "name": "Shoes"}
        )

        self.assertEqual(parsed.id, "a")
        self.assertEqual(parsed.parent_id, "p")
        self.assertEqual(parsed.order, 2)
        self.assertEqual(parsed.tenant_id, "7")
        self.assertEqual(parsed.extra, {"name": "Shoes"})

    def test_to_dict_keeps_extra_fields(self):
        """Display data survives a round trip through the snapshot."""
        data = node("a", None, 0, name="Shoes", color="#fff").to_dict()

        self.assertEqual(data["parentId"], None)
        self.assertEqual(data["tenantId"], "t1")
        self.assertEqual(data["name"], "Shoes")
        self.assertEqual(data["color"], "#fff")

    def test_extra_does_not_affect_equality(self):
        """Two nodes at the same position compare equal."""
        self.assertEqual(node("a", None, 0, name="x"), node("a", None, 0, name="y"))

    def test_patch_to_dict(self):
        """Patches serialize with the reorder endpoint's keys."""
        self.assertEqual(
            NodePatch("a", "p", 3).to_dict(), {"id": "a", "parentId": "p", "order": 3}
        )


class NodeStoreTest(SimpleTestCase):
    """Test snapshot lookups and derived sibling groups."""

    def setUp(self):
        self.store = sample_store()

    def test_lookup(self):
        """Nodes are found by id; unknown ids return None from get()."""
        self.assertEqual(len(self.store), 8)
        self.assertIn("A", self.store)
        self.assertEqual(self.store["A"].parent_id, "R1")
        self.assertIsNone(self.store.get("missing"))
        self.assertIsNone(self.store.get(None))

    def test_duplicate_ids_rejected(self):
        """A snapshot cannot hold the same id twice."""
        with self.assertRaises(ValueError):
            store_of(node("a"), node("a"))

    def test_children_sorted_by_order(self):
        """Sibling groups come back in order regardless of input order."""
        store = store_of(node("b", None, 1), node("c", None, 2), node("a", None, 0))

        self.assertEqual([n.id for n in store.roots()], ["a", "b", "c"])

    def test_children_of_leaf_is_empty(self):
        """A node without children has an empty group."""
        self.assertEqual(self.store.children("A"), [])

    def test_for_tenant(self):
        """Restricting to one tenant drops the others' nodes."""
        store = store_of(node("a", tenant="t1"), node("b", tenant="t2"))

        scoped = store.for_tenant("t1")

        self.assertEqual([n.id for n in scoped], ["a"])
        self.assertEqual(store.tenant_ids, {"t1", "t2"})

    def test_apply_returns_new_snapshot(self):
        """The original snapshot is never modified."""
        patched = self.store.apply([NodePatch("R3", "R1", 3)])

        self.assertEqual(patched["R3"].parent_id, "R1")
        self.assertIsNone(self.store["R3"].parent_id)
        self.assertEqual([n.id for n in patched.children("R1")], ["A", "B", "C", "R3"])

    def test_apply_unknown_id_raises(self):
        """Patching a node that is not in the snapshot fails."""
        with self.assertRaises(KeyError):
            self.store.apply([NodePatch("missing", None, 0)])

    def test_apply_keeps_extra(self):
        """Moving a node keeps its display data."""
        store = store_of(node("a", None, 0, name="Shoes"), node("b", None, 1))

        patched = store.apply([NodePatch("a", "b", 0)])

        self.assertEqual(patched["a"].extra, {"name": "Shoes"})


class CheckInvariantsTest(SimpleTestCase):
    """Test NodeStore.check_invariants."""

    def test_consistent_snapshot(self):
        """A healthy tree has no problems."""
        self.assertEqual(sample_store().check_invariants(), [])

    def test_empty_snapshot(self):
        """An empty tree is consistent."""
        self.assertEqual(NodeStore().check_invariants(), [])

    def test_gap_in_orders(self):
        """Orders 0 and 2 leave a gap."""
        problems = store_of(node("a", None, 0), node("b", None, 2)).check_invariants()

        self.assertEqual(len(problems), 1)
        self.assertIn("expected 0..1", problems[0])

    def test_duplicate_orders(self):
        """Two siblings at the same order are reported."""
        problems = store_of(node("a", None, 0), node("b", None, 0)).check_invariants()

        self.assertEqual(len(problems), 1)

    def test_groups_are_per_tenant(self):
        """Roots of different tenants are separate groups."""
        store = store_of(node("a", tenant="t1"), node("b", tenant="t2"))

        self.assertEqual(store.check_invariants(), [])

    def test_cycle(self):
        """Parent cycles are reported per node."""
        store = store_of(node("a", "b", 0), node("b", "a", 0))

        problems = store.check_invariants()

        self.assertTrue(any("cycle" in problem for problem in problems))

    def test_cross_tenant_parent(self):
        """A parent from another tenant is reported."""
        store = store_of(node("p", tenant="t1"), node("c", "p", 0, tenant="t2"))

        problems = store.check_invariants()

        self.assertEqual(len(problems), 1)
        self.assertIn("another tenant", problems[0])

    def test_missing_parent(self):
        """A parent absent from the snapshot is reported."""
        problems = store_of(node("c", "gone", 0)).check_invariants()

        self.assertIn("missing parent", problems[0])
