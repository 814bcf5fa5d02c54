"""Tests for item-to-collection membership reconciliation."""

from zotmirror.pipeline.membership import MembershipReconciler


def _reconciler(fetched=(), persisted_keys=(), associations=None):
    return MembershipReconciler(
        {key: {"key": key} for key in fetched},
        persisted_keys,
        associations or {},
    )


class TestMembershipReconciler:
    def test_diff_against_persisted(self):
        reconciler = _reconciler(fetched=["A"], persisted_keys=["B", "C"], associations={"ITEM": {"B", "C"}})
        deletions = set()

        inserts = reconciler.reconcile("ITEM", ["A", "B"], deletions)

        assert inserts == [{"itemKey": "ITEM", "collectionKey": "A"}]
        assert deletions == {("ITEM", "C")}

    def test_unchanged_membership_is_a_no_op(self):
        reconciler = _reconciler(persisted_keys=["A", "B"], associations={"ITEM": {"A", "B"}})
        deletions = set()

        assert reconciler.reconcile("ITEM", ["B", "A"], deletions) == []
        assert deletions == set()

    def test_unresolved_keys_are_counted_and_skipped(self, caplog):
        reconciler = _reconciler(fetched=["A"])
        deletions = set()

        inserts = reconciler.reconcile("ITEM", ["A", "GHOST"], deletions, label="PARENT / ITEM")

        assert inserts == [{"itemKey": "ITEM", "collectionKey": "A"}]
        assert reconciler.unresolved == 1
        assert "[PARENT / ITEM] Collection GHOST not found" in caplog.text

    def test_missing_remote_list_removes_everything(self):
        reconciler = _reconciler(persisted_keys=["A"], associations={"ITEM": {"A"}})
        deletions = set()

        assert reconciler.reconcile("ITEM", None, deletions) == []
        assert deletions == {("ITEM", "A")}

    def test_duplicate_remote_keys_insert_once(self):
        reconciler = _reconciler(fetched=["A"])

        assert reconciler.reconcile("ITEM", ["A", "A"], set()) == [{"itemKey": "ITEM", "collectionKey": "A"}]

    def test_deletions_accumulate_across_items(self):
        reconciler = _reconciler(persisted_keys=["A", "B"], associations={"ONE": {"A"}, "TWO": {"B"}})
        deletions = set()

        reconciler.reconcile("ONE", [], deletions)
        reconciler.reconcile("TWO", [], deletions)

        assert deletions == {("ONE", "A"), ("TWO", "B")}
