"""
Consistency Job Tests

Repair planning over raw user documents, plus a dry run and an applied run
against a mocked Firestore client.
"""

import pytest
from unittest.mock import MagicMock

from cinelog.jobs.consistency import (
    ConsistencyJob,
    RepairPlan,
    plan_friend_repairs,
    plan_list_repairs,
)


def user(name, friends=(), list_ids=()):
    return {
        "userName": name,
        "friends": list(friends),
        "lists": [{"list_id": l, "name": l, "movies": []} for l in list_ids],
    }


class TestPlanning:
    """Tests for the pure planning functions."""

    def test_consistent_graph_needs_nothing(self):
        users = {"u1": user("alice", ["bob"]), "u2": user("bob", ["alice"])}
        plan = plan_friend_repairs(users, RepairPlan())
        assert plan.is_empty

    def test_one_sided_friendship_completed(self):
        users = {"u1": user("alice", ["bob"]), "u2": user("bob")}

        plan = plan_friend_repairs(users, RepairPlan())

        assert plan.add_friends == {"u2": {"alice"}}
        assert plan.drop_friends == {}

    def test_dangling_friend_dropped(self):
        users = {"u1": user("alice", ["ghost"])}

        plan = plan_friend_repairs(users, RepairPlan())

        assert plan.drop_friends == {"u1": {"ghost"}}
        assert plan.add_friends == {}

    def test_orphaned_copies_dropped(self):
        users = {"u1": user("alice", list_ids=["keep", "gone"]), "u2": user("bob", list_ids=["gone"])}

        plan = plan_list_repairs(users, {"keep"}, RepairPlan())

        assert plan.drop_lists == {"u1": {"gone"}, "u2": {"gone"}}


@pytest.fixture
def db():
    client = MagicMock()
    collections = {}
    client.collection.side_effect = lambda name: collections.setdefault(name, MagicMock())
    return client


def seed(job, users, list_ids):
    user_docs = []
    for uid, data in users.items():
        doc = MagicMock(id=uid)
        doc.to_dict.return_value = data
        user_docs.append(doc)
    job.users.stream.return_value = user_docs
    job.lists.select.return_value.stream.return_value = [MagicMock(id=l) for l in list_ids]


class TestConsistencyJob:
    """Tests for scanning and applying repairs."""

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, db):
        job = ConsistencyJob(db=db)
        seed(job, {"u1": user("alice", ["bob"]), "u2": user("bob")}, [])

        plan = await job.run(apply=False)

        assert plan.add_friends == {"u2": {"alice"}}
        db.batch.assert_not_called()

    @pytest.mark.asyncio
    async def test_apply_batches_updates(self, db):
        job = ConsistencyJob(db=db)
        seed(job, {
            "u1": user("alice", ["bob", "ghost"], list_ids=["gone"]),
            "u2": user("bob"),
        }, [])

        await job.run(apply=True)

        batch = db.batch.return_value
        # add alice to bob, drop ghost from alice, drop alice's orphaned copy
        assert batch.update.call_count == 3
        batch.commit.assert_called_once()
        list_updates = [
            c.args[1] for c in batch.update.call_args_list if "lists" in c.args[1]
        ]
        assert list_updates == [{"lists": []}]

    @pytest.mark.asyncio
    async def test_clean_data_skips_writes(self, db):
        job = ConsistencyJob(db=db)
        seed(job, {"u1": user("alice", list_ids=["l1"])}, ["l1"])

        plan = await job.run(apply=True)

        assert plan.is_empty
        db.batch.assert_not_called()
