"""
Consistency Job

Finds and repairs drift between documents that are written together:

1. One-sided friendships: A lists B but B does not list A. The missing
   side is added back. Names that resolve to no user are dropped.
2. Orphaned list copies: a user embeds a list whose canonical document was
   deleted (deleteList only pulls the author's copy). The copy is dropped.

Dry run by default; pass --apply to write the fixes.
"""

import asyncio
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Set, Tuple

from firebase_admin import firestore

from ..config import get_settings
from ..core.logging import get_logger, setup_logging
from ..services.firestore_service import get_firestore_client, pull_embedded_list

logger = get_logger(__name__)

BATCH_SIZE = 400  # Firestore caps a batch at 500 writes


@dataclass
class RepairPlan:
    """Writes needed to restore consistency, keyed by uid."""
    add_friends: Dict[str, Set[str]] = field(default_factory=dict)
    drop_friends: Dict[str, Set[str]] = field(default_factory=dict)
    drop_lists: Dict[str, Set[str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.add_friends or self.drop_friends or self.drop_lists)


def plan_friend_repairs(users: Dict[str, dict], plan: RepairPlan) -> RepairPlan:
    """
    users: uid -> user document.

    Completes one-sided friendships and drops names with no user.
    """
    uid_by_name = {doc.get("userName"): uid for uid, doc in users.items()}

    for uid, doc in users.items():
        own_name = doc.get("userName")
        for friend_name in doc.get("friends", []):
            friend_uid = uid_by_name.get(friend_name)
            if friend_uid is None:
                plan.drop_friends.setdefault(uid, set()).add(friend_name)
            elif own_name not in users[friend_uid].get("friends", []):
                plan.add_friends.setdefault(friend_uid, set()).add(own_name)
    return plan


def plan_list_repairs(
    users: Dict[str, dict], canonical_ids: Set[str], plan: RepairPlan
) -> RepairPlan:
    """Drop embedded copies whose canonical list no longer exists."""
    for uid, doc in users.items():
        for entry in doc.get("lists", []):
            list_id = entry.get("list_id")
            if list_id not in canonical_ids:
                plan.drop_lists.setdefault(uid, set()).add(list_id)
    return plan


class ConsistencyJob:
    """Scan users and lists, then optionally apply a RepairPlan."""

    def __init__(self, db=None):
        settings = get_settings()
        self.db = db or get_firestore_client()
        self.users = self.db.collection(settings.users_collection)
        self.lists = self.db.collection(settings.lists_collection)

    def _load(self) -> Tuple[Dict[str, dict], Set[str]]:
        users = {doc.id: doc.to_dict() or {} for doc in self.users.stream()}
        canonical_ids = {doc.id for doc in self.lists.select([]).stream()}
        return users, canonical_ids

    def _apply(self, plan: RepairPlan, users: Dict[str, dict]) -> int:
        writes: List[Tuple[str, dict]] = []

        for uid, names in plan.add_friends.items():
            writes.append((uid, {"friends": firestore.ArrayUnion(sorted(names))}))
        for uid, names in plan.drop_friends.items():
            writes.append((uid, {"friends": firestore.ArrayRemove(sorted(names))}))
        for uid, list_ids in plan.drop_lists.items():
            lists = users[uid].get("lists", [])
            for list_id in list_ids:
                lists = pull_embedded_list(lists, list_id)
            writes.append((uid, {"lists": lists}))

        for start in range(0, len(writes), BATCH_SIZE):
            batch = self.db.batch()
            for uid, update in writes[start:start + BATCH_SIZE]:
                batch.update(self.users.document(uid), update)
            batch.commit()
        return len(writes)

    async def run(self, apply: bool = False) -> RepairPlan:
        logger.info("consistency_job_started", apply=apply)
        start_time = datetime.utcnow()

        users, canonical_ids = self._load()
        plan = RepairPlan()
        plan_friend_repairs(users, plan)
        plan_list_repairs(users, canonical_ids, plan)

        logger.info(
            "consistency_scan_completed",
            users=len(users),
            lists=len(canonical_ids),
            one_sided_friendships=sum(len(v) for v in plan.add_friends.values()),
            dangling_friends=sum(len(v) for v in plan.drop_friends.values()),
            orphaned_list_copies=sum(len(v) for v in plan.drop_lists.values()),
        )

        if apply and not plan.is_empty:
            written = self._apply(plan, users)
            logger.info("consistency_repairs_applied", user_updates=written)

        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.info("consistency_job_completed", duration_seconds=duration)
        return plan


async def run_consistency_job(apply: bool = False) -> RepairPlan:
    """Entry point for manual or scheduled runs."""
    job = ConsistencyJob()
    return await job.run(apply=apply)


if __name__ == "__main__":
    setup_logging()
    asyncio.run(run_consistency_job(apply="--apply" in sys.argv[1:]))
