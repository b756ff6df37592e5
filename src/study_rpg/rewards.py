"""Reward catalog and the claim workflow (request, then guardian approval)."""
import logging
from datetime import datetime

from study_rpg.db import find, find_index
from study_rpg.errors import (
    InsufficientBalance, InvalidInput, InvalidTransition, NotFound, PersistenceError,
)
from study_rpg.locks import collection_lock
from study_rpg.models import (
    APPROVED, PENDING, REJECTED, Claim, Reward, User, level_for_points, new_id,
)

logger = logging.getLogger(__name__)

DECISIONS = (APPROVED, REJECTED)


def add_reward(store, name: str, cost: int, description: str = "", icon: str = "🎁") -> Reward:
    reward = Reward(id=new_id(), name=name, cost=int(cost), description=description, icon=icon)
    with collection_lock("rewards"):
        rewards = store.load_all("rewards")
        rewards.append(reward.to_record())
        store.save_all("rewards", rewards)
    logger.info("reward %s added: %s (%d points)", reward.id, name, reward.cost)
    return reward


def list_rewards(store) -> list[Reward]:
    return [Reward.from_record(r) for r in store.load_all("rewards")]


def get_reward(store, reward_id: str) -> Reward:
    record = find(store.load_all("rewards"), reward_id)
    if record is None:
        raise NotFound("reward", reward_id)
    return Reward.from_record(record)


def get_claim(store, claim_id: str) -> Claim:
    record = find(store.load_all("claims"), claim_id)
    if record is None:
        raise NotFound("claim", claim_id)
    return Claim.from_record(record)


def claims_for_user(store, user_id: str) -> list[Claim]:
    return [Claim.from_record(c) for c in store.load_all("claims") if c["user_id"] == user_id]


def pending_claims(store) -> list[dict]:
    """Pending claims for the guardian, with the requester's name and balance."""
    users = store.load_all("users")
    result = []
    for record in store.load_all("claims"):
        if record["status"] != PENDING:
            continue
        user = find(users, record["user_id"])
        result.append({
            **record,
            "username": user["name"] if user else "Unknown",
            "user_points": user["points"] if user else 0,
        })
    return result


def _save_pair(store, first: str, first_records: list, second: str, second_records: list,
               first_backup: list) -> None:
    store.save_all(first, first_records)
    try:
        store.save_all(second, second_records)
    except PersistenceError:
        logger.error("save of %s failed, restoring %s", second, first)
        store.save_all(first, first_backup)
        raise


def request_claim(store, user_id: str, reward_id: str, now: datetime | None = None) -> Claim:
    """Open a pending claim. Points are checked here but only debited on approval."""
    now = now or datetime.now()
    with collection_lock("users", "claims"):
        users = store.load_all("users")
        idx = find_index(users, user_id)
        if idx == -1:
            raise NotFound("user", user_id)
        reward = get_reward(store, reward_id)
        user = User.from_record(users[idx])
        if user.points < reward.cost:
            raise InsufficientBalance(user.points, reward.cost)

        claim = Claim(
            id=new_id(),
            user_id=user_id,
            reward_id=reward.id,
            reward_name=reward.name,
            cost=reward.cost,
            requested_at=now.isoformat(),
        )
        user.pending_rewards.append(claim.id)
        users[idx] = user.to_record()

        claims = store.load_all("claims")
        backup = list(claims)
        claims.append(claim.to_record())
        _save_pair(store, "claims", claims, "users", users, backup)

    logger.info("user %s requested reward %s for %d points (claim %s)",
                user_id, reward.name, reward.cost, claim.id)
    return claim


def process_claim(store, claim_id: str, user_id: str, decision: str,
                  now: datetime | None = None) -> Claim:
    """Approve or reject a pending claim; approval debits the snapshotted cost."""
    if decision not in DECISIONS:
        raise InvalidInput([f"decision must be one of {DECISIONS}, got {decision!r}"])
    now = now or datetime.now()
    with collection_lock("users", "claims"):
        users = store.load_all("users")
        claims = store.load_all("claims")
        user_idx = find_index(users, user_id)
        claim_idx = find_index(claims, claim_id)
        if user_idx == -1:
            raise NotFound("user", user_id)
        if claim_idx == -1 or claims[claim_idx]["user_id"] != user_id:
            raise NotFound("claim", claim_id)

        claim = Claim.from_record(claims[claim_idx])
        if claim.is_terminal:
            raise InvalidTransition(claim.id, claim.status)

        backup = list(claims)
        user = User.from_record(users[user_idx])
        if decision == APPROVED:
            user.points -= claim.cost
            user.level = level_for_points(user.points)
        user.pending_rewards = [c for c in user.pending_rewards if c != claim.id]
        claim.status = decision
        claim.processed_at = now.isoformat()

        users[user_idx] = user.to_record()
        claims[claim_idx] = claim.to_record()
        _save_pair(store, "claims", claims, "users", users, backup)

    logger.info("claim %s %s (user %s, cost %d)", claim.id, decision, user_id, claim.cost)
    return claim
