"""Seed the store with the default guardian and student accounts."""
from study_rpg.locks import collection_lock
from study_rpg.models import User, new_id

DEFAULT_USERS = [
    {"username": "guardian", "password": "admin123", "role": "admin", "name": "Guardian"},
    {"username": "student", "password": "123456", "role": "student", "name": "Student"},
]


def is_seeded(store) -> bool:
    """Check whether every default account already exists."""
    usernames = {u.get("username") for u in store.load_all("users")}
    return all(u["username"] in usernames for u in DEFAULT_USERS)


def seed_users(store) -> list[str]:
    """Insert the default accounts that are missing; returns the created usernames."""
    with collection_lock("users"):
        users = store.load_all("users")
        existing = {u.get("username") for u in users}
        created = []
        for account in DEFAULT_USERS:
            if account["username"] in existing:
                continue
            users.append(User(id=new_id(), **account).to_record())
            created.append(account["username"])
        if created:
            store.save_all("users", users)
    return created


def seed_all(store) -> None:
    seed_users(store)
