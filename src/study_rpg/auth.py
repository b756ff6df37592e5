"""Login check and user listing."""
import hmac
import logging
from datetime import datetime

from study_rpg.errors import InvalidCredentials
from study_rpg.ledger import check_streak_on_login, get_user
from study_rpg.models import User

logger = logging.getLogger(__name__)


def login(store, username: str, password: str, now: datetime | None = None) -> dict:
    """Return the matching user without its password; students get the streak check."""
    match = None
    for record in store.load_all("users"):
        if record.get("username") == username and hmac.compare_digest(
            str(record.get("password", "")), password
        ):
            match = User.from_record(record)
            break
    if match is None:
        logger.warning("failed login for %s", username)
        raise InvalidCredentials("wrong username or password")

    if match.role == "student" and match.last_study_date:
        check_streak_on_login(store, match.id, now=now)
        match = get_user(store, match.id)
    return match.public()


def list_users(store) -> list[dict]:
    return [User.from_record(r).public() for r in store.load_all("users")]
