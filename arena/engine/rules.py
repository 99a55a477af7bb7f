# arena/engine/rules.py

from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass
class ArenaError(Exception):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self):
        return self.message


# ============================================================
# SIMULATOR ERRORS
# ============================================================

class BattleNotFound(ArenaError):
    pass


class MalformedSnapshot(ArenaError):
    pass


class BattleAlreadyClaimed(ArenaError):
    pass


class OwnershipTransferError(ArenaError):
    pass


class ChallengeUpdateError(ArenaError):
    pass


# ============================================================
# GAME RULE ERRORS (challenges, spider registry)
# ============================================================

class RuleError(ArenaError):
    pass


# ============================================================
# EASY TO CHANGE STUFF (keep it here)
# ============================================================

STAT_MIN = 10
STAT_MAX = 100

STAT_FIELDS = ("hit_points", "damage", "speed", "defense", "venom", "webcraft")

# snapshot keys the simulator cannot run without
REQUIRED_SNAPSHOT_KEYS = ("hit_points", "damage", "venom", "defense", "nickname")


# ============================================================
# VALIDATION
# ============================================================

def validate_stats(stats: dict) -> None:
    """
    All six attributes must be present and inside STAT_MIN..STAT_MAX.
    """
    for name in STAT_FIELDS:
        if name not in stats or stats[name] is None:
            raise RuleError(
                code="MISSING_STAT",
                message=f"Missing attribute: {name}.",
                details={"stat": name},
            )
        value = int(stats[name])
        if value < STAT_MIN or value > STAT_MAX:
            raise RuleError(
                code="STAT_OUT_OF_RANGE",
                message=f"{name} must be between {STAT_MIN} and {STAT_MAX}.",
                details={"stat": name, "value": value},
            )


def validate_snapshot(side: str, snapshot: Any) -> dict:
    """
    Team slot snapshot as stored on a Battle row:
      {"user_id": 7, "spider": {"id": 3, "hit_points": 80, ...}}

    Returns the inner spider dict. Raises MalformedSnapshot otherwise.
    """
    if not isinstance(snapshot, dict):
        raise MalformedSnapshot(
            code="MALFORMED_TEAM",
            message=f"Team {side} is not an object.",
            details={"side": side},
        )

    spider = snapshot.get("spider")
    if not isinstance(spider, dict):
        raise MalformedSnapshot(
            code="MALFORMED_TEAM",
            message=f"Team {side} has no spider snapshot.",
            details={"side": side},
        )

    if snapshot.get("user_id") is None:
        raise MalformedSnapshot(
            code="MALFORMED_TEAM",
            message=f"Team {side} has no owning user.",
            details={"side": side},
        )

    missing = [k for k in REQUIRED_SNAPSHOT_KEYS if spider.get(k) is None]
    if missing:
        raise MalformedSnapshot(
            code="MALFORMED_SPIDER",
            message=f"Team {side} spider snapshot is missing: {', '.join(missing)}.",
            details={"side": side, "missing": missing},
        )

    return spider
