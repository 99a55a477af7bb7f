from .rules import STAT_FIELDS, RuleError, validate_stats

DANGER_BONUS = {
    "minimal": 0,
    "low": 6,
    "moderate": 12,
    "high": 25,
    "extreme": 35,
}

# (threshold, rarity), highest first
RARITY_THRESHOLDS = [
    (310, "LEGENDARY"),
    (260, "EPIC"),
    (210, "RARE"),
    (170, "UNCOMMON"),
]


def calc_power_score(stats: dict, danger: str = "minimal") -> int:
    validate_stats(stats)
    if danger not in DANGER_BONUS:
        raise RuleError(
            code="INVALID_DANGER",
            message=f"Unknown danger level: {danger}.",
            details={"allowed": list(DANGER_BONUS)},
        )
    return sum(int(stats[name]) for name in STAT_FIELDS) + DANGER_BONUS[danger]


def rarity_for(power_score: int) -> str:
    for threshold, rarity in RARITY_THRESHOLDS:
        if power_score >= threshold:
            return rarity
    return "COMMON"
