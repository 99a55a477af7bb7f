from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

SIDE_A = "A"
SIDE_B = "B"

ACTION_ATTACK = "attack"
ACTION_SPECIAL = "special"


@dataclass
class Combatant:
    side: str
    user_id: Any
    spider_id: Any
    nickname: str
    hit_points: int
    damage: int
    venom: int
    defense: int
    power_score: int = 0
    special_attacks: List[Any] = field(default_factory=list)


@dataclass
class TurnRecord:
    turn_index: int
    side: str
    action: str
    attacker_dice: int
    defender_dice: int
    damage: int
    old_defender_hp: int
    new_defender_hp: int
    attacker_hp: int
    attacker_name: str
    defender_name: str
    is_critical: bool = False
    is_dodged: bool = False
    special_move: str = ""

    def result_payload(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "damage": self.damage,
            "new_defender_hp": self.new_defender_hp,
            "old_defender_hp": self.old_defender_hp,
            "attacker_hp": self.attacker_hp,
            "attacker_name": self.attacker_name,
            "defender_name": self.defender_name,
            "special_move": self.special_move,
            "attacker_dice": self.attacker_dice,
            "defender_dice": self.defender_dice,
            "is_critical": self.is_critical,
            "is_dodged": self.is_dodged,
        }


@dataclass
class BattleOutcome:
    winner: str  # "A" | "B"
    p1_hp: int
    p2_hp: int
    turns: List[TurnRecord] = field(default_factory=list)

    @property
    def turn_count(self) -> int:
        return len(self.turns)


"""
Result of the auto-battle endpoint:

{
  "success": True,
  "battleId": battle.id,
  "winner": winning_user_id,
  "turns": outcome.turn_count,
  "finalState": {"p1_hp": ..., "p2_hp": ...},
}
"""
