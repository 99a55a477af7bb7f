from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from .contracts import (
    ACTION_ATTACK,
    ACTION_SPECIAL,
    SIDE_A,
    SIDE_B,
    BattleOutcome,
    Combatant,
    TurnRecord,
)
from .dice import Dice, RandomDice, chance, pick, roll_d20
from .rules import validate_snapshot

# =========================
# CONFIG
# =========================

MIN_TURNS = 4
MAX_TURNS = 12

ATTACK_CHANCE_PERCENT = 75

WARMUP_SCALE = 0.5  # damage scale while the turn index is below MIN_TURNS

ATTACK_MULT = 1.8
ATTACK_ROLL_OFFSET = 10
ATTACK_DEF_DIVISOR = 18
ATTACK_BLOCK_ROLL = 17  # defender roll above this adds +2 mitigation
ATTACK_MIN_DAMAGE = 5
ATTACK_CRIT_MULT = 2.5

SPECIAL_MULT = 2.0
SPECIAL_ROLL_OFFSET = 8
SPECIAL_DEF_DIVISOR = 15
SPECIAL_BLOCK_ROLL = 18
SPECIAL_MIN_DAMAGE = 8
SPECIAL_CRIT_MULT = 3.0

DEFAULT_SPECIAL_MOVE = "Venom Strike"


# =========================
# RUNTIME TYPES
# =========================

@dataclass
class BattleState:
    a: Combatant
    b: Combatant
    hp_a: int
    hp_b: int
    min_turns: int = MIN_TURNS
    max_turns: int = MAX_TURNS
    turn_count: int = 0
    actor: str = SIDE_A
    turns: list = field(default_factory=list)

    def hp(self, side: str) -> int:
        return self.hp_a if side == SIDE_A else self.hp_b

    def set_hp(self, side: str, value: int) -> None:
        if side == SIDE_A:
            self.hp_a = value
        else:
            self.hp_b = value


# =========================
# BUILDING COMBATANTS
# =========================

def combatant_from_team(side: str, team) -> Combatant:
    """
    Battle.team_a / team_b JSON -> Combatant.
    Raises MalformedSnapshot when the slot can't be fought with.
    """
    spider = validate_snapshot(side, team)
    specials = spider.get("special_attacks") or []
    if not isinstance(specials, list):
        specials = []

    return Combatant(
        side=side,
        user_id=team["user_id"],
        spider_id=spider.get("id"),
        nickname=spider["nickname"],
        hit_points=int(spider["hit_points"]),
        damage=int(spider["damage"]),
        venom=int(spider["venom"]),
        defense=int(spider["defense"]),
        power_score=int(spider.get("power_score") or 0),
        special_attacks=specials,
    )


# =========================
# DAMAGE FORMULAS
# =========================

def turn_scale(turn_index: int, min_turns: int = MIN_TURNS) -> float:
    return WARMUP_SCALE if turn_index < min_turns else 1.0


def resolve_attack(attacker: Combatant, defender: Combatant, attacker_roll: int,
                   defender_roll: int, scale: float) -> tuple[int, bool, bool]:
    """
    Returns (damage, is_critical, is_dodged).
    """
    if defender_roll >= 19 and attacker_roll < 20:
        return 0, False, True

    base = math.floor(attacker.damage * ATTACK_MULT * scale) + (attacker_roll - ATTACK_ROLL_OFFSET)
    mitigation = defender.defense // ATTACK_DEF_DIVISOR + (2 if defender_roll > ATTACK_BLOCK_ROLL else 0)
    damage = max(ATTACK_MIN_DAMAGE, base - mitigation)

    if attacker_roll == 20:
        return math.floor(damage * ATTACK_CRIT_MULT), True, False
    return damage, False, False


def resolve_special(attacker: Combatant, defender: Combatant, attacker_roll: int,
                    defender_roll: int, scale: float) -> tuple[int, bool, bool]:
    if defender_roll == 20 and attacker_roll < 19:
        return 0, False, True

    base = math.floor(attacker.venom * SPECIAL_MULT * scale) + (attacker_roll - SPECIAL_ROLL_OFFSET)
    mitigation = defender.defense // SPECIAL_DEF_DIVISOR + (2 if defender_roll > SPECIAL_BLOCK_ROLL else 0)
    damage = max(SPECIAL_MIN_DAMAGE, base - mitigation)

    if attacker_roll >= 19:
        return math.floor(damage * SPECIAL_CRIT_MULT), True, False
    return damage, False, False


def special_move_name(dice: Dice, attacker: Combatant) -> str:
    if not attacker.special_attacks:
        return DEFAULT_SPECIAL_MOVE
    move = pick(dice, attacker.special_attacks)
    if isinstance(move, dict):
        return move.get("name") or DEFAULT_SPECIAL_MOVE
    return str(move) or DEFAULT_SPECIAL_MOVE


# =========================
# PUBLIC API
# =========================

def battle_new(a: Combatant, b: Combatant, min_turns: int = MIN_TURNS,
               max_turns: int = MAX_TURNS) -> BattleState:
    return BattleState(
        a=a,
        b=b,
        hp_a=a.hit_points,
        hp_b=b.hit_points,
        min_turns=min_turns,
        max_turns=max_turns,
    )


def battle_is_over(state: BattleState) -> bool:
    both_standing = state.hp_a > 0 and state.hp_b > 0
    keep_going = (both_standing and state.turn_count < state.max_turns) or state.turn_count < state.min_turns
    return not keep_going


def battle_step(state: BattleState, dice: Dice) -> TurnRecord:
    """
    Resolve exactly one turn for the side whose turn it is.
    Draw order: attacker d20, defender d20, action d100, special move.
    """
    attacker = state.a if state.actor == SIDE_A else state.b
    defender = state.b if state.actor == SIDE_A else state.a

    attacker_roll = roll_d20(dice)
    defender_roll = roll_d20(dice)
    scale = turn_scale(state.turn_count + 1, state.min_turns)

    if chance(dice, ATTACK_CHANCE_PERCENT):
        action = ACTION_ATTACK
        damage, crit, dodged = resolve_attack(attacker, defender, attacker_roll, defender_roll, scale)
        move = ""
    else:
        action = ACTION_SPECIAL
        damage, crit, dodged = resolve_special(attacker, defender, attacker_roll, defender_roll, scale)
        move = special_move_name(dice, attacker)

    old_hp = state.hp(defender.side)
    new_hp = max(0, old_hp - damage)
    state.set_hp(defender.side, new_hp)
    state.turn_count += 1

    turn = TurnRecord(
        turn_index=state.turn_count,
        side=attacker.side,
        action=action,
        attacker_dice=attacker_roll,
        defender_dice=defender_roll,
        damage=damage,
        old_defender_hp=old_hp,
        new_defender_hp=new_hp,
        attacker_hp=state.hp(attacker.side),
        attacker_name=attacker.nickname,
        defender_name=defender.nickname,
        is_critical=crit,
        is_dodged=dodged,
        special_move=move,
    )
    state.turns.append(turn)

    state.actor = SIDE_B if state.actor == SIDE_A else SIDE_A
    return turn


def battle_winner(state: BattleState) -> str:
    """
    Higher HP wins. On equal HP (0-0 included) the higher pre-battle
    power_score wins; an exact power tie goes to side A.
    """
    if state.hp_a > state.hp_b:
        return SIDE_A
    if state.hp_b > state.hp_a:
        return SIDE_B
    return SIDE_A if state.a.power_score >= state.b.power_score else SIDE_B


def battle_outcome(state: BattleState) -> BattleOutcome:
    return BattleOutcome(
        winner=battle_winner(state),
        p1_hp=state.hp_a,
        p2_hp=state.hp_b,
        turns=list(state.turns),
    )


def simulate_battle(a: Combatant, b: Combatant, dice: Optional[Dice] = None,
                    min_turns: int = MIN_TURNS, max_turns: int = MAX_TURNS) -> BattleOutcome:
    """
    Runs a full battle in one go, no persistence, no pacing.
    """
    dice = dice or RandomDice()
    state = battle_new(a, b, min_turns=min_turns, max_turns=max_turns)
    while not battle_is_over(state):
        battle_step(state, dice)
    return battle_outcome(state)
