"""
Battle runner: the persistence side of the auto-battle.

The engine (arena.engine.battle) computes turns; this module claims the
battle row, writes each turn as soon as it is resolved so pollers can watch
the log grow, paces the writes, and commits the outcome.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .badges import award_badges_for_user
from .engine.battle import (
    battle_is_over,
    battle_new,
    battle_outcome,
    battle_step,
    combatant_from_team,
)
from .engine.contracts import SIDE_A, BattleOutcome, Combatant
from .engine.dice import Dice, RandomDice
from .engine.rules import (
    BattleAlreadyClaimed,
    BattleNotFound,
    ChallengeUpdateError,
    OwnershipTransferError,
)
from .models import Battle, BattleChallenge, BattleTurn, Spider

logger = logging.getLogger(__name__)


def _turn_delay(turn_delay: Optional[float]) -> float:
    if turn_delay is not None:
        return turn_delay
    return float(getattr(settings, "ARENA_TURN_DELAY_SECONDS", 2.0))


# =========================
# LOADING / CLAIMING
# =========================

def load_battle(battle_id) -> Battle:
    if battle_id in (None, ""):
        raise BattleNotFound(code="MISSING_BATTLE_ID", message="battleId is required.")
    try:
        return Battle.objects.get(pk=battle_id)
    except (Battle.DoesNotExist, ValueError, TypeError):
        raise BattleNotFound(
            code="BATTLE_NOT_FOUND",
            message=f"Battle {battle_id} not found.",
            details={"battle_id": battle_id},
        )


def claim_battle(battle: Battle) -> Battle:
    """
    Conditional write: only one caller can move claimed_at off NULL.
    """
    now = timezone.now()
    claimed = Battle.objects.filter(
        pk=battle.pk, is_active=True, claimed_at__isnull=True
    ).update(claimed_at=now)

    if claimed != 1:
        raise BattleAlreadyClaimed(
            code="BATTLE_ALREADY_CLAIMED",
            message=f"Battle {battle.pk} has already been simulated or is running.",
            details={"battle_id": battle.pk},
        )

    battle.claimed_at = now
    return battle


# =========================
# COMMIT STEPS
# =========================

def transfer_spider_ownership(spider_id, from_user_id, to_user_id) -> None:
    """
    Single conditional UPDATE: the spider moves only if the loser still owns it.
    """
    moved = Spider.objects.filter(pk=spider_id, owner_id=from_user_id).update(
        owner_id=to_user_id, updated_at=timezone.now()
    )
    if moved != 1:
        raise OwnershipTransferError(
            code="TRANSFER_FAILED",
            message=f"Spider {spider_id} is no longer owned by user {from_user_id}.",
            details={"spider_id": spider_id, "from": from_user_id, "to": to_user_id},
        )


def complete_challenge(challenge_id, battle: Battle, winner_user_id, loser_spider_id) -> None:
    updated = BattleChallenge.objects.filter(pk=challenge_id, status="ACCEPTED").update(
        status="COMPLETED",
        battle=battle,
        winner_id=winner_user_id,
        loser_spider_id=loser_spider_id,
    )
    if updated != 1:
        raise ChallengeUpdateError(
            code="CHALLENGE_UPDATE_FAILED",
            message=f"Challenge {challenge_id} could not be completed.",
            details={"challenge_id": challenge_id},
        )


def finalize_battle(battle: Battle, outcome: BattleOutcome, a: Combatant, b: Combatant) -> None:
    """
    Terminal write, ownership transfer and challenge completion commit together.
    """
    winner = a if outcome.winner == SIDE_A else b
    loser = b if outcome.winner == SIDE_A else a

    with transaction.atomic():
        Battle.objects.filter(pk=battle.pk).update(
            winner=outcome.winner,
            is_active=False,
            turn_count=outcome.turn_count,
            p1_current_hp=outcome.p1_hp,
            p2_current_hp=outcome.p2_hp,
        )

        if battle.challenge_id:
            transfer_spider_ownership(loser.spider_id, loser.user_id, winner.user_id)
            complete_challenge(battle.challenge_id, battle, winner.user_id, loser.spider_id)

    battle.winner = outcome.winner
    battle.is_active = False
    battle.turn_count = outcome.turn_count
    battle.p1_current_hp = outcome.p1_hp
    battle.p2_current_hp = outcome.p2_hp


def award_badges_quietly(user_id) -> list:
    try:
        return award_badges_for_user(user_id)
    except Exception:
        logger.exception("Badge evaluation failed for user %s", user_id)
        return []


# =========================
# PUBLIC API
# =========================

def record_battle(battle: Battle, dice: Optional[Dice] = None,
                  turn_delay: Optional[float] = None) -> BattleOutcome:
    """
    Simulate, persist every turn, finalize. No claim: calling this twice for
    the same battle writes a second copy of the turn log.
    """
    a = combatant_from_team("A", battle.team_a)
    b = combatant_from_team("B", battle.team_b)
    dice = dice or RandomDice(seed=battle.rng_seed)
    delay = _turn_delay(turn_delay)

    logger.info(
        "Battle %s started: %s (user %s) vs %s (user %s)",
        battle.pk, a.nickname, a.user_id, b.nickname, b.user_id,
    )

    state = battle_new(a, b)
    while not battle_is_over(state):
        turn = battle_step(state, dice)
        actor = a if turn.side == SIDE_A else b

        BattleTurn.objects.create(
            battle=battle,
            turn_index=turn.turn_index,
            actor_user_id=actor.user_id,
            action_type=turn.action,
            action_payload={},
            result_payload=turn.result_payload(),
        )
        logger.debug(
            "Battle %s turn %s: %s %s for %s (%s -> %s)",
            battle.pk, turn.turn_index, turn.attacker_name, turn.action,
            turn.damage, turn.old_defender_hp, turn.new_defender_hp,
        )

        if delay > 0 and not battle_is_over(state):
            time.sleep(delay)

    outcome = battle_outcome(state)
    finalize_battle(battle, outcome, a, b)

    winner_user_id = a.user_id if outcome.winner == SIDE_A else b.user_id
    logger.info(
        "Battle %s finished after %s turns: winner %s (user %s), hp %s/%s",
        battle.pk, outcome.turn_count, outcome.winner, winner_user_id,
        outcome.p1_hp, outcome.p2_hp,
    )

    if battle.challenge_id:
        award_badges_quietly(winner_user_id)

    return outcome


def run_auto_battle(battle_id, dice: Optional[Dice] = None,
                    turn_delay: Optional[float] = None) -> tuple[Battle, BattleOutcome]:
    """
    Entry point for the auto-battle endpoint.

    Order matters: load and validate first (nothing written yet), then claim,
    then simulate. A lost claim raises BattleAlreadyClaimed.
    """
    battle = load_battle(battle_id)
    combatant_from_team("A", battle.team_a)
    combatant_from_team("B", battle.team_b)

    claim_battle(battle)
    outcome = record_battle(battle, dice=dice, turn_delay=turn_delay)
    return battle, outcome
