import logging

from django.db import transaction
from django.utils import timezone

from .engine.rules import RuleError
from .models import Battle, BattleChallenge, Spider

logger = logging.getLogger(__name__)


def _team(user_id, spider: Spider) -> dict:
    return {"user_id": user_id, "spider": spider.snapshot()}


def create_challenge(user, spider: Spider, message: str = "", opponent_spider: Spider | None = None) -> BattleChallenge:
    """
    Open challenge when opponent_spider is None, otherwise a targeted one
    addressed to that spider's owner.
    """
    if spider.owner_id != user.id:
        raise RuleError(code="NOT_OWNER", message="You can only challenge with your own spider.",
                        details={"spider_id": spider.id})
    if not spider.is_approved:
        raise RuleError(code="NOT_APPROVED", message="This spider is not approved for battle yet.",
                        details={"spider_id": spider.id})

    accepter_id = None
    if opponent_spider is not None:
        if opponent_spider.owner_id == user.id:
            raise RuleError(code="SELF_CHALLENGE", message="You can't challenge your own spider.")
        accepter_id = opponent_spider.owner_id
        message = message or f"{spider.nickname} challenges {opponent_spider.nickname} to battle!"

    challenge = BattleChallenge.objects.create(
        challenger=user,
        challenger_spider=spider,
        accepter_id=accepter_id,
        accepter_spider=opponent_spider,
        challenge_message=message or f"{spider.nickname} seeks a worthy opponent!",
    )
    logger.info("Challenge %s created by user %s with spider %s", challenge.id, user.id, spider.id)
    return challenge


def accept_challenge(challenge_id, user, spider: Spider) -> Battle:
    """
    Lock the challenge row, check it can still be accepted, create the Battle
    with frozen snapshots. The challenger is always side A.
    """
    with transaction.atomic():
        challenge = (
            BattleChallenge.objects.select_for_update()
            .select_related("challenger_spider")
            .get(pk=challenge_id)
        )

        if challenge.status != "OPEN":
            raise RuleError(code="NOT_OPEN", message="This challenge is no longer open.",
                            details={"status": challenge.status})
        if challenge.is_expired:
            raise RuleError(code="EXPIRED", message="This challenge has expired.")
        if challenge.challenger_id == user.id:
            raise RuleError(code="SELF_CHALLENGE", message="You can't accept your own challenge.")
        if spider.owner_id != user.id:
            raise RuleError(code="NOT_OWNER", message="You can only fight with your own spider.",
                            details={"spider_id": spider.id})
        if not spider.is_approved:
            raise RuleError(code="NOT_APPROVED", message="This spider is not approved for battle yet.",
                            details={"spider_id": spider.id})
        if challenge.accepter_spider_id and challenge.accepter_spider_id != spider.id:
            raise RuleError(code="WRONG_SPIDER", message="This challenge names a different spider.",
                            details={"expected": challenge.accepter_spider_id})

        challenger_spider = challenge.challenger_spider
        if challenger_spider.owner_id != challenge.challenger_id:
            raise RuleError(code="SPIDER_GONE", message="The challenger no longer owns that spider.")

        challenge.status = "ACCEPTED"
        challenge.accepter = user
        challenge.accepter_spider = spider
        challenge.save(update_fields=["status", "accepter", "accepter_spider"])

        battle = Battle.objects.create(
            team_a=_team(challenge.challenger_id, challenger_spider),
            team_b=_team(user.id, spider),
            p1_current_hp=challenger_spider.hit_points,
            p2_current_hp=spider.hit_points,
            challenge=challenge,
        )

    logger.info("Challenge %s accepted by user %s, battle %s created", challenge.id, user.id, battle.id)
    return battle


def cancel_challenge(challenge_id, user) -> BattleChallenge:
    with transaction.atomic():
        challenge = BattleChallenge.objects.select_for_update().get(pk=challenge_id)
        if challenge.challenger_id != user.id:
            raise RuleError(code="NOT_CHALLENGER", message="Only the challenger can cancel.")
        if challenge.status != "OPEN":
            raise RuleError(code="NOT_OPEN", message="This challenge is no longer open.",
                            details={"status": challenge.status})
        challenge.status = "CANCELLED"
        challenge.save(update_fields=["status"])
    return challenge


def expire_challenges(now=None) -> int:
    now = now or timezone.now()
    return BattleChallenge.objects.filter(status="OPEN", expires_at__lte=now).update(status="EXPIRED")


def open_challenges():
    return (
        BattleChallenge.objects.filter(status="OPEN", expires_at__gt=timezone.now())
        .select_related("challenger", "challenger_spider")
        .order_by("-created_at")
    )
