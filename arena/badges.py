from django.db.models import Q, Sum

from .models import Badge, Battle, Spider, UserBadge


def battles_won(user_id) -> int:
    return Battle.objects.filter(
        Q(winner="A", team_a__user_id=user_id) | Q(winner="B", team_b__user_id=user_id),
        is_active=False,
    ).count()


def _progress_for(user_id, criteria: dict) -> int:
    kind = criteria.get("type")
    if kind == "battle_wins":
        return battles_won(user_id)
    if kind == "spiders_owned":
        return Spider.objects.filter(owner_id=user_id).count()
    if kind == "legendary_owned":
        return Spider.objects.filter(owner_id=user_id, rarity="LEGENDARY").count()
    if kind == "total_power":
        total = Spider.objects.filter(owner_id=user_id).aggregate(total=Sum("power_score"))["total"]
        return total or 0
    # unknown criteria never match
    return -1


def _target_for(criteria: dict) -> int:
    return int(criteria.get("count", criteria.get("value", 1)))


def award_badges_for_user(user_id) -> list[Badge]:
    """
    Check every badge the user doesn't hold yet and award the ones whose
    criteria are met. Returns the newly awarded badges.
    """
    held = set(UserBadge.objects.filter(user_id=user_id).values_list("badge_id", flat=True))

    awarded = []
    for badge in Badge.objects.exclude(id__in=held).order_by("id"):
        criteria = badge.criteria or {}
        progress = _progress_for(user_id, criteria)
        target = _target_for(criteria)
        if progress < 0 or progress < target:
            continue

        _, created = UserBadge.objects.get_or_create(
            user_id=user_id,
            badge=badge,
            defaults={"progress": {"value": progress, "target": target}},
        )
        if created:
            awarded.append(badge)

    return awarded
