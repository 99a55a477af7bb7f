import logging
from datetime import date, datetime, time, timedelta

from django.contrib.auth.models import User
from django.db.models import Count, Q, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone

from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from .challenges import accept_challenge, cancel_challenge, create_challenge, open_challenges
from .engine.rules import ArenaError, BattleAlreadyClaimed, RuleError
from .models import Battle, BattleChallenge, Spider, register_spider
from .serializers import (
    BattleChallengeSerializer,
    BattleSerializer,
    BattleTurnSerializer,
    ChallengeAcceptSerializer,
    ChallengeCreateSerializer,
    SpiderRegisterSerializer,
    SpiderSerializer,
)
from .services import run_auto_battle

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

LEADERBOARD_SIZE = 50


def _with_cors(response):
    for key, value in CORS_HEADERS.items():
        response[key] = value
    return response


def _rule_error(e: RuleError, status=400):
    return Response({"ok": False, "error": e.message, "code": e.code}, status=status)


# =========================
# AUTO-BATTLE
# =========================

@api_view(["POST", "OPTIONS"])
@authentication_classes([])
@permission_classes([AllowAny])
def auto_battle(request):
    """
    Body: {"battleId": <id>}. Runs the whole battle inside this request.
    """
    if request.method == "OPTIONS":
        return _with_cors(Response(status=200))

    payload = request.data if isinstance(request.data, dict) else {}
    battle_id = payload.get("battleId")

    try:
        battle, outcome = run_auto_battle(battle_id)
    except BattleAlreadyClaimed as e:
        logger.warning("Auto-battle refused: %s", e.message)
        return _with_cors(Response({"error": e.message}, status=409))
    except ArenaError as e:
        logger.error("Auto-battle error (%s): %s", e.code, e.message)
        return _with_cors(Response({"error": e.message}, status=500))
    except Exception as e:
        logger.exception("Auto-battle error for battle %s", battle_id)
        return _with_cors(Response({"error": str(e)}, status=500))

    return _with_cors(Response({
        "success": True,
        "battleId": battle.id,
        "winner": battle.winner_user_id(),
        "turns": outcome.turn_count,
        "finalState": {
            "p1_hp": outcome.p1_hp,
            "p2_hp": outcome.p2_hp,
        },
    }))


# =========================
# BATTLES
# =========================

@api_view(["GET"])
@permission_classes([AllowAny])
def battle_detail(request, battle_id):
    """
    Spectators poll this. ?after=<turn_index> returns only newer turns.
    """
    battle = get_object_or_404(Battle, pk=battle_id)
    turns = battle.turns.all()

    after = request.query_params.get("after")
    if after not in (None, ""):
        try:
            turns = turns.filter(turn_index__gt=int(after))
        except ValueError:
            return Response({"ok": False, "error": "after must be an integer."}, status=400)

    data = BattleSerializer(battle).data
    data["turns"] = BattleTurnSerializer(turns, many=True).data
    return Response(data)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def battle_history(request):
    user_id = request.user.id
    battles = Battle.objects.filter(
        Q(team_a__user_id=user_id) | Q(team_b__user_id=user_id)
    ).order_by("-created_at", "-id")
    return Response(BattleSerializer(battles, many=True).data)


# =========================
# CHALLENGES
# =========================

@api_view(["GET", "POST"])
@permission_classes([IsAuthenticatedOrReadOnly])
def challenge_list(request):
    if request.method == "GET":
        return Response(BattleChallengeSerializer(open_challenges(), many=True).data)

    form = ChallengeCreateSerializer(data=request.data)
    form.is_valid(raise_exception=True)

    spider = get_object_or_404(Spider, pk=form.validated_data["spider_id"])
    opponent = None
    if form.validated_data.get("opponent_spider_id"):
        opponent = get_object_or_404(Spider, pk=form.validated_data["opponent_spider_id"])

    try:
        challenge = create_challenge(request.user, spider, form.validated_data["message"], opponent)
    except RuleError as e:
        return _rule_error(e)

    return Response(BattleChallengeSerializer(challenge).data, status=201)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def challenge_accept(request, challenge_id):
    form = ChallengeAcceptSerializer(data=request.data)
    form.is_valid(raise_exception=True)
    spider = get_object_or_404(Spider, pk=form.validated_data["spider_id"])

    try:
        battle = accept_challenge(challenge_id, request.user, spider)
    except BattleChallenge.DoesNotExist:
        return Response({"ok": False, "error": "Challenge not found."}, status=404)
    except RuleError as e:
        return _rule_error(e)

    return Response({"ok": True, "battle": BattleSerializer(battle).data}, status=201)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def challenge_cancel(request, challenge_id):
    try:
        challenge = cancel_challenge(challenge_id, request.user)
    except BattleChallenge.DoesNotExist:
        return Response({"ok": False, "error": "Challenge not found."}, status=404)
    except RuleError as e:
        return _rule_error(e)

    return Response(BattleChallengeSerializer(challenge).data)


# =========================
# SPIDERS / RANKINGS
# =========================

@api_view(["GET", "POST"])
@permission_classes([IsAuthenticatedOrReadOnly])
def spider_list(request):
    if request.method == "GET":
        spiders = Spider.objects.all().order_by("-power_score", "id")
        owner = request.query_params.get("owner")
        if owner:
            spiders = spiders.filter(owner_id=owner)
        return Response(SpiderSerializer(spiders, many=True).data)

    form = SpiderRegisterSerializer(data=request.data)
    form.is_valid(raise_exception=True)
    data = form.validated_data

    stats = {k: data[k] for k in ("hit_points", "damage", "speed", "defense", "venom", "webcraft")}
    try:
        spider = register_spider(
            request.user,
            data["nickname"],
            stats,
            species=data["species"],
            danger=data["danger"],
            image_url=data["image_url"],
            special_attacks=data["special_attacks"],
        )
    except RuleError as e:
        return _rule_error(e)

    return Response(SpiderSerializer(spider).data, status=201)


def week_bounds(week: str | None = None):
    """
    "2026-W07" -> (label, monday 00:00, next monday 00:00).
    No week means the ISO week containing today.
    """
    if week:
        try:
            year, number = week.upper().split("-W")
            monday = date.fromisocalendar(int(year), int(number), 1)
        except ValueError:
            raise RuleError(code="BAD_WEEK", message="week must look like 2026-W07.",
                            details={"week": week})
    else:
        today = timezone.localdate()
        monday = today - timedelta(days=today.weekday())

    iso_year, iso_week, _ = monday.isocalendar()
    start = timezone.make_aware(datetime.combine(monday, time.min))
    return f"{iso_year}-W{iso_week:02d}", start, start + timedelta(days=7)


def _all_time_rows():
    users = (
        User.objects.annotate(
            spider_count=Count("spiders"),
            total_power_score=Sum("spiders__power_score"),
        )
        .filter(spider_count__gt=0)
        .order_by("-total_power_score", "id")[:LEADERBOARD_SIZE]
    )

    rows = []
    for u in users:
        top = Spider.objects.filter(owner=u).order_by("-power_score", "id").first()
        rows.append({
            "user_id": u.id,
            "display_name": u.get_username(),
            "spider_count": u.spider_count,
            "total_power_score": u.total_power_score or 0,
            "top_spider": SpiderSerializer(top).data if top else None,
        })
    return rows


def _weekly_rows(label, start, end):
    # spiders registered this week, counted for whoever holds them now
    in_week = Q(spiders__created_at__gte=start, spiders__created_at__lt=end)
    users = (
        User.objects.annotate(
            week_spider_count=Count("spiders", filter=in_week),
            week_power_score=Sum("spiders__power_score", filter=in_week),
        )
        .filter(week_spider_count__gt=0)
        .order_by("-week_power_score", "id")[:LEADERBOARD_SIZE]
    )

    rows = []
    for u in users:
        top = (
            Spider.objects.filter(owner=u, created_at__gte=start, created_at__lt=end)
            .order_by("-power_score", "id")
            .first()
        )
        won = BattleChallenge.objects.filter(
            winner=u, status="COMPLETED",
            battle__created_at__gte=start, battle__created_at__lt=end,
        ).count()
        rows.append({
            "user_id": u.id,
            "display_name": u.get_username(),
            "week": label,
            "week_spider_count": u.week_spider_count,
            "week_power_score": u.week_power_score or 0,
            "spiders_acquired_in_battle": won,
            "top_spider": SpiderSerializer(top).data if top else None,
        })
    return rows


@api_view(["GET"])
@permission_classes([AllowAny])
def leaderboard(request):
    """
    ?period=all-time (default) or ?period=weekly[&week=2026-W07].
    """
    period = request.query_params.get("period", "all-time")
    if period == "all-time":
        return Response(_all_time_rows())
    try:
        if period != "weekly":
            raise RuleError(code="BAD_PERIOD", message="period must be all-time or weekly.",
                            details={"period": period})
        label, start, end = week_bounds(request.query_params.get("week"))
    except RuleError as e:
        return _rule_error(e)
    return Response(_weekly_rows(label, start, end))
