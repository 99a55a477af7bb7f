from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from rest_framework.test import APIClient

from arena.challenges import accept_challenge, create_challenge
from arena.engine.rules import RuleError
from arena.models import Battle, BattleTurn, Spider
from arena.services import run_auto_battle
from arena.views import week_bounds
from tests.fakes import ALWAYS_ATTACK_15_10, ScriptedDice

pytestmark = pytest.mark.django_db


@pytest.fixture
def client():
    return APIClient()


@pytest.fixture
def battle(alice, bob, alice_spider, bob_spider):
    challenge = create_challenge(alice, alice_spider)
    return accept_challenge(challenge.id, bob, bob_spider)


# =========================
# AUTO-BATTLE
# =========================

def test_auto_battle_runs_and_reports(client, battle, alice, bob):
    res = client.post("/api/auto-battle/", {"battleId": battle.id}, format="json")

    assert res.status_code == 200
    assert res["Access-Control-Allow-Origin"] == "*"

    body = res.json()
    battle.refresh_from_db()
    assert body["success"] is True
    assert body["battleId"] == battle.id
    assert body["winner"] in (alice.id, bob.id)
    assert body["winner"] == battle.winner_user_id()
    assert 4 <= body["turns"] <= 12
    assert body["turns"] == BattleTurn.objects.filter(battle=battle).count()
    assert body["finalState"] == {"p1_hp": battle.p1_current_hp, "p2_hp": battle.p2_current_hp}


def test_auto_battle_preflight(client):
    res = client.options("/api/auto-battle/")

    assert res.status_code == 200
    assert res["Access-Control-Allow-Origin"] == "*"
    assert "content-type" in res["Access-Control-Allow-Headers"]


def test_auto_battle_missing_battle_id_is_fatal(client):
    res = client.post("/api/auto-battle/", {}, format="json")

    assert res.status_code == 500
    assert res.json() == {"error": "battleId is required."}
    assert res["Access-Control-Allow-Origin"] == "*"


def test_auto_battle_garbled_battle_id_is_fatal(client):
    res = client.post("/api/auto-battle/", {"battleId": "not-a-number"}, format="json")

    assert res.status_code == 500
    assert "not found" in res.json()["error"]
    assert res["Access-Control-Allow-Origin"] == "*"


def test_auto_battle_unknown_battle_is_500(client):
    res = client.post("/api/auto-battle/", {"battleId": 424242}, format="json")

    assert res.status_code == 500
    assert "not found" in res.json()["error"]


def test_auto_battle_twice_is_conflict(client, battle):
    client.post("/api/auto-battle/", {"battleId": battle.id}, format="json")
    res = client.post("/api/auto-battle/", {"battleId": battle.id}, format="json")

    assert res.status_code == 409
    assert "error" in res.json()


def test_auto_battle_unexpected_error_is_500(client, battle, monkeypatch):
    def boom(battle_id):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr("arena.views.run_auto_battle", boom)
    res = client.post("/api/auto-battle/", {"battleId": battle.id}, format="json")

    assert res.status_code == 500
    assert res.json() == {"error": "store unavailable"}


# =========================
# BATTLES
# =========================

def test_battle_detail_supports_incremental_polling(client, battle):
    client.post("/api/auto-battle/", {"battleId": battle.id}, format="json")
    total = BattleTurn.objects.filter(battle=battle).count()

    full = client.get(f"/api/battles/{battle.id}/").json()
    assert [t["turn_index"] for t in full["turns"]] == list(range(1, total + 1))
    assert full["is_active"] is False

    newer = client.get(f"/api/battles/{battle.id}/", {"after": 2}).json()
    assert [t["turn_index"] for t in newer["turns"]] == list(range(3, total + 1))


def test_battle_detail_rejects_bad_cursor(client, battle):
    res = client.get(f"/api/battles/{battle.id}/", {"after": "soon"})
    assert res.status_code == 400


def test_battle_history_lists_own_battles(client, battle, alice, carol):
    client.force_authenticate(alice)
    assert [b["id"] for b in client.get("/api/battles/history/").json()] == [battle.id]

    client.force_authenticate(carol)
    assert client.get("/api/battles/history/").json() == []


def test_battle_history_requires_login(client):
    assert client.get("/api/battles/history/").status_code in (401, 403)


# =========================
# CHALLENGES
# =========================

def test_challenge_flow_over_http(client, alice, bob, alice_spider, bob_spider):
    client.force_authenticate(alice)
    res = client.post("/api/challenges/", {"spider_id": alice_spider.id, "message": "fight"}, format="json")
    assert res.status_code == 201
    challenge_id = res.json()["id"]

    listed = APIClient().get("/api/challenges/").json()
    assert [c["id"] for c in listed] == [challenge_id]

    client.force_authenticate(bob)
    res = client.post(f"/api/challenges/{challenge_id}/accept/", {"spider_id": bob_spider.id}, format="json")
    assert res.status_code == 201
    battle_id = res.json()["battle"]["id"]
    assert Battle.objects.get(pk=battle_id).challenge_id == challenge_id

    assert APIClient().get("/api/challenges/").json() == []


def test_challenge_rule_errors_are_400(client, bob, alice_spider):
    client.force_authenticate(bob)
    res = client.post("/api/challenges/", {"spider_id": alice_spider.id}, format="json")

    assert res.status_code == 400
    assert res.json()["code"] == "NOT_OWNER"


def test_accept_unknown_challenge_is_404(client, bob, bob_spider):
    client.force_authenticate(bob)
    res = client.post("/api/challenges/999/accept/", {"spider_id": bob_spider.id}, format="json")
    assert res.status_code == 404


def test_cancel_over_http(client, alice, alice_spider):
    challenge = create_challenge(alice, alice_spider)
    client.force_authenticate(alice)

    res = client.post(f"/api/challenges/{challenge.id}/cancel/")

    assert res.status_code == 200
    assert res.json()["status"] == "CANCELLED"


# =========================
# SPIDERS / LEADERBOARD
# =========================

def test_register_spider_derives_power_and_rarity(client, alice):
    client.force_authenticate(alice)
    res = client.post("/api/spiders/", {
        "nickname": "Goliath",
        "species": "Theraphosa blondi",
        "danger": "moderate",
        "hit_points": 90, "damage": 60, "speed": 30,
        "defense": 70, "venom": 40, "webcraft": 20,
        "special_attacks": [{"name": "Urticating Hairs"}],
    }, format="json")

    assert res.status_code == 201
    body = res.json()
    assert body["power_score"] == 322
    assert body["rarity"] == "LEGENDARY"
    assert body["owner"] == alice.id
    assert Spider.objects.get(pk=body["id"]).special_attacks == [{"name": "Urticating Hairs"}]


def test_register_spider_validates_stats(client, alice):
    client.force_authenticate(alice)
    res = client.post("/api/spiders/", {
        "nickname": "Cheat",
        "hit_points": 500, "damage": 60, "speed": 30,
        "defense": 70, "venom": 40, "webcraft": 20,
    }, format="json")

    assert res.status_code == 400
    assert "hit_points" in res.json()


def test_register_spider_requires_login(client):
    res = client.post("/api/spiders/", {"nickname": "Anon"}, format="json")
    assert res.status_code in (401, 403)


def test_leaderboard_orders_by_total_power(client, alice, bob, carol, spider_factory):
    spider_factory(alice, "A1", power_score=200)
    spider_factory(alice, "A2", power_score=150)
    spider_factory(bob, "B1", power_score=320)

    rows = client.get("/api/leaderboard/").json()

    assert [r["user_id"] for r in rows] == [alice.id, bob.id]
    assert rows[0]["total_power_score"] == 350
    assert rows[0]["spider_count"] == 2
    assert rows[0]["top_spider"]["nickname"] == "A1"
    assert rows[1]["top_spider"]["nickname"] == "B1"


def _registered_at(spider, when):
    Spider.objects.filter(pk=spider.id).update(created_at=when)


def test_weekly_leaderboard_counts_only_that_week(client, alice, bob, carol, spider_factory):
    # 2026-W10 runs Monday 2 March to Sunday 8 March
    in_week = datetime(2026, 3, 4, 12, 0, tzinfo=dt_timezone.utc)
    week_before = datetime(2026, 2, 27, 12, 0, tzinfo=dt_timezone.utc)

    _registered_at(spider_factory(alice, "A1", power_score=200), in_week)
    _registered_at(spider_factory(alice, "A2", power_score=150), in_week)
    _registered_at(spider_factory(bob, "B1", power_score=320), in_week)
    _registered_at(spider_factory(bob, "B0", power_score=900), week_before)
    _registered_at(spider_factory(carol, "C0", power_score=400), week_before)

    rows = client.get("/api/leaderboard/", {"period": "weekly", "week": "2026-W10"}).json()

    assert [r["user_id"] for r in rows] == [alice.id, bob.id]
    assert rows[0]["week"] == "2026-W10"
    assert rows[0]["week_power_score"] == 350
    assert rows[0]["week_spider_count"] == 2
    assert rows[0]["top_spider"]["nickname"] == "A1"
    assert rows[1]["week_power_score"] == 320
    assert rows[1]["top_spider"]["nickname"] == "B1"


def test_weekly_leaderboard_week_boundaries(client, alice, spider_factory):
    last_moment = datetime(2026, 3, 8, 23, 59, 59, tzinfo=dt_timezone.utc)
    next_monday = datetime(2026, 3, 9, 0, 0, tzinfo=dt_timezone.utc)
    _registered_at(spider_factory(alice, "Sunday", power_score=100), last_moment)
    _registered_at(spider_factory(alice, "Monday", power_score=100), next_monday)

    w10 = client.get("/api/leaderboard/", {"period": "weekly", "week": "2026-W10"}).json()
    w11 = client.get("/api/leaderboard/", {"period": "weekly", "week": "2026-W11"}).json()

    assert w10[0]["top_spider"]["nickname"] == "Sunday"
    assert w11[0]["top_spider"]["nickname"] == "Monday"


def test_weekly_leaderboard_defaults_to_current_week(client, alice, bob, alice_spider, bob_spider):
    challenge = create_challenge(alice, alice_spider)
    battle = accept_challenge(challenge.id, bob, bob_spider)
    run_auto_battle(battle.id, dice=ScriptedDice(ALWAYS_ATTACK_15_10))

    rows = client.get("/api/leaderboard/", {"period": "weekly"}).json()

    assert [r["user_id"] for r in rows] == [alice.id]
    assert rows[0]["week"] == week_bounds()[0]
    assert rows[0]["week_spider_count"] == 2
    assert rows[0]["spiders_acquired_in_battle"] == 1


@pytest.mark.parametrize("params, code", [
    ({"period": "weekly", "week": "last week"}, "BAD_WEEK"),
    ({"period": "weekly", "week": "2026-W60"}, "BAD_WEEK"),
    ({"period": "monthly"}, "BAD_PERIOD"),
])
def test_leaderboard_rejects_bad_period_or_week(client, params, code):
    res = client.get("/api/leaderboard/", params)

    assert res.status_code == 400
    assert res.json()["code"] == code


def test_week_bounds_parses_iso_weeks():
    label, start, end = week_bounds("2026-w01")

    assert label == "2026-W01"
    assert start == datetime(2025, 12, 29, tzinfo=dt_timezone.utc)
    assert end - start == timedelta(days=7)

    with pytest.raises(RuleError):
        week_bounds("2026")
