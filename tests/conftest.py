"""Pytest configuration and fixtures for arena tests."""

import pytest
from django.contrib.auth.models import User

from arena.engine.contracts import Combatant
from arena.models import Spider


@pytest.fixture(autouse=True)
def no_turn_delay(settings):
    settings.ARENA_TURN_DELAY_SECONDS = 0


@pytest.fixture
def combatant_a():
    return Combatant(side="A", user_id=1, spider_id=10, nickname="Widow",
                     hit_points=100, damage=50, venom=30, defense=20, power_score=300)


@pytest.fixture
def combatant_b():
    return Combatant(side="B", user_id=2, spider_id=20, nickname="Jumper",
                     hit_points=80, damage=40, venom=25, defense=15, power_score=250)


def make_spider(owner, nickname, hit_points=50, damage=50, venom=50, defense=50,
                speed=50, webcraft=50, power_score=None, **extra):
    if power_score is None:
        power_score = hit_points + damage + venom + defense + speed + webcraft
    return Spider.objects.create(
        owner=owner,
        nickname=nickname,
        species=extra.pop("species", "Latrodectus mactans"),
        hit_points=hit_points,
        damage=damage,
        venom=venom,
        defense=defense,
        speed=speed,
        webcraft=webcraft,
        power_score=power_score,
        **extra,
    )


@pytest.fixture
def alice(db):
    return User.objects.create_user("alice", password="pw")


@pytest.fixture
def bob(db):
    return User.objects.create_user("bob", password="pw")


@pytest.fixture
def carol(db):
    return User.objects.create_user("carol", password="pw")


@pytest.fixture
def alice_spider(alice):
    return make_spider(alice, "Widow", hit_points=100, damage=50, venom=30, defense=20, power_score=300)


@pytest.fixture
def bob_spider(bob):
    return make_spider(bob, "Jumper", hit_points=80, damage=40, venom=25, defense=15, power_score=250)


@pytest.fixture
def spider_factory(db):
    return make_spider
