import pytest

from arena.admin import BadgeAdminForm

pytestmark = pytest.mark.django_db


def _form(criteria):
    return BadgeAdminForm(data={
        "name": "Collector",
        "description": "Own five spiders",
        "icon": "web",
        "rarity": "rare",
        "color": "purple",
        "criteria": criteria,
    })


def test_badge_form_accepts_known_criteria():
    assert _form('{"type": "spiders_owned", "count": 5}').is_valid()


@pytest.mark.parametrize("criteria", [
    '{"type": "karma", "count": 5}',
    '{"type": "spiders_owned"}',
    '{"type": "spiders_owned", "count": 0}',
    '[1, 2]',
])
def test_badge_form_rejects_bad_criteria(criteria):
    form = _form(criteria)
    assert not form.is_valid()
    assert "criteria" in form.errors


def test_battle_admin_shows_turn_log(admin_client, alice, bob, alice_spider, bob_spider):
    from arena.challenges import accept_challenge, create_challenge
    from arena.services import run_auto_battle

    challenge = create_challenge(alice, alice_spider)
    battle = accept_challenge(challenge.id, bob, bob_spider)
    run_auto_battle(battle.id)

    assert admin_client.get("/admin/arena/battle/").status_code == 200
    res = admin_client.get(f"/admin/arena/battle/{battle.id}/change/")
    assert res.status_code == 200
    assert b"turn_index" in res.content or b"Turn index" in res.content
