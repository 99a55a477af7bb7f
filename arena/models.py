from django.conf import settings
from django.contrib.auth.models import User
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from datetime import timedelta
import secrets

from .engine.rules import STAT_MAX, STAT_MIN
from .engine.stats import calc_power_score, rarity_for


def _stat_field():
    return models.IntegerField(validators=[MinValueValidator(STAT_MIN), MaxValueValidator(STAT_MAX)])


def _new_rng_seed():
    return secrets.token_hex(8)


def _challenge_expiry():
    hours = getattr(settings, "ARENA_CHALLENGE_TTL_HOURS", 24)
    return timezone.now() + timedelta(hours=hours)


class Spider(models.Model):
    RARITY_CHOICES = [
        ("COMMON", "Common"),
        ("UNCOMMON", "Uncommon"),
        ("RARE", "Rare"),
        ("EPIC", "Epic"),
        ("LEGENDARY", "Legendary"),
    ]

    owner = models.ForeignKey(User, related_name="spiders", on_delete=models.CASCADE)
    nickname = models.CharField(max_length=100)
    species = models.CharField(max_length=200, default="Unknown")
    image_url = models.CharField(max_length=500, blank=True)
    rarity = models.CharField(max_length=20, choices=RARITY_CHOICES, default="COMMON")

    hit_points = _stat_field()
    damage = _stat_field()
    speed = _stat_field()
    defense = _stat_field()
    venom = _stat_field()
    webcraft = _stat_field()
    power_score = models.IntegerField(default=0)

    # [{"name": "Silk Snare"}, ...] or plain strings
    special_attacks = models.JSONField(default=list, blank=True)
    is_approved = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.nickname} ({self.species})"

    def snapshot(self) -> dict:
        """
        Frozen copy stored on a Battle. Later stat edits don't touch it.
        """
        return {
            "id": self.id,
            "nickname": self.nickname,
            "species": self.species,
            "image_url": self.image_url,
            "rarity": self.rarity,
            "hit_points": self.hit_points,
            "damage": self.damage,
            "speed": self.speed,
            "defense": self.defense,
            "venom": self.venom,
            "webcraft": self.webcraft,
            "power_score": self.power_score,
            "special_attacks": list(self.special_attacks or []),
        }


class BattleChallenge(models.Model):
    STATUS_CHOICES = [
        ("OPEN", "Open"),
        ("ACCEPTED", "Accepted"),
        ("COMPLETED", "Completed"),
        ("CANCELLED", "Cancelled"),
        ("EXPIRED", "Expired"),
    ]

    challenger = models.ForeignKey(User, related_name="challenges_sent", on_delete=models.CASCADE)
    challenger_spider = models.ForeignKey(Spider, related_name="challenges_as_challenger", on_delete=models.CASCADE)
    accepter = models.ForeignKey(User, null=True, blank=True, related_name="challenges_accepted", on_delete=models.SET_NULL)
    accepter_spider = models.ForeignKey(Spider, null=True, blank=True, related_name="challenges_as_accepter", on_delete=models.SET_NULL)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="OPEN")
    challenge_message = models.CharField(max_length=280, blank=True)
    expires_at = models.DateTimeField(default=_challenge_expiry)

    battle = models.ForeignKey("Battle", null=True, blank=True, related_name="+", on_delete=models.SET_NULL)
    winner = models.ForeignKey(User, null=True, blank=True, related_name="challenges_won", on_delete=models.SET_NULL)
    loser_spider = models.ForeignKey(Spider, null=True, blank=True, related_name="challenges_lost", on_delete=models.SET_NULL)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Challenge {self.id} [{self.status}] by {self.challenger}"

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()


class Battle(models.Model):
    WINNER_CHOICES = [
        ("A", "Team A"),
        ("B", "Team B"),
        ("TIE", "Tie"),
    ]

    # {"user_id": 7, "spider": Spider.snapshot()}
    team_a = models.JSONField()
    team_b = models.JSONField()

    p1_current_hp = models.IntegerField(null=True, blank=True)
    p2_current_hp = models.IntegerField(null=True, blank=True)
    turn_count = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    winner = models.CharField(max_length=3, choices=WINNER_CHOICES, null=True, blank=True)

    challenge = models.ForeignKey(BattleChallenge, null=True, blank=True, related_name="battles", on_delete=models.SET_NULL)
    rng_seed = models.CharField(max_length=32, default=_new_rng_seed)

    # set by the simulator's conditional claim, never cleared
    claimed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Battle {self.id} ({'active' if self.is_active else self.winner})"

    @property
    def user_a_id(self):
        return (self.team_a or {}).get("user_id")

    @property
    def user_b_id(self):
        return (self.team_b or {}).get("user_id")

    def winner_user_id(self):
        if self.winner == "A":
            return self.user_a_id
        if self.winner == "B":
            return self.user_b_id
        return None


class BattleTurn(models.Model):
    ACTION_CHOICES = [
        ("attack", "Attack"),
        ("special", "Special"),
        ("pass", "Pass"),
        ("defend", "Defend"),
    ]

    battle = models.ForeignKey(Battle, related_name="turns", on_delete=models.CASCADE)
    turn_index = models.IntegerField()
    actor_user_id = models.IntegerField()
    action_type = models.CharField(max_length=20, choices=ACTION_CHOICES)
    action_payload = models.JSONField(default=dict, blank=True)
    result_payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["turn_index", "id"]

    def __str__(self):
        return f"Battle {self.battle_id} turn {self.turn_index}: {self.action_type}"


class Badge(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField()
    icon = models.CharField(max_length=50)
    rarity = models.CharField(max_length=20, default="common")
    color = models.CharField(max_length=30, default="gray")

    # {"type": "battle_wins", "count": 5}
    criteria = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class UserBadge(models.Model):
    user = models.ForeignKey(User, related_name="badges", on_delete=models.CASCADE)
    badge = models.ForeignKey(Badge, related_name="awarded", on_delete=models.CASCADE)
    awarded_at = models.DateTimeField(auto_now_add=True)
    progress = models.JSONField(null=True, blank=True)

    class Meta:
        unique_together = [("user", "badge")]

    def __str__(self):
        return f"{self.user} - {self.badge.name}"


def register_spider(owner: User, nickname: str, stats: dict, species: str = "Unknown",
                    danger: str = "minimal", image_url: str = "",
                    special_attacks: list | None = None) -> Spider:
    """
    Store a freshly classified spider.
    power_score = sum of the six attributes + species danger bonus;
    rarity follows from power_score.
    """
    power = calc_power_score(stats, danger)

    return Spider.objects.create(
        owner=owner,
        nickname=nickname,
        species=species,
        image_url=image_url,
        rarity=rarity_for(power),
        hit_points=int(stats["hit_points"]),
        damage=int(stats["damage"]),
        speed=int(stats["speed"]),
        defense=int(stats["defense"]),
        venom=int(stats["venom"]),
        webcraft=int(stats["webcraft"]),
        power_score=power,
        special_attacks=list(special_attacks or []),
    )
