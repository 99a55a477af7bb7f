from rest_framework import serializers

from .engine.rules import STAT_MAX, STAT_MIN
from .engine.stats import DANGER_BONUS
from .models import Battle, BattleChallenge, BattleTurn, Spider


class SpiderSerializer(serializers.ModelSerializer):
    owner = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Spider
        fields = "__all__"


class SpiderRegisterSerializer(serializers.Serializer):
    nickname = serializers.CharField(max_length=100)
    species = serializers.CharField(max_length=200, required=False, default="Unknown")
    image_url = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    danger = serializers.ChoiceField(choices=list(DANGER_BONUS), required=False, default="minimal")
    special_attacks = serializers.ListField(required=False, default=list)

    hit_points = serializers.IntegerField(min_value=STAT_MIN, max_value=STAT_MAX)
    damage = serializers.IntegerField(min_value=STAT_MIN, max_value=STAT_MAX)
    speed = serializers.IntegerField(min_value=STAT_MIN, max_value=STAT_MAX)
    defense = serializers.IntegerField(min_value=STAT_MIN, max_value=STAT_MAX)
    venom = serializers.IntegerField(min_value=STAT_MIN, max_value=STAT_MAX)
    webcraft = serializers.IntegerField(min_value=STAT_MIN, max_value=STAT_MAX)


class BattleTurnSerializer(serializers.ModelSerializer):
    class Meta:
        model = BattleTurn
        fields = ["id", "turn_index", "actor_user_id", "action_type",
                  "action_payload", "result_payload", "created_at"]


class BattleSerializer(serializers.ModelSerializer):
    winner_user_id = serializers.SerializerMethodField()

    class Meta:
        model = Battle
        fields = ["id", "team_a", "team_b", "p1_current_hp", "p2_current_hp",
                  "turn_count", "is_active", "winner", "winner_user_id",
                  "challenge", "created_at"]

    def get_winner_user_id(self, obj):
        return obj.winner_user_id()


class BattleChallengeSerializer(serializers.ModelSerializer):
    challenger_spider = SpiderSerializer(read_only=True)

    class Meta:
        model = BattleChallenge
        fields = "__all__"


class ChallengeCreateSerializer(serializers.Serializer):
    spider_id = serializers.IntegerField()
    opponent_spider_id = serializers.IntegerField(required=False, allow_null=True)
    message = serializers.CharField(max_length=280, required=False, allow_blank=True, default="")


class ChallengeAcceptSerializer(serializers.Serializer):
    spider_id = serializers.IntegerField()
