from django import forms
from django.contrib import admin
from django.core.exceptions import ValidationError

from .models import (
    Badge,
    Battle,
    BattleChallenge,
    BattleTurn,
    Spider,
    UserBadge,
)

BADGE_CRITERIA_TYPES = ("battle_wins", "spiders_owned", "legendary_owned", "total_power")


# -----------------------------
# Helpers
# -----------------------------

class BadgeAdminForm(forms.ModelForm):
    """
    Enforce:
    - criteria is an object with a known "type"
    - the threshold ("count" or "value") is a positive integer
    """
    class Meta:
        model = Badge
        fields = "__all__"

    def clean_criteria(self):
        criteria = self.cleaned_data.get("criteria")
        if not isinstance(criteria, dict):
            raise ValidationError("Criteria must be a JSON object.")

        kind = criteria.get("type")
        if kind not in BADGE_CRITERIA_TYPES:
            raise ValidationError(f"Criteria type must be one of: {', '.join(BADGE_CRITERIA_TYPES)}.")

        threshold = criteria.get("count", criteria.get("value"))
        if not isinstance(threshold, int) or threshold < 1:
            raise ValidationError("Criteria needs a positive integer 'count' or 'value'.")

        return criteria


# -----------------------------
# Spider Admin
# -----------------------------

@admin.register(Spider)
class SpiderAdmin(admin.ModelAdmin):
    list_display = ("nickname", "species", "owner", "rarity", "power_score", "is_approved")
    list_filter = ("rarity", "is_approved")
    search_fields = ("nickname", "species", "owner__username")
    autocomplete_fields = ("owner",)


# -----------------------------
# Battle Admin (turn log is read-only)
# -----------------------------

class BattleTurnInline(admin.TabularInline):
    model = BattleTurn
    extra = 0
    can_delete = False
    fields = ("turn_index", "actor_user_id", "action_type", "result_payload")
    readonly_fields = fields
    ordering = ("turn_index",)

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Battle)
class BattleAdmin(admin.ModelAdmin):
    list_display = ("id", "is_active", "winner", "turn_count", "p1_current_hp", "p2_current_hp", "created_at")
    list_filter = ("is_active", "winner")
    readonly_fields = ("claimed_at", "rng_seed")
    inlines = [BattleTurnInline]


@admin.register(BattleChallenge)
class BattleChallengeAdmin(admin.ModelAdmin):
    list_display = ("id", "challenger", "challenger_spider", "accepter", "status", "expires_at")
    list_filter = ("status",)
    search_fields = ("challenger__username", "challenger_spider__nickname")


# -----------------------------
# Badge Admin
# -----------------------------

@admin.register(Badge)
class BadgeAdmin(admin.ModelAdmin):
    form = BadgeAdminForm
    list_display = ("name", "rarity", "icon", "color")
    search_fields = ("name",)


@admin.register(UserBadge)
class UserBadgeAdmin(admin.ModelAdmin):
    list_display = ("user", "badge", "awarded_at")
    search_fields = ("user__username", "badge__name")
