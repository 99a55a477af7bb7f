import arena.models
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def stat_field():
    return models.IntegerField(
        validators=[
            django.core.validators.MinValueValidator(10),
            django.core.validators.MaxValueValidator(100),
        ]
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Spider",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("nickname", models.CharField(max_length=100)),
                ("species", models.CharField(default="Unknown", max_length=200)),
                ("image_url", models.CharField(blank=True, max_length=500)),
                ("rarity", models.CharField(choices=[("COMMON", "Common"), ("UNCOMMON", "Uncommon"), ("RARE", "Rare"), ("EPIC", "Epic"), ("LEGENDARY", "Legendary")], default="COMMON", max_length=20)),
                ("hit_points", stat_field()),
                ("damage", stat_field()),
                ("speed", stat_field()),
                ("defense", stat_field()),
                ("venom", stat_field()),
                ("webcraft", stat_field()),
                ("power_score", models.IntegerField(default=0)),
                ("special_attacks", models.JSONField(blank=True, default=list)),
                ("is_approved", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="spiders", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="BattleChallenge",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("ACCEPTED", "Accepted"), ("COMPLETED", "Completed"), ("CANCELLED", "Cancelled"), ("EXPIRED", "Expired")], default="OPEN", max_length=20)),
                ("challenge_message", models.CharField(blank=True, max_length=280)),
                ("expires_at", models.DateTimeField(default=arena.models._challenge_expiry)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("accepter", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="challenges_accepted", to=settings.AUTH_USER_MODEL)),
                ("accepter_spider", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="challenges_as_accepter", to="arena.spider")),
                ("challenger", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="challenges_sent", to=settings.AUTH_USER_MODEL)),
                ("challenger_spider", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="challenges_as_challenger", to="arena.spider")),
                ("loser_spider", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="challenges_lost", to="arena.spider")),
                ("winner", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="challenges_won", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Battle",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("team_a", models.JSONField()),
                ("team_b", models.JSONField()),
                ("p1_current_hp", models.IntegerField(blank=True, null=True)),
                ("p2_current_hp", models.IntegerField(blank=True, null=True)),
                ("turn_count", models.IntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("winner", models.CharField(blank=True, choices=[("A", "Team A"), ("B", "Team B"), ("TIE", "Tie")], max_length=3, null=True)),
                ("rng_seed", models.CharField(default=arena.models._new_rng_seed, max_length=32)),
                ("claimed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("challenge", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="battles", to="arena.battlechallenge")),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddField(
            model_name="battlechallenge",
            name="battle",
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="arena.battle"),
        ),
        migrations.CreateModel(
            name="BattleTurn",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("turn_index", models.IntegerField()),
                ("actor_user_id", models.IntegerField()),
                ("action_type", models.CharField(choices=[("attack", "Attack"), ("special", "Special"), ("pass", "Pass"), ("defend", "Defend")], max_length=20)),
                ("action_payload", models.JSONField(blank=True, default=dict)),
                ("result_payload", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("battle", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="turns", to="arena.battle")),
            ],
            options={
                "ordering": ["turn_index", "id"],
            },
        ),
        migrations.CreateModel(
            name="Badge",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.TextField()),
                ("icon", models.CharField(max_length=50)),
                ("rarity", models.CharField(default="common", max_length=20)),
                ("color", models.CharField(default="gray", max_length=30)),
                ("criteria", models.JSONField(default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="UserBadge",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("awarded_at", models.DateTimeField(auto_now_add=True)),
                ("progress", models.JSONField(blank=True, null=True)),
                ("badge", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="awarded", to="arena.badge")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="badges", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "unique_together": {("user", "badge")},
            },
        ),
    ]
