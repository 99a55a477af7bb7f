from django.urls import path
from . import views

urlpatterns = [
    path("api/auto-battle/", views.auto_battle, name="auto-battle"),

    path("api/battles/history/", views.battle_history, name="battle-history"),
    path("api/battles/<int:battle_id>/", views.battle_detail, name="battle-detail"),

    path("api/challenges/", views.challenge_list, name="challenge-list"),
    path("api/challenges/<int:challenge_id>/accept/", views.challenge_accept, name="challenge-accept"),
    path("api/challenges/<int:challenge_id>/cancel/", views.challenge_cancel, name="challenge-cancel"),

    path("api/spiders/", views.spider_list, name="spider-list"),
    path("api/leaderboard/", views.leaderboard, name="leaderboard"),
]
