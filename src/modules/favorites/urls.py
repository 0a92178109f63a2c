"""Favorites URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.favorites.views import FavoriteView

urlpatterns = [
    path("favorites/", FavoriteView.as_view(), name="favorites"),
]
