"""
URL configuration for admin API endpoints.
"""

from django.urls import path

from api.v1.admin import views

urlpatterns = [
    path(
        "keys",
        views.KeyCollectionView.as_view(),
        name="admin-keys",
    ),
    path(
        "keys/<str:key>",
        views.KeyDetailView.as_view(),
        name="admin-key-detail",
    ),
    path(
        "keys/<str:key>/ban",
        views.BanKeyView.as_view(),
        name="admin-ban-key",
    ),
    path(
        "keys/<str:key>/unban",
        views.UnbanKeyView.as_view(),
        name="admin-unban-key",
    ),
    path(
        "keys/<str:key>/reset-hwid",
        views.ResetHwidView.as_view(),
        name="admin-reset-hwid",
    ),
]
