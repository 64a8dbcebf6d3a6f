"""
URL configuration for client API endpoints.
"""

from django.urls import path

from api.v1.client import views

urlpatterns = [
    path(
        "verify",
        views.VerifyKeyView.as_view(),
        name="verify-key",
    ),
    path(
        "gate/callback",
        views.GateCallbackView.as_view(),
        name="gate-callback",
    ),
]
