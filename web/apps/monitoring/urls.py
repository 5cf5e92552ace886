from django.urls import path
from .api import health_view, readiness_view

urlpatterns = [
    path("health", health_view, name="health"),
    path("health/ready", readiness_view, name="health-ready"),
]
