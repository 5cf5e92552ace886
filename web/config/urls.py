from django.urls import include, path

urlpatterns = [
    path("", include("apps.purchases.urls")),
    path("", include("apps.monitoring.urls")),
]
