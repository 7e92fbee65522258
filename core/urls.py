from django.urls import include, path

urlpatterns = [
    path("api/analytics/", include("apps.analytics.urls")),
]
