from django.urls import path

from . import views

app_name = "analytics"

urlpatterns = [
    path(
        "analyze-enhanced/",
        views.EnhancedAnalysisView.as_view(),
        name="analyze-enhanced",
    ),
    path("upload/", views.UploadAnalysisView.as_view(), name="upload"),
]
