from django.urls import path

from .views import extract_assets_view

app_name = "wagtail_preload"

urlpatterns = [
    path("manifest/", extract_assets_view, name="extract_assets"),
]
