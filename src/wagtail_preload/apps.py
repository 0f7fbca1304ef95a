"""Django app configuration for wagtail-preload."""

from django.apps import AppConfig


class WagtailPreloadConfig(AppConfig):
    name = "wagtail_preload"
    verbose_name = "Wagtail Preload"
