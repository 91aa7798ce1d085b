from django.apps import AppConfig
from django.test.signals import setting_changed


class ReviewsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'reviews'
    verbose_name = 'Reviewer assignment'

    def ready(self):
        from . import checks  # noqa: F401
        from .selection import reset_shared_rng

        setting_changed.connect(reset_shared_rng, dispatch_uid='reviews.reset_shared_rng')
