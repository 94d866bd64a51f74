from django.apps import AppConfig


class LifelogDataConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "lifelog_data"
    verbose_name = "Lifelog cache"
