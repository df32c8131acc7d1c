from django.apps import AppConfig


class GroupsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.groups'
    label = 'groups'
    verbose_name = 'Groups'

    def ready(self):
        from . import checks  # noqa: F401
