from django.apps import AppConfig


class RbacConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'campus.platform.rbac'
    label = 'rbac'
    verbose_name = 'Role-Based Access Control'

    def ready(self):
        from .engine import build_engine, configure_engine

        configure_engine(build_engine())
