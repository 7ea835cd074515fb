from django.db import models

from campus.core.models import CoreBaseModel


class Tenant(CoreBaseModel):
    """An isolated customer organization (one school or school group)."""

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=100, unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "tenants"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.slug})"
