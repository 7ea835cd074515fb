"""Tenant provisioning."""
import logging

from django.db import transaction
from django.utils.text import slugify

from campus.platform.rbac.helpers import seed_tenant_roles
from .models import Tenant

logger = logging.getLogger(__name__)


@transaction.atomic
def provision_tenant(name: str, slug: str = None) -> Tenant:
    """
    Create a tenant together with its default role set and policies.
    Either both exist afterwards or neither does.
    """
    tenant = Tenant.objects.create(name=name, slug=slug or slugify(name))
    roles = seed_tenant_roles(tenant)
    logger.info(f"Provisioned tenant {tenant.slug} with {len(roles)} default roles")
    return tenant
