"""
Management command to initialize the permission catalog and system roles.
Run: python manage.py init_rbac [--tenant <slug>] [--all-tenants]
"""

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from campus.platform.rbac.helpers import (
    seed_permission_catalog,
    seed_system_roles,
    seed_tenant_roles,
)
from campus.platform.tenants.models import Tenant


class Command(BaseCommand):
    help = 'Initialize RBAC: permission catalog, system roles and (optionally) tenant default roles'

    def add_arguments(self, parser):
        parser.add_argument(
            '--tenant',
            help='Also seed the default role set for the tenant with this slug',
        )
        parser.add_argument(
            '--all-tenants',
            action='store_true',
            help='Seed the default role set for every tenant',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('Initializing RBAC system...'))

        permissions = seed_permission_catalog()
        self.stdout.write(f'  Permission catalog: {len(permissions)} entries')

        roles = seed_system_roles()
        self.stdout.write(f'  System roles: {", ".join(role.code for role in roles)}')

        tenants = []
        if options['all_tenants']:
            tenants = list(Tenant.objects.filter(is_active=True))
        elif options['tenant']:
            tenant = Tenant.objects.filter(slug=options['tenant']).first()
            if tenant is None:
                raise CommandError(f"Tenant not found: {options['tenant']}")
            tenants = [tenant]

        for tenant in tenants:
            roles = seed_tenant_roles(tenant)
            self.stdout.write(f'  {tenant.slug}: {len(roles)} default roles')

        self.stdout.write(self.style.SUCCESS('RBAC initialization complete.'))
