"""
Ownership rules - what "self" and "owned" mean for each protected entity.

Every entity type served through the data-access gate registers exactly one
rule. Without one the translator refuses to build a filter.
"""

import logging
import re

from django.apps import apps
from django.core.exceptions import FieldDoesNotExist
from django.db.models import Q

from .exceptions import UnknownEntity

logger = logging.getLogger(__name__)

# Matches no row at all; used for denied reads and unresolvable conditions.
NO_ROWS = Q(pk__in=[])

PLACEHOLDER_RE = re.compile(r"^<([A-Za-z_][A-Za-z0-9_.]*)>$")

_registry = {}


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class OwnershipRule:
    """
    Base rule. Subclasses set `entity_type`, `model` ("app_label.Model") and
    `owner_field`, the lookup path to the owning user. The default "owned"
    meaning is the owning-user reference.
    """

    entity_type = None
    model = None
    owner_field = "user"

    @property
    def resource(self):
        return self.entity_type

    def get_model(self):
        return apps.get_model(self.model)

    def self_filter(self, ctx) -> Q:
        return Q(**{self.owner_field: ctx.user_id})

    def owned_filter(self, ctx, operation) -> Q:
        return self.self_filter(ctx)

    def condition_filter(self, ctx, conditions) -> Q:
        """
        AND together every field-equality map. Any unknown field or
        placeholder makes the whole filter match nothing.
        """
        model = self.get_model()
        result = Q()
        for condition in conditions:
            for key, raw in condition.items():
                field = camel_to_snake(key)
                try:
                    model._meta.get_field(field)
                except FieldDoesNotExist:
                    logger.warning(f"Custom condition on unknown field {key!r} for {self.entity_type}")
                    return NO_ROWS
                found, value = resolve_placeholder(raw, ctx)
                if not found:
                    logger.warning(f"Unresolvable placeholder {raw!r} in condition for {self.entity_type}")
                    return NO_ROWS
                result &= Q(**{field: value})
        return result


def resolve_placeholder(raw, ctx):
    """
    Returns (found, value). Literals resolve to themselves.
    Supported: <userId>, <tenantId>, <userDept>, <user.attr>
    """
    if not isinstance(raw, str):
        return True, raw
    match = PLACEHOLDER_RE.match(raw)
    if not match:
        return True, raw

    name = match.group(1)
    if name == "userId":
        return True, ctx.user_id
    if name == "tenantId":
        return True, ctx.tenant_id
    if name == "userDept":
        name = "user.departmentId"
    if name.startswith("user."):
        attr = name[len("user."):]
        for candidate in (attr, camel_to_snake(attr), snake_to_camel(attr)):
            value = ctx.attributes.get(candidate)
            if value is not None:
                return True, value
    return False, None


def register(rule_cls):
    """Class decorator registering a rule instance under its entity type."""
    rule = rule_cls()
    if not rule.entity_type or not rule.model:
        raise ValueError(f"{rule_cls.__name__} must define entity_type and model")
    _registry[rule.entity_type] = rule
    return rule_cls


def get_rule(entity_type) -> OwnershipRule:
    try:
        return _registry[entity_type]
    except KeyError:
        raise UnknownEntity(entity_type)


def registered_entities():
    return sorted(_registry)
