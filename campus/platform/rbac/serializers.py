"""Serializers for role management."""
from rest_framework import serializers

from .constants import Action, Effect, Scope
from .models import Role


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = [
            "id",
            "tenant",
            "name",
            "code",
            "description",
            "is_system_role",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RoleCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    code = serializers.CharField(max_length=100, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class RoleUpdateSerializer(serializers.Serializer):
    # `code` is accepted only so that an attempted change can be rejected explicitly.
    name = serializers.CharField(max_length=100, required=False)
    code = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


class PolicyAssignmentSerializer(serializers.Serializer):
    """One row of a role's policy. effect=null removes the assignment."""

    resource = serializers.CharField(max_length=64)
    action = serializers.ChoiceField(choices=[a.value for a in Action])
    effect = serializers.ChoiceField(choices=[e.value for e in Effect], allow_null=True)
    scope = serializers.ChoiceField(choices=[s.value for s in Scope], default=Scope.TENANT.value)
    conditions = serializers.DictField(required=False, default=dict)

    def validate(self, attrs):
        if attrs["scope"] == Scope.CUSTOM.value and attrs.get("effect") is not None and not attrs.get("conditions"):
            raise serializers.ValidationError({"conditions": "Custom scope requires at least one field condition."})
        return attrs


class RolePermissionsUpdateSerializer(serializers.Serializer):
    permissions = PolicyAssignmentSerializer(many=True)


class ResolvedPolicySerializer(serializers.Serializer):
    resource = serializers.CharField()
    action = serializers.CharField()
    allowed = serializers.BooleanField()
    scope = serializers.CharField(allow_null=True)
