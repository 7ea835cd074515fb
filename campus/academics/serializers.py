from rest_framework import serializers

from .models import Student


class StudentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Student
        fields = [
            "id",
            "first_name",
            "last_name",
            "school_class",
            "user",
            "department_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_school_class(self, value):
        ctx = self.context.get("rbac_context")
        if value is not None and ctx is not None and str(value.tenant_id) != str(ctx.tenant_id):
            raise serializers.ValidationError("Class not found.")
        return value
