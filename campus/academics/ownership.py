"""
What "self" and "owned" mean for each school entity.

"Owned" is evaluated only for the roles that granted the owned scope.
When several of them did, the caller gets the union of the rows each owns.
"""

from django.db.models import Q

from campus.platform.rbac.constants import DefaultRoles
from campus.platform.rbac.ownership import OwnershipRule, register

TEACHER = DefaultRoles.TEACHER
PARENT = DefaultRoles.PARENT
STUDENT = DefaultRoles.STUDENT


def _union(fragments):
    result = fragments[0]
    for fragment in fragments[1:]:
        result |= fragment
    return result


def _other_roles(ctx, *handled):
    return [code for code in ctx.role_codes if code not in {h.value for h in handled}]


def _taught_classes(ctx):
    from .models import SchoolClass

    return SchoolClass.all_objects.filter(
        tenant_id=ctx.tenant_id, teacher_id=ctx.user_id, deleted_at__isnull=True
    ).values("pk")


def _linked_children(ctx):
    from .models import ParentStudent

    return ParentStudent.all_objects.filter(
        tenant_id=ctx.tenant_id, parent_id=ctx.user_id, deleted_at__isnull=True
    ).values("student_id")


@register
class StudentOwnership(OwnershipRule):
    """
    Teacher: students in a class they teach.
    Parent: students linked to them.
    Anyone else: their own student record.
    """
    entity_type = "students"
    model = "academics.Student"
    owner_field = "user"

    def owned_filter(self, ctx, operation):
        fragments = []
        if ctx.has_role(TEACHER):
            fragments.append(Q(school_class__in=_taught_classes(ctx)))
        if ctx.has_role(PARENT):
            fragments.append(Q(pk__in=_linked_children(ctx)))
        if _other_roles(ctx, TEACHER, PARENT) or not fragments:
            fragments.append(self.self_filter(ctx))
        return _union(fragments)


@register
class ClassOwnership(OwnershipRule):
    entity_type = "classes"
    model = "academics.SchoolClass"
    owner_field = "teacher"

    def owned_filter(self, ctx, operation):
        from .models import Student

        fragments = []
        if ctx.has_role(STUDENT):
            enrolled = Student.all_objects.filter(
                tenant_id=ctx.tenant_id, user_id=ctx.user_id, deleted_at__isnull=True
            ).values("school_class_id")
            fragments.append(Q(pk__in=enrolled))
        if ctx.has_role(PARENT):
            children = Student.all_objects.filter(pk__in=_linked_children(ctx)).values("school_class_id")
            fragments.append(Q(pk__in=children))
        if _other_roles(ctx, STUDENT, PARENT) or not fragments:
            fragments.append(self.self_filter(ctx))
        return _union(fragments)


@register
class StaffOwnership(OwnershipRule):
    entity_type = "staff"
    model = "academics.StaffMember"
    owner_field = "user"


@register
class StaffAttendanceOwnership(OwnershipRule):
    entity_type = "attendance_staff"
    model = "academics.StaffAttendance"
    owner_field = "user"


@register
class FeeOwnership(OwnershipRule):
    """Parents own their children's fees, students their own."""
    entity_type = "fees"
    model = "academics.StudentFee"
    owner_field = "student__user"

    def owned_filter(self, ctx, operation):
        fragments = []
        if ctx.has_role(PARENT):
            fragments.append(Q(student_id__in=_linked_children(ctx)))
        if _other_roles(ctx, PARENT) or not fragments:
            fragments.append(self.self_filter(ctx))
        return _union(fragments)
