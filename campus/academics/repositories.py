"""Data access for school entities, always through the RLS gate."""

from django.db.models import Q

from campus.platform.rbac.repository import RLSRepository


class StudentRepository(RLSRepository):
    entity_type = "students"

    def find_visible_students(self, ctx, class_id=None, search=None):
        """
        Students the caller may see. An explicit class narrows the result
        further; it never widens it.
        """
        qs = self.find(ctx).select_related("school_class")
        if class_id:
            qs = qs.filter(school_class_id=class_id)
        if search:
            qs = qs.filter(Q(first_name__icontains=search) | Q(last_name__icontains=search))
        return qs

    def find_students_by_class(self, ctx, class_id):
        return self.find_visible_students(ctx, class_id=class_id)

    def delete_student(self, ctx, student_id) -> int:
        """Soft delete; 0 when the student is not in the caller's scope or tenant."""
        return self.destroy(ctx, {"pk": student_id})


class ClassRepository(RLSRepository):
    entity_type = "classes"


class StaffRepository(RLSRepository):
    entity_type = "staff"


class StaffAttendanceRepository(RLSRepository):
    entity_type = "attendance_staff"


class StudentFeeRepository(RLSRepository):
    entity_type = "fees"
