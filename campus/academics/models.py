"""
School entities protected by row-level security.
Only the fields that ownership rules depend on are modelled here.
"""

from django.conf import settings
from django.db import models

from campus.core.models import TenantScopedModel


class SchoolClass(TenantScopedModel):
    name = models.CharField(max_length=100)
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="classes_taught",
    )

    class Meta:
        db_table = "academics_classes"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Student(TenantScopedModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="student_profiles",
        help_text="Login of the student, when they have one",
    )
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="students",
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    department_id = models.UUIDField(null=True, blank=True)

    class Meta:
        db_table = "academics_students"
        ordering = ["first_name", "last_name"]
        indexes = [
            models.Index(fields=["tenant", "school_class"]),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name}".strip()


class ParentStudent(TenantScopedModel):
    parent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="children_links",
    )
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="parent_links")

    class Meta:
        db_table = "academics_parent_students"
        constraints = [
            models.UniqueConstraint(fields=["parent", "student"], name="uniq_parent_student"),
        ]


class StaffMember(TenantScopedModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_profiles",
    )
    department_id = models.UUIDField(null=True, blank=True)
    designation = models.CharField(max_length=100, blank=True)

    class Meta:
        db_table = "academics_staff"


class StaffAttendance(TenantScopedModel):
    staff = models.ForeignKey(StaffMember, on_delete=models.CASCADE, related_name="attendance")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_attendance",
    )
    date = models.DateField()
    status = models.CharField(max_length=16, default="present")

    class Meta:
        db_table = "academics_staff_attendance"
        ordering = ["-date"]


class StudentFee(TenantScopedModel):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="fees")
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    is_paid = models.BooleanField(default=False)

    class Meta:
        db_table = "academics_student_fees"
