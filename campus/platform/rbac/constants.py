"""
RBAC Constants - actions, effects, scopes, role codes and the default
access matrix seeded for every tenant.
"""

import re
from enum import Enum


class Action(str, Enum):
    """Operation kinds a permission can grant."""
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    EXPORT = "export"


class Effect(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class Scope(str, Enum):
    """Breadth of rows a grant makes visible or mutable."""
    SELF = "self"  # rows whose owning-user reference is the caller
    OWNED = "owned"  # entity-specific ownership (classes taught, children, ...)
    TENANT = "tenant"  # every live row of the caller's tenant
    CUSTOM = "custom"  # structured field-equality conditions


class OperationKind(str, Enum):
    """Data-access operations a row filter is built for."""
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class DecisionReason(str, Enum):
    """Reason codes recorded with every audit event."""
    ALLOWED = "ALLOWED"
    EXPLICIT_DENY = "EXPLICIT_DENY"
    IMPLICIT_DENY = "IMPLICIT_DENY"
    UNKNOWN_SCOPE = "UNKNOWN_SCOPE"


# Custom is never ranked; it is only selected when nothing else remains.
SCOPE_RANK = {
    Scope.SELF: 1,
    Scope.OWNED: 2,
    Scope.TENANT: 3,
}


class Resources(str, Enum):
    """Permission catalog resources (data domains)."""
    TENANT_MANAGEMENT = "tenant_management"
    SCHOOL_CONFIG = "school_config"
    USER_MANAGEMENT = "user_management"
    CLASSES = "classes"
    STUDENTS = "students"
    ADMISSIONS = "admissions"
    FEES = "fees"
    ATTENDANCE_STUDENTS = "attendance_students"
    ATTENDANCE_STAFF = "attendance_staff"
    TIMETABLE = "timetable"
    EXAMS = "exams"
    COMMUNICATION = "communication"
    TRANSPORT = "transport"
    LIBRARY = "library"
    HOSTEL = "hostel"
    HR_PAYROLL = "hr_payroll"
    INVENTORY = "inventory"
    LMS = "lms"
    ANALYTICS = "analytics"
    TECHNICAL_OPS = "technical_ops"
    DATA_EXPORT = "data_export"
    STAFF = "staff"


# ─────────────────────────────────────────
# Role codes
# ─────────────────────────────────────────
ROLE_CODE_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")


class RoleCode(str):
    """
    Canonical, immutable role identifier used for every policy lookup.

    RoleCode("teacher") == "TEACHER"
    RoleCode.from_name("School Admin") == "SCHOOL_ADMIN"
    """

    def __new__(cls, value):
        if isinstance(value, Enum):
            value = value.value
        normalized = str(value or "").strip().upper()
        if not ROLE_CODE_PATTERN.match(normalized):
            raise ValueError(f"Invalid role code: {value!r}")
        return super().__new__(cls, normalized)

    @classmethod
    def from_name(cls, name: str) -> "RoleCode":
        return cls(re.sub(r"[^A-Za-z0-9]+", "_", (name or "").strip()).strip("_"))


class DefaultRoles(str, Enum):
    """Role codes seeded by the platform. Tenants may add their own codes."""
    # System (cross-tenant)
    SUPER_ADMIN = "SUPER_ADMIN"
    SUPPORT_ENGINEER = "SUPPORT_ENGINEER"

    # Tenant
    SCHOOL_ADMIN = "SCHOOL_ADMIN"
    PRINCIPAL = "PRINCIPAL"
    TEACHER = "TEACHER"
    STAFF = "STAFF"
    ACCOUNTANT = "ACCOUNTANT"
    HR_MANAGER = "HR_MANAGER"
    LIBRARIAN = "LIBRARIAN"
    TRANSPORT_MANAGER = "TRANSPORT_MANAGER"
    HOSTEL_WARDEN = "HOSTEL_WARDEN"
    PARENT = "PARENT"
    STUDENT = "STUDENT"


SYSTEM_ROLES = [
    (DefaultRoles.SUPER_ADMIN, "Super Admin", "Cross-tenant system administrator"),
    (DefaultRoles.SUPPORT_ENGINEER, "Support Engineer", "Support staff with cross-tenant read access"),
]

DEFAULT_TENANT_ROLES = [
    (DefaultRoles.SCHOOL_ADMIN, "School Admin", "School administrator with full control"),
    (DefaultRoles.PRINCIPAL, "Principal", "School principal with academic and admin oversight"),
    (DefaultRoles.TEACHER, "Teacher", "Teacher with access to classes, attendance, and grades"),
    (DefaultRoles.STAFF, "Staff", "Non-teaching staff member"),
    (DefaultRoles.ACCOUNTANT, "Accountant", "Finance and accounting staff"),
    (DefaultRoles.HR_MANAGER, "HR Manager", "Human Resources manager"),
    (DefaultRoles.LIBRARIAN, "Librarian", "Library management staff"),
    (DefaultRoles.TRANSPORT_MANAGER, "Transport Manager", "Transport and logistics manager"),
    (DefaultRoles.HOSTEL_WARDEN, "Hostel Warden", "Hostel management staff"),
    (DefaultRoles.PARENT, "Parent", "Parent with limited access to child records"),
    (DefaultRoles.STUDENT, "Student", "Student with access to own records and LMS"),
]


# ─────────────────────────────────────────
# Default access matrix
# ─────────────────────────────────────────
# Seed shorthand only; grants are stored as effect/scope rows.
#   full    -> allow/tenant on every action
#   read    -> allow/tenant on read
#   limited -> allow/owned on read
LEVEL_GRANTS = {
    "full": [(action, Scope.TENANT) for action in Action],
    "read": [(Action.READ, Scope.TENANT)],
    "limited": [(Action.READ, Scope.OWNED)],
}

_R = Resources

ACCESS_MATRIX = {
    DefaultRoles.SUPER_ADMIN: {
        _R.TENANT_MANAGEMENT: "full", _R.SCHOOL_CONFIG: "full", _R.USER_MANAGEMENT: "full",
        _R.CLASSES: "read", _R.STUDENTS: "read", _R.ADMISSIONS: "read", _R.FEES: "read",
        _R.ATTENDANCE_STUDENTS: "read", _R.ATTENDANCE_STAFF: "read", _R.TIMETABLE: "read",
        _R.EXAMS: "read", _R.COMMUNICATION: "limited", _R.TRANSPORT: "read", _R.LIBRARY: "read",
        _R.HOSTEL: "read", _R.HR_PAYROLL: "read", _R.INVENTORY: "read", _R.LMS: "read",
        _R.ANALYTICS: "full", _R.TECHNICAL_OPS: "full", _R.DATA_EXPORT: "full", _R.STAFF: "read",
    },
    DefaultRoles.SUPPORT_ENGINEER: {
        _R.TENANT_MANAGEMENT: "full", _R.SCHOOL_CONFIG: "read", _R.USER_MANAGEMENT: "read",
        _R.STUDENTS: "read", _R.ADMISSIONS: "read", _R.FEES: "read",
        _R.ATTENDANCE_STUDENTS: "read", _R.ATTENDANCE_STAFF: "read", _R.TIMETABLE: "read",
        _R.EXAMS: "read", _R.COMMUNICATION: "read", _R.TRANSPORT: "read", _R.LIBRARY: "read",
        _R.HOSTEL: "read", _R.HR_PAYROLL: "read", _R.INVENTORY: "read", _R.LMS: "read",
        _R.ANALYTICS: "full", _R.TECHNICAL_OPS: "full", _R.DATA_EXPORT: "full",
    },
    DefaultRoles.SCHOOL_ADMIN: {
        _R.TENANT_MANAGEMENT: "limited", _R.SCHOOL_CONFIG: "full", _R.USER_MANAGEMENT: "full",
        _R.CLASSES: "full", _R.STUDENTS: "full", _R.ADMISSIONS: "full", _R.FEES: "full",
        _R.ATTENDANCE_STUDENTS: "full", _R.ATTENDANCE_STAFF: "full", _R.TIMETABLE: "full",
        _R.EXAMS: "full", _R.COMMUNICATION: "full", _R.TRANSPORT: "full", _R.LIBRARY: "full",
        _R.HOSTEL: "full", _R.HR_PAYROLL: "full", _R.INVENTORY: "full", _R.LMS: "full",
        _R.ANALYTICS: "full", _R.TECHNICAL_OPS: "limited", _R.DATA_EXPORT: "limited",
        _R.STAFF: "full",
    },
    DefaultRoles.PRINCIPAL: {
        _R.SCHOOL_CONFIG: "read", _R.USER_MANAGEMENT: "limited",
        _R.CLASSES: "full", _R.STUDENTS: "full", _R.ADMISSIONS: "full", _R.FEES: "read",
        _R.ATTENDANCE_STUDENTS: "full", _R.ATTENDANCE_STAFF: "read", _R.TIMETABLE: "full",
        _R.EXAMS: "full", _R.COMMUNICATION: "full", _R.TRANSPORT: "read", _R.LIBRARY: "read",
        _R.HOSTEL: "read", _R.HR_PAYROLL: "read", _R.INVENTORY: "read", _R.LMS: "read",
        _R.ANALYTICS: "full", _R.DATA_EXPORT: "limited", _R.STAFF: "read",
    },
    DefaultRoles.TEACHER: {
        _R.SCHOOL_CONFIG: "read", _R.CLASSES: "read", _R.STUDENTS: "limited",
        _R.ADMISSIONS: "limited", _R.FEES: "read", _R.ATTENDANCE_STUDENTS: "full",
        _R.TIMETABLE: "read", _R.EXAMS: "limited", _R.COMMUNICATION: "limited",
        _R.TRANSPORT: "read", _R.LIBRARY: "read", _R.HR_PAYROLL: "read", _R.LMS: "full",
        _R.ANALYTICS: "limited", _R.STAFF: "limited",
    },
    DefaultRoles.STAFF: {
        _R.SCHOOL_CONFIG: "read", _R.TIMETABLE: "read", _R.COMMUNICATION: "limited",
        _R.ATTENDANCE_STAFF: "limited", _R.HR_PAYROLL: "limited", _R.STAFF: "limited",
    },
    DefaultRoles.ACCOUNTANT: {
        _R.TENANT_MANAGEMENT: "read", _R.SCHOOL_CONFIG: "read", _R.USER_MANAGEMENT: "limited",
        _R.CLASSES: "read", _R.STUDENTS: "read", _R.ADMISSIONS: "read", _R.FEES: "full",
        _R.ATTENDANCE_STUDENTS: "read", _R.ATTENDANCE_STAFF: "read", _R.COMMUNICATION: "limited",
        _R.TRANSPORT: "read", _R.HOSTEL: "read", _R.HR_PAYROLL: "full", _R.INVENTORY: "read",
        _R.ANALYTICS: "full", _R.DATA_EXPORT: "limited",
    },
    DefaultRoles.HR_MANAGER: {
        _R.SCHOOL_CONFIG: "read", _R.USER_MANAGEMENT: "limited", _R.FEES: "read",
        _R.ATTENDANCE_STUDENTS: "read", _R.ATTENDANCE_STAFF: "full", _R.COMMUNICATION: "limited",
        _R.HR_PAYROLL: "full", _R.ANALYTICS: "limited", _R.DATA_EXPORT: "limited",
        _R.STAFF: "full",
    },
    DefaultRoles.LIBRARIAN: {
        _R.SCHOOL_CONFIG: "read", _R.STUDENTS: "limited", _R.FEES: "read", _R.EXAMS: "read",
        _R.COMMUNICATION: "limited", _R.LIBRARY: "full", _R.INVENTORY: "limited",
        _R.LMS: "read", _R.ANALYTICS: "limited",
    },
    DefaultRoles.TRANSPORT_MANAGER: {
        _R.SCHOOL_CONFIG: "read", _R.CLASSES: "read", _R.STUDENTS: "limited", _R.FEES: "read",
        _R.ATTENDANCE_STUDENTS: "limited", _R.ATTENDANCE_STAFF: "limited",
        _R.COMMUNICATION: "limited", _R.TRANSPORT: "full", _R.ANALYTICS: "limited",
    },
    DefaultRoles.HOSTEL_WARDEN: {
        _R.SCHOOL_CONFIG: "read", _R.CLASSES: "read", _R.STUDENTS: "limited", _R.FEES: "read",
        _R.ATTENDANCE_STUDENTS: "limited", _R.COMMUNICATION: "limited", _R.HOSTEL: "full",
        _R.ANALYTICS: "limited",
    },
    DefaultRoles.PARENT: {
        _R.CLASSES: "read", _R.STUDENTS: "limited", _R.ADMISSIONS: "limited", _R.FEES: "limited",
        _R.ATTENDANCE_STUDENTS: "limited", _R.TIMETABLE: "read", _R.EXAMS: "read",
        _R.COMMUNICATION: "limited", _R.TRANSPORT: "read", _R.LIBRARY: "read",
        _R.HOSTEL: "read", _R.LMS: "read", _R.ANALYTICS: "limited", _R.DATA_EXPORT: "limited",
    },
    DefaultRoles.STUDENT: {
        _R.CLASSES: "read", _R.STUDENTS: "limited", _R.ADMISSIONS: "limited", _R.FEES: "limited",
        _R.ATTENDANCE_STUDENTS: "limited", _R.TIMETABLE: "read", _R.EXAMS: "read",
        _R.COMMUNICATION: "limited", _R.TRANSPORT: "read", _R.LIBRARY: "read",
        _R.HOSTEL: "read", _R.LMS: "full", _R.ANALYTICS: "limited",
    },
}

# Cache key for a user's resolved role codes within one tenant
ROLE_CACHE_KEY = "perms:{user_id}:{tenant_id}:roles"
DEFAULT_ROLE_CACHE_TTL = 600
