from .user import User, UserRole, AppRole
from .academic import (
    Department, Instructor, Course, Student, Enrollment, Attendance, Result,
    AttendanceStatus
)

# Tables the admin editing surfaces manage, keyed by table name
RECORD_MODELS = {
    model.__tablename__: model
    for model in (Department, Instructor, Course, Student, Enrollment, Attendance, Result)
}

__all__ = [
    "User",
    "UserRole",
    "AppRole",
    "Department",
    "Instructor",
    "Course",
    "Student",
    "Enrollment",
    "Attendance",
    "Result",
    "AttendanceStatus",
    "RECORD_MODELS",
]
