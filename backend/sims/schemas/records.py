"""
Pydantic schemas for the admin record endpoints.

Each managed table has a create schema; update schemas accept the same fields,
all optional, and only the fields sent are applied.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, create_model, model_validator
from datetime import date
from typing import Annotated, Dict, Optional, Tuple, Type

from sims.models import AttendanceStatus


class RecordBase(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True, str_strip_whitespace=True)


class DepartmentCreate(RecordBase):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    head_name: Optional[str] = None


class InstructorCreate(RecordBase):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = None
    department_id: Optional[str] = None
    qualification: Optional[str] = None
    specialization: Optional[str] = None


class CourseCreate(RecordBase):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    credits: int = Field(default=3, ge=0, le=30)
    department_id: Optional[str] = None
    instructor_id: Optional[str] = None
    semester: Optional[str] = None


class StudentCreate(RecordBase):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    student_id: Optional[str] = Field(default=None, max_length=50)
    user_id: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    department_id: Optional[str] = None
    enrollment_date: Optional[date] = None
    semester: int = Field(default=1, ge=1, le=12)
    status: str = "active"


class EnrollmentCreate(RecordBase):
    student_id: str
    course_id: str
    enrollment_date: Optional[date] = None
    status: str = "enrolled"


class AttendanceCreate(RecordBase):
    student_id: str
    course_id: str
    date: date
    status: AttendanceStatus
    remarks: Optional[str] = None


class ResultCreate(RecordBase):
    student_id: str
    course_id: str
    exam_type: str = Field(..., min_length=1, max_length=50)
    marks_obtained: float = Field(..., ge=0)
    total_marks: float = Field(default=100, gt=0)
    grade: Optional[str] = Field(default=None, max_length=5)
    remarks: Optional[str] = None

    @model_validator(mode="after")
    def check_marks(self):
        if self.marks_obtained > self.total_marks:
            raise ValueError("Marks obtained cannot exceed total marks")
        return self


def make_update_schema(create_schema: Type[RecordBase]) -> Type[RecordBase]:
    """
    Same fields as `create_schema`, every one optional. Field constraints
    (lengths, bounds) still apply to values that are sent; model validators
    do not, since they need the stored record.
    """
    fields = {}
    for name, field in create_schema.model_fields.items():
        annotation = field.annotation
        if field.metadata:
            annotation = Annotated[(annotation, *field.metadata)]
        fields[name] = (Optional[annotation], None)
    name = create_schema.__name__.replace("Create", "Update")
    return create_model(name, __base__=RecordBase, **fields)


DepartmentUpdate = make_update_schema(DepartmentCreate)
InstructorUpdate = make_update_schema(InstructorCreate)
CourseUpdate = make_update_schema(CourseCreate)
StudentUpdate = make_update_schema(StudentCreate)
EnrollmentUpdate = make_update_schema(EnrollmentCreate)
AttendanceUpdate = make_update_schema(AttendanceCreate)
ResultUpdate = make_update_schema(ResultCreate)


RECORD_SCHEMAS: Dict[str, Tuple[Type[RecordBase], Type[RecordBase]]] = {
    "departments": (DepartmentCreate, DepartmentUpdate),
    "instructors": (InstructorCreate, InstructorUpdate),
    "courses": (CourseCreate, CourseUpdate),
    "students": (StudentCreate, StudentUpdate),
    "enrollments": (EnrollmentCreate, EnrollmentUpdate),
    "attendance": (AttendanceCreate, AttendanceUpdate),
    "results": (ResultCreate, ResultUpdate),
}
