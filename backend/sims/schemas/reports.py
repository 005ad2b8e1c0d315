"""
Pydantic schemas for aggregate reports
"""

from pydantic import BaseModel
from typing import Dict, List, Optional


class CourseEnrollmentStats(BaseModel):
    course_id: str
    code: str
    name: str
    total_enrolled: int
    active_count: int


class EnrollmentReport(BaseModel):
    total_enrollments: int
    active_courses: int
    courses: List[CourseEnrollmentStats]


class AttendanceReport(BaseModel):
    total: int
    present: int
    absent: int
    late: int
    excused: int
    present_percentage: float
    # present or late, whole percent
    attendance_rate: int


class ResultsReport(BaseModel):
    total: int
    grade_distribution: Dict[str, int]
    avg_percentage: float


class DashboardSummary(BaseModel):
    students: int
    courses: int
    departments: int
    instructors: int
    enrollments: int
    attendance_rate: int
    avg_performance: int


class StudentCourseAttendance(BaseModel):
    course_id: str
    code: str
    name: str
    total_classes: int
    attended: int
    absent: int
    late: int
    excused: int
    attendance_percentage: int


class StudentCourseResults(BaseModel):
    course_id: str
    code: str
    name: str
    total_exams: int
    obtained_marks: float
    total_marks: float
    avg_percentage: int


class StudentSummary(BaseModel):
    """Everything the student dashboard shows for one student"""
    student_id: str
    student_code: str
    name: str
    enrolled_courses: int
    total_credits: int
    classes_attended: int
    classes_total: int
    attendance_percentage: int
    avg_percentage: Optional[float] = None
    attendance: List[StudentCourseAttendance]
    results: List[StudentCourseResults]
