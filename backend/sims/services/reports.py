"""
Aggregate reports over the academic records.

Figures match the admin reports page and the dashboards. Percentages are
rounded half up. The overall attendance rate counts late arrivals as attended;
per-student course summaries count only "present".
"""
import math
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sims.models import (
    Attendance, AttendanceStatus, Course, Department, Enrollment, Instructor, Result, Student
)
from sims.schemas.reports import (
    AttendanceReport, CourseEnrollmentStats, DashboardSummary, EnrollmentReport, ResultsReport,
    StudentCourseAttendance, StudentCourseResults, StudentSummary
)

ACTIVE_ENROLLMENT_STATUS = "enrolled"


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def whole_percentage(part: float, whole: float) -> int:
    if not whole:
        return 0
    return int(round_half_up(part * 100 / whole))


def _status_count(status: AttendanceStatus):
    return func.count(Attendance.id).filter(Attendance.status == status.value)


# Percentage of one result, averaged per row
_RESULT_PERCENTAGE = Result.marks_obtained * 100.0 / Result.total_marks


class ReportService:
    """Read-only aggregate queries for the reports and dashboards."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, model) -> int:
        result = await self.db.execute(select(func.count()).select_from(model))
        return result.scalar_one()

    async def enrollment_report(self) -> EnrollmentReport:
        result = await self.db.execute(
            select(
                Course.id,
                Course.code,
                Course.name,
                func.count(Enrollment.id).label('total_enrolled'),
                func.count(Enrollment.id).filter(
                    Enrollment.status == ACTIVE_ENROLLMENT_STATUS
                ).label('active_count')
            )
            .select_from(Course)
            .outerjoin(Enrollment, Enrollment.course_id == Course.id)
            .group_by(Course.id, Course.code, Course.name)
            .order_by(Course.code)
        )
        courses = [
            CourseEnrollmentStats(
                course_id=row.id,
                code=row.code,
                name=row.name,
                total_enrolled=row.total_enrolled,
                active_count=row.active_count
            )
            for row in result
        ]
        return EnrollmentReport(
            total_enrollments=await self._count(Enrollment),
            active_courses=sum(1 for course in courses if course.total_enrolled > 0),
            courses=courses
        )

    async def attendance_report(self) -> AttendanceReport:
        result = await self.db.execute(
            select(
                func.count(Attendance.id).label('total'),
                _status_count(AttendanceStatus.PRESENT).label('present'),
                _status_count(AttendanceStatus.ABSENT).label('absent'),
                _status_count(AttendanceStatus.LATE).label('late'),
                _status_count(AttendanceStatus.EXCUSED).label('excused')
            )
        )
        stats = result.one()

        present_percentage = round_half_up(stats.present * 100 / stats.total, 1) if stats.total else 0.0
        return AttendanceReport(
            total=stats.total,
            present=stats.present,
            absent=stats.absent,
            late=stats.late,
            excused=stats.excused,
            present_percentage=present_percentage,
            attendance_rate=whole_percentage(stats.present + stats.late, stats.total)
        )

    async def results_report(self) -> ResultsReport:
        totals = (await self.db.execute(
            select(func.count(Result.id).label('total'), func.avg(_RESULT_PERCENTAGE).label('average'))
        )).one()

        grades = await self.db.execute(
            select(Result.grade, func.count(Result.id))
            .where(Result.grade.is_not(None))
            .group_by(Result.grade)
        )

        average = float(totals.average) if totals.average is not None else 0.0
        return ResultsReport(
            total=totals.total,
            grade_distribution={grade: count for grade, count in grades},
            avg_percentage=round_half_up(average, 1)
        )

    async def dashboard_summary(self) -> DashboardSummary:
        attendance = await self.attendance_report()
        average = (await self.db.execute(select(func.avg(_RESULT_PERCENTAGE)))).scalar_one()

        return DashboardSummary(
            students=await self._count(Student),
            courses=await self._count(Course),
            departments=await self._count(Department),
            instructors=await self._count(Instructor),
            enrollments=await self._count(Enrollment),
            attendance_rate=attendance.attendance_rate,
            avg_performance=int(round_half_up(float(average))) if average is not None else 0
        )

    async def student_summary(self, student_id: str) -> Optional[StudentSummary]:
        """Course-by-course attendance and results for one student, None if unknown."""
        student = await self.db.get(Student, student_id)
        if student is None:
            return None

        enrollment_totals = (await self.db.execute(
            select(
                func.count(Enrollment.id).label('courses'),
                func.coalesce(func.sum(Course.credits), 0).label('credits')
            )
            .select_from(Enrollment)
            .outerjoin(Course, Course.id == Enrollment.course_id)
            .where(Enrollment.student_id == student_id)
        )).one()

        attendance_rows = await self.db.execute(
            select(
                Course.id,
                Course.code,
                Course.name,
                func.count(Attendance.id).label('total_classes'),
                _status_count(AttendanceStatus.PRESENT).label('attended'),
                _status_count(AttendanceStatus.ABSENT).label('absent'),
                _status_count(AttendanceStatus.LATE).label('late'),
                _status_count(AttendanceStatus.EXCUSED).label('excused')
            )
            .select_from(Attendance)
            .join(Course, Course.id == Attendance.course_id)
            .where(Attendance.student_id == student_id)
            .group_by(Course.id, Course.code, Course.name)
            .order_by(Course.code)
        )
        attendance = [
            StudentCourseAttendance(
                course_id=row.id,
                code=row.code,
                name=row.name,
                total_classes=row.total_classes,
                attended=row.attended,
                absent=row.absent,
                late=row.late,
                excused=row.excused,
                attendance_percentage=whole_percentage(row.attended, row.total_classes)
            )
            for row in attendance_rows
        ]

        result_rows = await self.db.execute(
            select(
                Course.id,
                Course.code,
                Course.name,
                func.count(Result.id).label('total_exams'),
                func.sum(Result.marks_obtained).label('obtained_marks'),
                func.sum(Result.total_marks).label('total_marks')
            )
            .select_from(Result)
            .join(Course, Course.id == Result.course_id)
            .where(Result.student_id == student_id)
            .group_by(Course.id, Course.code, Course.name)
            .order_by(Course.code)
        )
        results = [
            StudentCourseResults(
                course_id=row.id,
                code=row.code,
                name=row.name,
                total_exams=row.total_exams,
                obtained_marks=float(row.obtained_marks),
                total_marks=float(row.total_marks),
                avg_percentage=whole_percentage(float(row.obtained_marks), float(row.total_marks))
            )
            for row in result_rows
        ]

        average = (await self.db.execute(
            select(func.avg(_RESULT_PERCENTAGE)).where(Result.student_id == student_id)
        )).scalar_one()

        attended = sum(course.attended for course in attendance)
        total_classes = sum(course.total_classes for course in attendance)
        return StudentSummary(
            student_id=student.id,
            student_code=student.student_id,
            name=student.name,
            enrolled_courses=enrollment_totals.courses,
            total_credits=int(enrollment_totals.credits),
            classes_attended=attended,
            classes_total=total_classes,
            attendance_percentage=whole_percentage(attended, total_classes),
            avg_percentage=round_half_up(float(average), 1) if average is not None else None,
            attendance=attendance,
            results=results
        )
