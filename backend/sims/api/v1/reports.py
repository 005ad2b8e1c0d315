"""
Aggregate reports for the admin reports page and the dashboards
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sims.core.database import get_db
from sims.schemas.reports import (
    AttendanceReport, DashboardSummary, EnrollmentReport, ResultsReport, StudentSummary
)
from sims.services.reports import ReportService

router = APIRouter()


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard_summary(db: AsyncSession = Depends(get_db)):
    """Record counts, overall attendance rate and average performance"""
    return await ReportService(db).dashboard_summary()


@router.get("/enrollments", response_model=EnrollmentReport)
async def get_enrollment_report(db: AsyncSession = Depends(get_db)):
    return await ReportService(db).enrollment_report()


@router.get("/attendance", response_model=AttendanceReport)
async def get_attendance_report(db: AsyncSession = Depends(get_db)):
    return await ReportService(db).attendance_report()


@router.get("/results", response_model=ResultsReport)
async def get_results_report(db: AsyncSession = Depends(get_db)):
    return await ReportService(db).results_report()


@router.get("/students/{student_id}", response_model=StudentSummary)
async def get_student_summary(student_id: str, db: AsyncSession = Depends(get_db)):
    summary = await ReportService(db).student_summary(student_id)
    if summary is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student {student_id} not found")
    return summary
