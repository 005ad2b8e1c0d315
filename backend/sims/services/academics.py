"""
Derived values for academic records.
"""
import random
from datetime import datetime
from typing import Optional

# (minimum percentage, grade), highest first
GRADE_THRESHOLDS = (
    (90, "A+"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
)


def calculate_grade(marks_obtained: float, total_marks: float) -> str:
    """Letter grade for a score, by percentage of total marks."""
    if total_marks <= 0:
        raise ValueError("total_marks must be positive")
    percentage = (marks_obtained / total_marks) * 100
    for minimum, grade in GRADE_THRESHOLDS:
        if percentage >= minimum:
            return grade
    return "F"


def generate_student_code(now: Optional[datetime] = None) -> str:
    """Student number of the form STU<YYMM><4 digits>, e.g. STU25010042."""
    now = now or datetime.utcnow()
    return f"STU{now.strftime('%y%m')}{random.randint(0, 9999):04d}"
