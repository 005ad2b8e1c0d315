"""Tests for grade and student number derivation."""

import re
from datetime import datetime

import pytest

from sims.services.academics import calculate_grade, generate_student_code


class TestCalculateGrade:

    @pytest.mark.parametrize("marks,grade", [
        (100, "A+"),
        (90, "A+"),
        (89.99, "A"),
        (80, "A"),
        (75, "B"),
        (60, "C"),
        (50, "D"),
        (49.5, "F"),
        (0, "F"),
    ])
    def test_thresholds(self, marks, grade):
        assert calculate_grade(marks, 100) == grade

    def test_uses_percentage_of_total(self):
        assert calculate_grade(45, 50) == "A+"
        assert calculate_grade(30, 50) == "C"

    def test_total_must_be_positive(self):
        with pytest.raises(ValueError):
            calculate_grade(10, 0)


class TestGenerateStudentCode:

    def test_format(self):
        code = generate_student_code(datetime(2025, 1, 15))

        assert re.match(r"^STU2501\d{4}$", code)

    def test_defaults_to_now(self):
        assert re.match(r"^STU\d{8}$", generate_student_code())
