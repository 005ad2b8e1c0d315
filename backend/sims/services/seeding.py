"""
Demo Account Provisioning

Creates the demo admin and student accounts used to try the system out.
Safe to run repeatedly: existing accounts are kept, their role is reassigned
and the student's record is only created when missing.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sims.core.config import Settings
from sims.core.security import get_password_hash
from sims.models import AppRole, Department, Student, User, UserRole

logger = logging.getLogger(__name__)

STATUS_CREATED = "created"
STATUS_EXISTING = "already exists, role assigned"


@dataclass
class DemoIdentity:
    email: str
    password: str
    full_name: str
    role: AppRole


class DemoDataSeeder:
    """Provisions the demo admin and demo student."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def run(self) -> Dict[str, Any]:
        results: Dict[str, Any] = {"admin": None, "student": None, "errors": []}

        identities = {
            "admin": DemoIdentity(
                self.settings.DEMO_ADMIN_EMAIL,
                self.settings.DEMO_ADMIN_PASSWORD,
                self.settings.DEMO_ADMIN_NAME,
                AppRole.ADMIN
            ),
            "student": DemoIdentity(
                self.settings.DEMO_STUDENT_EMAIL,
                self.settings.DEMO_STUDENT_PASSWORD,
                self.settings.DEMO_STUDENT_NAME,
                AppRole.STUDENT
            ),
        }

        for key, identity in identities.items():
            try:
                user, created = await self._ensure_user(identity)
                await self._assign_role(user, identity.role)
                if identity.role == AppRole.STUDENT:
                    await self._ensure_student_record(user)
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Failed to provision demo {key}: {e}")
                results["errors"].append(f"{key.capitalize()} error: {e}")
                continue

            status = STATUS_CREATED if created else STATUS_EXISTING
            logger.info(f"Demo {key} {identity.email}: {status}")
            results[key] = {"id": user.id, "email": user.email, "status": status}

        return results

    async def _ensure_user(self, identity: DemoIdentity) -> Tuple[User, bool]:
        result = await self.db.execute(select(User).where(User.email == identity.email))
        user = result.scalar_one_or_none()
        if user is not None:
            return user, False

        user = User(
            email=identity.email,
            full_name=identity.full_name,
            hashed_password=get_password_hash(identity.password),
            email_confirmed=True
        )
        self.db.add(user)
        await self.db.flush()
        return user, True

    async def _assign_role(self, user: User, role: AppRole) -> None:
        result = await self.db.execute(select(UserRole).where(UserRole.user_id == user.id))
        assignment = result.scalar_one_or_none()
        if assignment is None:
            self.db.add(UserRole(user_id=user.id, role=role.value))
        else:
            assignment.role = role.value
        await self.db.flush()

    async def _ensure_student_record(self, user: User) -> Optional[Student]:
        result = await self.db.execute(select(Student).where(Student.user_id == user.id))
        if result.scalar_one_or_none() is not None:
            return None

        department_result = await self.db.execute(select(Department.id).limit(1))
        department_id = department_result.scalar_one_or_none()

        student = Student(
            user_id=user.id,
            student_id=self.settings.DEMO_STUDENT_CODE,
            name=user.full_name,
            email=user.email,
            department_id=department_id,
            semester=3,
            status="active"
        )
        self.db.add(student)
        await self.db.flush()
        return student

    @staticmethod
    def summary(results: Dict[str, Any]) -> List[str]:
        """One line per provisioned identity, for command-line output."""
        lines = []
        for key in ("admin", "student"):
            entry = results.get(key)
            if entry:
                lines.append(f"{key}: {entry['email']} ({entry['status']})")
        lines.extend(results.get("errors", []))
        return lines
