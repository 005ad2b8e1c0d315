from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Dict, List, Optional


DEFAULT_TABLE_COLUMNS: Dict[str, List[str]] = {
    "students": [
        "id", "student_id", "name", "email", "phone", "gender", "department_id",
        "semester", "status", "created_at", "updated_at", "enrollment_date",
    ],
    "courses": [
        "id", "code", "name", "description", "credits", "department_id",
        "instructor_id", "semester", "created_at", "updated_at",
    ],
    "departments": ["id", "code", "name", "description", "head_name", "created_at", "updated_at"],
    "instructors": [
        "id", "name", "email", "phone", "department_id", "qualification",
        "specialization", "created_at", "updated_at",
    ],
    "enrollments": ["id", "student_id", "course_id", "enrollment_date", "status", "created_at"],
    "attendance": ["id", "student_id", "course_id", "date", "status", "remarks", "created_at"],
    "results": [
        "id", "student_id", "course_id", "exam_type", "marks_obtained", "total_marks",
        "grade", "remarks", "created_at", "updated_at",
    ],
}


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "Student Information Management System"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # CORS settings
    CORS_ALLOW_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["authorization", "x-client-info", "apikey", "content-type"]

    # Primary database
    DATABASE_URL: str = "sqlite+aiosqlite:///./sims.db"
    DATABASE_ECHO: bool = False

    # Secondary (external) database, either a SQLAlchemy URL or a PostgREST endpoint
    EXTERNAL_DATABASE_URL: Optional[str] = None
    EXTERNAL_SUPABASE_URL: Optional[str] = None
    EXTERNAL_SUPABASE_SERVICE_KEY: Optional[str] = None
    EXTERNAL_TIMEOUT_SECONDS: float = 30.0

    # Replication settings
    SYNC_BATCH_SIZE: int = 100
    SYNC_MAX_ATTEMPTS: int = 10
    REPLICATION_TABLE_COLUMNS: Dict[str, List[str]] = DEFAULT_TABLE_COLUMNS
    # Never copied to the external database
    REPLICATION_EXCLUDED_TABLES: List[str] = ["users", "user_roles"]

    # Demo accounts provisioned by the seed endpoint
    DEMO_ADMIN_EMAIL: str = "admin@sims.com"
    DEMO_ADMIN_PASSWORD: str = "admin123"
    DEMO_ADMIN_NAME: str = "System Administrator"
    DEMO_STUDENT_EMAIL: str = "student@sims.com"
    DEMO_STUDENT_PASSWORD: str = "student123"
    DEMO_STUDENT_NAME: str = "Demo Student"
    DEMO_STUDENT_CODE: str = "STU-DEMO-001"

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("DATABASE_URL is required")
        return v

    @field_validator("SYNC_BATCH_SIZE", "SYNC_MAX_ATTEMPTS")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @property
    def external_configured(self) -> bool:
        return bool(self.EXTERNAL_DATABASE_URL) or bool(
            self.EXTERNAL_SUPABASE_URL and self.EXTERNAL_SUPABASE_SERVICE_KEY
        )

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()
