"""
Admin endpoints for the academic records (departments, instructors, courses,
students, enrollments, attendance, results).

Every successful write is committed to the primary database first and then
handed to the replication dispatcher as a background task. Replication
failures never affect the response.
"""
from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List
import logging

from sims.api.deps import get_replication_dispatcher
from sims.core.database import get_db
from sims.models import RECORD_MODELS
from sims.schemas.records import RECORD_SCHEMAS
from sims.services.academics import calculate_grade, generate_student_code
from sims.services.replication import ReplicationDispatcher

logger = logging.getLogger(__name__)
router = APIRouter()

# Column default for results.total_marks
DEFAULT_TOTAL_MARKS = 100


def get_record_model(table: str):
    model = RECORD_MODELS.get(table)
    if model is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown table: {table}")
    return model


def serialize_record(instance) -> Dict[str, Any]:
    """Column values of a model instance in JSON-compatible form."""
    return jsonable_encoder({
        column.name: getattr(instance, column.key)
        for column in instance.__mapper__.columns
    })


def validate_payload(schema, payload: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return schema.model_validate(payload).model_dump(exclude_unset=True)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=jsonable_encoder(e.errors(include_context=False))
        )


def apply_derived_fields(table: str, values: Dict[str, Any], current: Dict[str, Any]) -> None:
    """Fill in generated student numbers and result grades."""
    if table == "students" and not (values.get("student_id") or current.get("student_id")):
        values["student_id"] = generate_student_code()

    if table == "results":
        marks = values["marks_obtained"] if "marks_obtained" in values else current.get("marks_obtained")
        if "total_marks" in values:
            total = values["total_marks"]
        else:
            total = current.get("total_marks", DEFAULT_TOTAL_MARKS)
        if marks is None or total is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Marks obtained and total marks are required"
            )
        if marks > total:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Marks obtained cannot exceed total marks"
            )
        grade_changed = "grade" in values and values["grade"]
        marks_changed = "marks_obtained" in values or "total_marks" in values
        if not grade_changed and (marks_changed or not current.get("grade")):
            values["grade"] = calculate_grade(marks, total)


async def get_record_or_404(db: AsyncSession, model, record_id: str):
    instance = await db.get(model, record_id)
    if instance is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{model.__tablename__} record {record_id} not found"
        )
    return instance


async def commit_or_409(db: AsyncSession, table: str) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Integrity error writing {table}: {e.orig}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e.orig))


@router.get("/{table}")
async def list_records(
    table: str,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db)
) -> List[Dict[str, Any]]:
    model = get_record_model(table)
    result = await db.execute(
        select(model).order_by(model.created_at.desc()).limit(limit).offset(offset)
    )
    return [serialize_record(instance) for instance in result.scalars().all()]


@router.get("/{table}/{record_id}")
async def get_record(table: str, record_id: str, db: AsyncSession = Depends(get_db)):
    model = get_record_model(table)
    return serialize_record(await get_record_or_404(db, model, record_id))


@router.post("/{table}", status_code=status.HTTP_201_CREATED)
async def create_record(
    table: str,
    background_tasks: BackgroundTasks,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    dispatcher: ReplicationDispatcher = Depends(get_replication_dispatcher)
):
    model = get_record_model(table)
    create_schema, _ = RECORD_SCHEMAS[table]
    values = validate_payload(create_schema, payload)
    apply_derived_fields(table, values, {})

    instance = model(**{key: value for key, value in values.items() if value is not None})
    db.add(instance)
    await commit_or_409(db, table)
    await db.refresh(instance)

    record = serialize_record(instance)
    logger.info(f"Created {table} record {instance.id}")
    background_tasks.add_task(dispatcher.sync_insert, table, record)
    return record


@router.put("/{table}/{record_id}")
async def update_record(
    table: str,
    record_id: str,
    background_tasks: BackgroundTasks,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    dispatcher: ReplicationDispatcher = Depends(get_replication_dispatcher)
):
    model = get_record_model(table)
    _, update_schema = RECORD_SCHEMAS[table]
    values = validate_payload(update_schema, payload)

    instance = await get_record_or_404(db, model, record_id)
    apply_derived_fields(table, values, serialize_record(instance))
    for key, value in values.items():
        setattr(instance, key, value)
    await commit_or_409(db, table)
    await db.refresh(instance)

    record = serialize_record(instance)
    logger.info(f"Updated {table} record {record_id}")
    background_tasks.add_task(dispatcher.sync_update, table, record)
    return record


@router.delete("/{table}/{record_id}")
async def delete_record(
    table: str,
    record_id: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    dispatcher: ReplicationDispatcher = Depends(get_replication_dispatcher)
):
    model = get_record_model(table)
    instance = await get_record_or_404(db, model, record_id)
    await db.delete(instance)
    await commit_or_409(db, table)

    logger.info(f"Deleted {table} record {record_id}")
    background_tasks.add_task(dispatcher.sync_delete, table, record_id)
    return {"deleted": True, "id": record_id}


@router.post("/{table}/resync", status_code=status.HTTP_202_ACCEPTED)
async def resync_table(
    table: str,
    background_tasks: BackgroundTasks,
    dispatcher: ReplicationDispatcher = Depends(get_replication_dispatcher)
):
    """Schedule a full copy of the table to the external database."""
    get_record_model(table)
    background_tasks.add_task(dispatcher.sync_all_records, table)
    return {"scheduled": True, "table": table}
