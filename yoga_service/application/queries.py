"""Декларативные запросы-агрегации каталога.

Каждая функция только строит SQLAlchemy ``Select``; выполняет его
``Repository.aggregate``. Так запросы можно проверить отдельно от HTTP.
"""
from sqlalchemy import Select, func, select
from sqlalchemy.orm import aliased

from ..infrastructure.models import ClassORM, EnrolledClassORM, EnrollmentORM, UserORM

POPULAR_LIMIT = 6


def popular_instructors(limit: int = POPULAR_LIMIT) -> Select:
    # group by инструктору -> join users по email -> проекция -> sort -> limit
    totals = (
        select(
            ClassORM.instructor_email.label("email"),
            func.sum(ClassORM.total_enrolled).label("total_enrolled"),
        )
        .group_by(ClassORM.instructor_email)
        .subquery("totals")
    )
    return (
        select(
            totals.c.email,
            UserORM.name.label("instructor"),
            UserORM.photo_url.label("photo_url"),
            totals.c.total_enrolled,
        )
        .select_from(totals)
        .outerjoin(UserORM, UserORM.email == totals.c.email)
        .order_by(totals.c.total_enrolled.desc(), totals.c.email)
        .limit(limit)
    )


def enrolled_classes(user_email: str) -> Select:
    classes = aliased(ClassORM, name="classes")
    instructor = aliased(UserORM, name="instructor")
    return (
        select(classes, instructor)
        .select_from(EnrollmentORM)
        .join(EnrolledClassORM, EnrolledClassORM.enrollment_id == EnrollmentORM.id)
        .join(classes, classes.id == EnrolledClassORM.class_id)
        .outerjoin(instructor, instructor.email == classes.instructor_email)
        .where(EnrollmentORM.user_email == user_email)
        .order_by(EnrollmentORM.id, classes.id)
    )
