from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application import queries
from ....domain.entities import (
    ROLE_INSTRUCTOR, STATUS_APPROVED, STATUS_PENDING, User,
)
from ....domain.errors import Unauthorized
from ....infrastructure.cache import CATALOG_PREFIX, cached
from ....infrastructure.db import get_db
from ....infrastructure.models import ClassORM
from ....infrastructure.repositories import (
    ClassRepository, EnrollmentRepository, UserRepository,
)
from ..authz import get_user_email, require_admin
from ..schemas import (
    AdminStats, ClassOut, EnrolledClassOut, PopularInstructorOut, UserOut, dump_classes,
)

router = APIRouter(tags=["enrollment"])


@router.get("/popular_classes", response_model=list[ClassOut])
def popular_classes(db: Session = Depends(get_db)):
    def load():
        rows = ClassRepository(db).find_many(
            {"status": STATUS_APPROVED},
            order_by=[ClassORM.total_enrolled.desc(), ClassORM.id],
            limit=queries.POPULAR_LIMIT,
        )
        return dump_classes(rows)
    return cached(f"{CATALOG_PREFIX}popular_classes", load)

@router.get("/popular-instructors", response_model=list[PopularInstructorOut])
def popular_instructors(db: Session = Depends(get_db)):
    def load():
        rows = ClassRepository(db).aggregate(queries.popular_instructors())
        return [PopularInstructorOut.model_validate(dict(r)).model_dump(by_alias=True) for r in rows]
    return cached(f"{CATALOG_PREFIX}popular_instructors", load)

@router.get("/enrolled-classes/{email}", response_model=list[EnrolledClassOut])
def enrolled_classes(email: str, user_email: str = Depends(get_user_email),
                     db: Session = Depends(get_db)):
    if email != user_email:
        raise Unauthorized()
    rows = EnrollmentRepository(db).aggregate(queries.enrolled_classes(email))
    return [
        EnrolledClassOut(
            classes=ClassOut.model_validate(r["classes"]),
            instructor=UserOut.model_validate(r["instructor"]) if r["instructor"] else None,
        )
        for r in rows
    ]

@router.get("/admin-stats", response_model=AdminStats)
def admin_stats(_: User = Depends(require_admin), db: Session = Depends(get_db)):
    classes = ClassRepository(db)
    return AdminStats(
        approved_classes=classes.count({"status": STATUS_APPROVED}),
        pending_classes=classes.count({"status": STATUS_PENDING}),
        instructors=UserRepository(db).count({"role": ROLE_INSTRUCTOR}),
        total_classes=classes.count(),
        total_enrolled=EnrollmentRepository(db).count(),
    )
