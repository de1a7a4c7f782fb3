from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....domain.entities import STATUS_APPROVED, STATUS_PENDING, User
from ....domain.errors import NotFound, Unauthorized
from ....infrastructure.cache import CATALOG_PREFIX, cached, invalidate_catalog
from ....infrastructure.db import get_db
from ....infrastructure.models import ClassORM
from ....infrastructure.repositories import ClassRepository
from ..authz import require_admin, require_instructor
from ..schemas import ClassCreate, ClassOut, ClassUpdate, StatusChange, dump_classes

router = APIRouter(tags=["classes"])


@router.get("/classes", response_model=list[ClassOut])
def list_classes(db: Session = Depends(get_db)):
    return list(ClassRepository(db).find_many(order_by=[ClassORM.id]))

@router.get("/classes-manage", response_model=list[ClassOut])
def manage_classes(db: Session = Depends(get_db)):
    return list(ClassRepository(db).find_many(order_by=[ClassORM.submitted.desc(), ClassORM.id]))

@router.get("/approved-classes", response_model=list[ClassOut])
def approved_classes(db: Session = Depends(get_db)):
    # Кэширование публичной витрины
    return cached(
        f"{CATALOG_PREFIX}approved",
        lambda: dump_classes(ClassRepository(db).find_many({"status": STATUS_APPROVED}, order_by=[ClassORM.id])),
    )

@router.get("/class/{class_id}", response_model=ClassOut)
def get_class(class_id: int, db: Session = Depends(get_db)):
    row = ClassRepository(db).get(class_id)
    if not row: raise NotFound("class not found")
    return row

# --- Instructor-only:

@router.post("/new-class", response_model=ClassOut, status_code=status.HTTP_201_CREATED)
def new_class(payload: ClassCreate, instructor: User = Depends(require_instructor),
              db: Session = Depends(get_db)):
    values = payload.model_dump()
    values["instructor_name"] = values.get("instructor_name") or instructor.name
    row = ClassRepository(db).insert(
        **values,
        instructor_email=instructor.email,
        status=STATUS_PENDING,
        total_enrolled=0,
    )
    db.commit()
    invalidate_catalog()
    return row

@router.get("/classes/{email}", response_model=list[ClassOut])
def instructor_classes(email: str, instructor: User = Depends(require_instructor),
                       db: Session = Depends(get_db)):
    if email != instructor.email:
        raise Unauthorized()
    return list(ClassRepository(db).find_many({"instructor_email": email}, order_by=[ClassORM.id]))

@router.put("/update-class/{class_id}", response_model=ClassOut)
def update_class(class_id: int, payload: ClassUpdate, instructor: User = Depends(require_instructor),
                 db: Session = Depends(get_db)):
    repo = ClassRepository(db)
    row = repo.get(class_id)
    if not row: raise NotFound("class not found")
    if row.instructor_email != instructor.email:
        raise Unauthorized()
    # после правки класс снова уходит на модерацию
    patch = {**payload.model_dump(exclude_unset=True), "status": STATUS_PENDING}
    row = repo.update_one({"id": class_id}, patch)
    db.commit()
    invalidate_catalog()
    return row

# --- Admin-only:

@router.patch("/change-status/{class_id}", response_model=ClassOut)
def change_status(class_id: int, payload: StatusChange, _: User = Depends(require_admin),
                  db: Session = Depends(get_db)):
    row = ClassRepository(db).update_one({"id": class_id}, payload.model_dump())
    if not row: raise NotFound("class not found")
    db.commit()
    invalidate_catalog()
    return row
