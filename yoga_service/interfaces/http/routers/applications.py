from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....domain.entities import User
from ....domain.errors import AlreadyExists, NotFound
from ....infrastructure.db import get_db
from ....infrastructure.models import AppliedInstructorORM
from ....infrastructure.repositories import AppliedInstructorRepository
from ..authz import require_admin
from ..schemas import ApplicationCreate, ApplicationOut

router = APIRouter(tags=["instructor-applications"])


@router.post("/ass-instructor", response_model=ApplicationOut, status_code=status.HTTP_201_CREATED)
def apply_as_instructor(payload: ApplicationCreate, db: Session = Depends(get_db)):
    repo = AppliedInstructorRepository(db)
    if repo.find_one({"email": payload.email}):
        raise AlreadyExists("Application already submitted")
    row = repo.insert(**payload.model_dump())
    db.commit()
    return row

@router.get("/applied-instructors/{email}", response_model=ApplicationOut)
def get_application(email: str, db: Session = Depends(get_db)):
    row = AppliedInstructorRepository(db).find_one({"email": email})
    if not row: raise NotFound("application not found")
    return row

@router.get("/applied-instructors", response_model=list[ApplicationOut])
def list_applications(_: User = Depends(require_admin), db: Session = Depends(get_db)):
    return list(AppliedInstructorRepository(db).find_many(order_by=[AppliedInstructorORM.date.desc()]))
