from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....domain.entities import ROLE_INSTRUCTOR, ROLE_STUDENT, User
from ....domain.errors import AlreadyExists, NotFound
from ....infrastructure.db import get_db
from ....infrastructure.repositories import UserRepository
from ..authz import get_user_email, require_admin
from ..schemas import UserCreate, UserOut, UserUpdate

router = APIRouter(tags=["users"])


@router.post("/new-user", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def new_user(payload: UserCreate, db: Session = Depends(get_db)):
    repo = UserRepository(db)
    if repo.get_by_email(payload.email):
        raise AlreadyExists("Email already registered")
    # роль выдаёт только админ через /update-user
    row = repo.insert(**payload.model_dump(), role=ROLE_STUDENT)
    db.commit()
    return row

@router.get("/users", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    return list(UserRepository(db).find_many(order_by=[UserRepository.model.id]))

@router.get("/users/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    row = UserRepository(db).get(user_id)
    if not row: raise NotFound("user not found")
    return row

@router.get("/user/{email}", response_model=UserOut)
def get_user_by_email(email: str, _: str = Depends(get_user_email), db: Session = Depends(get_db)):
    row = UserRepository(db).find_one({"email": email})
    if not row: raise NotFound("user not found")
    return row

@router.get("/instructors", response_model=list[UserOut])
def list_instructors(db: Session = Depends(get_db)):
    return list(UserRepository(db).find_many({"role": ROLE_INSTRUCTOR}, order_by=[UserRepository.model.id]))

# --- Admin-only:

@router.delete("/delete-user/{user_id}")
def delete_user(user_id: int, _: User = Depends(require_admin), db: Session = Depends(get_db)):
    deleted = UserRepository(db).delete_one({"id": user_id})
    if not deleted: raise NotFound("user not found")
    db.commit()
    return {"deletedCount": deleted}

@router.put("/update-user/{user_id}", response_model=UserOut)
def update_user(user_id: int, payload: UserUpdate, _: User = Depends(require_admin),
                db: Session = Depends(get_db)):
    patch = payload.model_dump(exclude_unset=True)
    repo = UserRepository(db)
    if "email" in patch:
        taken = repo.find_one({"email": patch["email"]})
        if taken and taken.id != user_id:
            raise AlreadyExists("Email already registered")
    existing = repo.get(user_id)
    if existing is None and "email" not in patch:
        raise NotFound("user not found")
    row = repo.update_one({"id": user_id}, patch, upsert=True)
    db.commit()
    return row
