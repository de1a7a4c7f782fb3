from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....domain.errors import AlreadyExists, NotFound, Unauthorized
from ....infrastructure.db import get_db
from ....infrastructure.models import ClassORM
from ....infrastructure.repositories import CartRepository, ClassRepository, EnrollmentRepository
from ..authz import get_user_email
from ..schemas import CartAdd, CartItemOut, ClassOut

router = APIRouter(tags=["cart"])


@router.post("/add-to-cart", response_model=CartItemOut, status_code=status.HTTP_201_CREATED)
def add_to_cart(payload: CartAdd, user_email: str = Depends(get_user_email),
                db: Session = Depends(get_db)):
    if not ClassRepository(db).get(payload.class_id):
        raise NotFound("class not found")
    cart = CartRepository(db)
    if cart.find_one({"class_id": payload.class_id, "user_mail": user_email}):
        raise AlreadyExists("Class already in cart")
    if EnrollmentRepository(db).is_enrolled(user_email, payload.class_id):
        raise AlreadyExists("Already enrolled in this class")
    row = cart.insert(class_id=payload.class_id, user_mail=user_email)
    db.commit()
    return row

@router.get("/cart-item/{class_id}", response_model=CartItemOut)
def get_cart_item(class_id: int, user_email: str = Depends(get_user_email),
                  db: Session = Depends(get_db)):
    row = CartRepository(db).find_one({"class_id": class_id, "user_mail": user_email})
    if not row: raise NotFound("cart item not found")
    return row

@router.get("/cart/{email}", response_model=list[ClassOut])
def get_cart(email: str, user_email: str = Depends(get_user_email), db: Session = Depends(get_db)):
    if email != user_email:
        raise Unauthorized()
    class_ids = [item.class_id for item in CartRepository(db).find_many({"user_mail": email})]
    if not class_ids:
        return []
    return list(ClassRepository(db).find_many({"id": class_ids}, order_by=[ClassORM.id]))

@router.delete("/delete-cart-item/{class_id}")
def delete_cart_item(class_id: int, user_email: str = Depends(get_user_email),
                     db: Session = Depends(get_db)):
    deleted = CartRepository(db).delete_one({"class_id": class_id, "user_mail": user_email})
    if not deleted: raise NotFound("cart item not found")
    db.commit()
    return {"deletedCount": deleted}
