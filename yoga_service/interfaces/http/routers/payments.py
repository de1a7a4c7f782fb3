from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....application.use_cases.enroll_after_payment import EnrollAfterPayment
from ....domain.entities import PaymentConfirmation
from ....domain.errors import Forbidden, InvalidRequest
from ....infrastructure.cache import invalidate_catalog
from ....infrastructure.db import get_db
from ....infrastructure.models import PaymentORM
from ....infrastructure.payments import PaymentGateway, get_payment_gateway
from ....infrastructure.repositories import (
    CartRepository, ClassRepository, EnrollmentRepository, PaymentRepository,
)
from ..authz import get_user_email
from ..schemas import (
    EnrollmentResp, PaymentCount, PaymentInfoReq, PaymentIntentReq, PaymentIntentResp, PaymentOut,
)

router = APIRouter(tags=["payments"])


def get_enrollment_workflow(db: Session = Depends(get_db)) -> EnrollAfterPayment:
    return EnrollAfterPayment(
        uow=db,
        classes=ClassRepository(db),
        enrollments=EnrollmentRepository(db),
        cart=CartRepository(db),
        payments=PaymentRepository(db),
    )


@router.post("/create-payment-intent", response_model=PaymentIntentResp)
def create_payment_intent(payload: PaymentIntentReq,
                          gateway: PaymentGateway = Depends(get_payment_gateway)):
    return PaymentIntentResp(client_secret=gateway.create_intent(payload.price))

@router.post("/payment-info", response_model=EnrollmentResp)
def payment_info(
    payload: PaymentInfoReq,
    class_id: int | None = Query(None, alias="classId"),
    user_email: str = Depends(get_user_email),
    workflow: EnrollAfterPayment = Depends(get_enrollment_workflow),
):
    if payload.user_email and payload.user_email != user_email:
        raise Forbidden("Cannot record payment for another user")
    # classId в query или теле — покупка одного класса, иначе список classesId
    single = class_id if class_id is not None else payload.class_id
    class_ids = [single] if single is not None else (payload.classes_id or [])
    if not class_ids:
        raise InvalidRequest("classesId or classId is required")
    result = workflow.execute(PaymentConfirmation(
        user_email=user_email,
        class_ids=tuple(class_ids),
        transaction_id=payload.transaction_id,
        price=payload.price,
        quantity=payload.quantity,
        payment_status=payload.payment_status,
        date=payload.date,
    ))
    # popular-* и approved-classes зависят от счётчиков
    invalidate_catalog()
    return EnrollmentResp(
        enrollment_id=result.enrollment_id,
        payment_id=result.payment_id,
        class_ids=list(result.class_ids),
        cart_items_removed=result.cart_items_removed,
    )

@router.get("/payment-history/{email}", response_model=list[PaymentOut])
def payment_history(email: str, db: Session = Depends(get_db)):
    return list(PaymentRepository(db).find_many(
        {"user_email": email}, order_by=[PaymentORM.date.desc(), PaymentORM.id.desc()]))

@router.get("/payment-history-length/{email}", response_model=PaymentCount)
def payment_history_length(email: str, db: Session = Depends(get_db)):
    return PaymentCount(total=PaymentRepository(db).count({"user_email": email}))
