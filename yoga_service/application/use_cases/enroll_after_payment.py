import structlog
from sqlalchemy.exc import SQLAlchemyError

from ...domain.entities import EnrollmentResult, PaymentConfirmation
from ...domain.errors import (
    CapacityError, ClassNotFound, DuplicateTransaction, InvalidRequest,
    StoreUnavailable, YogaError,
)
from ...infrastructure.metrics import enrollment_failures_total, enrollments_total

logger = structlog.get_logger()


class IUnitOfWork:
    def commit(self) -> None: ...
    def rollback(self) -> None: ...

class IClassRepository:
    def find_many(self, filter, order_by=None, limit=None, offset=None): ...
    def reserve_seat(self, class_id: int) -> bool: ...

class IEnrollmentRepository:
    def enroll(self, user_email: str, class_ids, transaction_id: str): ...

class ICartRepository:
    def delete_many(self, filter) -> int: ...

class IPaymentRepository:
    def count(self, filter=None) -> int: ...
    def insert(self, **values): ...


class EnrollAfterPayment:
    """Отражает подтверждённую оплату во всех коллекциях одной транзакцией.

    Шаги: проверка классов -> места/счётчики -> запись о зачислении ->
    очистка корзины -> история платежей. Любая ошибка откатывает всё, так что
    читатели никогда не видят частично применённую покупку.
    """

    def __init__(self, uow: IUnitOfWork, classes: IClassRepository,
                 enrollments: IEnrollmentRepository, cart: ICartRepository,
                 payments: IPaymentRepository):
        self.uow = uow
        self.classes = classes
        self.enrollments = enrollments
        self.cart = cart
        self.payments = payments

    def execute(self, payment: PaymentConfirmation) -> EnrollmentResult:
        log = logger.bind(user_email=payment.user_email, transaction_id=payment.transaction_id)
        try:
            result = self._apply(payment)
            self.uow.commit()
        except YogaError as e:
            self.uow.rollback()
            enrollment_failures_total.labels(reason=e.code).inc()
            log.warning("enrollment_rejected", reason=e.code, detail=e.message)
            raise
        except SQLAlchemyError as e:
            # commit не прошёл: ничего не применено
            self.uow.rollback()
            enrollment_failures_total.labels(reason=StoreUnavailable.code).inc()
            log.error("enrollment_commit_failed", error=str(e))
            raise StoreUnavailable() from e
        enrollments_total.inc()
        log.info("enrollment_completed", class_ids=list(result.class_ids),
                 enrollment_id=result.enrollment_id, cart_items_removed=result.cart_items_removed)
        return result

    def _apply(self, payment: PaymentConfirmation) -> EnrollmentResult:
        class_ids = payment.class_ids
        if not class_ids:
            raise InvalidRequest("No classes to enroll")
        if not payment.transaction_id:
            raise InvalidRequest("Transaction id is required")

        # 1. предусловия до любых записей
        found = {c.id: c for c in self.classes.find_many({"id": list(class_ids)})}
        missing = [cid for cid in class_ids if cid not in found]
        if missing:
            raise ClassNotFound(missing)
        for cid in class_ids:
            if found[cid].available_seats <= 0:
                raise CapacityError(cid)
        if self.payments.count({"transaction_id": payment.transaction_id}):
            raise DuplicateTransaction()

        # 2. условный атомарный UPDATE: параллельная покупка последнего места
        # проиграет здесь, а не уведёт счётчик в минус
        for cid in class_ids:
            if not self.classes.reserve_seat(cid):
                raise CapacityError(cid)

        # 3.
        enrollment = self.enrollments.enroll(payment.user_email, class_ids, payment.transaction_id)

        # 4.
        removed = self.cart.delete_many({"user_mail": payment.user_email, "class_id": list(class_ids)})

        # 5.
        record = {
            "user_email": payment.user_email,
            "class_ids": list(class_ids),
            "transaction_id": payment.transaction_id,
            "price": payment.price,
            "quantity": payment.quantity if payment.quantity is not None else len(class_ids),
            "payment_status": payment.payment_status,
        }
        if payment.date is not None:
            record["date"] = payment.date
        paid = self.payments.insert(**record)

        return EnrollmentResult(
            enrollment_id=enrollment.id,
            payment_id=paid.id,
            class_ids=class_ids,
            cart_items_removed=removed,
        )
