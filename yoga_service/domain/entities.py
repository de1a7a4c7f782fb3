from dataclasses import dataclass
from datetime import datetime

ROLE_STUDENT = "student"
ROLE_INSTRUCTOR = "instructor"
ROLE_ADMIN = "admin"

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"


@dataclass(frozen=True)
class User:
    id: int | None
    email: str
    role: str = ROLE_STUDENT
    name: str | None = None


@dataclass(frozen=True)
class PaymentConfirmation:
    """Подтверждение оплаты от провайдера: кто купил, какие классы, номер транзакции."""
    user_email: str
    class_ids: tuple[int, ...]
    transaction_id: str
    price: float = 0.0
    quantity: int | None = None
    payment_status: str = "succeeded"
    date: datetime | None = None

    def __post_init__(self):
        # дубликаты в корзине не должны дважды списывать место
        object.__setattr__(self, "class_ids", tuple(dict.fromkeys(self.class_ids)))


@dataclass(frozen=True)
class EnrollmentResult:
    enrollment_id: int
    payment_id: int
    class_ids: tuple[int, ...]
    cart_items_removed: int
