from collections.abc import Iterable, Iterator, Mapping
from functools import wraps
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import Select, func, select, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .models import (
    AppliedInstructorORM, CartItemORM, ClassORM, EnrolledClassORM,
    EnrollmentORM, PaymentORM, UserORM,
)
from ..domain.entities import User
from ..domain.errors import AlreadyExists, InvalidRequest, StoreUnavailable

logger = structlog.get_logger()

T = TypeVar("T")

Filter = Mapping[str, Any]


# SQLSTATE unique_violation и тексты драйверов без SQLSTATE (sqlite, mysql)
_UNIQUE_SQLSTATE = "23505"
_UNIQUE_MARKERS = ("UNIQUE constraint failed", "duplicate key value", "Duplicate entry")


def is_unique_violation(err: IntegrityError) -> bool:
    orig = err.orig
    if _UNIQUE_SQLSTATE in (getattr(orig, "sqlstate", None), getattr(orig, "pgcode", None)):
        return True
    return any(marker in str(orig) for marker in _UNIQUE_MARKERS)


def store_call(func_):
    """Переводит ошибки SQLAlchemy в доменные: дубликат -> 409, прочие нарушения
    ограничений -> 400, остальное -> 503."""
    @wraps(func_)
    def wrapper(*args, **kwargs):
        try:
            return func_(*args, **kwargs)
        except IntegrityError as e:
            logger.warning("store_integrity_error", operation=func_.__qualname__, error=str(e.orig))
            if is_unique_violation(e):
                raise AlreadyExists("Duplicate record") from e
            raise InvalidRequest("Constraint violated") from e
        except SQLAlchemyError as e:
            logger.error("store_unavailable", operation=func_.__qualname__, error=str(e))
            raise StoreUnavailable() from e
    return wrapper


def to_domain(u: UserORM) -> User:
    return User(id=u.id, email=u.email, role=u.role, name=u.name)


class Repository(Generic[T]):
    """Тонкий репозиторий над одной таблицей.

    Фильтр — словарь поле -> значение (равенство) или поле -> список (вхождение).
    Репозиторий только делает flush; commit/rollback решает вызывающий код.
    """
    model: type[T]

    def __init__(self, db: Session): self.db = db

    def _column(self, field: str):
        if field not in self.model.__table__.columns:
            raise ValueError(f"{self.model.__tablename__} has no field {field!r}")
        return getattr(self.model, field)

    def _where(self, filter: Filter | None) -> list:
        conds = []
        for field, value in (filter or {}).items():
            col = self._column(field)
            if isinstance(value, (list, tuple, set, frozenset)):
                conds.append(col.in_(list(value)))
            else:
                conds.append(col == value)
        return conds

    def _select(self, filter: Filter | None, order_by: Iterable | None = None,
                limit: int | None = None, offset: int | None = None) -> Select:
        stmt = select(self.model).where(*self._where(filter))
        if order_by is not None:
            stmt = stmt.order_by(*order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    @store_call
    def insert(self, **values) -> T:
        row = self.model(**values)
        self.db.add(row)
        self.db.flush()
        return row

    @store_call
    def get(self, id_: int) -> T | None:
        return self.db.get(self.model, id_)

    @store_call
    def find_one(self, filter: Filter | None = None) -> T | None:
        return self.db.scalars(self._select(filter, limit=1)).first()

    @store_call
    def find_many(self, filter: Filter | None = None, order_by: Iterable | None = None,
                  limit: int | None = None, offset: int | None = None) -> Iterator[T]:
        # ScalarResult отдаёт строки по мере чтения курсора
        return self.db.scalars(self._select(filter, order_by, limit, offset))

    @store_call
    def count(self, filter: Filter | None = None) -> int:
        stmt = select(func.count()).select_from(self.model).where(*self._where(filter))
        return self.db.scalar(stmt) or 0

    @store_call
    def update_one(self, filter: Filter, patch: Mapping[str, Any], upsert: bool = False) -> T | None:
        row = self.db.scalars(self._select(filter, limit=1)).first()
        if row is None:
            if not upsert:
                return None
            row = self.model(**{**dict(filter), **dict(patch)})
            self.db.add(row)
        else:
            for field, value in patch.items():
                self._column(field)
                setattr(row, field, value)
        self.db.flush()
        return row

    @store_call
    def update_many(self, filter: Filter, patch: Mapping[str, Any], upsert: bool = False) -> int:
        for field in patch:
            self._column(field)
        stmt = update(self.model).where(*self._where(filter)).values(**patch)
        result = self.db.execute(stmt.execution_options(synchronize_session="fetch"))
        if result.rowcount or not upsert:
            return result.rowcount
        # вставляем одну строку; списки в фильтре не задают значение поля
        seed = {k: v for k, v in filter.items() if not isinstance(v, (list, tuple, set, frozenset))}
        self.db.add(self.model(**{**seed, **dict(patch)}))
        self.db.flush()
        return 1

    @store_call
    def delete_one(self, filter: Filter) -> int:
        row = self.db.scalars(self._select(filter, limit=1)).first()
        if row is None:
            return 0
        self.db.delete(row)
        self.db.flush()
        return 1

    @store_call
    def delete_many(self, filter: Filter) -> int:
        stmt = delete(self.model).where(*self._where(filter))
        result = self.db.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount

    @store_call
    def aggregate(self, stmt: Select) -> Iterator[Mapping[str, Any]]:
        return self.db.execute(stmt).mappings()


class UserRepository(Repository[UserORM]):
    model = UserORM

    def get_by_email(self, email: str) -> User | None:
        row = self.find_one({"email": email})
        return to_domain(row) if row else None


class ClassRepository(Repository[ClassORM]):
    model = ClassORM

    @store_call
    def reserve_seat(self, class_id: int) -> bool:
        """Атомарно: +1 записавшийся, -1 место, только если место ещё есть."""
        stmt = (
            update(ClassORM)
            .where(ClassORM.id == class_id, ClassORM.available_seats > 0)
            .values(
                available_seats=ClassORM.available_seats - 1,
                total_enrolled=ClassORM.total_enrolled + 1,
            )
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount == 1


class CartRepository(Repository[CartItemORM]):
    model = CartItemORM


class PaymentRepository(Repository[PaymentORM]):
    model = PaymentORM


class EnrollmentRepository(Repository[EnrollmentORM]):
    model = EnrollmentORM

    @store_call
    def enroll(self, user_email: str, class_ids: Iterable[int], transaction_id: str) -> EnrollmentORM:
        row = EnrollmentORM(
            user_email=user_email,
            transaction_id=transaction_id,
            classes=[EnrolledClassORM(class_id=cid) for cid in class_ids],
        )
        self.db.add(row)
        self.db.flush()
        return row

    @store_call
    def is_enrolled(self, user_email: str, class_id: int) -> bool:
        stmt = (select(EnrolledClassORM.id)
                .join(EnrollmentORM, EnrollmentORM.id == EnrolledClassORM.enrollment_id)
                .where(EnrollmentORM.user_email == user_email, EnrolledClassORM.class_id == class_id)
                .limit(1))
        return self.db.execute(stmt).first() is not None


class AppliedInstructorRepository(Repository[AppliedInstructorORM]):
    model = AppliedInstructorORM
