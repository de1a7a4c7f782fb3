from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ...infrastructure.security import RESERVED_CLAIMS

# наружу поля в camelCase, как их ждёт клиент
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- auth / users

def _not_null(value):
    # null в PATCH-теле не означает "очистить" для обязательных колонок
    if value is None:
        raise ValueError("must not be null")
    return value


class TokenReq(BaseModel):
    model_config = ConfigDict(extra="allow")
    email: EmailStr

    @model_validator(mode="after")
    def no_reserved_claims(self):
        reserved = sorted(k for k in (self.model_extra or {}) if k in RESERVED_CLAIMS)
        if reserved:
            raise ValueError(f"reserved claims are not allowed: {', '.join(reserved)}")
        return self

class TokenResp(BaseModel):
    token: str

class UserCreate(CamelModel):
    email: EmailStr
    name: str | None = None
    photo_url: str | None = None
    gender: str | None = None
    address: str | None = None
    phone: str | None = None
    about: str | None = None
    skills: str | None = None

class UserUpdate(CamelModel):
    name: str | None = None
    email: EmailStr | None = None
    # старый клиент присылает роль в поле options
    role: Literal["student", "instructor", "admin"] | None = Field(
        default=None, validation_alias=AliasChoices("role", "options"))
    address: str | None = None
    about: str | None = None
    photo_url: str | None = None
    skills: str | None = None

    @field_validator("email", "role")
    @classmethod
    def required_fields(cls, v):
        return _not_null(v)

class UserOut(CamelModel):
    id: int
    email: str
    name: str | None = None
    role: str
    photo_url: str | None = None
    gender: str | None = None
    address: str | None = None
    phone: str | None = None
    about: str | None = None
    skills: str | None = None


# --- classes

class ClassCreate(CamelModel):
    name: str = Field(min_length=1)
    image: str | None = None
    description: str | None = None
    video_link: str | None = None
    instructor_name: str | None = None
    price: float = Field(ge=0)
    available_seats: int = Field(ge=0)

class ClassUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    available_seats: int | None = Field(default=None, ge=0)
    video_link: str | None = None
    image: str | None = None

    @field_validator("name", "price", "available_seats")
    @classmethod
    def required_fields(cls, v):
        return _not_null(v)

class StatusChange(BaseModel):
    status: Literal["pending", "approved", "rejected"]
    reason: str | None = None

class ClassOut(CamelModel):
    id: int
    name: str
    image: str | None = None
    description: str | None = None
    video_link: str | None = None
    instructor_name: str | None = None
    instructor_email: str
    status: str
    reason: str | None = None
    price: float
    available_seats: int
    total_enrolled: int
    submitted: datetime | None = None


def dump_classes(rows) -> list[dict]:
    # JSON-форма для кэша витрин
    return [ClassOut.model_validate(r).model_dump(by_alias=True, mode="json") for r in rows]


# --- cart

class CartAdd(CamelModel):
    class_id: int

class CartItemOut(CamelModel):
    id: int
    class_id: int
    user_mail: str
    date: datetime | None = None


# --- payments

class PaymentIntentReq(BaseModel):
    price: float = Field(gt=0)

class PaymentIntentResp(CamelModel):
    client_secret: str

class PaymentInfoReq(CamelModel):
    user_email: EmailStr | None = None
    classes_id: list[int] | None = None
    class_id: int | None = None
    transaction_id: str = Field(min_length=1)
    price: float = Field(default=0.0, ge=0)
    quantity: int | None = Field(default=None, ge=1)
    payment_status: str = "succeeded"
    date: datetime | None = None

class EnrollmentResp(CamelModel):
    enrollment_id: int
    payment_id: int
    class_ids: list[int]
    cart_items_removed: int

class PaymentOut(CamelModel):
    id: int
    user_email: str
    class_ids: list[int]
    transaction_id: str
    price: float
    quantity: int | None = None
    payment_status: str
    date: datetime | None = None

class PaymentCount(BaseModel):
    total: int


# --- enrollment / stats

class PopularInstructorOut(CamelModel):
    email: str
    instructor: str | None = None
    photo_url: str | None = None
    total_enrolled: int

class EnrolledClassOut(BaseModel):
    classes: ClassOut
    instructor: UserOut | None = None

class AdminStats(CamelModel):
    approved_classes: int
    pending_classes: int
    instructors: int
    total_classes: int
    total_enrolled: int


# --- instructor applications

class ApplicationCreate(BaseModel):
    email: EmailStr
    name: str | None = None
    experience: str | None = None

class ApplicationOut(CamelModel):
    id: int
    email: str
    name: str | None = None
    experience: str | None = None
    date: datetime | None = None
