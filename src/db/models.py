# provide dataclass models

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class User:
    uid: int
    email: Optional[str]  # None for anonymous identities
    is_anonymous: bool
    created_at: datetime


@dataclass(frozen=True)
class Session:
    token: str
    uid: int
    start_time: datetime
    end_time: Optional[datetime] = None


@dataclass(frozen=True)
class RoleGrant:
    uid: int
    role: str  # only "admin" exists


@dataclass(frozen=True)
class Product:
    pid: int
    name: str
    price: float
    image: str
    available: bool = True


@dataclass(frozen=True)
class Order:
    ono: int
    buyer_name: str
    class_label: str
    student_number: str
    pid: Optional[int]  # None once the product is deleted
    product_name: str  # name at time of purchase
    price: float  # price at time of purchase
    created_at: datetime
    uid: Optional[int] = None
