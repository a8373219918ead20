# src/db/crud.py
from __future__ import annotations

import hashlib
import hmac
import math
import re
import secrets
import unicodedata
from datetime import datetime
from typing import Any, List, Optional

from db import models
from db.database import connect, from_ts, to_ts
from utils import config
from utils.errors import RateLimitError, ValidationError
from utils.logger import get_logger

_logger = get_logger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PBKDF2_ITERATIONS = 120_000
MIN_PASSWORD_LENGTH = 6
MAX_PRODUCT_NAME_LENGTH = 100


def _to_int(val) -> Optional[int]:
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


# ---------------------------
# Auth & Registration
# ---------------------------


def _hash_password(pwd: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", pwd.encode("utf-8"), bytes.fromhex(salt), _PBKDF2_ITERATIONS
    )
    return f"pbkdf2_sha256${_PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def _verify_password(pwd: str, stored: Optional[str]) -> bool:
    if not stored:
        return False
    try:
        _, iterations, salt, expected = stored.split("$")
        digest = hashlib.pbkdf2_hmac(
            "sha256", pwd.encode("utf-8"), bytes.fromhex(salt), int(iterations)
        )
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), expected)


def _row_to_user(row) -> models.User:
    return models.User(
        uid=int(row[0]),
        email=row[1],
        is_anonymous=bool(row[2]),
        created_at=from_ts(row[3]),
    )


def _row_to_session(row) -> models.Session:
    return models.Session(
        token=row[0],
        uid=int(row[1]),
        start_time=from_ts(row[2]),
        end_time=from_ts(row[3]),
    )


async def email_available(email: str) -> bool:
    """True if no user already registered with the given email."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT 1 FROM users WHERE email = ? LIMIT 1;",
            (email.strip().lower(),),
        )
        row = await cur.fetchone()
        await cur.close()
        return row is None


async def sign_up(email: str, pwd: str, when: Optional[datetime] = None) -> models.User:
    """
    Register a new (non-admin) account and return it.
    Raises ValidationError for a malformed or taken email, or a short password.
    """
    email = (email or "").strip().lower()
    if not _EMAIL_PATTERN.match(email):
        raise ValidationError("Enter a valid email address.", field="email")
    if len(pwd or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
            field="password",
        )
    if not await email_available(email):
        raise ValidationError("Email already taken.", field="email")

    when = when or datetime.now()
    async with connect() as conn:
        cur = await conn.execute(
            "INSERT INTO users(email, pwd_hash, is_anonymous, created_at) VALUES (?, ?, 0, ?);",
            (email, _hash_password(pwd), to_ts(when)),
        )
        uid = cur.lastrowid
        await cur.close()
        await conn.commit()
    _logger.info(f"Registered user {uid} ({email})")
    return models.User(uid=uid, email=email, is_anonymous=False, created_at=from_ts(to_ts(when)))


async def _start_session(conn, uid: int, when: datetime) -> models.Session:
    token = secrets.token_urlsafe(32)
    await conn.execute(
        "INSERT INTO sessions(token, uid, start_time, end_time) VALUES (?, ?, ?, NULL);",
        (token, uid, to_ts(when)),
    )
    return models.Session(token=token, uid=uid, start_time=from_ts(to_ts(when)))


async def sign_in(
    email: str, pwd: str, when: Optional[datetime] = None
) -> Optional[models.Session]:
    """Return a new Session if email/password match; otherwise None."""
    email = (email or "").strip().lower()
    when = when or datetime.now()
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT uid, pwd_hash FROM users WHERE email = ? AND is_anonymous = 0;",
            (email,),
        )
        row = await cur.fetchone()
        await cur.close()
        if not row or not _verify_password(pwd or "", row[1]):
            return None
        session = await _start_session(conn, int(row[0]), when)
        await conn.commit()
    _logger.info(f"User {session.uid} signed in")
    return session


async def sign_in_anonymously(when: Optional[datetime] = None) -> models.Session:
    """Create an anonymous identity and a session for it."""
    when = when or datetime.now()
    async with connect() as conn:
        cur = await conn.execute(
            "INSERT INTO users(email, pwd_hash, is_anonymous, created_at) VALUES (NULL, NULL, 1, ?);",
            (to_ts(when),),
        )
        uid = cur.lastrowid
        await cur.close()
        session = await _start_session(conn, uid, when)
        await conn.commit()
    _logger.debug(f"Anonymous identity {uid} created")
    return session


async def sign_out(token: str, when: Optional[datetime] = None) -> None:
    """Set sessions.end_time for the given token."""
    when = when or datetime.now()
    async with connect() as conn:
        await conn.execute(
            "UPDATE sessions SET end_time = ? WHERE token = ? AND end_time IS NULL;",
            (to_ts(when), token),
        )
        await conn.commit()


async def get_session(token: str) -> Optional[models.Session]:
    """Return the session for a token if it is still active."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT token, uid, start_time, end_time FROM sessions WHERE token = ? AND end_time IS NULL;",
            (token,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_session(row) if row else None


async def get_user(uid: int) -> Optional[models.User]:
    """Return a User object for the given uid, or None if not found."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT uid, email, is_anonymous, created_at FROM users WHERE uid = ?;",
            (uid,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_user(row) if row else None


async def get_role_grant(uid: int, role: str = "admin") -> Optional[models.RoleGrant]:
    """Single-row lookup of a role grant."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT uid, role FROM user_roles WHERE uid = ? AND role = ? LIMIT 1;",
            (uid, role),
        )
        row = await cur.fetchone()
        await cur.close()
    return models.RoleGrant(uid=int(row[0]), role=row[1]) if row else None


async def grant_role(uid: int, role: str = "admin") -> None:
    async with connect() as conn:
        await conn.execute(
            "INSERT OR IGNORE INTO user_roles(uid, role) VALUES (?, ?);", (uid, role)
        )
        await conn.commit()


async def ensure_admin(email: str, pwd: str) -> models.User:
    """
    Idempotent admin bootstrap: create the account if missing, otherwise reset
    its password, then make sure it holds the admin grant.
    """
    email = email.strip().lower()
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT uid, email, is_anonymous, created_at FROM users WHERE email = ?;",
            (email,),
        )
        row = await cur.fetchone()
        await cur.close()
        if row:
            await conn.execute(
                "UPDATE users SET pwd_hash = ? WHERE uid = ?;",
                (_hash_password(pwd), row[0]),
            )
            await conn.commit()
            user = _row_to_user(row)
    if not row:
        user = await sign_up(email, pwd)
    await grant_role(user.uid, "admin")
    _logger.info(f"Admin ensured: {email}")
    return user


# ---------------------------
# Products
# ---------------------------

_PRODUCT_COLUMNS = "pid, name, price, image, available"


def _row_to_product(row) -> models.Product:
    return models.Product(
        pid=int(row[0]),
        name=row[1],
        price=float(row[2]),
        image=row[3],
        available=bool(row[4]),
    )


def _clean_name(name: Any) -> str:
    name = str(name or "").strip()
    if not name:
        raise ValidationError("Product name is required.", field="name")
    if any(unicodedata.category(ch) == "Cc" for ch in name):
        raise ValidationError(
            "Product name cannot contain line breaks, tabs or other control characters.",
            field="name",
        )
    if len(name) > MAX_PRODUCT_NAME_LENGTH:
        raise ValidationError(
            f"Product name must be at most {MAX_PRODUCT_NAME_LENGTH} characters.",
            field="name",
        )
    return name


def _clean_price(price: Any) -> float:
    if isinstance(price, bool) or price is None or price == "":
        raise ValidationError("Price is required.", field="price")
    try:
        value = float(price)
    except (TypeError, ValueError):
        raise ValidationError("Price must be a number.", field="price") from None
    if not math.isfinite(value) or value <= 0:
        raise ValidationError("Price must be a positive number.", field="price")
    return value


def _clean_image(image: Any) -> str:
    image = str(image or "").strip()
    return image or config.PLACEHOLDER_IMAGE


async def list_available_products() -> List[models.Product]:
    """Products shown in the catalog, ordered by pid."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE available = 1 ORDER BY pid;"
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_product(row) for row in rows]


async def list_products() -> List[models.Product]:
    """All products, including unavailable ones, ordered by pid."""
    async with connect() as conn:
        cur = await conn.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products ORDER BY pid;")
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_product(row) for row in rows]


async def get_product(pid: int) -> Optional[models.Product]:
    """Fetch a product by pid."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE pid = ?;", (pid,)
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_product(row) if row else None


async def add_product(
    name: str, price: Any, image: Optional[str] = None, available: bool = True
) -> models.Product:
    """Insert a product; name and a positive price are required."""
    name = _clean_name(name)
    price = _clean_price(price)
    image = _clean_image(image)
    async with connect() as conn:
        cur = await conn.execute(
            "INSERT INTO products(name, price, image, available) VALUES (?, ?, ?, ?);",
            (name, price, image, int(bool(available))),
        )
        pid = cur.lastrowid
        await cur.close()
        await conn.commit()
    _logger.info(f"Product {pid} added: {name} @ {price}")
    return models.Product(pid=pid, name=name, price=price, image=image, available=bool(available))


async def update_product(pid: int, **fields: Any) -> Optional[models.Product]:
    """
    Update any of name/price/image/available. Return the updated product, or
    None if it does not exist. Unknown fields are rejected.
    """
    cleaners = {
        "name": _clean_name,
        "price": _clean_price,
        "image": _clean_image,
        "available": lambda v: int(bool(v)),
    }
    unknown = set(fields) - set(cleaners)
    if unknown:
        raise ValidationError(
            f"Unknown product field(s): {', '.join(sorted(unknown))}.",
            field=sorted(unknown)[0],
        )
    updates = {k: cleaners[k](v) for k, v in fields.items()}

    if updates:
        # column names come from the whitelist above
        assignments = ", ".join(f"{k} = ?" for k in updates)
        async with connect() as conn:
            res = await conn.execute(
                f"UPDATE products SET {assignments} WHERE pid = ?;",
                (*updates.values(), pid),
            )
            await conn.commit()
            if res.rowcount == 0:
                return None
        _logger.info(f"Product {pid} updated: {', '.join(updates)}")
    return await get_product(pid)


async def delete_product(pid: int) -> bool:
    """Delete a product. Orders keep their copied name/price; their pid becomes NULL."""
    async with connect() as conn:
        res = await conn.execute("DELETE FROM products WHERE pid = ?;", (pid,))
        await conn.commit()
        deleted = res.rowcount > 0
    if deleted:
        _logger.info(f"Product {pid} deleted")
    return deleted


# ---------------------------
# Checkout & Orders
# ---------------------------

_ORDER_COLUMNS = (
    "ono, buyer_name, class, student_number, pid, product_name, price, created_at, uid"
)


def _row_to_order(row) -> models.Order:
    return models.Order(
        ono=int(row[0]),
        buyer_name=row[1],
        class_label=row[2],
        student_number=row[3],
        pid=_to_int(row[4]),
        product_name=row[5],
        price=float(row[6]),
        created_at=from_ts(row[7]),
        uid=_to_int(row[8]),
    )


def purchase_wait(last_purchase: Optional[datetime], when: datetime, min_interval: int) -> int:
    """Whole seconds until the next purchase is allowed, 0 if it is allowed now."""
    if last_purchase is None:
        return 0
    elapsed = (when - last_purchase).total_seconds()
    if elapsed >= min_interval:
        return 0
    return max(1, min(min_interval, math.ceil(min_interval - elapsed)))


async def last_purchase_time(uid: int) -> Optional[datetime]:
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT last_purchase FROM purchase_throttle WHERE uid = ?;", (uid,)
        )
        row = await cur.fetchone()
        await cur.close()
    return from_ts(row[0]) if row else None


async def place_order(
    uid: int,
    pid: int,
    buyer_name: str,
    class_label: str,
    student_number: str,
    when: datetime,
    min_interval: int,
) -> models.Order:
    """
    Insert one order for an available product, copying its current name and
    price. Raises RateLimitError if the identity's previous purchase is less
    than min_interval seconds old. Throttle check, insert and throttle update
    share one commit.
    """
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT name, price FROM products WHERE pid = ? AND available = 1;", (pid,)
        )
        prod_row = await cur.fetchone()
        await cur.close()
        if not prod_row:
            raise ValidationError("This product is no longer available.", field="product")

        cur = await conn.execute(
            "SELECT last_purchase FROM purchase_throttle WHERE uid = ?;", (uid,)
        )
        throttle_row = await cur.fetchone()
        await cur.close()
        last_purchase = from_ts(throttle_row[0]) if throttle_row else None
        wait = purchase_wait(last_purchase, when, min_interval)
        if wait:
            raise RateLimitError(wait)

        product_name, price = prod_row[0], float(prod_row[1])
        cur = await conn.execute(
            """
            INSERT INTO orders(buyer_name, class, student_number, pid, product_name, price, created_at, uid)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (buyer_name, class_label, student_number, pid, product_name, price, to_ts(when), uid),
        )
        ono = cur.lastrowid
        await cur.close()
        await conn.execute(
            """
            INSERT INTO purchase_throttle(uid, last_purchase) VALUES (?, ?)
            ON CONFLICT(uid) DO UPDATE SET last_purchase = excluded.last_purchase;
            """,
            (uid, to_ts(when, timespec="microseconds")),
        )
        await conn.commit()

    _logger.info(f"Order {ono} placed: {product_name} for {buyer_name} ({class_label})")
    return models.Order(
        ono=ono,
        buyer_name=buyer_name,
        class_label=class_label,
        student_number=student_number,
        pid=pid,
        product_name=product_name,
        price=price,
        created_at=from_ts(to_ts(when)),
        uid=uid,
    )


async def list_orders() -> List[models.Order]:
    """All orders, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ORDER_COLUMNS} FROM orders ORDER BY created_at DESC, ono DESC;"
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_order(row) for row in rows]


async def get_order(ono: int) -> Optional[models.Order]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_ORDER_COLUMNS} FROM orders WHERE ono = ?;", (ono,)
        )
        row = await cur.fetchone()
        await cur.close()
    return _row_to_order(row) if row else None


async def delete_order(ono: int) -> bool:
    async with connect() as conn:
        res = await conn.execute("DELETE FROM orders WHERE ono = ?;", (ono,))
        await conn.commit()
        deleted = res.rowcount > 0
    if deleted:
        _logger.info(f"Order {ono} deleted")
    return deleted
