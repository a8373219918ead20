"""
Checkout: validate the form, attach the client's buyer identity, write
exactly one order.
"""

from datetime import datetime
from typing import Optional

import db.crud as crud
from db.models import Order
from utils import config
from utils.state import AppState
from utils.validation import CheckoutRequest, validate_checkout


async def submit_checkout(
    state: AppState, request: CheckoutRequest, now: Optional[datetime] = None
) -> Order:
    """
    Place one order for the request.

    Nothing is written when validation fails. Every order belongs to the
    client's buyer identity, created on first purchase and reused across
    restarts, so the rate limit follows the client rather than the run.
    """
    form = validate_checkout(request)
    now = now or datetime.now()
    buyer = await state.ensure_buyer(now)
    return await crud.place_order(
        buyer.uid,
        form.pid,
        form.buyer_name,
        form.class_label,
        form.student_number,
        now,
        config.RATE_LIMIT_SECONDS,
    )


async def remaining_wait(state: AppState, now: Optional[datetime] = None) -> int:
    """Seconds this client must still wait before buying again, 0 if it may buy now."""
    buyer = await state.resume_buyer()
    if buyer is None:
        return 0
    last = await crud.last_purchase_time(buyer.uid)
    return crud.purchase_wait(last, now or datetime.now(), config.RATE_LIMIT_SECONDS)
