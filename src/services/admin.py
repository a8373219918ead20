"""
Admin operations. Each one runs the admin guard before touching the store,
so a non-admin session never reads or writes management data.
"""

from typing import Any, List, Optional, Tuple

import db.crud as crud
from db.models import Order, Product
from services.ledger import LedgerStats, compute_stats
from utils.state import AppState


async def load_products(state: AppState) -> List[Product]:
    await state.require_admin()
    return await crud.list_products()


async def add_product(
    state: AppState,
    name: str,
    price: Any,
    image: Optional[str] = None,
    available: bool = True,
) -> Product:
    await state.require_admin()
    return await crud.add_product(name, price, image, available)


async def update_product(state: AppState, pid: int, **fields: Any) -> Optional[Product]:
    await state.require_admin()
    return await crud.update_product(pid, **fields)


async def delete_product(state: AppState, pid: int) -> bool:
    await state.require_admin()
    return await crud.delete_product(pid)


async def load_ledger(state: AppState) -> Tuple[List[Order], LedgerStats]:
    """Orders newest first, plus stats against the current product list."""
    await state.require_admin()
    orders = await crud.list_orders()
    products = await crud.list_products()
    return orders, compute_stats(orders, products)


async def get_order(state: AppState, ono: int) -> Optional[Order]:
    await state.require_admin()
    return await crud.get_order(ono)


async def delete_order(state: AppState, ono: int) -> bool:
    await state.require_admin()
    return await crud.delete_order(ono)
