"""
Shared API dependencies.

The sale lives on `app.state.sale`. When the application was created without
one, it is assembled from the environment on first use.
"""

import threading

from fastapi import Request

from services.purchase_service import TokenSale
from services.sale_factory import build_sale
from services.settings import load_sale_settings

_build_lock = threading.Lock()


def get_sale(request: Request) -> TokenSale:
    state = request.app.state
    sale = getattr(state, "sale", None)
    if sale is not None:
        return sale

    with _build_lock:
        sale = getattr(state, "sale", None)
        if sale is None:
            sale = build_sale(load_sale_settings())
            state.sale = sale
    return sale
