# shop/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shop.api.errors import domain_errors
from shop.data.database import get_db
from shop.domain.schemas import (
    ItemIn,
    ItemQuantityIn,
    CartOut,
    CheckoutPreviewOut,
)
from shop.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(user_id: int = Query(...), svc: CartService = Depends(get_service)):
    return svc.get_cart(user_id)


@router.post("/items", response_model=CartOut)
def add_item(payload: ItemIn, user_id: int = Query(...), svc: CartService = Depends(get_service)):
    with domain_errors():
        return svc.add_item(
            user_id=user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            size=payload.selected_size,
            color=payload.selected_color,
        )


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: ItemQuantityIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    with domain_errors():
        return svc.update_item_quantity(user_id, item_id, payload.quantity)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(item_id: int, user_id: int = Query(...), svc: CartService = Depends(get_service)):
    with domain_errors():
        return svc.remove_item(user_id, item_id)


@router.delete("", response_model=CartOut)
def clear_cart(user_id: int = Query(...), svc: CartService = Depends(get_service)):
    with domain_errors():
        return svc.clear(user_id)


@router.get("/checkout/preview", response_model=CheckoutPreviewOut)
def checkout_preview(user_id: int = Query(...), svc: CartService = Depends(get_service)):
    return svc.checkout_preview(user_id)
