# shop/api/routers/orders.py
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from shop.api.errors import domain_errors
from shop.api.providers import get_order_service
from shop.domain.order_status import OrderStatus
from shop.domain.ports import PaymentAssertion
from shop.domain.schemas import PlaceOrderIn, OrderOut, OrderListOut, OrderStatsOut
from shop.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/from-cart", response_model=OrderOut, status_code=201)
def create_order_from_cart(
    payload: PlaceOrderIn,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_order_service),
):
    """
    Tworzy zamówienie z aktywnego koszyka.
    Dla card / kakao_pay / naver_pay wymagane potwierdzenie platnosci (imp_uid, merchant_uid).
    """
    payment = PaymentAssertion(payload.payment.imp_uid, payload.payment.merchant_uid) if payload.payment else None
    with domain_errors():
        return svc.place_order_from_cart(
            user_id=user_id,
            shipping_address=payload.shipping_address.model_dump(),
            payment_method=payload.payment_method.value,
            notes=payload.notes,
            payment=payment,
            shipping_method=payload.shipping_method,
        )


@router.get("", response_model=OrderListOut)
def list_orders(
    user_id: int = Query(...),
    status: OrderStatus | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(
        user_id=user_id,
        page=page,
        limit=limit,
        status=status.value if status else None,
        start=start_date,
        end=end_date,
    )


@router.get("/stats", response_model=OrderStatsOut)
def order_stats(
    user_id: int = Query(...),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    svc: OrderService = Depends(get_order_service),
):
    return svc.order_stats(user_id=user_id, start=start_date, end=end_date)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, user_id: int = Query(...), svc: OrderService = Depends(get_order_service)):
    """
    Pobiera szczegóły zamówienia.
    """
    with domain_errors():
        return svc.get_order(order_id, user_id)


@router.delete("/{order_id}", response_model=OrderOut)
def cancel_order(order_id: int, user_id: int = Query(...), svc: OrderService = Depends(get_order_service)):
    with domain_errors():
        return svc.cancel_order(order_id, user_id)
