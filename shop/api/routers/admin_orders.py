# shop/api/routers/admin_orders.py
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from shop.api.errors import domain_errors
from shop.api.providers import get_order_service, require_admin
from shop.data.models.user import UserModel
from shop.domain.order_status import OrderStatus
from shop.domain.schemas import (
    CancelIn,
    OrderListOut,
    OrderOut,
    OrderStatsOut,
    PaymentUpdateIn,
    ShippingUpdateIn,
    StatusUpdateIn,
)
from shop.services.order_service import OrderService

# user_id w query = admin wykonujacy operacje
router = APIRouter(prefix="/admin/orders", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("", response_model=OrderListOut)
def list_all_orders(
    status: OrderStatus | None = None,
    search: str | None = Query(None, max_length=50),
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(
        page=page,
        limit=limit,
        status=status.value if status else None,
        start=start_date,
        end=end_date,
        search=search,
    )


@router.get("/stats", response_model=OrderStatsOut)
def admin_order_stats(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    svc: OrderService = Depends(get_order_service),
):
    return svc.order_stats(start=start_date, end=end_date, with_daily=True)


@router.get("/{order_id}", response_model=OrderOut)
def get_any_order(order_id: int, svc: OrderService = Depends(get_order_service)):
    with domain_errors():
        return svc.get_order(order_id)


@router.put("/{order_id}/status", response_model=OrderOut)
def update_order_status(order_id: int, payload: StatusUpdateIn, svc: OrderService = Depends(get_order_service)):
    with domain_errors():
        return svc.update_order_status(order_id, payload.status.value, note=payload.note)


@router.put("/{order_id}/shipping", response_model=OrderOut)
def update_shipping_info(order_id: int, payload: ShippingUpdateIn, svc: OrderService = Depends(get_order_service)):
    with domain_errors():
        return svc.update_shipping_info(order_id, payload.tracking_number, payload.carrier)


@router.put("/{order_id}/payment", response_model=OrderOut)
def update_payment_info(order_id: int, payload: PaymentUpdateIn, svc: OrderService = Depends(get_order_service)):
    with domain_errors():
        return svc.update_payment_info(order_id, payload.status.value, payload.transaction_id)


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_any_order(
    order_id: int,
    payload: CancelIn | None = None,
    admin: UserModel = Depends(require_admin),
    svc: OrderService = Depends(get_order_service),
):
    with domain_errors():
        return svc.cancel_order(order_id, admin.id, is_admin=True, reason=payload.reason if payload else None)
