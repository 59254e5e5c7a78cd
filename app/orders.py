import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from app import metrics
from app.auth import Principal, require_admin, require_authenticated
from app.errors import Forbidden, NotFound, ValidationError
from app.store import ORDERS, RecordStore

logger = logging.getLogger(__name__)

INITIAL_STATUS = "Processing"


class OrderLedger:
    def __init__(self, store: RecordStore):
        self.store = store

    def create_order(
        self,
        principal: Optional[Principal],
        items: Any,
        total_amount: Any,
        address: Optional[str],
        phone: Optional[str],
        payment_method: Optional[str],
    ) -> dict:
        principal = require_authenticated(principal)
        if not items or not total_amount or not address or not phone or not payment_method:
            raise ValidationError("items, total_amount, address, phone and payment_method are required")

        order = self.store.append(ORDERS, {
            "user_id": principal.id,
            "items": items,
            "total_amount": total_amount,
            "address": address,
            "phone": phone,
            "payment_method": payment_method,
            "status": INITIAL_STATUS,
            "created_at": datetime.now(timezone.utc).isoformat(),
        })
        metrics.orders_created.inc()
        logger.info("order %s created for user %s", order["id"], principal.id)
        return order

    def get_order(self, order_id: str, principal: Optional[Principal]) -> dict:
        principal = require_authenticated(principal)
        order = self.store.find_by_id(ORDERS, order_id)
        if order is None:
            raise NotFound("Order not found")

        if not principal.is_admin and order["user_id"] != principal.id:
            logger.warning("user %s denied access to order %s", principal.id, order_id)
            raise Forbidden("Order does not belong to user")
        return order

    def list_orders_for_user(self, principal: Optional[Principal]) -> List[dict]:
        principal = require_authenticated(principal)
        return [o for o in self.store.load_all(ORDERS) if o["user_id"] == principal.id]

    def list_all_orders(self, principal: Optional[Principal]) -> List[dict]:
        require_admin(principal)
        return self.store.load_all(ORDERS)

    def set_order_status(self, order_id: str, new_status: Optional[str], principal: Optional[Principal]) -> dict:
        principal = require_admin(principal)
        if not new_status:
            raise ValidationError("New status is required")

        # any non-empty status is accepted; no transition graph
        try:
            order = self.store.replace(ORDERS, order_id, {"status": new_status})
        except NotFound:
            raise NotFound("Order not found") from None

        metrics.order_status_changes.labels(status=new_status).inc()
        logger.info("order %s set to %r by admin %s", order_id, new_status, principal.id)
        return order
