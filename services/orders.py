import logging
from datetime import datetime
from decimal import Decimal

from models import Order, OrderStatus, Transaction, User
from services.invites import PAYOUT_COLLECTIONS, InviteService
from services.vip import VipService, daily_task_limit
from services.wallet import (
    TRANSACTIONS,
    USERS,
    OrderNotFoundError,
    ValidationError,
    record_transaction,
)
from utils import generate_order_id, to_decimal

logger = logging.getLogger(__name__)

ORDERS = "orders"
STATUSES = tuple(s.value for s in OrderStatus)


class OrderService:
    """Order pool: staff create orders; staff hand them out or customers take them."""

    def __init__(self, store):
        self.store = store
        self.invites = InviteService(store)
        self.vip = VipService(store)

    def create(self, product_name, amount, commission, platform="", description="",
               created_by="", created_by_name=""):
        amount = to_decimal(amount)
        commission = to_decimal(commission)
        if not product_name:
            raise ValidationError("Product name is required")
        if amount is None or amount <= 0:
            raise ValidationError("Amount must be greater than 0")
        if commission is None or commission < 0:
            raise ValidationError("Commission must not be negative")

        with self.store.lock(ORDERS):
            orders = self.store.load(ORDERS, Order)
            now = datetime.now()
            order = Order(
                order_id=generate_order_id("O"),
                product_name=product_name,
                amount=amount,
                commission=commission,
                platform=platform or "",
                description=description or "",
                status=OrderStatus.PENDING.value,
                create_time=now,
                update_time=now,
                created_by=created_by or "",
                created_by_name=created_by_name or "",
            )
            orders.append(order)
            self.store.save(ORDERS, orders)

        logger.info(f"Order {order.order_id} added to pool by {created_by or 'system'}")
        return order

    def pool(self, assigned=None):
        orders = self.store.load(ORDERS, Order)
        if assigned is not None:
            orders = [o for o in orders if o.is_assigned == assigned]
        return sorted(orders, key=lambda o: o.create_time or datetime.min, reverse=True)

    def get(self, order_id):
        return next((o for o in self.store.load(ORDERS, Order) if o.order_id == order_id), None)

    @staticmethod
    def _hand_to(order, customer_id, customer_name, assigned_by, now):
        order.user_id = customer_id
        order.assigned_to = customer_id
        order.assigned_to_name = customer_name or ""
        order.assigned_by = assigned_by or ""
        order.is_assigned = True
        order.assigned_time = now
        order.update_time = now

    def assign(self, order_id, customer_id, customer_name="", assigned_by=""):
        with self.store.lock(ORDERS):
            orders = self.store.load(ORDERS, Order)
            order = next((o for o in orders if o.order_id == order_id), None)
            if order is None:
                raise OrderNotFoundError("Order not found")
            if order.is_assigned:
                raise ValidationError("Order is already assigned")

            self._hand_to(order, customer_id, customer_name, assigned_by, datetime.now())
            self.store.save(ORDERS, orders)

        logger.info(f"Order {order_id} assigned to {customer_id}")
        return order

    def for_user(self, user_id, status=None):
        orders = [o for o in self.store.load(ORDERS, Order) if o.user_id == user_id]
        if status:
            orders = [o for o in orders if o.status == status]
        return sorted(orders, key=lambda o: o.create_time or datetime.min, reverse=True)

    # ==========================================================
    #                  CUSTOMER SELF-SERVICE
    # ==========================================================
    def available(self, limit=10):
        """Unassigned pending orders, oldest first, and how many there are."""
        orders = sorted(
            (o for o in self.store.load(ORDERS, Order)
             if not o.is_assigned and o.status == OrderStatus.PENDING.value),
            key=lambda o: o.create_time or datetime.min,
        )
        return orders[:max(int(limit), 0)], len(orders)

    @staticmethod
    def _taken_today(orders, user_id, today):
        return [o for o in orders
                if o.user_id == user_id and o.assigned_time and o.assigned_time.date() == today]

    def _claim(self, user_id, pick, start):
        levels = self.vip.levels()
        with self.store.lock(ORDERS, USERS):
            user = next((u for u in self.store.load(USERS, User) if u.id == user_id and u.is_active), None)
            if user is None:
                raise ValidationError("User not found")

            orders = self.store.load(ORDERS, Order)
            now = datetime.now()
            limit = daily_task_limit(user, levels, now)
            if len(self._taken_today(orders, user_id, now.date())) >= limit:
                raise ValidationError("Daily task limit reached")

            order = pick(orders)
            self._hand_to(order, user_id, user.nickname, user_id, now)
            if start:
                order.status = OrderStatus.PROCESSING.value
                order.start_time = now
            self.store.save(ORDERS, orders)
        return order

    def grab(self, user_id):
        """Take the oldest open order from the pool, within the daily limit."""
        def pick(orders):
            open_orders = [o for o in orders
                           if not o.is_assigned and o.status == OrderStatus.PENDING.value]
            if not open_orders:
                raise ValidationError("No orders available")
            return min(open_orders, key=lambda o: o.create_time or datetime.min)

        order = self._claim(user_id, pick, start=False)
        logger.info(f"User {user_id} grabbed order {order.order_id}")
        return order

    def take(self, user_id, order_id):
        """Take one named open order and start working on it."""
        def pick(orders):
            order = next((o for o in orders if o.order_id == order_id), None)
            if order is None:
                raise OrderNotFoundError("Order not found")
            if order.is_assigned or order.status != OrderStatus.PENDING.value:
                raise ValidationError("Order has already been taken")
            return order

        order = self._claim(user_id, pick, start=True)
        logger.info(f"User {user_id} took order {order_id}")
        return order

    def today_stats(self, user_id):
        now = datetime.now()
        user = next((u for u in self.store.load(USERS, User) if u.id == user_id), None)
        limit = daily_task_limit(user, self.vip.levels(), now) if user else 0
        today = self._taken_today(self.store.load(ORDERS, Order), user_id, now.date())
        completed = [o for o in today if o.status == OrderStatus.COMPLETED.value]
        return {
            "grabbedCount": len(today),
            "takenCount": sum(1 for o in today if o.status != OrderStatus.PENDING.value),
            "completedCount": len(completed),
            "todayEarnings": float(sum((o.commission for o in completed), Decimal("0"))),
            "dailyLimit": limit,
            "remainingCount": max(0, limit - len(today)),
        }

    # ==========================================================
    #                  STATUS
    # ==========================================================
    def update_status(self, order_id, status):
        """Set any of the known statuses; the commission is paid on the first completion only."""
        if status not in STATUSES:
            raise ValidationError(f"Unknown status {status}")

        with self.store.lock(ORDERS, *PAYOUT_COLLECTIONS):
            orders = self.store.load(ORDERS, Order)
            order = next((o for o in orders if o.order_id == order_id), None)
            if order is None:
                raise OrderNotFoundError("Order not found")

            previous = order.status
            now = datetime.now()
            order.status = status
            order.update_time = now
            if status == OrderStatus.PROCESSING.value and order.start_time is None:
                order.start_time = now

            if status == OrderStatus.COMPLETED.value and order.completed_time is None:
                order.completed_time = now
                if order.user_id:
                    if order.commission > 0:
                        self._credit_commission(order)
                    self.invites.on_order_completed(order.user_id, order.commission, order.order_id)

            self.store.save(ORDERS, orders)

        logger.info(f"Order {order_id} status {previous} -> {status}")
        return order

    def _credit_commission(self, order):
        users = self.store.load(USERS, User)
        user = next((u for u in users if u.id == order.user_id), None)
        if user is None:
            logger.warning(f"Order {order.order_id} completed for unknown user {order.user_id}")
            return
        user.current_balance += order.commission
        transactions = self.store.load(TRANSACTIONS, Transaction)
        record_transaction(
            transactions, user, "commission", order.commission, order.order_id,
            f"Commission for order {order.order_id}",
        )
        self.store.save(USERS, users)
        self.store.save(TRANSACTIONS, transactions)

    def stats(self, user_id):
        orders = self.for_user(user_id)
        completed = [o for o in orders if o.status == OrderStatus.COMPLETED.value]
        today = datetime.now().date()
        return {
            "totalOrders": len(orders),
            "pendingOrders": sum(1 for o in orders if o.status == OrderStatus.PENDING.value),
            "processingOrders": sum(1 for o in orders if o.status == OrderStatus.PROCESSING.value),
            "completedOrders": len(completed),
            "cancelledOrders": sum(1 for o in orders if o.status == OrderStatus.CANCELLED.value),
            "totalEarnings": float(sum((o.commission for o in completed), Decimal("0"))),
            "todayEarnings": float(sum(
                (o.commission for o in completed
                 if o.completed_time and o.completed_time.date() == today),
                Decimal("0"),
            )),
        }
