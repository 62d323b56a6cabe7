#=======================================================================================================
# Wallet: recharge orders, withdraw orders and the balance ledger
#=======================================================================================================
import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_DOWN

from models import RechargeOrder, Transaction, User, WithdrawOrder, PaymentStatus
from utils import generate_order_id, paginate, to_decimal

logger = logging.getLogger(__name__)

USERS = "users"
TRANSACTIONS = "transactions"
RECHARGE_ORDERS = "recharge_orders"
WITHDRAW_ORDERS = "withdraw_orders"
RECHARGE_CONFIG = "recharge_config"
WITHDRAW_CONFIG = "withdraw_config"

RECHARGE_EXPIRY = timedelta(hours=24)
CENT = Decimal("0.01")

# ==========================================================
#                  DEFAULT CONFIGURATION
# ==========================================================
DEFAULT_RECHARGE_CONFIG = {
    "methods": [
        {
            "id": "bank",
            "name": "Bank transfer",
            "icon": "credit-card",
            "minAmount": 10,
            "maxAmount": 50000,
            "fee": 0,
            "feeType": "fixed",
            "isEnabled": True,
            "description": "Arrives within 1-3 working days",
        },
        {
            "id": "alipay",
            "name": "Alipay transfer",
            "icon": "smartphone",
            "minAmount": 1,
            "maxAmount": 10000,
            "fee": 0,
            "feeType": "fixed",
            "isEnabled": True,
            "description": "Arrives immediately",
        },
        {
            "id": "wechat",
            "name": "WeChat transfer",
            "icon": "message-circle",
            "minAmount": 1,
            "maxAmount": 10000,
            "fee": 0,
            "feeType": "fixed",
            "isEnabled": True,
            "description": "Arrives immediately",
        },
    ],
    "quickAmounts": [100, 200, 500, 1000, 2000, 5000],
    "notice": "Transfer exactly the order amount and put your user id in the transfer note.",
}

DEFAULT_WITHDRAW_CONFIG = {
    "minAmount": 100,
    "maxAmount": 50000,
    "dailyLimit": 100000,
    "fee": 5,
    "feeType": "fixed",
    "workingHours": "9:00-18:00 (working days)",
    "processingTime": "1-3 working days",
}


# ==========================================================
#                  EXCEPTIONS
# ==========================================================
class WalletError(Exception):
    """Base wallet exception"""
    status_code = 400


class ValidationError(WalletError):
    pass


class InsufficientBalanceError(WalletError):
    pass


class NotFoundError(WalletError):
    status_code = 404


class OrderNotFoundError(NotFoundError):
    pass


class InvalidOrderStateError(WalletError):
    pass


def calculate_fee(amount, fee, fee_type):
    fee = Decimal(str(fee))
    if fee_type == "percentage":
        return (amount * fee / Decimal("100")).quantize(CENT, rounding=ROUND_DOWN)
    return fee


def record_transaction(transactions, user, tx_type, amount, related_id, description):
    """Append a ledger entry reflecting the user's balance after the change."""
    entry = Transaction(
        id=str(uuid.uuid4()),
        user_id=user.id,
        type=tx_type,
        amount=amount,
        balance=user.current_balance,
        description=description,
        related_id=related_id,
        created_at=datetime.now(),
    )
    transactions.append(entry)
    return entry


class WalletService:

    def __init__(self, store):
        self.store = store

    # ==========================================================
    #                  CONFIGURATION
    # ==========================================================
    def _config(self, name, default):
        with self.store.lock(name):
            config = self.store.load_single(name)
            if config is None:
                config = default
                self.store.save_single(name, config)
                logger.info(f"Seeded default {name}")
        return config

    def recharge_config(self):
        return self._config(RECHARGE_CONFIG, DEFAULT_RECHARGE_CONFIG)

    def withdraw_config(self):
        return self._config(WITHDRAW_CONFIG, DEFAULT_WITHDRAW_CONFIG)

    def _load_user(self, users, user_id):
        user = next((u for u in users if u.id == user_id and u.is_active), None)
        if user is None:
            raise ValidationError("User not found")
        return user

    # ==========================================================
    #                  RECHARGE
    # ==========================================================
    def create_recharge(self, user_id, method_id, amount):
        amount = to_decimal(amount)
        if amount is None or amount <= 0:
            raise ValidationError("Recharge amount must be greater than 0")

        config = self.recharge_config()
        method = next((m for m in config.get("methods", []) if m.get("id") == method_id), None)
        if method is None or not method.get("isEnabled", False):
            raise ValidationError("Recharge method is not available")

        min_amount = Decimal(str(method.get("minAmount", 0)))
        max_amount = Decimal(str(method.get("maxAmount", 0)))
        if amount < min_amount or amount > max_amount:
            raise ValidationError(f"Recharge amount must be between {min_amount} and {max_amount}")

        fee = calculate_fee(amount, method.get("fee", 0), method.get("feeType", "fixed"))

        with self.store.lock(USERS, RECHARGE_ORDERS):
            self._load_user(self.store.load(USERS, User), user_id)
            orders = self.store.load(RECHARGE_ORDERS, RechargeOrder)
            now = datetime.now()
            order = RechargeOrder(
                id=generate_order_id("R"),
                user_id=user_id,
                method_id=method_id,
                method_name=method.get("name", ""),
                amount=amount,
                fee=fee,
                actual_amount=amount + fee,
                status=PaymentStatus.PENDING.value,
                created_at=now,
                expired_at=now + RECHARGE_EXPIRY,
            )
            orders.append(order)
            self.store.save(RECHARGE_ORDERS, orders)

        logger.info(f"Recharge order {order.id} created for user {user_id}: {amount}")
        return order

    def _find(self, orders, order_id):
        order = next((o for o in orders if o.id == order_id), None)
        if order is None:
            raise OrderNotFoundError("Order not found")
        return order

    def confirm_recharge(self, order_id, user_id=None, proof="", remark=""):
        """User reports the transfer as made; pending orders move to processing."""
        with self.store.lock(RECHARGE_ORDERS):
            orders = self.store.load(RECHARGE_ORDERS, RechargeOrder)
            order = self._find(orders, order_id)
            if user_id is not None and order.user_id != user_id:
                raise OrderNotFoundError("Order not found")
            if order.status != PaymentStatus.PENDING.value:
                raise InvalidOrderStateError("Order status does not allow this operation")

            if order.expired_at and datetime.now() > order.expired_at:
                order.status = PaymentStatus.EXPIRED.value
                self.store.save(RECHARGE_ORDERS, orders)
                raise InvalidOrderStateError("Order has expired")

            order.status = PaymentStatus.PROCESSING.value
            order.payment_proof = proof or ""
            order.remark = remark or ""
            self.store.save(RECHARGE_ORDERS, orders)
        logger.info(f"Recharge order {order_id} confirmed")
        return order

    def approve_recharge(self, order_id, approved=True, remark=""):
        with self.store.lock(USERS, RECHARGE_ORDERS, TRANSACTIONS):
            orders = self.store.load(RECHARGE_ORDERS, RechargeOrder)
            order = self._find(orders, order_id)
            if order.status != PaymentStatus.PROCESSING.value:
                raise InvalidOrderStateError("Only orders awaiting review can be processed")

            order.completed_at = datetime.now()
            if remark:
                order.remark = remark
            if approved:
                users = self.store.load(USERS, User)
                user = self._load_user(users, order.user_id)
                user.current_balance += order.amount
                order.status = PaymentStatus.COMPLETED.value

                transactions = self.store.load(TRANSACTIONS, Transaction)
                record_transaction(
                    transactions, user, "recharge", order.amount, order.id,
                    f"Recharge {order.amount:.2f}",
                )
                self.store.save(USERS, users)
                self.store.save(TRANSACTIONS, transactions)
            else:
                order.status = PaymentStatus.REJECTED.value
            self.store.save(RECHARGE_ORDERS, orders)

        logger.info(f"Recharge order {order_id} -> {order.status}")
        return order

    def cancel_recharge(self, order_id, user_id=None):
        with self.store.lock(RECHARGE_ORDERS):
            orders = self.store.load(RECHARGE_ORDERS, RechargeOrder)
            order = self._find(orders, order_id)
            if user_id is not None and order.user_id != user_id:
                raise OrderNotFoundError("Order not found")
            if order.status != PaymentStatus.PENDING.value:
                raise InvalidOrderStateError("Only pending orders can be cancelled")
            order.status = PaymentStatus.CANCELLED.value
            self.store.save(RECHARGE_ORDERS, orders)
        logger.info(f"Recharge order {order_id} cancelled")
        return order

    def list_recharges(self, user_id=None, status=None):
        orders = self.store.load(RECHARGE_ORDERS, RechargeOrder)
        if user_id is not None:
            orders = [o for o in orders if o.user_id == user_id]
        if status:
            orders = [o for o in orders if o.status == status]
        return sorted(orders, key=lambda o: o.created_at or datetime.min, reverse=True)

    # ==========================================================
    #                  WITHDRAW
    # ==========================================================
    @staticmethod
    def _validate_payout_account(payout_account):
        payout_account = payout_account or {}
        card_number = str(payout_account.get("cardNumber", "")).replace(" ", "").replace("-", "")
        if not card_number.isdigit() or not 13 <= len(card_number) <= 19:
            raise ValidationError("Invalid card number")
        card_holder = str(payout_account.get("cardHolder", "")).strip()
        bank_name = str(payout_account.get("bankName", "")).strip()
        if not card_holder or not bank_name:
            raise ValidationError("Bank name and card holder are required")
        return bank_name, card_number, card_holder

    def _withdrawn_today(self, orders, user_id):
        today = datetime.now().date()
        counted = (PaymentStatus.PENDING.value, PaymentStatus.APPROVED.value)
        return sum(
            (o.amount for o in orders
             if o.user_id == user_id and o.status in counted
             and o.created_at and o.created_at.date() == today),
            Decimal("0"),
        )

    def create_withdraw(self, user_id, amount, payout_account, remark=""):
        amount = to_decimal(amount)
        if amount is None or amount <= 0:
            raise ValidationError("Withdraw amount must be greater than 0")

        config = self.withdraw_config()
        min_amount = Decimal(str(config.get("minAmount", 0)))
        max_amount = Decimal(str(config.get("maxAmount", 0)))
        if amount < min_amount or amount > max_amount:
            raise ValidationError(f"Withdraw amount must be between {min_amount} and {max_amount}")

        bank_name, card_number, card_holder = self._validate_payout_account(payout_account)

        with self.store.lock(USERS, WITHDRAW_ORDERS, TRANSACTIONS):
            users = self.store.load(USERS, User)
            user = self._load_user(users, user_id)
            if user.current_balance < amount:
                raise InsufficientBalanceError("Insufficient balance")

            orders = self.store.load(WITHDRAW_ORDERS, WithdrawOrder)
            daily_limit = Decimal(str(config.get("dailyLimit", 0)))
            if self._withdrawn_today(orders, user_id) + amount > daily_limit:
                raise ValidationError(f"Daily withdraw limit of {daily_limit} exceeded")

            fee = calculate_fee(amount, config.get("fee", 0), config.get("feeType", "fixed"))

            user.current_balance -= amount
            user.frozen_amount += amount

            order = WithdrawOrder(
                id=generate_order_id("W"),
                user_id=user_id,
                bank_name=bank_name,
                card_number=card_number,
                card_holder=card_holder,
                amount=amount,
                fee=fee,
                actual_amount=amount - fee,
                status=PaymentStatus.PENDING.value,
                created_at=datetime.now(),
                remark=remark or "",
            )
            orders.append(order)

            transactions = self.store.load(TRANSACTIONS, Transaction)
            record_transaction(
                transactions, user, "withdraw_freeze", -amount, order.id,
                f"Withdraw request frozen {amount:.2f}",
            )
            self.store.save(USERS, users)
            self.store.save(WITHDRAW_ORDERS, orders)
            self.store.save(TRANSACTIONS, transactions)

        logger.info(f"Withdraw order {order.id} created for user {user_id}: {amount}")
        return order

    def approve_withdraw(self, order_id, approved=True, remark=""):
        with self.store.lock(USERS, WITHDRAW_ORDERS, TRANSACTIONS):
            orders = self.store.load(WITHDRAW_ORDERS, WithdrawOrder)
            order = self._find(orders, order_id)
            if order.status != PaymentStatus.PENDING.value:
                raise InvalidOrderStateError("Only pending orders can be processed")

            users = self.store.load(USERS, User)
            user = self._load_user(users, order.user_id)
            transactions = self.store.load(TRANSACTIONS, Transaction)

            user.frozen_amount -= order.amount
            if approved:
                order.status = PaymentStatus.APPROVED.value
                record_transaction(
                    transactions, user, "withdraw", -order.amount, order.id,
                    f"Withdraw paid out {order.actual_amount:.2f}",
                )
            else:
                user.current_balance += order.amount
                order.status = PaymentStatus.REJECTED.value
                record_transaction(
                    transactions, user, "withdraw_unfreeze", order.amount, order.id,
                    f"Withdraw rejected, {order.amount:.2f} returned",
                )
            order.processed_at = datetime.now()
            if remark:
                order.remark = remark

            self.store.save(USERS, users)
            self.store.save(WITHDRAW_ORDERS, orders)
            self.store.save(TRANSACTIONS, transactions)

        logger.info(f"Withdraw order {order_id} -> {order.status}")
        return order

    def cancel_withdraw(self, order_id, user_id):
        with self.store.lock(USERS, WITHDRAW_ORDERS, TRANSACTIONS):
            orders = self.store.load(WITHDRAW_ORDERS, WithdrawOrder)
            order = self._find(orders, order_id)
            if order.user_id != user_id:
                raise OrderNotFoundError("Order not found")
            if order.status != PaymentStatus.PENDING.value:
                raise InvalidOrderStateError("Only pending orders can be cancelled")

            users = self.store.load(USERS, User)
            user = self._load_user(users, user_id)
            user.frozen_amount -= order.amount
            user.current_balance += order.amount
            order.status = PaymentStatus.CANCELLED.value
            order.processed_at = datetime.now()

            transactions = self.store.load(TRANSACTIONS, Transaction)
            record_transaction(
                transactions, user, "withdraw_unfreeze", order.amount, order.id,
                f"Withdraw cancelled, {order.amount:.2f} returned",
            )
            self.store.save(USERS, users)
            self.store.save(WITHDRAW_ORDERS, orders)
            self.store.save(TRANSACTIONS, transactions)

        logger.info(f"Withdraw order {order_id} cancelled by user {user_id}")
        return order

    def list_withdraws(self, user_id=None, status=None, page=1, page_size=20):
        """Returns (page_of_orders, total_count), newest first."""
        orders = self.store.load(WITHDRAW_ORDERS, WithdrawOrder)
        if user_id is not None:
            orders = [o for o in orders if o.user_id == user_id]
        if status:
            orders = [o for o in orders if o.status == status]
        orders.sort(key=lambda o: o.created_at or datetime.min, reverse=True)
        return paginate(orders, page, page_size)

    # ==========================================================
    #                  LEDGER
    # ==========================================================
    def transactions(self, user_id):
        entries = [t for t in self.store.load(TRANSACTIONS, Transaction) if t.user_id == user_id]
        return sorted(entries, key=lambda t: t.created_at or datetime.min, reverse=True)
