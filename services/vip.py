import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from models import Transaction, User, VipConfig, VipOrder, OrderStatus
from services.wallet import (
    TRANSACTIONS,
    USERS,
    InsufficientBalanceError,
    ValidationError,
    record_transaction,
)

logger = logging.getLogger(__name__)

VIP_CONFIG = "vip_config"
VIP_ORDERS = "vip_orders"

# Orders a customer without an active VIP tier may take per day
DEFAULT_DAILY_TASK_LIMIT = 5

DEFAULT_VIP_LEVELS = [
    VipConfig(level=1, name="青铜会员", price=Decimal("0"), duration=30, task_bonus=20,
              withdraw_fee=Decimal("0.5"), daily_task_limit=10, priority_support=True,
              benefits=["任务奖励+20%", "每日10个任务", "提现手续费0.5%", "优先客服支持"]),
    VipConfig(level=2, name="白银会员", price=Decimal("99"), duration=30, task_bonus=30,
              withdraw_fee=Decimal("0.3"), daily_task_limit=15, priority_support=True,
              benefits=["任务奖励+30%", "每日15个任务", "提现手续费0.3%", "优先客服支持", "专属任务池"]),
    VipConfig(level=3, name="黄金会员", price=Decimal("299"), duration=30, task_bonus=50,
              withdraw_fee=Decimal("0.2"), daily_task_limit=20, priority_support=True,
              benefits=["任务奖励+50%", "每日20个任务", "提现手续费0.2%", "专属客服经理",
                        "高价值任务优先", "每月额外奖励"]),
    VipConfig(level=4, name="铂金会员", price=Decimal("599"), duration=30, task_bonus=80,
              withdraw_fee=Decimal("0.1"), daily_task_limit=30, priority_support=True,
              benefits=["任务奖励+80%", "每日30个任务", "提现手续费0.1%", "专属客服经理",
                        "独家高价值任务", "每月丰厚奖励", "生日特别礼品"]),
    VipConfig(level=5, name="钻石会员", price=Decimal("1299"), duration=30, task_bonus=100,
              withdraw_fee=Decimal("0"), daily_task_limit=50, priority_support=True,
              benefits=["任务奖励+100%", "每日50个任务", "免费提现", "专属客服团队",
                        "顶级独家任务", "每月超值奖励", "专属活动邀请", "年度豪华礼品"]),
]


def active_vip_level(user, now=None):
    """The user's VIP level, or 0 once the membership has expired."""
    now = now or datetime.now()
    if user.vip_level > 0 and user.vip_expire_at is not None and user.vip_expire_at <= now:
        return 0
    return user.vip_level


def daily_task_limit(user, levels, now=None):
    level = active_vip_level(user, now)
    config = next((v for v in levels if v.level == level), None)
    if config is None or config.daily_task_limit <= 0:
        return DEFAULT_DAILY_TASK_LIMIT
    return config.daily_task_limit


class VipService:

    def __init__(self, store):
        self.store = store

    def levels(self):
        with self.store.lock(VIP_CONFIG):
            levels = self.store.load(VIP_CONFIG, VipConfig)
            if not levels:
                levels = list(DEFAULT_VIP_LEVELS)
                self.store.save(VIP_CONFIG, levels)
                logger.info("Seeded default VIP levels")
        return sorted(levels, key=lambda v: v.level)

    def upgrade(self, user_id, target_level):
        try:
            target_level = int(target_level)
        except (TypeError, ValueError):
            raise ValidationError("Invalid VIP level")

        target = next((v for v in self.levels() if v.level == target_level), None)
        if target is None:
            raise ValidationError("VIP level does not exist")

        with self.store.lock(USERS, VIP_ORDERS, TRANSACTIONS):
            users = self.store.load(USERS, User)
            user = next((u for u in users if u.id == user_id and u.is_active), None)
            if user is None:
                raise ValidationError("User not found")
            if target_level <= user.vip_level:
                raise ValidationError("Can only upgrade to a higher level")
            if user.current_balance < target.price:
                raise InsufficientBalanceError("Insufficient balance")

            from_level = user.vip_level
            now = datetime.now()
            user.current_balance -= target.price
            user.vip_level = target_level
            user.vip_expire_at = now + timedelta(days=target.duration)

            orders = self.store.load(VIP_ORDERS, VipOrder)
            order = VipOrder(
                id=str(uuid.uuid4()),
                user_id=user_id,
                from_level=from_level,
                to_level=target_level,
                price=target.price,
                duration=target.duration,
                status=OrderStatus.COMPLETED.value,
                created_at=now,
            )
            orders.append(order)

            transactions = self.store.load(TRANSACTIONS, Transaction)
            record_transaction(
                transactions, user, "vip_upgrade", -target.price, order.id,
                f"VIP upgrade to level {target_level}",
            )
            self.store.save(USERS, users)
            self.store.save(VIP_ORDERS, orders)
            self.store.save(TRANSACTIONS, transactions)

        logger.info(f"User {user_id} upgraded VIP {from_level} -> {target_level}")
        return order, user.vip_expire_at

    def orders(self, user_id):
        orders = [o for o in self.store.load(VIP_ORDERS, VipOrder) if o.user_id == user_id]
        return sorted(orders, key=lambda o: o.created_at or datetime.min, reverse=True)
