# models.py - record types persisted as JSON documents
from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
import typing
from typing import List, Optional


# ===========================================================
# ENUM DEFINITIONS
# ===========================================================

class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PermissionLevel:
    SUPER_ADMIN = 0
    ADMIN = 1
    SALESPERSON = 2
    USER = 3


@dataclass
class AuthResult:
    """Outcome of an account flow. Failures carry a message, never raise."""
    success: bool
    message: str = ""
    token: Optional[str] = None
    user: Optional[dict] = None
    permission_level: Optional[int] = None
    redirect_url: Optional[str] = None

    @classmethod
    def fail(cls, message):
        return cls(success=False, message=message)

    def to_dict(self):
        result = {"success": self.success, "message": self.message}
        if self.token:
            result["token"] = self.token
        if self.user is not None:
            result["user"] = self.user
        if self.permission_level is not None:
            result["permissionLevel"] = self.permission_level
        if self.redirect_url:
            result["redirectUrl"] = self.redirect_url
        return result


# ===========================================================
# BASE MIXIN FOR JSON SERIALIZATION
# ===========================================================

def to_camel(name):
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _unwrap_optional(tp):
    if typing.get_origin(tp) is typing.Union:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


TRUE_STRINGS = ("true", "1", "yes", "on", "active", "enabled")


def _coerce(tp, raw):
    """Turn a raw JSON value into the annotated Python type."""
    if raw is None:
        return None
    tp = _unwrap_optional(tp)
    if tp is datetime:
        if isinstance(raw, datetime):
            return raw
        try:
            return datetime.fromisoformat(str(raw))
        except ValueError:
            return None
    if tp is Decimal:
        try:
            return Decimal(str(raw))
        except InvalidOperation:
            return Decimal("0")
    if tp is bool:
        if isinstance(raw, str):
            return raw.strip().lower() in TRUE_STRINGS
        return bool(raw)
    if tp is int:
        try:
            return int(raw)
        except (TypeError, ValueError):
            return 0
    if tp is str:
        return str(raw)
    return raw


def _dump(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


class JsonRecord:
    """Provides camelCase to_dict/from_dict to inheriting dataclasses."""

    @classmethod
    def from_dict(cls, data):
        hints = typing.get_type_hints(cls)
        kwargs = {}
        for f in fields(cls):
            key = to_camel(f.name)
            if key in data:
                raw = data[key]
            elif f.name in data:
                raw = data[f.name]
            else:
                continue
            value = _coerce(hints[f.name], raw)
            if value is None and typing.get_origin(hints[f.name]) is not typing.Union:
                continue
            kwargs[f.name] = value
        return cls(**kwargs)

    def to_dict(self):
        return {to_camel(f.name): _dump(getattr(self, f.name)) for f in fields(self)}


# ===========================================================
# USER MODELS
# ===========================================================

@dataclass
class User(JsonRecord):
    """Registered customer: identity, wallet state, VIP tier and referral linkage."""
    id: str = ""
    phone: str = ""
    password: str = ""
    nickname: str = ""
    current_balance: Decimal = Decimal("0")
    frozen_amount: Decimal = Decimal("0")
    credit_score: int = 100
    vip_level: int = 0
    vip_expire_at: Optional[datetime] = None
    invite_code_used: str = ""
    inviter_id: Optional[str] = None
    is_active: bool = True
    is_admin: bool = False
    register_time: Optional[datetime] = None
    last_login_time: Optional[datetime] = None
    user_type: str = "user"
    permission_level: int = PermissionLevel.USER

    # Profile
    avatar: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    country: str = ""
    city: str = ""
    state: str = ""
    address: str = ""
    zip_code: str = ""

    PROFILE_FIELDS = (
        "nickname", "avatar", "email", "first_name", "last_name",
        "country", "city", "state", "address", "zip_code",
    )

    def to_public_dict(self):
        """Serialize for API responses: no password, legacy aliases included."""
        result = self.to_dict()
        result["password"] = ""
        # Older clients read these names
        result["name"] = self.nickname
        result["nickName"] = self.nickname
        result["status"] = "active" if self.is_active else "inactive"
        result["availableBalance"] = float(self.current_balance)
        return result


@dataclass
class Admin(JsonRecord):
    id: str = ""
    username: str = ""
    phone: str = ""
    name: str = ""
    email: str = ""
    password: str = ""
    user_type: str = "admin"
    permission_level: int = PermissionLevel.ADMIN
    is_active: bool = True
    created_at: Optional[datetime] = None
    last_login_time: Optional[datetime] = None

    def to_public_dict(self):
        result = self.to_dict()
        result.pop("password", None)
        return result


@dataclass
class Agent(JsonRecord):
    """Salesperson account that owns an invite code and a customer roster."""
    id: str = ""
    nick_name: str = ""
    account: str = ""
    password: str = ""
    invite_code: str = ""
    customer_count: int = 0
    monthly_performance: Decimal = Decimal("0")
    invite_earnings: Decimal = Decimal("0")
    is_active: bool = True
    register_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_public_dict(self):
        result = self.to_dict()
        result.pop("password", None)
        return result


@dataclass
class CustomerAssignment(JsonRecord):
    id: str = ""
    customer_id: str = ""
    salesperson_id: str = ""
    assigned_at: Optional[datetime] = None


# ===========================================================
# BRANDING
# ===========================================================

@dataclass
class Logo(JsonRecord):
    id: int = 0
    type: str = "text"  # text, image, combined
    text: str = ""
    image_url: str = ""
    font_family: str = "Arial"
    font_size: int = 24
    color: str = "#007AFF"
    font_weight: int = 700
    text_effect: str = "none"  # none, shadow, stroke, gradient
    layout: str = "left-right"
    spacing: int = 8
    alignment: str = "center"
    width: int = 150
    height: int = 50
    is_active: bool = True
    created_time: Optional[datetime] = None
    updated_time: Optional[datetime] = None


@dataclass
class FontInfo(JsonRecord):
    name: str = ""
    display_name: str = ""
    category: str = ""  # chinese, english, artistic
    is_available: bool = True


# ===========================================================
# WALLET & TRANSACTIONS
# ===========================================================

@dataclass
class Transaction(JsonRecord):
    id: str = ""
    user_id: str = ""
    type: str = ""  # recharge, withdraw_freeze, withdraw, withdraw_unfreeze, vip_upgrade, commission
    amount: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    status: str = "completed"
    description: str = ""
    related_id: str = ""
    created_at: Optional[datetime] = None


@dataclass
class RechargeOrder(JsonRecord):
    id: str = ""
    user_id: str = ""
    method_id: str = ""
    method_name: str = ""
    amount: Decimal = Decimal("0")
    fee: Decimal = Decimal("0")
    actual_amount: Decimal = Decimal("0")
    status: str = PaymentStatus.PENDING.value
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    payment_proof: str = ""
    remark: str = ""


@dataclass
class WithdrawOrder(JsonRecord):
    id: str = ""
    user_id: str = ""
    bank_name: str = ""
    card_number: str = ""
    card_holder: str = ""
    amount: Decimal = Decimal("0")
    fee: Decimal = Decimal("0")
    actual_amount: Decimal = Decimal("0")
    status: str = PaymentStatus.PENDING.value
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    remark: str = ""

    def to_public_dict(self):
        result = self.to_dict()
        if len(self.card_number) > 8:
            result["cardNumber"] = self.card_number[:4] + "****" + self.card_number[-4:]
        return result


# ===========================================================
# VIP
# ===========================================================

@dataclass
class VipConfig(JsonRecord):
    level: int = 0
    name: str = ""
    price: Decimal = Decimal("0")
    duration: int = 30  # days
    task_bonus: int = 0  # percent
    withdraw_fee: Decimal = Decimal("0")  # percent
    daily_task_limit: int = 0
    priority_support: bool = False
    benefits: List[str] = field(default_factory=list)


@dataclass
class VipOrder(JsonRecord):
    id: str = ""
    user_id: str = ""
    from_level: int = 0
    to_level: int = 0
    price: Decimal = Decimal("0")
    duration: int = 0
    status: str = OrderStatus.COMPLETED.value
    created_at: Optional[datetime] = None


# ===========================================================
# ORDER POOL
# ===========================================================

@dataclass
class Order(JsonRecord):
    """Task order created by staff and handed to one customer."""
    order_id: str = ""
    user_id: str = ""
    product_name: str = ""
    amount: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")
    platform: str = ""
    description: str = ""
    status: str = OrderStatus.PENDING.value
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None
    start_time: Optional[datetime] = None
    completed_time: Optional[datetime] = None
    created_by: str = ""
    created_by_name: str = ""
    assigned_to: str = ""
    assigned_to_name: str = ""
    is_assigned: bool = False
    assigned_time: Optional[datetime] = None
    assigned_by: str = ""


# ===========================================================
# INVITES
# ===========================================================

@dataclass
class InviteLevel(JsonRecord):
    level: int = 1
    name: str = ""
    reward: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")  # percent of each invitee commission
    requirement: int = 0  # valid invites needed
    description: str = ""


@dataclass
class InviteRecord(JsonRecord):
    """Inviter/invitee pair; becomes valid when the invitee completes a first order."""
    id: str = ""
    inviter_id: str = ""
    invitee_id: str = ""
    invite_code: str = ""
    reward: Decimal = Decimal("0")
    is_valid: bool = False
    created_at: Optional[datetime] = None
    validated_at: Optional[datetime] = None


@dataclass
class InviteReward(JsonRecord):
    id: str = ""
    user_id: str = ""
    type: str = ""  # invite_reward, level_upgrade, commission
    amount: Decimal = Decimal("0")
    description: str = ""
    related_id: str = ""
    created_at: Optional[datetime] = None


# ===========================================================
# PLATFORM SETTINGS
# ===========================================================

@dataclass
class PaymentAccount(JsonRecord):
    """Receiving wallet shown to customers on the recharge page."""
    id: str = ""
    wallet_name: str = ""
    account_type: str = ""  # USDT, BTC, ETH, TRX, BNB
    network_type: str = ""  # TRC20, ERC20, BEP20
    account_number: str = ""
    account_identifier: str = ""
    status: str = "enabled"
    is_default: bool = False
    remarks: str = ""
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None

    @property
    def is_active(self):
        return self.status == "enabled"


@dataclass
class CountryCode(JsonRecord):
    id: str = ""
    country_name: str = ""
    code: str = ""
    flag: str = ""
    enabled: bool = True
    is_default: bool = False
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
