import random
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation


def validate_phone(phone):
    """Phone numbers are accepted with any formatting as long as they carry 8+ digits."""
    digits = re.sub(r"\D", "", phone or "")
    return len(digits) >= 8


def validate_invite_code(code):
    return re.match(r"^[A-Za-z0-9]{6}$", code or "") is not None


def full_phone_number(country_code, phone):
    country_code = (country_code or "").strip()
    phone = (phone or "").strip()
    if phone.startswith("+") or not country_code:
        return phone
    if not country_code.startswith("+"):
        country_code = "+" + country_code
    return f"{country_code}{phone}"


def generate_order_id(prefix):
    """e.g. W202401011230451234"""
    return f"{prefix}{datetime.now().strftime('%Y%m%d%H%M%S')}{random.randint(1000, 9999)}"


def to_decimal(value):
    """Parse a request value into a Decimal, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def mask_phone(phone):
    if not phone or len(phone) < 7:
        return phone or ""
    return phone[:3] + "****" + phone[-4:]


def paginate(items, page=1, page_size=20):
    """Returns (page_of_items, total_count); page numbers start at 1."""
    items = list(items)
    page = max(int(page), 1)
    page_size = max(int(page_size), 1)
    start = (page - 1) * page_size
    return items[start:start + page_size], len(items)
