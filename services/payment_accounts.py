import logging
import uuid
from datetime import datetime

from models import PaymentAccount
from services.wallet import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PAYMENT_ACCOUNTS = "payment_accounts"

REQUIRED_FIELDS = ("wallet_name", "account_type", "network_type", "account_number")
EDITABLE_FIELDS = REQUIRED_FIELDS + ("account_identifier", "status", "is_default", "remarks")
STATUSES = ("enabled", "disabled")


class PaymentAccountService:
    """Receiving accounts customers transfer to when they recharge."""

    def __init__(self, store):
        self.store = store

    def list(self, active_only=False):
        accounts = self.store.load(PAYMENT_ACCOUNTS, PaymentAccount)
        if active_only:
            accounts = [a for a in accounts if a.is_active]
        return sorted(accounts, key=lambda a: (not a.is_default, a.create_time or datetime.min))

    @staticmethod
    def _validated(data):
        values = PaymentAccount.from_dict(data or {})
        for name in REQUIRED_FIELDS:
            setattr(values, name, getattr(values, name).strip())
            if not getattr(values, name):
                raise ValidationError(f"{name.replace('_', ' ').capitalize()} is required")
        if values.status not in STATUSES:
            raise ValidationError("Status must be enabled or disabled")
        return values

    def create(self, data):
        values = self._validated(data)
        with self.store.lock(PAYMENT_ACCOUNTS):
            accounts = self.store.load(PAYMENT_ACCOUNTS, PaymentAccount)
            if any(a.account_number == values.account_number for a in accounts):
                raise ValidationError("This receiving address already exists")
            if values.is_default:
                for a in accounts:
                    a.is_default = False

            now = datetime.now()
            values.id = str(uuid.uuid4())
            values.create_time = now
            values.update_time = now
            accounts.append(values)
            self.store.save(PAYMENT_ACCOUNTS, accounts)

        logger.info(f"Payment account {values.id} ({values.account_type}/{values.network_type}) added")
        return values

    def update(self, account_id, data):
        values = self._validated(data)
        with self.store.lock(PAYMENT_ACCOUNTS):
            accounts = self.store.load(PAYMENT_ACCOUNTS, PaymentAccount)
            account = next((a for a in accounts if a.id == account_id), None)
            if account is None:
                raise NotFoundError("Payment account not found")
            if any(a.account_number == values.account_number and a.id != account_id for a in accounts):
                raise ValidationError("This receiving address already exists")
            if values.is_default:
                for a in accounts:
                    a.is_default = False

            for name in EDITABLE_FIELDS:
                setattr(account, name, getattr(values, name))
            account.update_time = datetime.now()
            self.store.save(PAYMENT_ACCOUNTS, accounts)

        logger.info(f"Payment account {account_id} updated")
        return account

    def delete(self, account_id):
        with self.store.lock(PAYMENT_ACCOUNTS):
            accounts = self.store.load(PAYMENT_ACCOUNTS, PaymentAccount)
            remaining = [a for a in accounts if a.id != account_id]
            if len(remaining) == len(accounts):
                raise NotFoundError("Payment account not found")
            self.store.save(PAYMENT_ACCOUNTS, remaining)

        logger.info(f"Payment account {account_id} deleted")
        return True
