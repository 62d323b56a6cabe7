import logging
import os
import re
import uuid
from datetime import datetime

from models import CountryCode, to_camel
from services.wallet import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

COUNTRY_CODES = "country_codes"

CODE_PATTERN = re.compile(r"^\+\d{1,4}$")

DEFAULT_COUNTRY_CODES = [
    {"id": "1", "countryName": "China", "code": "+86", "flag": "🇨🇳", "isDefault": True, "sortOrder": 1},
    {"id": "2", "countryName": "United States", "code": "+1", "flag": "🇺🇸", "sortOrder": 2},
    {"id": "3", "countryName": "Japan", "code": "+81", "flag": "🇯🇵", "sortOrder": 3},
    {"id": "4", "countryName": "Germany", "code": "+49", "flag": "🇩🇪", "sortOrder": 4},
    {"id": "5", "countryName": "United Kingdom", "code": "+44", "flag": "🇬🇧", "sortOrder": 5},
    {"id": "6", "countryName": "France", "code": "+33", "flag": "🇫🇷", "sortOrder": 6},
]


def _ordered(codes):
    return sorted(codes, key=lambda c: (c.sort_order, c.country_name))


class CountryCodeService:
    """Catalogue of dialling codes offered on the sign-up and login forms."""

    def __init__(self, store):
        self.store = store

    def _load(self):
        """Caller holds the COUNTRY_CODES lock."""
        codes = self.store.load(COUNTRY_CODES, CountryCode)
        if not codes and not os.path.exists(self.store.path_for(COUNTRY_CODES)):
            now = datetime.now()
            codes = [CountryCode.from_dict(c) for c in DEFAULT_COUNTRY_CODES]
            for c in codes:
                c.created_at = now
                c.updated_at = now
            self.store.save(COUNTRY_CODES, codes)
            logger.info("Seeded default country codes")
        return codes

    @staticmethod
    def _find(codes, code_id):
        code = next((c for c in codes if c.id == code_id), None)
        if code is None:
            raise NotFoundError("Country code not found")
        return code

    @staticmethod
    def _check_code(code):
        code = (code or "").strip()
        if not CODE_PATTERN.match(code):
            raise ValidationError("Country code must look like +86")
        return code

    def list_all(self):
        with self.store.lock(COUNTRY_CODES):
            return _ordered(self._load())

    def enabled(self):
        return [c for c in self.list_all() if c.enabled]

    def default(self):
        enabled = self.enabled()
        return next((c for c in enabled if c.is_default), enabled[0] if enabled else None)

    def add(self, data):
        values = CountryCode.from_dict(data or {})
        values.code = self._check_code(values.code)
        values.country_name = values.country_name.strip()
        if not values.country_name:
            raise ValidationError("Country name is required")

        with self.store.lock(COUNTRY_CODES):
            codes = self._load()
            if any(c.code == values.code for c in codes):
                raise ValidationError(f"Country code {values.code} already exists")
            if values.is_default:
                for c in codes:
                    c.is_default = False

            now = datetime.now()
            values.id = str(uuid.uuid4())
            values.created_at = now
            values.updated_at = now
            codes.append(values)
            self.store.save(COUNTRY_CODES, codes)

        logger.info(f"Country code {values.code} ({values.country_name}) added")
        return values

    def update(self, code_id, changes):
        """Apply only the fields present in changes."""
        changes = changes or {}
        patch = CountryCode.from_dict(changes)
        present = {name for name in ("country_name", "code", "flag", "enabled", "is_default", "sort_order")
                   if name in changes or to_camel(name) in changes}

        with self.store.lock(COUNTRY_CODES):
            codes = self._load()
            code = self._find(codes, code_id)

            if "code" in present:
                patch.code = self._check_code(patch.code)
                if any(c.code == patch.code and c.id != code_id for c in codes):
                    raise ValidationError(f"Country code {patch.code} already exists")
            if "country_name" in present and not patch.country_name.strip():
                raise ValidationError("Country name is required")
            if "is_default" in present and patch.is_default:
                for c in codes:
                    c.is_default = False

            for name in present:
                setattr(code, name, getattr(patch, name))
            code.updated_at = datetime.now()
            self.store.save(COUNTRY_CODES, codes)

        logger.info(f"Country code {code_id} updated: {sorted(present)}")
        return code

    def delete(self, code_id):
        with self.store.lock(COUNTRY_CODES):
            codes = self._load()
            removed = self._find(codes, code_id)
            codes = [c for c in codes if c.id != code_id]

            if removed.is_default:
                successor = next((c for c in _ordered(codes) if c.enabled), None)
                if successor is not None:
                    successor.is_default = True
                    successor.updated_at = datetime.now()
            self.store.save(COUNTRY_CODES, codes)

        logger.info(f"Country code {removed.code} deleted")
        return True

    def batch_update_sort(self, updates):
        """Apply [{id, sortOrder}, ...]; returns (updated_count, errors)."""
        updated, errors = 0, []
        with self.store.lock(COUNTRY_CODES):
            codes = {c.id: c for c in self._load()}
            now = datetime.now()
            for item in updates or []:
                code_id = str(item.get("id", ""))
                code = codes.get(code_id)
                if code is None:
                    errors.append(f"Country code {code_id} not found")
                    continue
                try:
                    code.sort_order = int(item.get("sortOrder", item.get("sort_order")))
                except (TypeError, ValueError):
                    errors.append(f"Invalid sort order for {code_id}")
                    continue
                code.updated_at = now
                updated += 1
            self.store.save(COUNTRY_CODES, list(codes.values()))

        logger.info(f"Re-sorted {updated} country codes ({len(errors)} errors)")
        return updated, errors

    def set_default(self, code_id):
        with self.store.lock(COUNTRY_CODES):
            codes = self._load()
            code = self._find(codes, code_id)
            if not code.enabled:
                raise ValidationError("A disabled country code cannot be the default")
            now = datetime.now()
            for c in codes:
                if c.is_default and c.id != code_id:
                    c.is_default = False
                    c.updated_at = now
            code.is_default = True
            code.updated_at = now
            self.store.save(COUNTRY_CODES, codes)

        logger.info(f"Default country code is now {code.code}")
        return code


