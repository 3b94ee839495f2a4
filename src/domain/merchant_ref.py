"""Merchant reference generation and parsing

Canonical format:  INV{epoch_ms}{rand}_U{user_id}_Q{quantity}
Legacy format:     INV/{user_id}/{sku}-{qty}[/{sku}-{qty}...]

Both carry the user and the purchased quantity so callbacks can be matched
even without the local record.
"""

import re
import secrets
import time
from dataclasses import dataclass
from typing import Optional

_CANONICAL = re.compile(r"^INV(?P<ts>\d{13})(?P<rand>\d+)_U(?P<user>\d+)_Q(?P<qty>\d+)$")
_LEGACY_ITEM = re.compile(r"^(?P<sku>.+)-(?P<qty>\d+)$")


@dataclass(frozen=True)
class MerchantRefInfo:
    user_id: int
    quantity: int


def generate_merchant_ref(user_id: int, quantity: int, now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    rand = secrets.randbelow(1_000_000)
    return f"INV{now_ms:013d}{rand:06d}_U{user_id}_Q{quantity}"


def parse_merchant_ref(merchant_ref: str) -> Optional[MerchantRefInfo]:
    """Extract user id and quantity; None if the reference is not ours"""
    if not merchant_ref:
        return None

    match = _CANONICAL.match(merchant_ref)
    if match:
        return MerchantRefInfo(user_id=int(match.group("user")), quantity=int(match.group("qty")))

    if merchant_ref.startswith("INV/"):
        parts = merchant_ref.split("/")
        if len(parts) < 3 or not parts[1].isdigit():
            return None
        quantity = 0
        for part in parts[2:]:
            item = _LEGACY_ITEM.match(part)
            if item:
                quantity += int(item.group("qty"))
        if quantity == 0:
            return None
        return MerchantRefInfo(user_id=int(parts[1]), quantity=quantity)

    return None
