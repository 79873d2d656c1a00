# barbershop/core/phone.py
import re


def normalize_phone(phone: str) -> str:
    """Digits only, the form guest phones are stored and looked up in."""
    return re.sub(r"\D", "", str(phone or "").strip())
