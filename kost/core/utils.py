import uuid


def generate_id(prefix: str = "") -> str:
    """Short random id, e.g. ``inv_3f9c0a1b2d4e5f60``."""
    token = uuid.uuid4().hex[:16]
    return f"{prefix}_{token}" if prefix else token


def format_rupiah(amount: int) -> str:
    """1500000 -> 'Rp 1.500.000'"""
    return "Rp " + f"{int(amount):,}".replace(",", ".")
