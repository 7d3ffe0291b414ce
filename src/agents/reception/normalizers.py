"""
Normalizers for free-text input and channel addresses
"""


def format_entry(text: str | None) -> str | None:
    """
    Fold user-typed text into display casing

    Examples:
        "joão silva" → "João silva"
        "JOÃO SILVA" → "João silva"
        "joão Silva" → "João Silva"
        "" → ""
    """
    if not text:
        return text

    if text == text.upper() or text == text.lower():
        return text[:1].upper() + text[1:].lower()
    return text[:1].upper() + text[1:]


def title_name(text: str | None) -> str | None:
    """Capitalize every word of a person name ("joão silva" → "João Silva")"""
    if not text:
        return text
    return " ".join(format_entry(part) for part in text.strip().split(" "))


def first_name(text: str | None) -> str:
    """First whitespace-separated token, or "" for empty input"""
    parts = (text or "").split()
    return parts[0] if parts else ""


def normalize_phone(phone: str) -> str:
    """Normalize phone number (remove + and whitespace)"""
    return (phone or "").strip().lstrip("+")


def lookup_key(text: str) -> str:
    """Case/whitespace-insensitive key used for substring matching"""
    return (text or "").strip().lower()


def format_query(text: str | None) -> str:
    """Lookup query as shown back to the contact: stripped, then casing-folded"""
    return format_entry((text or "").strip())
