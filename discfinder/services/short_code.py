"""
Short codes printed on QR stickers.

Uppercase alphanumerics without the glyphs that get confused on a printed label
(0/O, 1/I/l). Distinctness is only guaranteed within one batch call; global
uniqueness is the issuance workflow's job (see code_issuance.resolve_unique_codes).
"""
import secrets

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 12
AMBIGUOUS_CHARACTERS = frozenset("0O1Il")


def generate_short_code() -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(CODE_LENGTH))


def generate_short_codes(count: int) -> list[str]:
    """count mutually distinct codes, in generation order."""
    codes: dict[str, None] = {}
    while len(codes) < count:
        codes.setdefault(generate_short_code(), None)
    return list(codes)


def normalize_short_code(raw: str) -> str:
    """Finders type codes by hand: trim and uppercase."""
    return (raw or "").strip().upper()
