"""Pure helpers over panna / digit / jodi strings."""


def checksum_digit(panna: str) -> int:
    """Sum of the panna's decimal digits, mod 10. ``"628"`` -> 6."""
    return sum(int(c) for c in str(panna)) % 10


def jodi(open_digit: int, close_digit: int) -> str:
    """Open digit followed by close digit, left-padded to two characters."""
    return f"{open_digit}{close_digit}".rjust(2, "0")


def classify_panna(panna: str) -> str:
    a, b, c = str(panna)
    if a == b == c:
        return "triple"
    if a == b or a == c or b == c:
        return "double"
    return "single"
