import secrets

CODE_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
CODE_LENGTH = 5


def generate_code(prefix: str, length: int = CODE_LENGTH) -> str:
    """e.g. generate_code("ORD") -> "ORD-7K2QX"."""
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
    return f"{prefix}-{suffix}"


def unique_code(prefix: str, exists, attempts: int = 10) -> str:
    """Draw codes until ``exists(code)`` is False."""
    for _ in range(attempts):
        code = generate_code(prefix)
        if not exists(code):
            return code
    # widen the space rather than loop forever on a crowded prefix
    return generate_code(prefix, CODE_LENGTH + 3)
