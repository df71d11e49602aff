import secrets
import string
import time

ID_PREFIX = "key"
ID_ALPHABET = string.digits + string.ascii_lowercase
ID_SUFFIX_LENGTH = 9


def generate_record_id(now_ms: int | None = None, suffix_length: int = ID_SUFFIX_LENGTH) -> str:
    if suffix_length < 1:
        raise ValueError("suffix_length must be positive")
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(suffix_length))
    return f"{ID_PREFIX}_{now_ms}_{suffix}"
