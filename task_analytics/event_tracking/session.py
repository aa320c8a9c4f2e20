"""
Session identifier generation.

Session ids only correlate events from one usage period. They are advisory
metadata, not credentials, so a non-cryptographic random suffix is enough.
"""

import random
import string
import time

SESSION_PREFIX = "session"
SUFFIX_LENGTH = 9
_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase


def generate_session_id(prefix: str = SESSION_PREFIX) -> str:
    """Mint a new session id of the form ``<prefix>-<epoch millis>-<suffix>``."""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(_SUFFIX_ALPHABET, k=SUFFIX_LENGTH))
    return f"{prefix}-{millis}-{suffix}"
