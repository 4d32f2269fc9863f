"""
Reference Number Generator

Generates human-readable onboarding reference numbers:
  - Onboarding requests:  ONB-{YYYYMMDD}-{6 upper alphanumerics}  (e.g. ONB-20261019-K3Z9QA)

No store lookup is made; uniqueness is statistical only (36^6 suffixes per
day). A collision surfaces as a unique-constraint failure on commit.
"""

import secrets
import string
from datetime import datetime, timezone

REFERENCE_PREFIX = "ONB"
SUFFIX_LENGTH = 6
SUFFIX_ALPHABET = string.ascii_uppercase + string.digits

_system_random = secrets.SystemRandom()


def generate_reference_number(today=None, rng=None) -> str:
    """
    Build a reference number for a request created on *today*.

    Args:
        today: date/datetime to stamp; defaults to the current UTC date.
        rng: object with a ``choice`` method; defaults to SystemRandom.
    """
    if today is None:
        today = datetime.now(timezone.utc)
    rng = rng or _system_random
    suffix = "".join(rng.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{REFERENCE_PREFIX}-{today.strftime('%Y%m%d')}-{suffix}"
