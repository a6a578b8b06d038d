"""
Document identifier generation.

Ids are 12 characters drawn independently and uniformly from digits and
lowercase consonants. Leaving out vowels keeps generated ids from spelling
words.

Invariants:
    - len(random_id()) == ID_LENGTH
    - No character outside ID_ALPHABET is ever produced
    - There is no collision check; uniqueness is probabilistic (31**12)
"""

from __future__ import annotations

import secrets
import string

ID_LENGTH = 12

ID_ALPHABET = string.digits + "".join(c for c in string.ascii_lowercase if c not in "aeiou")


def random_id(length: int = ID_LENGTH) -> str:
    """Generate a random document id.

    Args:
        length: Number of characters

    Returns:
        Random id string
    """
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))
