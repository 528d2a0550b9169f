"""
Alias address generation.

Random local parts are drawn from an injected source so tests can pass a
seeded random.Random; production uses the OS CSPRNG. No uniqueness check
is made against stored aliases.
"""

import secrets
import string
from typing import Any, Optional

ALIAS_ALPHABET = string.ascii_lowercase + string.digits


def generate_random_string(length: int, rng: Optional[Any] = None) -> str:
    """
    Generate a lowercase alphanumeric string.
    
    Args:
        length: Number of characters
        rng: Object with a `choice(seq)` method (default: secrets.SystemRandom)
    
    Returns:
        str: Random string
    """
    if length < 1:
        raise ValueError("length must be positive")
    
    rng = rng or secrets.SystemRandom()
    return ''.join(rng.choice(ALIAS_ALPHABET) for _ in range(length))


class AddressGenerator:
    """Builds `<random>@<domain>` addresses."""
    
    def __init__(self, domain: str, length: int = 8, rng: Optional[Any] = None):
        self.domain = domain
        self.length = length
        self.rng = rng or secrets.SystemRandom()
    
    def generate(self) -> str:
        """
        Generate a new alias address.
        
        Returns:
            str: Email address (e.g., k3x9a0qz@example.com)
        """
        return f"{generate_random_string(self.length, self.rng)}@{self.domain}"
