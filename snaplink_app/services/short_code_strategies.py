"""
Short code generation strategies.
Uses Strategy Pattern so the allocator can be driven by any candidate source.
"""

import secrets
from abc import ABC, abstractmethod

# 58 characters: digits and letters minus the look-alikes 0, O, I and l
SHORT_CODE_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    @abstractmethod
    def generate(self) -> str:
        """
        Produce one candidate short code.

        Candidates are not guaranteed to be free; the allocator checks them
        against the link store and the unique index has the final word.
        """
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Draws every character independently and uniformly from the alphabet.

    58^7 is roughly 2.2 * 10^12 codes, so collisions are rare enough that a
    handful of retries covers them.
    """

    def __init__(self, length: int = 7, alphabet: str = SHORT_CODE_ALPHABET):
        self.length = length
        self.alphabet = alphabet

    def generate(self) -> str:
        """Generate a random string of the configured length"""
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))
