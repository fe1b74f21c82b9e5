"""
Short code allocation: custom-code checks and bounded random generation.
"""

import logging
from typing import Optional

from snaplink_app.services.exceptions import CodeGenerationExhausted, CodeTaken
from snaplink_app.services.short_code_strategies import ShortCodeStrategy
from snaplink_app.services.validators import validate_custom_code
from snaplink_app.storage.link_store import LinkStore

logger = logging.getLogger(__name__)


class CodeAllocator:
    """
    Picks a short code that is free at the time of the check.

    The allocator does not reserve anything. Two concurrent allocations can
    both pass the availability check; the link store's unique index rejects
    the second insert and the caller retries.
    """

    def __init__(
        self,
        link_store: LinkStore,
        strategy: ShortCodeStrategy,
        max_attempts: int = 5
    ):
        self.link_store = link_store
        self.strategy = strategy
        self.max_attempts = max_attempts

    def allocate(self, custom_code: Optional[str] = None) -> str:
        """
        Return a lowercase short code ready for insertion.

        Raises:
            InvalidCustomCode / ReservedCode: the custom code is rejected
            CodeTaken: the custom code already exists (active or not)
            CodeGenerationExhausted: every generated candidate collided
        """
        if custom_code is not None:
            return self.allocate_custom(custom_code)
        return self.allocate_generated(self.max_attempts)

    def allocate_custom(self, custom_code: str) -> str:
        code = validate_custom_code(custom_code)
        if self.link_store.code_exists(code):
            raise CodeTaken()
        return code

    def allocate_generated(self, attempts: int) -> str:
        """Try up to ``attempts`` fresh candidates"""
        for attempt in range(1, attempts + 1):
            code = self.try_generate()
            if code is not None:
                return code
            logger.info("Short code collision on attempt %d/%d", attempt, attempts)

        raise CodeGenerationExhausted()

    def try_generate(self) -> Optional[str]:
        """Draw one candidate; None when it already exists"""
        code = self.strategy.generate().lower()
        if self.link_store.code_exists(code):
            return None
        return code
