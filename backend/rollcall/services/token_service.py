"""Session token issuance."""
import logging
import secrets
import string
import time
from typing import Callable, TypeVar

from rollcall.utils.errors import TokenCollisionError, TokenExhaustionError

logger = logging.getLogger(__name__)

T = TypeVar('T')

TOKEN_MIN_LENGTH = 16
TOKEN_MAX_LENGTH = 24
MAX_ATTEMPTS = 5

ALPHANUMERIC = string.ascii_letters + string.digits
_BASE36 = string.digits + string.ascii_lowercase


def _base36(number: int) -> str:
    if number == 0:
        return '0'
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return ''.join(reversed(digits))


class TokenService:
    """Service for minting URL-safe session tokens."""
    
    @staticmethod
    def issue_token() -> str:
        """
        Build a token from several entropy sources.

        Uniqueness is not guaranteed here; the store's unique constraint
        decides and `issue_unique` retries on collision.
        """
        timestamp = _base36(time.time_ns() // 1_000_000)
        random_part1 = _base36(secrets.randbits(41))[:8]
        performance_now = str(time.perf_counter()).replace('.', '')
        random_part2 = _base36(secrets.randbits(31))[:6]
        extra_entropy = format(secrets.randbelow(0xFFFFFF), 'x')
        
        unique_string = f"{timestamp}{random_part1}{performance_now}{random_part2}{extra_entropy}"
        
        token = ''.join(c for c in unique_string if c in ALPHANUMERIC)[:TOKEN_MAX_LENGTH]
        
        while len(token) < TOKEN_MIN_LENGTH:
            token += secrets.choice(ALPHANUMERIC)
        
        return token
    
    @staticmethod
    def issue_unique(
        persist: Callable[[str], T],
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = 0.1,
        sleep: Callable[[float], None] = time.sleep
    ) -> T:
        """
        Mint tokens until `persist` accepts one.

        `persist(token)` raises TokenCollisionError when the token is taken;
        any other error propagates unchanged.
        """
        for attempt in range(max_attempts):
            if attempt > 0 and retry_delay:
                # Move the clock-based entropy forward before retrying
                sleep(retry_delay)
            
            token = TokenService.issue_token()
            try:
                return persist(token)
            except TokenCollisionError:
                logger.warning(
                    f"Token collision on attempt {attempt + 1}, retrying with new token"
                )
        
        raise TokenExhaustionError(max_attempts)
