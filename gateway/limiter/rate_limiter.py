"""
按客户端 IP 的固定窗口限流器

基于 limits 的 FixedWindowRateLimiter，默认使用进程内 MemoryStorage
（过期 key 按 TTL 自动清理），storage_uri 可切换为 redis:// 等共享存储
"""
import logging
import time
from dataclasses import dataclass

from limits import RateLimitItemPerSecond
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter

from gateway.exceptions import RateLimitedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateDecision:
    """一次请求的限流判定"""
    allowed: bool
    count: int
    reset_at: float
    retry_after: float = 0.0


class RateLimiter:
    """固定窗口限流器，一个请求只计一次（批量请求也只计一次）"""

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        storage_uri: str = "memory://",
    ):
        self.max_requests = max_requests
        self.window_seconds = max(1, int(window_seconds))
        self.item = RateLimitItemPerSecond(max_requests, self.window_seconds)
        self.storage = storage_from_string(storage_uri)
        self.strategy = FixedWindowRateLimiter(self.storage)

    def count(self, key: str) -> int:
        """当前窗口内已计入的请求数"""
        _, remaining = self.strategy.get_window_stats(self.item, key)
        return self.max_requests - remaining

    def hit(self, key: str) -> RateDecision:
        """登记一次请求并返回判定结果，超限的请求不计数"""
        allowed = self.strategy.test(self.item, key) and self.strategy.hit(self.item, key)

        reset_at, remaining = self.strategy.get_window_stats(self.item, key)
        count = self.max_requests - remaining
        if allowed:
            return RateDecision(True, count, reset_at)

        retry_after = max(0.0, reset_at - time.time())
        logger.warning(f"[限流] 拒绝请求: key={key}, count={count}")
        return RateDecision(False, count, reset_at, retry_after)

    def check(self, key: str) -> RateDecision:
        """同 hit，但被拒绝时抛出 RateLimitedError"""
        decision = self.hit(key)
        if not decision.allowed:
            raise RateLimitedError(
                "too many requests, retry later", retry_after=decision.retry_after
            )
        return decision
