"""
限流 - 固定窗口计数器

每个 key 独立维护一个窗口 {window_start, count}，窗口结束后重新计数。
状态只在当前进程内存中，多进程部署时各进程分别计数
"""
import math
import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol

from flask import current_app

from tcgcollectr.errors import ErrorCodes, ServiceError


@dataclass
class RateLimitResult:
    """限流结果，被拒绝时 retry_after 为距窗口结束的秒数"""
    allowed: bool
    retry_after: Optional[int] = None


class RateLimiter(Protocol):
    """限流器接口"""

    def check_and_consume(self, key: str, limit: int, window_seconds: float) -> RateLimitResult: ...

    def reset(self, key: Optional[str] = None) -> None: ...


class InMemoryRateLimiter:
    """
    进程内限流器

    Args:
        clock: 返回秒数的单调时钟，测试时可替换
        prune_every: 每消费多少次清理一次过期的 key
    """

    def __init__(self, clock=time.monotonic, prune_every=1000):
        self._clock = clock
        self._prune_every = prune_every
        self._windows = {}
        self._calls = 0
        self._lock = threading.Lock()

    def check_and_consume(self, key, limit, window_seconds):
        with self._lock:
            now = self._clock()
            self._calls += 1
            if self._calls % self._prune_every == 0:
                self._prune(now)

            window = self._windows.get(key)
            if window is None or now >= window['start'] + window['length']:
                self._windows[key] = {'start': now, 'length': window_seconds, 'count': 1}
                return RateLimitResult(allowed=True)

            if window['count'] >= limit:
                window_end = window['start'] + window['length']
                return RateLimitResult(allowed=False, retry_after=max(1, math.ceil(window_end - now)))

            window['count'] += 1
            return RateLimitResult(allowed=True)

    def reset(self, key=None):
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def __len__(self):
        return len(self._windows)

    def _prune(self, now):
        expired = [k for k, w in self._windows.items() if now >= w['start'] + w['length']]
        for k in expired:
            del self._windows[k]


# 策略名 -> (次数, 窗口秒数, 提示信息)
RATE_LIMIT_POLICIES = {
    'register': (5, 60, 'Too many registration attempts. Please try again later.'),
    'login': (5, 900, 'Too many login attempts. Please try again later.'),
    'reset_ip': (3, 900, 'Too many password reset requests. Please try again later.'),
    'reset_email': (3, 900, 'Too many password reset requests. Please try again later.'),
}


def enforce(policy, identity, limiter=None):
    """
    按策略消费一次额度，超限抛出 RATE_LIMIT_EXCEEDED

    次数和窗口可以通过 RATE_LIMITS 配置覆盖
    """
    limit, window_seconds, message = RATE_LIMIT_POLICIES[policy]
    limit, window_seconds = current_app.config.get('RATE_LIMITS', {}).get(policy, (limit, window_seconds))
    limiter = limiter or current_app.extensions['rate_limiter']

    result = limiter.check_and_consume(f'{policy}:{identity}', limit, window_seconds)
    if not result.allowed:
        raise ServiceError(
            ErrorCodes.RATE_LIMIT_EXCEEDED, message, 429,
            details={'retryAfter': result.retry_after},
        )
