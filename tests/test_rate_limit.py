"""
限流器测试
"""
import pytest

from tcgcollectr.errors import ServiceError
from tcgcollectr.services.rate_limit import InMemoryRateLimiter, enforce


class FakeClock:
    """可手动拨动的时钟"""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestInMemoryRateLimiter:
    """固定窗口计数测试"""

    def test_sixth_call_denied(self):
        """窗口内第 6 次被拒绝，retry_after 不超过窗口长度"""
        clock = FakeClock()
        limiter = InMemoryRateLimiter(clock=clock)

        for _ in range(5):
            assert limiter.check_and_consume('register:1.2.3.4', 5, 60).allowed

        clock.now += 10
        result = limiter.check_and_consume('register:1.2.3.4', 5, 60)
        assert not result.allowed
        assert result.retry_after == 50

    def test_window_resets(self):
        """窗口结束后重新计数"""
        clock = FakeClock()
        limiter = InMemoryRateLimiter(clock=clock)

        for _ in range(5):
            limiter.check_and_consume('k', 5, 60)
        assert not limiter.check_and_consume('k', 5, 60).allowed

        clock.now += 60
        assert limiter.check_and_consume('k', 5, 60).allowed

    def test_retry_after_at_least_one(self):
        """距窗口结束不足 1 秒时 retry_after 仍为 1"""
        clock = FakeClock()
        limiter = InMemoryRateLimiter(clock=clock)
        limiter.check_and_consume('k', 1, 60)

        clock.now += 59.8
        result = limiter.check_and_consume('k', 1, 60)
        assert not result.allowed
        assert result.retry_after == 1

    def test_keys_are_independent(self):
        """不同的 key 分别计数"""
        limiter = InMemoryRateLimiter(clock=FakeClock())
        assert limiter.check_and_consume('a', 1, 60).allowed
        assert not limiter.check_and_consume('a', 1, 60).allowed
        assert limiter.check_and_consume('b', 1, 60).allowed

    def test_prune_removes_expired_windows(self):
        """过期的 key 会被定期清理"""
        clock = FakeClock()
        limiter = InMemoryRateLimiter(clock=clock, prune_every=3)
        limiter.check_and_consume('a', 5, 10)
        limiter.check_and_consume('b', 5, 10)
        assert len(limiter) == 2

        clock.now += 30
        limiter.check_and_consume('c', 5, 10)
        assert len(limiter) == 1

    def test_reset(self):
        """reset 清除单个 key 或全部"""
        limiter = InMemoryRateLimiter(clock=FakeClock())
        limiter.check_and_consume('a', 1, 60)
        limiter.check_and_consume('b', 1, 60)

        limiter.reset('a')
        assert limiter.check_and_consume('a', 1, 60).allowed
        assert not limiter.check_and_consume('b', 1, 60).allowed

        limiter.reset()
        assert len(limiter) == 0


class TestEnforce:
    """策略执行测试"""

    def test_raises_with_retry_after(self, app):
        """超限时抛出 429，details 带 retryAfter"""
        limiter = InMemoryRateLimiter(clock=FakeClock())
        with app.app_context():
            for _ in range(5):
                enforce('login', '9.9.9.9', limiter=limiter)

            with pytest.raises(ServiceError) as exc_info:
                enforce('login', '9.9.9.9', limiter=limiter)

        error = exc_info.value
        assert error.status_code == 429
        assert error.code == 'RATE_LIMIT_EXCEEDED'
        assert error.message == 'Too many login attempts. Please try again later.'
        assert error.details == {'retryAfter': 900}

    def test_config_override(self, app):
        """RATE_LIMITS 配置可以覆盖次数"""
        app.config['RATE_LIMITS'] = {'register': (1, 60)}
        limiter = InMemoryRateLimiter(clock=FakeClock())
        with app.app_context():
            enforce('register', 'x', limiter=limiter)
            with pytest.raises(ServiceError):
                enforce('register', 'x', limiter=limiter)

    def test_policies_use_separate_keys(self, app):
        """IP 和邮箱策略互不影响"""
        limiter = InMemoryRateLimiter(clock=FakeClock())
        with app.app_context():
            for _ in range(3):
                enforce('reset_ip', 'same', limiter=limiter)
            enforce('reset_email', 'same', limiter=limiter)
