"""
工具函数测试
"""
from datetime import date, datetime
from decimal import Decimal

from tcgcollectr.utils.api_helpers import get_client_ip, hash_string, parse_bearer_token
from tcgcollectr.utils.background import TaskDispatcher
from tcgcollectr.utils.clock import isoformat
from tcgcollectr.utils.numbers import card_number_sort_key, normalize_card_number, to_float


class TestApiHelpers:
    """请求解析"""

    def test_parse_bearer_token(self):
        assert parse_bearer_token('Bearer abc') == 'abc'
        assert parse_bearer_token('bearer  abc ') == 'abc'
        assert parse_bearer_token('Basic abc') is None
        assert parse_bearer_token('Bearer') is None
        assert parse_bearer_token(None) is None

    def test_client_ip(self, app):
        with app.test_request_context(headers={'X-Forwarded-For': '1.1.1.1, 10.0.0.1'}):
            assert get_client_ip() == '1.1.1.1'
        with app.test_request_context(headers={'X-Real-IP': ' 2.2.2.2 '}):
            assert get_client_ip() == '2.2.2.2'
        with app.test_request_context(environ_base={'REMOTE_ADDR': '3.3.3.3'}):
            assert get_client_ip() == '3.3.3.3'

    def test_hash_string(self):
        assert hash_string('1.1.1.1') == hash_string('1.1.1.1')
        assert len(hash_string('1.1.1.1')) == 64


class TestNumbers:
    """卡片编号"""

    def test_normalize(self):
        assert normalize_card_number(' sv001 ') == 'SV001'
        assert normalize_card_number(None) is None

    def test_sort_key(self):
        assert card_number_sort_key('025/198') == 25
        assert card_number_sort_key('TG05') == 5
        assert card_number_sort_key('ENERGY') == 0
        assert card_number_sort_key(None) == 0

    def test_to_float(self):
        assert to_float(Decimal('5.25')) == 5.25
        assert to_float(None) is None


class TestClock:
    def test_isoformat(self):
        assert isoformat(datetime(2026, 10, 18, 12, 0)) == '2026-10-18T12:00:00Z'
        assert isoformat(date(1999, 1, 9)) == '1999-01-09'
        assert isoformat(None) is None


class TestTaskDispatcher:
    """旁路任务"""

    def test_eager_runs_inline(self, app):
        calls = []
        TaskDispatcher(eager=True).submit(app, calls.append, 'done')
        assert calls == ['done']

    def test_failure_is_swallowed(self, app):
        def broken():
            raise RuntimeError('boom')

        assert TaskDispatcher(eager=True).submit(app, broken) is None

    def test_threaded(self, app):
        calls = []
        dispatcher = TaskDispatcher(max_workers=1)
        future = dispatcher.submit(app, calls.append, 'done')
        future.result(timeout=5)
        dispatcher.shutdown()
        assert calls == ['done']
