"""
托管认证服务客户端测试
"""
import json
import time

import pytest
import requests

from tcgcollectr.services.identity import (
    GoTrueIdentityProvider, IdentityProviderError, build_identity_provider, translate_identity_error,
)

BASE_URL = 'https://auth.example.test/auth/v1'


class FakeResponse:
    """只实现客户端用到的 requests.Response 属性"""

    def __init__(self, status_code=200, body=None, text=None, reason='OK'):
        self.status_code = status_code
        self.reason = reason
        if body is not None:
            self.text = json.dumps(body)
        else:
            self.text = text or ''
        self.content = self.text.encode('utf-8')

    def json(self):
        return json.loads(self.text)


@pytest.fixture
def provider():
    return GoTrueIdentityProvider(BASE_URL + '/', 'anon-key', timeout=3)


def _respond(monkeypatch, provider, response, calls=None):
    def fake_request(method, url, **kwargs):
        if calls is not None:
            calls.append((method, url, kwargs))
        return response

    monkeypatch.setattr(provider.session, 'request', fake_request)


def _raise(monkeypatch, provider, exc):
    def fake_request(method, url, **kwargs):
        raise exc

    monkeypatch.setattr(provider.session, 'request', fake_request)


class TestTransport:
    """网络层"""

    @pytest.mark.parametrize('exc', [requests.Timeout('read timed out'), requests.ConnectionError('refused')])
    def test_unreachable_is_503(self, monkeypatch, provider, exc):
        _raise(monkeypatch, provider, exc)
        with pytest.raises(IdentityProviderError) as exc_info:
            provider.sign_in_with_password('ash@pallet.io', 'secret')
        assert exc_info.value.status == 503

        error = translate_identity_error(exc_info.value, 'sign_in')
        assert (error.code, error.status_code) == ('AUTH_UNAVAILABLE', 503)

    def test_request_shape(self, monkeypatch, provider):
        """登录请求: 路径、参数、超时和 apikey 头"""
        calls = []
        _respond(monkeypatch, provider, FakeResponse(body={
            'access_token': 'at', 'refresh_token': 'rt', 'expires_in': 3600,
            'user': {'id': 'u1', 'email': 'ash@pallet.io'},
        }), calls)

        provider.sign_in_with_password('ash@pallet.io', 'secret')

        method, url, kwargs = calls[0]
        assert (method, url) == ('POST', f'{BASE_URL}/token')
        assert kwargs['params'] == {'grant_type': 'password'}
        assert kwargs['json'] == {'email': 'ash@pallet.io', 'password': 'secret'}
        assert kwargs['timeout'] == 3
        assert kwargs['headers'] == {'Authorization': 'Bearer anon-key'}
        assert provider.session.headers['apikey'] == 'anon-key'

    def test_user_token_in_header(self, monkeypatch, provider):
        calls = []
        _respond(monkeypatch, provider, FakeResponse(body={'id': 'u1', 'email': 'ash@pallet.io'}), calls)
        identity = provider.get_user('user-token')
        assert identity.id == 'u1'
        assert calls[0][2]['headers'] == {'Authorization': 'Bearer user-token'}

    def test_malformed_body_is_502(self, monkeypatch, provider):
        _respond(monkeypatch, provider, FakeResponse(text='<html>gateway</html>'))
        with pytest.raises(IdentityProviderError) as exc_info:
            provider.get_user('user-token')
        assert exc_info.value.status == 502
        assert exc_info.value.message == 'Malformed response from authentication service'

    def test_empty_body(self, monkeypatch, provider):
        """/logout 返回 204 无内容"""
        calls = []
        _respond(monkeypatch, provider, FakeResponse(status_code=204, reason='No Content'), calls)
        assert provider.sign_out('user-token') is None
        assert calls[0][2]['params'] == {'scope': 'global'}


class TestErrorMessages:
    """错误信息提取"""

    @pytest.mark.parametrize('body, expected', [
        ({'msg': 'User already registered', 'code': 422}, 'User already registered'),
        ({'error': 'invalid_grant', 'error_description': 'Invalid login credentials'}, 'Invalid login credentials'),
        ({'message': 'Token has expired'}, 'Token has expired'),
        ({'error': 'unexpected_failure'}, 'unexpected_failure'),
        ({}, 'Unknown error'),
    ])
    def test_json_error(self, monkeypatch, provider, body, expected):
        _respond(monkeypatch, provider, FakeResponse(status_code=422, body=body, reason='Unprocessable Entity'))
        with pytest.raises(IdentityProviderError) as exc_info:
            provider.sign_up('ash@pallet.io', 'secret')
        assert exc_info.value.message == expected
        assert exc_info.value.status == 422

    def test_plain_text_error(self, monkeypatch, provider):
        _respond(monkeypatch, provider, FakeResponse(status_code=500, text='upstream exploded',
                                                     reason='Internal Server Error'))
        with pytest.raises(IdentityProviderError) as exc_info:
            provider.update_user('user-token', 'N3w!Passw0rd-x')
        assert exc_info.value.message == 'upstream exploded'

        error = translate_identity_error(exc_info.value, 'update_password')
        assert error.status_code == 500

    def test_empty_error_uses_reason(self, monkeypatch, provider):
        _respond(monkeypatch, provider, FakeResponse(status_code=502, reason='Bad Gateway'))
        with pytest.raises(IdentityProviderError) as exc_info:
            provider.send_password_reset_email('ash@pallet.io', 'https://app.example.test/auth/update-password')
        assert exc_info.value.message == 'Bad Gateway'

    def test_sign_up_exists_translated(self, monkeypatch, provider):
        _respond(monkeypatch, provider, FakeResponse(status_code=422, body={'msg': 'User already registered'}))
        with pytest.raises(IdentityProviderError) as exc_info:
            provider.sign_up('ash@pallet.io', 'secret')
        error = translate_identity_error(exc_info.value, 'sign_up')
        assert (error.code, error.status_code) == ('EMAIL_EXISTS', 409)


class TestAuthResult:
    """注册/登录结果解析"""

    def test_session(self, monkeypatch, provider):
        _respond(monkeypatch, provider, FakeResponse(body={
            'access_token': 'at', 'refresh_token': 'rt', 'expires_at': 1790000000,
            'user': {'id': 'u1', 'email': 'ash@pallet.io'},
        }))
        result = provider.sign_in_with_password('ash@pallet.io', 'secret')
        assert result.user.id == 'u1'
        assert result.session.access_token == 'at'
        assert result.session.refresh_token == 'rt'
        assert result.session.expires_at == 1790000000

    def test_expires_in(self, monkeypatch, provider):
        """没有 expires_at 时按 expires_in 推算"""
        _respond(monkeypatch, provider, FakeResponse(body={
            'access_token': 'at', 'expires_in': 600, 'user': {'id': 'u1'},
        }))
        before = int(time.time())
        result = provider.sign_in_with_password('ash@pallet.io', 'secret')
        assert before + 600 <= result.session.expires_at <= int(time.time()) + 600
        assert result.session.refresh_token == ''

    def test_sign_up_awaiting_confirmation(self, monkeypatch, provider):
        """开启邮箱确认时只返回用户"""
        _respond(monkeypatch, provider, FakeResponse(body={'id': 'u2', 'email': 'misty@cerulean.io'}))
        result = provider.sign_up('misty@cerulean.io', 'secret')
        assert result.user.id == 'u2'
        assert result.user.email == 'misty@cerulean.io'
        assert result.session is None

    def test_get_user_without_id(self, monkeypatch, provider):
        _respond(monkeypatch, provider, FakeResponse(body={}))
        with pytest.raises(IdentityProviderError) as exc_info:
            provider.get_user('user-token')
        assert exc_info.value.status == 401


class TestBuildProvider:
    """按配置创建身份提供方"""

    def test_gotrue(self, app):
        app.config.update(AUTH_PROVIDER='gotrue', GOTRUE_URL=BASE_URL, GOTRUE_API_KEY='anon-key', AUTH_TIMEOUT=5)
        provider = build_identity_provider(app)
        assert isinstance(provider, GoTrueIdentityProvider)
        assert provider.base_url == BASE_URL
        assert provider.timeout == 5

    def test_gotrue_requires_url(self, app):
        app.config.update(AUTH_PROVIDER='gotrue', GOTRUE_URL='')
        with pytest.raises(RuntimeError):
            build_identity_provider(app)

    def test_unknown(self, app):
        app.config['AUTH_PROVIDER'] = 'ldap'
        with pytest.raises(RuntimeError):
            build_identity_provider(app)
