"""
身份提供方 - 注册、登录、令牌校验、修改密码、登出、重置密码邮件

两种实现:
- LocalIdentityProvider: 用户保存在本地 users 表 (开发/测试)
- GoTrueIdentityProvider: 调用托管的 GoTrue 认证服务 (生产)

提供方返回的错误一律视为不透明的 IdentityProviderError，
只在 translate_identity_error 中映射为业务错误码
"""
import secrets
import time
from collections import deque
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Protocol

import requests
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from loguru import logger

from tcgcollectr import db
from tcgcollectr.errors import ErrorCodes, ServiceError
from tcgcollectr.utils.clock import utcnow


@dataclass
class Identity:
    """已认证的用户主体"""
    id: str
    email: Optional[str] = None


@dataclass
class SessionTokens:
    """登录会话令牌"""
    access_token: str
    refresh_token: str
    expires_at: int  # Unix 时间戳 (秒)


@dataclass
class AuthResult:
    """注册/登录结果，需要邮箱确认时 session 为 None"""
    user: Identity
    session: Optional[SessionTokens] = None

    def to_dict(self):
        session = None
        if self.session is not None:
            session = {
                'access_token': self.session.access_token,
                'refresh_token': self.session.refresh_token,
                'expires_at': self.session.expires_at,
            }
        return {'user': {'id': self.user.id, 'email': self.user.email}, 'session': session}


class IdentityProviderError(Exception):
    """身份提供方返回的错误 (内容不透明)"""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        self.status = status


class IdentityProvider(Protocol):
    """身份提供方接口"""

    def sign_up(self, email: str, password: str) -> AuthResult: ...

    def sign_in_with_password(self, email: str, password: str) -> AuthResult: ...

    def get_user(self, token: str) -> Identity: ...

    def update_user(self, token: str, password: str) -> Identity: ...

    def sign_out(self, token: str) -> None: ...

    def send_password_reset_email(self, email: str, redirect_to: str) -> None: ...


class OutboxMailer:
    """
    本地邮件发送器
    不真正发信，保留最近的邮件供开发调试和测试读取
    """

    def __init__(self, maxlen=100):
        self.outbox = deque(maxlen=maxlen)

    def send(self, to, subject, body, token=None):
        self.outbox.append({'to': to, 'subject': subject, 'body': body, 'token': token})
        logger.info(f"邮件已放入发件箱: {subject}")


class LocalIdentityProvider:
    """
    本地身份提供方

    访问令牌是 itsdangerous 签名的 {sub, sid}，sid 指向 auth_sessions 中的一条会话，
    登出即注销该用户的全部会话。重置密码令牌使用独立的 salt，并绑定当前密码哈希，
    修改密码后旧的重置令牌自动失效
    """

    ACCESS_SALT = 'tcgcollectr-access'
    RECOVERY_SALT = 'tcgcollectr-recovery'

    def __init__(self, secret_key, access_ttl=3600, recovery_ttl=3600, mailer=None):
        self.access_ttl = access_ttl
        self.recovery_ttl = recovery_ttl
        self.mailer = mailer or OutboxMailer()
        self._access = URLSafeTimedSerializer(secret_key, salt=self.ACCESS_SALT)
        self._recovery = URLSafeTimedSerializer(secret_key, salt=self.RECOVERY_SALT)

    def sign_up(self, email, password):
        from tcgcollectr.models.user import User

        if User.query.filter_by(email=email).first():
            raise IdentityProviderError('User already registered', 422)

        user = User(email=email)
        user.set_password(password)
        db.session.add(user)
        db.session.flush()

        result = AuthResult(user=Identity(user.id, user.email), session=self._open_session(user))
        db.session.commit()
        logger.info(f"本地账号已创建: {user.id}")
        return result

    def sign_in_with_password(self, email, password):
        from tcgcollectr.models.user import User

        user = User.query.filter_by(email=email).first()
        # 用户不存在和密码错误返回同样的错误
        if user is None or not user.check_password(password):
            raise IdentityProviderError('Invalid login credentials', 400)

        user.last_login_at = utcnow()
        result = AuthResult(user=Identity(user.id, user.email), session=self._open_session(user))
        db.session.commit()
        return result

    def get_user(self, token):
        user, _ = self._resolve(token)
        return Identity(user.id, user.email)

    def update_user(self, token, password):
        user, _ = self._resolve(token)
        user.set_password(password)
        db.session.commit()
        logger.info(f"密码已更新: {user.id}")
        return Identity(user.id, user.email)

    def sign_out(self, token):
        from tcgcollectr.models.user import AuthSession

        user, session = self._resolve(token)
        if session is None:
            raise IdentityProviderError('Recovery tokens cannot be signed out', 401)

        now = utcnow()
        AuthSession.query.filter(
            AuthSession.user_id == user.id,
            AuthSession.revoked_at.is_(None),
        ).update({'revoked_at': now}, synchronize_session=False)
        db.session.commit()

    def send_password_reset_email(self, email, redirect_to):
        from tcgcollectr.models.user import User

        user = User.query.filter_by(email=email).first()
        if user is None:
            return

        token = self._recovery.dumps({'sub': user.id, 'fp': user.password_hash[-16:]})
        link = f"{redirect_to}#access_token={token}&type=recovery"
        self.mailer.send(
            to=user.email,
            subject='Reset your password',
            body=f"Follow this link to reset your password: {link}",
            token=token,
        )

    def _open_session(self, user):
        from tcgcollectr.models.user import AuthSession

        expires_at = utcnow().replace(microsecond=0) + timedelta(seconds=self.access_ttl)
        session = AuthSession(
            user_id=user.id,
            refresh_token=secrets.token_urlsafe(32),
            expires_at=expires_at,
        )
        db.session.add(session)
        db.session.flush()

        access_token = self._access.dumps({'sub': user.id, 'sid': session.id})
        return SessionTokens(
            access_token=access_token,
            refresh_token=session.refresh_token,
            expires_at=int(time.time()) + self.access_ttl,
        )

    def _resolve(self, token):
        """
        校验令牌

        Returns:
            (User, AuthSession)，重置密码令牌的会话为 None
        """
        from tcgcollectr.models.user import AuthSession, User

        try:
            payload = self._access.loads(token, max_age=self.access_ttl)
        except SignatureExpired:
            raise IdentityProviderError('Token has expired', 401)
        except BadSignature:
            payload = None

        if payload is not None:
            session = db.session.get(AuthSession, payload.get('sid'))
            if session is None or not session.is_active or session.user_id != payload.get('sub'):
                raise IdentityProviderError('Invalid session', 401)
            return session.user, session

        try:
            payload = self._recovery.loads(token, max_age=self.recovery_ttl)
        except SignatureExpired:
            raise IdentityProviderError('Token has expired', 401)
        except BadSignature:
            raise IdentityProviderError('Invalid token', 401)

        user = db.session.get(User, payload.get('sub'))
        if user is None or user.password_hash[-16:] != payload.get('fp'):
            raise IdentityProviderError('Invalid token', 401)
        return user, None


class GoTrueIdentityProvider:
    """
    托管认证服务客户端 (GoTrue 兼容的 REST 接口)

    所有请求都有超时，超时和连接失败统一报 503
    """

    def __init__(self, base_url, api_key, timeout=10):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'apikey': api_key,
            'Content-Type': 'application/json',
        })
        self._api_key = api_key

    def sign_up(self, email, password):
        data = self._request('POST', '/signup', json={'email': email, 'password': password})
        return self._auth_result(data)

    def sign_in_with_password(self, email, password):
        data = self._request('POST', '/token', params={'grant_type': 'password'},
                             json={'email': email, 'password': password})
        return self._auth_result(data)

    def get_user(self, token):
        data = self._request('GET', '/user', token=token)
        if not data.get('id'):
            raise IdentityProviderError('User not found', 401)
        return Identity(data['id'], data.get('email'))

    def update_user(self, token, password):
        data = self._request('PUT', '/user', token=token, json={'password': password})
        return Identity(data.get('id'), data.get('email'))

    def sign_out(self, token):
        self._request('POST', '/logout', token=token, params={'scope': 'global'})

    def send_password_reset_email(self, email, redirect_to):
        self._request('POST', '/recover', params={'redirect_to': redirect_to}, json={'email': email})

    def _request(self, method, path, token=None, params=None, json=None):
        headers = {'Authorization': f'Bearer {token or self._api_key}'}
        try:
            response = self.session.request(
                method, f'{self.base_url}{path}',
                headers=headers, params=params, json=json, timeout=self.timeout,
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.error(f"认证服务不可用 {method} {path}: {e.__class__.__name__}")
            raise IdentityProviderError('Authentication service unavailable', 503)

        if response.status_code >= 400:
            raise IdentityProviderError(self._error_message(response), response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise IdentityProviderError('Malformed response from authentication service', 502)

    @staticmethod
    def _error_message(response):
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or 'Unknown error'
        for key in ('msg', 'error_description', 'message', 'error'):
            if body.get(key):
                return str(body[key])
        return 'Unknown error'

    @staticmethod
    def _auth_result(data):
        # 开启邮箱确认时 /signup 只返回用户，不返回会话
        user_data = data.get('user') or data
        user = Identity(user_data.get('id'), user_data.get('email'))
        if not data.get('access_token'):
            return AuthResult(user=user)

        expires_at = data.get('expires_at') or int(time.time()) + int(data.get('expires_in') or 3600)
        return AuthResult(user=user, session=SessionTokens(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token', ''),
            expires_at=int(expires_at),
        ))


def build_identity_provider(app):
    """根据 AUTH_PROVIDER 配置创建身份提供方"""
    provider = app.config['AUTH_PROVIDER']
    if provider == 'gotrue':
        if not app.config['GOTRUE_URL']:
            raise RuntimeError('AUTH_PROVIDER=gotrue requires GOTRUE_URL')
        return GoTrueIdentityProvider(
            app.config['GOTRUE_URL'], app.config['GOTRUE_API_KEY'], timeout=app.config['AUTH_TIMEOUT'],
        )
    if provider == 'local':
        return LocalIdentityProvider(
            app.config['SECRET_KEY'],
            access_ttl=app.config['ACCESS_TOKEN_TTL'],
            recovery_ttl=app.config['RECOVERY_TOKEN_TTL'],
        )
    raise RuntimeError(f'Unknown AUTH_PROVIDER: {provider}')


_CREDENTIAL_HINTS = ('invalid', 'credentials', 'not found', 'incorrect', 'not confirmed')
_EXISTS_HINTS = ('already registered', 'already exists', 'already been registered', 'duplicate')
_WEAK_PASSWORD_HINTS = ('weak', 'short', 'must contain', 'should be at least', 'password should')
_TOKEN_HINTS = ('expired', 'invalid', 'not allowed')

_FAILURE_MESSAGES = {
    'sign_up': 'Failed to register user. Please try again.',
    'sign_in': 'Failed to authenticate user. Please try again.',
    'update_password': 'An unexpected error occurred while updating password',
}


def translate_identity_error(exc, operation):
    """
    把身份提供方错误映射为业务错误

    Args:
        exc: IdentityProviderError
        operation: sign_up / sign_in / verify / update_password / sign_out

    Returns:
        ServiceError
    """
    message = (exc.message or '').lower()

    if exc.status == 503:
        return ServiceError(ErrorCodes.AUTH_UNAVAILABLE, 'Authentication service unavailable', 503)

    if operation == 'sign_up':
        if any(hint in message for hint in _EXISTS_HINTS):
            return ServiceError(ErrorCodes.EMAIL_EXISTS, 'An account with this email address already exists', 409)
        if any(hint in message for hint in _WEAK_PASSWORD_HINTS):
            return ServiceError(ErrorCodes.WEAK_PASSWORD, 'Password does not meet the strength requirements', 400)

    if operation == 'sign_in':
        if any(hint in message for hint in _CREDENTIAL_HINTS) or exc.status in (400, 401, 403, 404, 422):
            return ServiceError(ErrorCodes.INVALID_CREDENTIALS, 'Invalid email or password', 401)

    # 令牌校验失败一律视为令牌无效
    if operation in ('verify', 'sign_out'):
        return ServiceError(ErrorCodes.UNAUTHORIZED, 'Invalid or expired token', 401)

    if operation == 'update_password' and any(hint in message for hint in _TOKEN_HINTS):
        logger.warning(f"改密码被身份提供方拒绝: {exc.message}")
        return ServiceError(ErrorCodes.UNAUTHORIZED, 'Invalid or expired token', 401)

    logger.error(f"身份提供方错误 ({operation}): status={exc.status}")
    message = _FAILURE_MESSAGES.get(operation, 'An unexpected error occurred')
    return ServiceError(ErrorCodes.INTERNAL_ERROR, message, 500)
