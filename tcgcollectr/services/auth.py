"""
认证服务 - 每个操作只调用一次身份提供方，并把结果/错误转换为统一格式
"""
from flask import current_app
from loguru import logger

from tcgcollectr.errors import ErrorCodes, ServiceError
from tcgcollectr.services.identity import IdentityProviderError, translate_identity_error
from tcgcollectr.services.profile import ensure_profile
from tcgcollectr.utils.analytics import track_event


def _provider():
    return current_app.extensions['identity_provider']


def register(body, ip=None, user_agent=None):
    """
    注册

    Returns:
        {"user": {...}, "session": {...}}
    """
    try:
        result = _provider().sign_up(body.email, body.password)
    except IdentityProviderError as e:
        raise translate_identity_error(e, 'sign_up')

    ensure_profile(result.user.id)
    track_event('user_registered', result.user.id, ip, user_agent)
    logger.info(f"用户注册成功: {result.user.id}")
    return result.to_dict()


def login(body, ip=None, user_agent=None):
    """登录，邮箱不存在和密码错误返回同样的错误"""
    try:
        result = _provider().sign_in_with_password(body.email, body.password)
    except IdentityProviderError as e:
        raise translate_identity_error(e, 'sign_in')

    if result.session is None:
        raise ServiceError(ErrorCodes.INTERNAL_ERROR, 'Authentication succeeded but session data is incomplete', 500)

    ensure_profile(result.user.id)
    track_event('user_login', result.user.id, ip, user_agent)
    return result.to_dict()


def logout(token, user_id=None, ip=None, user_agent=None):
    """注销该用户的全部会话"""
    try:
        _provider().sign_out(token)
    except IdentityProviderError as e:
        raise translate_identity_error(e, 'sign_out')

    track_event('user_logout', user_id, ip, user_agent)
    return {'message': 'Successfully logged out'}


def request_password_reset(email):
    """
    发送重置密码邮件

    无论邮箱是否存在、发送是否成功都返回同样的结果
    """
    redirect_to = f"{current_app.config['SITE_URL'].rstrip('/')}/auth/update-password"
    try:
        _provider().send_password_reset_email(email, redirect_to)
    except IdentityProviderError as e:
        logger.warning(f"重置密码邮件发送失败: status={e.status}")
    return {'message': 'Password reset email sent'}


def update_password(token, password):
    """用重置令牌 (或登录令牌) 修改密码，先确认令牌对应真实用户"""
    provider = _provider()
    try:
        identity = provider.get_user(token)
    except IdentityProviderError as e:
        raise translate_identity_error(e, 'verify')

    if identity is None or not identity.id:
        raise ServiceError(ErrorCodes.UNAUTHORIZED, 'Invalid or expired token', 401)

    try:
        provider.update_user(token, password)
    except IdentityProviderError as e:
        raise translate_identity_error(e, 'update_password')

    logger.info(f"用户修改密码: {identity.id}")
    return {'message': 'Password updated successfully'}
