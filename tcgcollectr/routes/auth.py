"""
认证路由

注册/登录: 限流 -> 已登录检查 -> 校验 -> 调用身份提供方
重置密码: 校验 -> IP 限流 -> 邮箱限流 -> 调用身份提供方
"""
from flask import Blueprint, request
from flask_login import current_user

from tcgcollectr.errors import ErrorCodes, ServiceError
from tcgcollectr.services import auth as auth_service
from tcgcollectr.services.rate_limit import enforce
from tcgcollectr.utils.api_helpers import get_client_ip, json_response, parse_bearer_token
from tcgcollectr.validation import validate_body
from tcgcollectr.validation.auth import LoginBody, RegisterBody, ResetPasswordBody, UpdatePasswordBody

bp = Blueprint('auth', __name__, url_prefix='/auth')


def _reject_if_authenticated():
    if current_user.is_authenticated:
        raise ServiceError(ErrorCodes.ALREADY_AUTHENTICATED, 'You are already logged in', 400)


def _require_bearer_token():
    token = parse_bearer_token(request.headers.get('Authorization'))
    if token is None:
        raise ServiceError(
            ErrorCodes.VALIDATION_ERROR, 'Missing or invalid Authorization header', 400,
            details={'fields': {'Authorization': ['Expected "Bearer <token>"']}},
        )
    return token


@bp.route('/register', methods=['POST'])
def register():
    """注册"""
    ip = get_client_ip()
    enforce('register', ip)
    _reject_if_authenticated()

    body = validate_body(RegisterBody)
    result = auth_service.register(body, ip=ip, user_agent=request.headers.get('User-Agent'))
    return json_response(result, status=201)


@bp.route('/login', methods=['POST'])
def login():
    """登录"""
    ip = get_client_ip()
    enforce('login', ip)
    _reject_if_authenticated()

    body = validate_body(LoginBody)
    result = auth_service.login(body, ip=ip, user_agent=request.headers.get('User-Agent'))
    return json_response(result)


@bp.route('/logout', methods=['POST'])
def logout():
    """登出"""
    token = _require_bearer_token()
    user_id = current_user.id if current_user.is_authenticated else None
    result = auth_service.logout(
        token, user_id=user_id, ip=get_client_ip(), user_agent=request.headers.get('User-Agent'),
    )
    return json_response(result)


@bp.route('/reset-password', methods=['POST'])
def reset_password():
    """发送重置密码邮件 (总是返回成功)"""
    body = validate_body(ResetPasswordBody)
    enforce('reset_ip', get_client_ip())
    enforce('reset_email', body.email)

    return json_response(auth_service.request_password_reset(body.email))


@bp.route('/update-password', methods=['POST'])
def update_password():
    """用重置令牌修改密码"""
    token = _require_bearer_token()
    body = validate_body(UpdatePasswordBody)
    return json_response(auth_service.update_password(token, body.password))
