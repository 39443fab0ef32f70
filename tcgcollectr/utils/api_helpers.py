"""
API 通用工具 - 客户端 IP、Bearer 令牌解析、统一响应格式
"""
import hashlib

from flask import current_app, jsonify, request


def get_client_ip(req=None):
    """
    获取客户端 IP

    优先 X-Forwarded-For 的第一跳，其次 X-Real-IP，最后 remote_addr
    """
    req = req or request
    forwarded_for = req.headers.get('X-Forwarded-For')
    if forwarded_for:
        first = forwarded_for.split(',')[0].strip()
        if first:
            return first

    real_ip = req.headers.get('X-Real-IP')
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return req.remote_addr or 'unknown'


def parse_bearer_token(auth_header):
    """解析 'Bearer <token>'，缺失或格式错误返回 None"""
    if not auth_header:
        return None

    parts = auth_header.strip().split()
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return None

    return parts[1].strip() or None


def hash_string(value):
    """SHA-256 十六进制摘要 (用于匿名化 IP)"""
    return hashlib.sha256(value.encode('utf-8')).hexdigest()


def json_response(body, status=200, cache_control='no-store', headers=None):
    """返回 JSON 响应，显式设置状态码与 Cache-Control"""
    response = jsonify(body)
    response.status_code = status
    response.headers['Cache-Control'] = cache_control
    for key, value in (headers or {}).items():
        response.headers[key] = value
    return response


def catalog_cache_control():
    """目录类只读接口的 Cache-Control"""
    return f"public, max-age={current_app.config['CATALOG_CACHE_MAX_AGE']}"


def error_response(error):
    """ServiceError -> 统一错误响应"""
    headers = {}
    details = error.details if isinstance(error.details, dict) else {}
    if error.status_code == 429 and 'retryAfter' in details:
        headers['Retry-After'] = str(details['retryAfter'])
    return json_response(error.to_dict(), status=error.status_code, headers=headers)
