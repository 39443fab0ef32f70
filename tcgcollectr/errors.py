"""
统一错误类型与错误处理
"""
from loguru import logger
from werkzeug.exceptions import HTTPException

from tcgcollectr import db


class ErrorCodes:
    """错误码"""
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    INVALID_FILTER = 'INVALID_FILTER'
    RATE_LIMIT_EXCEEDED = 'RATE_LIMIT_EXCEEDED'
    UNAUTHORIZED = 'UNAUTHORIZED'
    INVALID_CREDENTIALS = 'INVALID_CREDENTIALS'
    ALREADY_AUTHENTICATED = 'ALREADY_AUTHENTICATED'
    EMAIL_EXISTS = 'EMAIL_EXISTS'
    WEAK_PASSWORD = 'WEAK_PASSWORD'
    FORBIDDEN = 'FORBIDDEN'
    NOT_FOUND = 'NOT_FOUND'
    CARD_NOT_FOUND = 'CARD_NOT_FOUND'
    SET_NOT_FOUND = 'SET_NOT_FOUND'
    ENTRY_NOT_FOUND = 'ENTRY_NOT_FOUND'
    LIST_NOT_FOUND = 'LIST_NOT_FOUND'
    DUPLICATE_ENTRY = 'DUPLICATE_ENTRY'
    LIST_LIMIT_REACHED = 'LIST_LIMIT_REACHED'
    LIST_NAME_EXISTS = 'LIST_NAME_EXISTS'
    METHOD_NOT_ALLOWED = 'METHOD_NOT_ALLOWED'
    CATALOG_UNAVAILABLE = 'CATALOG_UNAVAILABLE'
    STATUS_UNAVAILABLE = 'STATUS_UNAVAILABLE'
    AUTH_UNAVAILABLE = 'AUTH_UNAVAILABLE'
    INTERNAL_ERROR = 'INTERNAL_ERROR'


class ServiceError(Exception):
    """
    业务层错误

    路由层捕获后原样序列化为 {"error": {"code", "message", "details"}}
    """

    def __init__(self, code, message, status_code, details=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details

    def to_dict(self):
        error = {'code': self.code, 'message': self.message}
        if self.details is not None:
            error['details'] = self.details
        return {'error': error}

    def __repr__(self):
        return f'<ServiceError {self.code} {self.status_code}>'


# HTTP 状态码 -> 错误码 (路由未命中、方法不允许等框架级错误)
_HTTP_ERROR_CODES = {
    400: ErrorCodes.VALIDATION_ERROR,
    401: ErrorCodes.UNAUTHORIZED,
    403: ErrorCodes.FORBIDDEN,
    404: ErrorCodes.NOT_FOUND,
    405: ErrorCodes.METHOD_NOT_ALLOWED,
}


def register_error_handlers(app):
    """注册全局错误处理"""
    from tcgcollectr.utils.api_helpers import error_response

    @app.errorhandler(ServiceError)
    def handle_service_error(e):
        if e.status_code >= 500:
            logger.error(f"{e.code}: {e.message}")
        return error_response(e)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        code = _HTTP_ERROR_CODES.get(e.code, ErrorCodes.INTERNAL_ERROR)
        return error_response(ServiceError(code, e.description or e.name, e.code))

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        # 不向客户端暴露堆栈或驱动错误文本
        logger.exception(f"未处理的异常: {e.__class__.__name__}")
        db.session.rollback()
        return error_response(ServiceError(
            ErrorCodes.INTERNAL_ERROR, 'An unexpected error occurred', 500
        ))
