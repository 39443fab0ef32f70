"""
tcgcollectr - 宝可梦卡牌收藏管理 JSON API (Flask 应用工厂)
"""
import os
import sys

from flask import Flask, request
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy
from loguru import logger

db = SQLAlchemy()
login_manager = LoginManager()


def configure_logging(app):
    """按配置设置 loguru 输出级别和文件日志"""
    logger.remove()
    logger.add(sys.stderr, level=app.config['LOG_LEVEL'])
    if app.config.get('LOG_FILE'):
        logger.add(app.config['LOG_FILE'], level=app.config['LOG_LEVEL'],
                   rotation="10 MB", retention="7 days")


def create_app(config_name=None):
    """应用工厂函数"""
    app = Flask(__name__)

    # 加载配置
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app.config.from_object(f'tcgcollectr.config.{config_name.capitalize()}Config')
    configure_logging(app)

    # 初始化扩展
    db.init_app(app)
    login_manager.init_app(app)
    login_manager.session_protection = None

    from tcgcollectr.services.identity import build_identity_provider
    from tcgcollectr.services.rate_limit import InMemoryRateLimiter
    from tcgcollectr.utils.background import TaskDispatcher

    app.extensions['identity_provider'] = build_identity_provider(app)
    app.extensions['rate_limiter'] = InMemoryRateLimiter()
    app.extensions['task_dispatcher'] = TaskDispatcher(
        max_workers=app.config['BACKGROUND_WORKERS'],
        eager=app.config['BACKGROUND_TASKS_EAGER'],
    )

    # 注册错误处理
    from tcgcollectr.errors import register_error_handlers
    register_error_handlers(app)

    # 注册蓝图
    from tcgcollectr.routes import catalog, auth, profile, collection, lists, admin

    app.register_blueprint(catalog.bp)
    app.register_blueprint(auth.bp)
    app.register_blueprint(profile.bp)
    app.register_blueprint(collection.bp)
    app.register_blueprint(lists.bp)
    app.register_blueprint(admin.bp)

    # 创建数据库表并写入字典数据
    with app.app_context():
        from tcgcollectr.models.lookup import seed_lookups
        db.create_all()
        seed_lookups()

    logger.debug(f"应用已创建 (config={config_name}, auth={app.config['AUTH_PROVIDER']})")
    return app


@login_manager.request_loader
def load_user_from_request(req):
    """从 Authorization: Bearer <token> 解析当前用户"""
    from flask import current_app
    from tcgcollectr.models.user import AuthenticatedUser
    from tcgcollectr.services.identity import IdentityProviderError
    from tcgcollectr.utils.api_helpers import parse_bearer_token

    token = parse_bearer_token(req.headers.get('Authorization'))
    if not token:
        return None

    provider = current_app.extensions['identity_provider']
    try:
        identity = provider.get_user(token)
    except IdentityProviderError as e:
        logger.debug(f"令牌校验失败: {e}")
        return None
    return AuthenticatedUser(identity.id, identity.email, token)


@login_manager.unauthorized_handler
def unauthorized():
    """未认证时返回统一错误格式"""
    from tcgcollectr.errors import ErrorCodes, ServiceError
    from tcgcollectr.utils.api_helpers import error_response, parse_bearer_token

    if parse_bearer_token(request.headers.get('Authorization')) is None:
        message = 'Missing or invalid Authorization header'
    else:
        message = 'Invalid or expired token'
    return error_response(ServiceError(ErrorCodes.UNAUTHORIZED, message, 401))
