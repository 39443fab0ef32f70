"""
配置文件 - 开发/生产/测试环境分离
"""
import os

basedir = os.path.abspath(os.path.dirname(__file__))


class BaseConfig:
    """基础配置"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'tcgcollectr-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 外部存储调用必须有超时 (秒)
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_timeout': 10,
    }

    # 卡片目录每页数量 / 系列列表每页数量 / 收藏每页数量
    CARDS_PER_PAGE = 24
    SETS_PER_PAGE = 20
    COLLECTION_PER_PAGE = 20
    MAX_PAGE_SIZE = 100

    # 目录缓存: api_cache 有效期 (小时) 与 Cache-Control max-age (秒)
    CATALOG_CACHE_TTL_HOURS = 24
    CATALOG_CACHE_MAX_AGE = 60

    # 价格来源优先级 (越靠前优先级越高)
    PRICE_SOURCE_PRIORITY = ['tcgcsv', 'pokemontcg']
    MARKET_PRICE_TYPE = 'market'

    # 限流策略: 名称 -> (次数, 窗口秒数)
    RATE_LIMITS = {
        'register': (5, 60),
        'login': (5, 900),
        'reset_ip': (3, 900),
        'reset_email': (3, 900),
    }

    # 身份提供方: local (本地用户表) / gotrue (托管认证服务)
    AUTH_PROVIDER = os.environ.get('AUTH_PROVIDER', 'local')
    GOTRUE_URL = os.environ.get('GOTRUE_URL', '')
    GOTRUE_API_KEY = os.environ.get('GOTRUE_API_KEY', '')
    AUTH_TIMEOUT = float(os.environ.get('AUTH_TIMEOUT', '10'))
    ACCESS_TOKEN_TTL = 3600
    RECOVERY_TOKEN_TTL = 3600

    # 重置密码邮件中的回跳地址
    SITE_URL = os.environ.get('SITE_URL', 'http://localhost:3000')

    # 后台任务 (统计事件、缓存写入)
    BACKGROUND_TASKS_EAGER = False
    BACKGROUND_WORKERS = 4

    # 日志
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')

    # 每个用户最多的自定义列表数
    MAX_LISTS_PER_USER = 10


class DevelopmentConfig(BaseConfig):
    """开发环境配置"""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, '..', 'data', 'tcgcollectr_dev.db')


class ProductionConfig(BaseConfig):
    """生产环境配置"""
    DEBUG = False

    # Handle Render's postgres:// vs SQLAlchemy's postgresql://
    _db_uri = os.environ.get('DATABASE_URL', '')
    if _db_uri.startswith('postgres://'):
        _db_uri = _db_uri.replace('postgres://', 'postgresql://', 1)
    SQLALCHEMY_DATABASE_URI = _db_uri or 'sqlite:///' + os.path.join(basedir, '..', 'data', 'tcgcollectr.db')


class TestingConfig(BaseConfig):
    """测试环境配置"""
    TESTING = True
    SECRET_KEY = 'testing-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    AUTH_PROVIDER = 'local'
    BACKGROUND_TASKS_EAGER = True
    LOG_LEVEL = 'WARNING'
    LOG_FILE = None
