"""
用户模型 - 本地身份存储、登录会话、用户资料
"""
from uuid import uuid4

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from tcgcollectr import db
from tcgcollectr.utils.clock import utcnow


class User(db.Model):
    """
    本地账号 (仅 LocalIdentityProvider 使用)
    使用托管认证服务时账号保存在对方，这张表为空
    """
    __tablename__ = 'users'

    id = db.Column(db.String(64), primary_key=True, default=lambda: str(uuid4()))

    # 邮箱 (唯一, 小写)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)

    # 密码哈希
    password_hash = db.Column(db.String(256), nullable=False)

    # 创建/更新时间
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    last_login_at = db.Column(db.DateTime)

    # 关系
    sessions = db.relationship('AuthSession', backref='user', lazy='dynamic', cascade='all, delete-orphan')

    def set_password(self, password):
        """设置密码"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """验证密码"""
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f'<User {self.email}>'


class AuthSession(db.Model):
    """登录会话 (本地身份提供方签发的令牌绑定到一条会话)"""
    __tablename__ = 'auth_sessions'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False, index=True)

    # 刷新令牌
    refresh_token = db.Column(db.String(64), unique=True, nullable=False)

    # 过期/注销时间
    expires_at = db.Column(db.DateTime, nullable=False)
    revoked_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<AuthSession {self.id} user={self.user_id}>'

    @property
    def is_active(self):
        return self.revoked_at is None and self.expires_at > utcnow()


class UserProfile(db.Model):
    """
    用户资料
    与身份提供方的用户一一对应，id 即 subject id
    """
    __tablename__ = 'user_profiles'

    id = db.Column(db.String(64), primary_key=True)

    # 显示名称
    display_name = db.Column(db.String(100))

    # 头像URL
    avatar_url = db.Column(db.String(500))

    # 管理员 (可查看导入任务状态)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)

    # 创建/更新时间
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # 软删除时间
    deleted_at = db.Column(db.DateTime)

    def __repr__(self):
        return f'<UserProfile {self.id}>'

    @classmethod
    def active(cls, user_id):
        """未删除的资料，不存在返回 None"""
        return cls.query.filter(cls.id == user_id, cls.deleted_at.is_(None)).first()


class AuthenticatedUser(UserMixin):
    """
    当前请求的认证用户 (Flask-Login 的 current_user)

    由 Bearer 令牌解析得到，不落库
    """

    def __init__(self, user_id, email, token):
        self.id = user_id
        self.email = email
        self.token = token

    def get_id(self):
        return self.id

    def __repr__(self):
        return f'<AuthenticatedUser {self.id}>'
