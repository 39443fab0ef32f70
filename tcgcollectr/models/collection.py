"""
收藏和自定义列表模型
"""
from uuid import uuid4

from tcgcollectr import db
from tcgcollectr.utils.clock import utcnow


class CollectionEntry(db.Model):
    """
    用户收藏 - 已拥有的卡片
    同一张卡的不同品相/评级是不同的记录
    """
    __tablename__ = 'collection_entries'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid4()))

    # 所属用户 (身份提供方的 subject id)
    user_id = db.Column(db.String(64), nullable=False, index=True)

    # 收藏的卡片
    card_id = db.Column(db.String(36), db.ForeignKey('cards.id'), nullable=False, index=True)

    # 品相
    condition_id = db.Column(db.Integer, db.ForeignKey('card_conditions.id'))

    # 拥有数量 (必须大于 0)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    # 评级公司和分数 (如 PSA 10)
    grading_company_id = db.Column(db.Integer, db.ForeignKey('grading_companies.id'))
    grade_value = db.Column(db.Numeric(3, 1))

    # 购入单价 (可选)
    purchase_price = db.Column(db.Numeric(10, 2))

    # 备注
    notes = db.Column(db.String(500))

    # 创建/更新时间
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # 关系
    card = db.relationship('Card')
    condition = db.relationship('CardCondition')
    grading_company = db.relationship('GradingCompany')
    list_entries = db.relationship('ListEntry', backref='collection_entry', lazy='dynamic',
                                   cascade='all, delete-orphan')

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_collection_quantity_positive'),
        db.CheckConstraint('purchase_price IS NULL OR purchase_price >= 0', name='ck_collection_price'),
    )

    def __repr__(self):
        return f'<CollectionEntry user={self.user_id} card={self.card_id}>'

    @classmethod
    def owned_by(cls, user_id):
        """只查询该用户自己的收藏"""
        return cls.query.filter(cls.user_id == user_id)


class UserList(db.Model):
    """
    自定义列表 - 对收藏分组 (如: 交易用、PSA 送评)
    """
    __tablename__ = 'user_lists'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid4()))

    # 所属用户
    user_id = db.Column(db.String(64), nullable=False, index=True)

    # 列表名称
    name = db.Column(db.String(50), nullable=False)

    # 显示顺序
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    # 创建/更新时间
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # 关系
    entries = db.relationship('ListEntry', backref='user_list', lazy='dynamic', cascade='all, delete-orphan')

    # 同一用户的列表名称唯一
    __table_args__ = (
        db.UniqueConstraint('user_id', 'name', name='uq_user_list_name'),
    )

    def __repr__(self):
        return f'<UserList {self.name}>'

    @classmethod
    def owned_by(cls, user_id):
        """只查询该用户自己的列表"""
        return cls.query.filter(cls.user_id == user_id)


class ListEntry(db.Model):
    """列表成员"""
    __tablename__ = 'list_entries'

    id = db.Column(db.Integer, primary_key=True)
    list_id = db.Column(db.String(36), db.ForeignKey('user_lists.id'), nullable=False, index=True)
    collection_entry_id = db.Column(db.String(36), db.ForeignKey('collection_entries.id'),
                                    nullable=False, index=True)
    added_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint('list_id', 'collection_entry_id', name='uq_list_entry'),
    )

    def __repr__(self):
        return f'<ListEntry list={self.list_id} entry={self.collection_entry_id}>'
