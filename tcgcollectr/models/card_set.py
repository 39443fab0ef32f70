"""
卡包/系列模型
"""
from uuid import uuid4

from tcgcollectr import db
from tcgcollectr.utils.clock import utcnow


class CardSet(db.Model):
    """
    卡包 (扩展包)
    如: Scarlet & Violet 151, Obsidian Flames
    """
    __tablename__ = 'sets'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid4()))

    # 所属卡牌游戏
    tcg_type_id = db.Column(db.Integer, db.ForeignKey('tcg_types.id'), nullable=False, index=True)

    # 上游数据源中的编号 (如: sv3pt5, swsh12)
    external_id = db.Column(db.String(50), nullable=False, index=True)

    # 卡包名称
    name = db.Column(db.String(200), nullable=False, index=True)

    # 所属大系列 (如: Scarlet & Violet)
    series = db.Column(db.String(100), index=True)

    # 发售日期
    release_date = db.Column(db.Date)

    # 卡包内卡片总数
    total_cards = db.Column(db.Integer)

    # 图标/Logo
    symbol_url = db.Column(db.String(500))
    logo_url = db.Column(db.String(500))

    # 最近一次同步时间
    last_synced_at = db.Column(db.DateTime)

    # 创建/更新时间
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # 关系
    tcg_type = db.relationship('TcgType')
    cards = db.relationship('Card', backref='card_set', lazy='dynamic', cascade='all, delete-orphan')

    __table_args__ = (
        db.UniqueConstraint('tcg_type_id', 'external_id', name='uq_set_tcg_external'),
    )

    def __repr__(self):
        return f'<CardSet {self.external_id} {self.name}>'
