"""
卡片模型 - 核心数据结构
"""
from uuid import uuid4

from tcgcollectr import db
from tcgcollectr.utils.clock import utcnow
from tcgcollectr.utils.numbers import card_number_sort_key, normalize_card_number


class Card(db.Model):
    """
    卡片基础信息
    同一卡包内 card_number 唯一，跨卡包的再录卡是不同的记录
    """
    __tablename__ = 'cards'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid4()))

    # 所属卡包
    set_id = db.Column(db.String(36), db.ForeignKey('sets.id'), nullable=False, index=True)

    # 上游数据源中的编号 (如: sv3pt5-25)
    external_id = db.Column(db.String(50), nullable=False, index=True)

    # 卡片名称 (英文)
    name = db.Column(db.String(200), nullable=False, index=True)

    # 卡片编号 (如: 025, TG05, SWSH001)，统一大写
    card_number = db.Column(db.String(20), nullable=False, index=True)

    # 编号中的数字部分，用于按编号排序 ('025' -> 25)
    number_sort = db.Column(db.Integer, nullable=False, default=0, index=True)

    # 大类: Pokémon / Trainer / Energy
    supertype = db.Column(db.String(20))

    # 子类型 (逗号分隔): Basic,ex
    subtypes = db.Column(db.String(200))

    # 属性 (逗号分隔, 小写): fire,water
    types = db.Column(db.String(100), index=True)

    # 生命值
    hp = db.Column(db.Integer)

    # 稀有度
    rarity_id = db.Column(db.Integer, db.ForeignKey('rarities.id'), index=True)

    # 特性/招式/弱点/抗性 (上游原样保存)
    abilities = db.Column(db.JSON)
    attacks = db.Column(db.JSON)
    weaknesses = db.Column(db.JSON)
    resistances = db.Column(db.JSON)

    # 撤退费用
    retreat_cost = db.Column(db.Integer)

    # 规则文本 (ex/V 规则等)
    rules = db.Column(db.JSON)

    # 画师
    artist = db.Column(db.String(100))

    # 背景文本
    flavor_text = db.Column(db.Text)

    # 进化来源
    evolves_from = db.Column(db.String(100))

    # 图片
    image_small_url = db.Column(db.String(500))
    image_large_url = db.Column(db.String(500))

    # 创建/更新时间
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # 关系
    rarity = db.relationship('Rarity')
    prices = db.relationship('CardPrice', backref='card', lazy='dynamic', cascade='all, delete-orphan')

    # 联合唯一约束: 卡包 + 编号
    __table_args__ = (
        db.UniqueConstraint('set_id', 'card_number', name='uq_card_set_number'),
    )

    def __init__(self, **kwargs):
        if 'card_number' in kwargs:
            kwargs['card_number'] = normalize_card_number(kwargs['card_number'])
            kwargs.setdefault('number_sort', card_number_sort_key(kwargs['card_number']))
        super().__init__(**kwargs)

    def __repr__(self):
        return f'<Card {self.card_number} {self.name}>'

    @property
    def type_list(self):
        """返回属性列表"""
        return self.types.split(',') if self.types else []

    @property
    def subtype_list(self):
        """返回子类型列表"""
        return self.subtypes.split(',') if self.subtypes else []
