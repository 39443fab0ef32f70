"""
数据模型模块
"""
from tcgcollectr.models.lookup import TcgType, Rarity, CardCondition, GradingCompany, PriceSource
from tcgcollectr.models.card_set import CardSet
from tcgcollectr.models.card import Card
from tcgcollectr.models.price import CardPrice
from tcgcollectr.models.user import User, AuthSession, UserProfile, AuthenticatedUser
from tcgcollectr.models.collection import CollectionEntry, UserList, ListEntry
from tcgcollectr.models.cache import ApiCache
from tcgcollectr.models.import_job import ImportJob
from tcgcollectr.models.analytics import AnalyticsEvent

__all__ = [
    'TcgType', 'Rarity', 'CardCondition', 'GradingCompany', 'PriceSource',
    'CardSet', 'Card', 'CardPrice',
    'User', 'AuthSession', 'UserProfile', 'AuthenticatedUser',
    'CollectionEntry', 'UserList', 'ListEntry',
    'ApiCache', 'ImportJob', 'AnalyticsEvent',
]
