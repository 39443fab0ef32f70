"""
测试公共 fixture
"""
import itertools
from datetime import date, datetime

import pytest

from tcgcollectr import create_app, db
from tcgcollectr.models import Card, CardPrice, CardSet, PriceSource, Rarity, TcgType

STRONG_PASSWORD = 'Str0ng!Passw0rd'

_ip_counter = itertools.count(1)


@pytest.fixture
def app():
    """创建测试应用"""
    app = create_app('testing')
    yield app
    with app.app_context():
        db.drop_all()


@pytest.fixture
def client(app):
    """创建测试客户端"""
    return app.test_client()


@pytest.fixture
def catalog(app):
    """
    创建测试目录数据

    两个卡包，三张 Pikachu 分布在两个卡包里，另有一张 Charmander
    """
    with app.app_context():
        pokemon = TcgType.query.filter_by(code='pokemon').first()
        common = Rarity(tcg_type_id=pokemon.id, code='common', name='Common', sort_order=1)
        rare = Rarity(tcg_type_id=pokemon.id, code='rare', name='Rare', sort_order=3)
        db.session.add_all([common, rare])

        base = CardSet(tcg_type_id=pokemon.id, external_id='base1', name='Base Set', series='Base',
                       release_date=date(1999, 1, 9), total_cards=102)
        jungle = CardSet(tcg_type_id=pokemon.id, external_id='base2', name='Jungle', series='Base',
                         release_date=date(1999, 6, 16), total_cards=64)
        db.session.add_all([base, jungle])
        db.session.flush()

        cards = {
            'pikachu_base': Card(set_id=base.id, external_id='base1-58', name='Pikachu', card_number='58/102',
                                 supertype='Pokémon', subtypes='Basic', types='lightning', hp=40,
                                 rarity_id=common.id),
            'pikachu_jungle': Card(set_id=jungle.id, external_id='base2-60', name='Pikachu', card_number='60/64',
                                   supertype='Pokémon', subtypes='Basic', types='lightning', hp=50,
                                   rarity_id=common.id),
            'pikachu_promo': Card(set_id=base.id, external_id='base1-101', name='Flying Pikachu',
                                  card_number='101/102', supertype='Pokémon', subtypes='Basic',
                                  types='lightning,colorless', hp=40, rarity_id=rare.id),
            'charmander': Card(set_id=base.id, external_id='base1-46', name='Charmander', card_number='46/102',
                               supertype='Pokémon', subtypes='Basic', types='fire', hp=50, rarity_id=common.id,
                               attacks=[{'name': 'Scratch', 'damage': '10'}]),
        }
        db.session.add_all(cards.values())
        db.session.flush()

        tcgcsv = PriceSource.query.filter_by(code='tcgcsv').first()
        pokemontcg = PriceSource.query.filter_by(code='pokemontcg').first()
        db.session.add_all([
            CardPrice(card_id=cards['pikachu_base'].id, source_id=pokemontcg.id, price_type='market',
                      price=9.99, fetched_at=datetime(2026, 10, 17, 8, 0)),
            CardPrice(card_id=cards['pikachu_base'].id, source_id=tcgcsv.id, price_type='market',
                      price=4.50, fetched_at=datetime(2026, 10, 16, 8, 0)),
            CardPrice(card_id=cards['pikachu_base'].id, source_id=tcgcsv.id, price_type='market',
                      price=5.25, fetched_at=datetime(2026, 10, 17, 8, 0)),
            CardPrice(card_id=cards['charmander'].id, source_id=pokemontcg.id, price_type='market',
                      price=2.00, fetched_at=datetime(2026, 10, 17, 8, 0)),
            CardPrice(card_id=cards['charmander'].id, source_id=tcgcsv.id, price_type='low',
                      price=1.00, fetched_at=datetime(2026, 10, 17, 8, 0)),
        ])
        db.session.commit()

        return {
            'sets': {'base': base.id, 'jungle': jungle.id},
            'rarities': {'common': common.id, 'rare': rare.id},
            'cards': {name: card.id for name, card in cards.items()},
        }


def unique_ip():
    n = next(_ip_counter)
    return f"10.1.{n // 250}.{n % 250 + 1}"


@pytest.fixture
def make_user(client):
    """注册用户并返回 (access_token, user_id)，每次使用不同的来源 IP 以免触发限流"""
    counter = itertools.count(1)

    def _make_user(email=None, password=STRONG_PASSWORD):
        email = email or f'trainer{next(counter)}@pallet.io'
        response = client.post('/auth/register', json={'email': email, 'password': password},
                               headers={'X-Forwarded-For': unique_ip()})
        assert response.status_code == 201, response.get_json()
        data = response.get_json()
        return data['session']['access_token'], data['user']['id']

    return _make_user
