"""
卡片目录路由 - 公开只读
"""
from flask import Blueprint

from tcgcollectr.errors import ErrorCodes
from tcgcollectr.services import catalog
from tcgcollectr.utils.api_helpers import catalog_cache_control, json_response
from tcgcollectr.validation import parse_model, validate_query
from tcgcollectr.validation.catalog import CardSearchQuery, RarityQuery, SetListQuery, SetPathParams

bp = Blueprint('catalog', __name__)


@bp.route('/cards')
def search_cards():
    """卡片搜索"""
    query = validate_query(CardSearchQuery, code=ErrorCodes.INVALID_FILTER, message='Invalid search filters')
    return json_response(catalog.search_cards(query), cache_control=catalog_cache_control())


@bp.route('/cards/<card_id>')
def card_detail(card_id):
    """卡片详情"""
    return json_response(catalog.get_card(card_id), cache_control=catalog_cache_control())


@bp.route('/sets')
def set_list():
    """卡包列表"""
    query = validate_query(SetListQuery)
    return json_response(catalog.list_sets(query), cache_control=catalog_cache_control())


@bp.route('/sets/<set_id>')
def set_detail(set_id):
    """卡包详情"""
    params = parse_model(SetPathParams, {'setId': set_id}, message='Invalid setId')
    return json_response(catalog.get_set(params.set_id), cache_control=catalog_cache_control())


@bp.route('/rarities')
def rarities():
    """稀有度"""
    query = validate_query(RarityQuery)
    return json_response(catalog.list_rarities(query.tcg_type_id), cache_control=catalog_cache_control())


@bp.route('/conditions')
def conditions():
    """品相"""
    return json_response(catalog.list_conditions(), cache_control=catalog_cache_control())


@bp.route('/grading-companies')
def grading_companies():
    """评级公司"""
    return json_response(catalog.list_grading_companies(), cache_control=catalog_cache_control())


@bp.route('/tcg-types')
def tcg_types():
    """卡牌游戏类型"""
    return json_response(catalog.list_tcg_types(), cache_control=catalog_cache_control())
