"""
自定义列表路由
"""
from flask import Blueprint
from flask_login import current_user, login_required

from tcgcollectr.services import lists as list_service
from tcgcollectr.utils.api_helpers import json_response
from tcgcollectr.validation import validate_body, validate_query
from tcgcollectr.validation.lists import (
    AddListEntriesBody, CreateListBody, ListDetailQuery, UpdateListBody,
)

bp = Blueprint('lists', __name__, url_prefix='/lists')


@bp.route('', methods=['GET'])
@login_required
def get_lists():
    """我的列表"""
    return json_response(list_service.get_lists(current_user.id))


@bp.route('', methods=['POST'])
@login_required
def create_list():
    """新建列表"""
    body = validate_body(CreateListBody)
    return json_response(list_service.create_list(current_user.id, body), status=201)


@bp.route('/<list_id>', methods=['GET'])
@login_required
def get_list(list_id):
    """列表详情"""
    query = validate_query(ListDetailQuery)
    return json_response(list_service.get_list(current_user.id, list_id, query))


@bp.route('/<list_id>', methods=['PATCH'])
@login_required
def update_list(list_id):
    """修改列表"""
    body = validate_body(UpdateListBody)
    return json_response(list_service.update_list(current_user.id, list_id, body))


@bp.route('/<list_id>', methods=['DELETE'])
@login_required
def delete_list(list_id):
    """删除列表"""
    return json_response(list_service.delete_list(current_user.id, list_id))


@bp.route('/<list_id>/entries', methods=['POST'])
@login_required
def add_entries(list_id):
    """把收藏加入列表"""
    body = validate_body(AddListEntriesBody)
    return json_response(list_service.add_entries(current_user.id, list_id, body))


@bp.route('/<list_id>/entries/<entry_id>', methods=['DELETE'])
@login_required
def remove_entry(list_id, entry_id):
    """从列表移除"""
    return json_response(list_service.remove_entry(current_user.id, list_id, entry_id))
