"""
用户资料路由
"""
from flask import Blueprint
from flask_login import current_user, login_required

from tcgcollectr.services import profile as profile_service
from tcgcollectr.utils.api_helpers import json_response
from tcgcollectr.validation import validate_body
from tcgcollectr.validation.profile import UpdateProfileBody

bp = Blueprint('profile', __name__, url_prefix='/profile')


@bp.route('', methods=['GET'])
@login_required
def get_profile():
    """当前用户资料"""
    return json_response(profile_service.get_profile(current_user.id))


@bp.route('', methods=['PATCH'])
@login_required
def update_profile():
    """修改资料"""
    body = validate_body(UpdateProfileBody)
    return json_response(profile_service.update_profile(current_user.id, body))


@bp.route('', methods=['DELETE'])
@login_required
def delete_profile():
    """删除账号资料 (软删除)"""
    return json_response(profile_service.delete_profile(current_user.id))
