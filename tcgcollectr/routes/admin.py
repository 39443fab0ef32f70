"""
管理员路由 - 导入任务状态 (只读)
"""
from flask import Blueprint
from flask_login import current_user, login_required

from tcgcollectr.services import admin as admin_service
from tcgcollectr.utils.api_helpers import json_response
from tcgcollectr.validation import validate_query
from tcgcollectr.validation.admin import ImportJobQuery, LatestImportJobQuery

bp = Blueprint('admin', __name__, url_prefix='/admin')


@bp.route('/import-jobs')
@login_required
def import_jobs():
    """导入任务列表"""
    admin_service.require_admin(current_user.id)
    query = validate_query(ImportJobQuery)
    return json_response(admin_service.list_import_jobs(query))


@bp.route('/import-jobs/latest')
@login_required
def latest_import_job():
    """最近一次导入任务"""
    admin_service.require_admin(current_user.id)
    query = validate_query(LatestImportJobQuery)
    return json_response(admin_service.latest_import_job(query.job_type))
