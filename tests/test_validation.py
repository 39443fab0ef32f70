"""
请求校验测试
"""
import pytest

from tcgcollectr.errors import ServiceError
from tcgcollectr.validation import parse_model
from tcgcollectr.validation.auth import LoginBody, RegisterBody, check_password_strength
from tcgcollectr.validation.catalog import CardSearchQuery, SetPathParams
from tcgcollectr.validation.collection import AddCollectionEntryBody, UpdateCollectionEntryBody
from tcgcollectr.validation.lists import AddListEntriesBody, UpdateListBody
from tcgcollectr.validation.profile import UpdateProfileBody

SET_UUID = '3f2b8c1e-0d4a-4e59-9c1b-7a6f2e1d0c9b'


def _fields(model_cls, data):
    with pytest.raises(ServiceError) as exc_info:
        parse_model(model_cls, data)
    assert exc_info.value.status_code == 400
    return exc_info.value.details['fields']


class TestPasswordStrength:
    """密码强度测试"""

    def test_missing_symbol(self):
        """12 位但没有符号"""
        assert check_password_strength('Abcdefghij12') is not None

    def test_strong(self):
        assert check_password_strength('Str0ng!Passw0rd') is None

    def test_too_short(self):
        assert check_password_strength('Sh0rt!') == 'Password must be at least 12 characters'

    def test_too_long(self):
        """73 位被拒绝"""
        password = 'Aa1!' + 'a' * 69
        assert len(password) == 73
        assert check_password_strength(password) == 'Password must not exceed 72 characters'


class TestAuthBodies:
    """认证请求体测试"""

    def test_register_normalizes_email(self):
        body = parse_model(RegisterBody, {'email': '  Ash@Pallet.IO ', 'password': 'Str0ng!Passw0rd'})
        assert body.email == 'ash@pallet.io'

    def test_register_weak_password(self):
        fields = _fields(RegisterBody, {'email': 'ash@pallet.io', 'password': 'weak'})
        assert 'password' in fields

    def test_register_invalid_email(self):
        fields = _fields(RegisterBody, {'email': 'not-an-email', 'password': 'Str0ng!Passw0rd'})
        assert 'email' in fields

    def test_login_accepts_any_password(self):
        """登录不校验密码强度"""
        body = parse_model(LoginBody, {'email': 'ash@pallet.io', 'password': 'x'})
        assert body.password == 'x'

    def test_login_empty_password(self):
        assert 'password' in _fields(LoginBody, {'email': 'ash@pallet.io', 'password': ''})


class TestCardSearchQuery:
    """卡片搜索参数测试"""

    def test_defaults(self):
        query = parse_model(CardSearchQuery, {})
        assert query.page == 1
        assert query.page_size == 24
        assert query.sort == 'name'
        assert query.order == 'asc'

    def test_set_id_and_external_id_conflict(self):
        fields = _fields(CardSearchQuery, {'setId': SET_UUID, 'setExternalId': 'base1'})
        assert fields['setExternalId'] == ['Provide either setId or setExternalId, not both']

    def test_short_q(self):
        assert 'q' in _fields(CardSearchQuery, {'q': 'p'})

    def test_page_size_bounds(self):
        assert 'pageSize' in _fields(CardSearchQuery, {'pageSize': '101'})
        assert 'pageSize' in _fields(CardSearchQuery, {'pageSize': '0'})

    def test_type_normalized(self):
        assert parse_model(CardSearchQuery, {'type': 'Fire'}).type == 'fire'

    def test_unknown_type(self):
        assert 'type' in _fields(CardSearchQuery, {'type': 'steel'})

    def test_card_number_uppercased(self):
        assert parse_model(CardSearchQuery, {'cardNumber': ' sv001 '}).card_number == 'SV001'

    def test_invalid_set_id(self):
        assert 'setId' in _fields(CardSearchQuery, {'setId': 'not-a-uuid'})

    def test_set_path_format(self):
        assert _fields(SetPathParams, {'setId': 'base 1'})['setId'] == ['setId format is invalid']


class TestCollectionBodies:
    """收藏请求体测试"""

    def test_quantity_zero(self):
        fields = _fields(AddCollectionEntryBody, {'cardId': 'c1', 'conditionId': 1, 'quantity': 0})
        assert fields['quantity'] == ['quantity must be greater than 0']

    def test_quantity_default(self):
        body = parse_model(AddCollectionEntryBody, {'cardId': 'c1', 'conditionId': 1})
        assert body.quantity == 1

    def test_grade_requires_company(self):
        fields = _fields(AddCollectionEntryBody, {'cardId': 'c1', 'conditionId': 1, 'gradeValue': 9})
        assert fields['gradeValue'] == ['gradeValue requires gradingCompanyId']

    def test_company_requires_grade(self):
        """缺省值触发的错误也用 camelCase 字段名"""
        fields = _fields(AddCollectionEntryBody, {'cardId': 'c1', 'conditionId': 1, 'gradingCompanyId': 1})
        assert fields == {'gradeValue': ['gradeValue is required when gradingCompanyId is set']}

    def test_grade_rounded_to_one_decimal(self):
        body = parse_model(AddCollectionEntryBody,
                           {'cardId': 'c1', 'conditionId': 1, 'gradingCompanyId': 1, 'gradeValue': 9.25})
        assert body.grade_value == 9.2
        body = parse_model(UpdateCollectionEntryBody, {'gradeValue': 8.04})
        assert body.grade_value == 8.0

    def test_update_rejects_null_condition(self):
        fields = _fields(UpdateCollectionEntryBody, {'conditionId': None})
        assert fields == {'conditionId': ['conditionId must not be null']}

    def test_condition_required(self):
        assert 'conditionId' in _fields(AddCollectionEntryBody, {'cardId': 'c1'})

    def test_negative_purchase_price(self):
        fields = _fields(AddCollectionEntryBody, {'cardId': 'c1', 'conditionId': 1, 'purchasePrice': -1})
        assert 'purchasePrice' in fields

    def test_update_requires_a_field(self):
        assert 'body' in _fields(UpdateCollectionEntryBody, {})

    def test_update_tracks_explicit_null(self):
        body = parse_model(UpdateCollectionEntryBody, {'gradingCompanyId': None})
        assert body.model_fields_set == {'grading_company_id'}


class TestOtherBodies:
    """资料/列表请求体测试"""

    def test_profile_requires_a_field(self):
        assert 'body' in _fields(UpdateProfileBody, {})

    def test_profile_avatar_must_be_http(self):
        assert 'avatarUrl' in _fields(UpdateProfileBody, {'avatarUrl': 'ftp://x/y.png'})

    def test_profile_display_name_too_long(self):
        assert 'displayName' in _fields(UpdateProfileBody, {'displayName': 'x' * 101})

    def test_list_entry_ids_deduped(self):
        body = parse_model(AddListEntriesBody, {'entryIds': ['a', 'b', 'a']})
        assert body.entry_ids == ['a', 'b']

    def test_list_entry_ids_required(self):
        assert 'entryIds' in _fields(AddListEntriesBody, {'entryIds': []})

    def test_list_update_blank_name(self):
        assert 'name' in _fields(UpdateListBody, {'name': '   '})
