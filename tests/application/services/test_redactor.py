# tests/application/services/test_redactor.py
from application.services.redactor import MASK, mask_dict, mask_value


class TestMaskValue:
    def test_mask_password(self):
        assert mask_value("password", "secret123") == MASK

    def test_mask_authorization(self):
        assert mask_value("authorization", "Bearer token123") == MASK

    def test_mask_cookie(self):
        assert mask_value("cookie", "session=abc123") == MASK

    def test_mask_api_key_headers(self):
        assert mask_value("X-API-Key", "k-123") == MASK
        assert mask_value("api-key", "k-456") == MASK

    def test_mask_case_insensitive(self):
        assert mask_value("PASSWORD", "secret") == MASK
        assert mask_value("Authorization", "token") == MASK

    def test_no_mask_regular_key(self):
        assert mask_value("Content-Type", "application/json") == "application/json"
        assert mask_value("email", "john@example.com") == "john@example.com"

    def test_mask_none_value(self):
        assert mask_value("password", None) is None

    def test_no_mask_numeric_value(self):
        assert mask_value("count", 42) == 42


class TestMaskDict:
    def test_mask_request_headers(self):
        headers = {
            "Accept": "application/json",
            "Authorization": "Bearer abc",
            "X-Api-Key": "k",
        }
        assert mask_dict(headers) == {
            "Accept": "application/json",
            "Authorization": MASK,
            "X-Api-Key": MASK,
        }

    def test_mask_dict_empty_dict(self):
        assert mask_dict({}) == {}

    def test_mask_dict_does_not_modify_input(self):
        headers = {"Authorization": "Bearer abc"}
        mask_dict(headers)
        assert headers == {"Authorization": "Bearer abc"}
