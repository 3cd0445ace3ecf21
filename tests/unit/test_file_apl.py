import json

import pytest

from src.apl.file import FileAPL
from src.utils.factories import AuthDataFactory


class TestFileAPL:
    """Tests for the single-file auth persistence backend."""

    @pytest.mark.unit
    def test_get_without_file_returns_none(self, file_apl):
        assert file_apl.get("https://shop.example.com/graphql/") is None
        assert file_apl.get_all() == []

    @pytest.mark.unit
    def test_set_then_get(self, file_apl, auth_data):
        file_apl.set(auth_data)
        assert file_apl.get(auth_data.api_url) == auth_data

    @pytest.mark.unit
    def test_file_uses_platform_keys(self, file_apl, auth_data):
        file_apl.set(auth_data)
        stored = json.loads(file_apl.path.read_text())
        assert stored == {
            "saleorApiUrl": auth_data.api_url,
            "token": auth_data.token,
            "appId": auth_data.app_id,
        }

    @pytest.mark.unit
    def test_get_for_other_url_returns_none(self, file_apl, auth_data):
        file_apl.set(auth_data)
        assert file_apl.get("https://other.example.com/graphql/") is None

    @pytest.mark.unit
    def test_only_one_installation_is_kept(self, file_apl):
        first = AuthDataFactory.create(api_url="https://a.example.com/graphql/")
        second = AuthDataFactory.create(api_url="https://b.example.com/graphql/")
        file_apl.set(first)
        file_apl.set(second)

        assert file_apl.get(first.api_url) is None
        assert file_apl.get_all() == [second]

    @pytest.mark.unit
    def test_delete_matching_installation(self, file_apl, auth_data):
        file_apl.set(auth_data)
        file_apl.delete(auth_data.api_url)
        assert file_apl.get(auth_data.api_url) is None
        assert file_apl.get_all() == []

    @pytest.mark.unit
    def test_delete_other_installation_keeps_data(self, file_apl, auth_data):
        file_apl.set(auth_data)
        file_apl.delete("https://other.example.com/graphql/")
        assert file_apl.get(auth_data.api_url) == auth_data

    @pytest.mark.unit
    def test_corrupted_file_is_ignored(self, tmp_path):
        path = tmp_path / "auth.json"
        path.write_text("{not json")
        assert FileAPL(path).get_all() == []

    @pytest.mark.unit
    @pytest.mark.parametrize("content", ["[]", "null", "\"token\"", "42"])
    def test_json_that_is_not_an_object_is_ignored(self, tmp_path, content):
        path = tmp_path / "auth.json"
        path.write_text(content)
        apl = FileAPL(path)
        assert apl.get("https://shop.example.com/graphql/") is None
        assert apl.get_all() == []

    @pytest.mark.unit
    def test_set_replaces_a_file_that_is_not_an_object(self, tmp_path, auth_data):
        path = tmp_path / "auth.json"
        path.write_text("[]")
        apl = FileAPL(path)
        apl.set(auth_data)
        assert apl.get(auth_data.api_url) == auth_data

    @pytest.mark.unit
    def test_file_without_token_is_ignored(self, tmp_path):
        path = tmp_path / "auth.json"
        path.write_text(json.dumps({"saleorApiUrl": "https://shop.example.com/graphql/"}))
        assert FileAPL(path).get("https://shop.example.com/graphql/") is None

    @pytest.mark.unit
    def test_is_always_configured(self, file_apl):
        assert file_apl.is_configured()
