"""Tests for appjson.deploy.paths (staging path resolution)."""

from pathlib import Path
from unittest.mock import patch

import pytest

from appjson.core.errors import ConfigError, InvalidAppNameError
from appjson.deploy.paths import (
    AttemptToken,
    StagingPaths,
    canonical_path,
    normalize_document_path,
    source_locations,
    validate_app_name,
)


class TestAttemptToken:
    def test_explicit_value(self):
        assert AttemptToken.resolve("deploy-7").value == "deploy-7"

    def test_falls_back_to_parent_pid(self):
        with patch("os.getppid", return_value=1234):
            assert AttemptToken.resolve().value == "1234"
            assert AttemptToken.resolve("").value == "1234"

    def test_deploy_pid_preferred_over_parent_pid(self, monkeypatch):
        monkeypatch.setenv("DOKKU_PID", "777")
        with patch("os.getppid", return_value=1234):
            assert AttemptToken.resolve().value == "777"
        assert AttemptToken.resolve("deploy-7").value == "deploy-7"

    def test_blank_deploy_pid_ignored(self, monkeypatch):
        monkeypatch.setenv("DOKKU_PID", " ")
        with patch("os.getppid", return_value=1234):
            assert AttemptToken.resolve().value == "1234"

    def test_str(self):
        assert str(AttemptToken("42")) == "42"

    @pytest.mark.parametrize("value", ["", "a/b", ".hidden"])
    def test_invalid(self, value):
        with pytest.raises(ConfigError, match="Invalid attempt token"):
            AttemptToken(value)

    def test_equality(self):
        assert AttemptToken("42") == AttemptToken("42")
        assert AttemptToken("42") != AttemptToken("43")


class TestValidateAppName:
    def test_valid(self):
        assert validate_app_name("api") == "api"

    @pytest.mark.parametrize("name", ["", "  ", "a/b", "..", "."])
    def test_invalid(self, name):
        with pytest.raises(InvalidAppNameError):
            validate_app_name(name)


class TestNormalizeDocumentPath:
    @pytest.mark.parametrize(
        "configured, expected",
        [
            (None, "app.json"),
            ("", "app.json"),
            ("/", "app.json"),
            ("app.json", "app.json"),
            ("/config/app.json/", "config/app.json"),
            ("  deploy/app.json ", "deploy/app.json"),
        ],
    )
    def test_normalize(self, configured, expected):
        assert normalize_document_path(configured) == expected


class TestStagingPaths:
    def test_layout(self, data_root, token):
        paths = StagingPaths.for_app("api", token, data_root)
        base = data_root / "app-json" / "api"
        assert paths.canonical == base / "app.json"
        assert paths.attempt == base / "app.json.4242"
        assert paths.missing == base / "app.json.4242.missing"
        assert paths.directory == base

    def test_tokens_never_share_paths(self, data_root):
        a = StagingPaths.for_app("api", AttemptToken("1"), data_root)
        b = StagingPaths.for_app("api", AttemptToken("2"), data_root)
        assert a.canonical == b.canonical
        assert {a.attempt, a.missing}.isdisjoint({b.attempt, b.missing})

    def test_leftovers(self, data_root, token):
        paths = StagingPaths.for_app("api", token, data_root)
        assert paths.leftovers() == []
        paths.directory.mkdir(parents=True)
        paths.canonical.write_text("{}")
        (paths.directory / "app.json.1").write_text("{}")
        (paths.directory / "app.json.2.missing").touch()
        (paths.directory / "other.txt").touch()
        assert [p.name for p in paths.leftovers()] == ["app.json.1", "app.json.2.missing"]

    def test_canonical_path_validates_app(self, data_root):
        with pytest.raises(InvalidAppNameError):
            canonical_path("../etc", data_root)


class TestSourceLocations:
    def test_defaults(self, tmp_path):
        loc = source_locations(tmp_path)
        assert loc.document_path == "app.json"
        assert loc.tree_path == tmp_path / "app.json"
        assert loc.image_path == "app.json"
        assert loc.repo_default == tmp_path / "app.json"
        assert loc.is_default

    def test_build_dir_and_custom_path(self, tmp_path):
        loc = source_locations(tmp_path, build_dir="/services/api/", appjson_path="/config/app.json")
        assert loc.tree_path == tmp_path / "services" / "api" / "config" / "app.json"
        assert loc.image_path == "services/api/config/app.json"
        assert loc.repo_default == tmp_path / "app.json"
        assert not loc.is_default

    def test_accepts_str_root(self):
        loc = source_locations("/tmp/work", appjson_path="x.json")
        assert loc.tree_path == Path("/tmp/work/x.json")
