"""Tests for appjson.deploy.stager (DocumentStager)."""

from unittest.mock import MagicMock, patch

import pytest

from appjson.core.errors import ContainerError, DocumentParseError, StagingError
from appjson.deploy.container import ImageCopier
from appjson.deploy.paths import AttemptToken, StagingPaths
from appjson.deploy.properties import DeployProperties
from appjson.deploy.stager import DocumentStager
from appjson.deploy.state import Missing, Staged
from appjson.store.properties import GLOBAL_APP


@pytest.fixture
def copier():
    return MagicMock(spec=ImageCopier)


@pytest.fixture
def stager(data_root, store, copier):
    return DocumentStager(data_root, DeployProperties(store), copier)


def _exclusive(paths: StagingPaths) -> bool:
    """Exactly one of the attempt file and the missing marker exists."""
    return paths.attempt.exists() != paths.missing.exists()


class TestStageFromTree:
    def test_document_present(self, stager, data_root, source_root, token, write_document):
        write_document(source_root, {"scripts": {"release": "migrate"}})
        outcome = stager.stage("api", source_root, token)

        paths = StagingPaths.for_app("api", token, data_root)
        assert outcome == Staged(path=paths.attempt)
        assert paths.attempt.read_text() == '{"scripts": {"release": "migrate"}}'
        assert _exclusive(paths)
        assert not paths.canonical.exists()

    def test_document_absent_writes_marker(self, stager, data_root, source_root, token):
        outcome = stager.stage("api", source_root, token)
        paths = StagingPaths.for_app("api", token, data_root)
        assert outcome == Missing(marker=paths.missing)
        assert _exclusive(paths)

    def test_never_touches_canonical(self, stager, data_root, source_root, token):
        paths = StagingPaths.for_app("api", token, data_root)
        paths.directory.mkdir(parents=True)
        paths.canonical.write_text('{"old": true}')
        stager.stage("api", source_root, token)
        assert paths.canonical.read_text() == '{"old": true}'

    def test_removes_leftovers_from_earlier_attempts(self, stager, data_root, source_root, token, write_document):
        old = StagingPaths.for_app("api", AttemptToken("1"), data_root)
        old.directory.mkdir(parents=True)
        old.attempt.write_text("{}")
        old.missing.touch()
        write_document(source_root, {})

        stager.stage("api", source_root, token)
        assert not old.attempt.exists()
        assert not old.missing.exists()

    def test_restage_switches_marker_to_document(self, stager, data_root, source_root, token, write_document):
        paths = StagingPaths.for_app("api", token, data_root)
        stager.stage("api", source_root, token)
        assert paths.missing.exists()

        write_document(source_root, {})
        stager.stage("api", source_root, token)
        assert paths.attempt.exists()
        assert _exclusive(paths)

    def test_build_dir(self, stager, store, data_root, source_root, token, write_document):
        store.set("builder", "api", "build-dir", "services/api")
        write_document(source_root / "services" / "api", {"name": "nested"})
        assert isinstance(stager.stage("api", source_root, token), Staged)

    def test_invalid_json_removes_attempt_file(self, stager, data_root, source_root, token, write_document):
        write_document(source_root, "{broken")
        with pytest.raises(DocumentParseError):
            stager.stage("api", source_root, token)
        paths = StagingPaths.for_app("api", token, data_root)
        assert not paths.attempt.exists()
        assert not paths.missing.exists()

    def test_copy_failure_is_staging_error(self, stager, source_root, token, write_document):
        write_document(source_root, {})
        with patch("appjson.deploy.stager.copy_file", side_effect=PermissionError("denied")):
            with pytest.raises(StagingError, match="Unable to extract app.json: denied"):
                stager.stage("api", source_root, token)


class TestStageNonDefaultPath:
    def test_copies_into_repo_root(self, stager, store, source_root, token, write_document):
        store.set("app-json", "api", "appjson-path", "config/app.json")
        write_document(source_root / "config", {"from": "config"})
        assert isinstance(stager.stage("api", source_root, token), Staged)
        assert (source_root / "app.json").read_text() == '{"from": "config"}'

    def test_missing_removes_stray_root_document(self, stager, store, source_root, token, write_document):
        store.set("app-json", "api", "appjson-path", "config/app.json")
        write_document(source_root, {"stray": True})
        assert isinstance(stager.stage("api", source_root, token), Missing)
        assert not (source_root / "app.json").exists()

    def test_global_path_used_when_app_unset(self, stager, store, source_root, token, write_document):
        store.set("app-json", GLOBAL_APP, "appjson-path", "/deploy/app.json/")
        write_document(source_root / "deploy", {})
        assert isinstance(stager.stage("api", source_root, token), Staged)

    def test_default_path_keeps_root_document_when_missing(self, stager, source_root, token):
        assert isinstance(stager.stage("api", source_root, token), Missing)
        assert not (source_root / "app.json").exists()

    def test_move_failure(self, stager, store, source_root, token, write_document):
        store.set("app-json", "api", "appjson-path", "config/app.json")
        write_document(source_root / "config", {})
        calls = []

        def flaky_copy(src, dst):
            calls.append(dst)
            if len(calls) == 2:
                raise PermissionError("read-only")
            dst.parent.mkdir(parents=True, exist_ok=True)
            dst.write_text("{}")

        with patch("appjson.deploy.stager.copy_file", side_effect=flaky_copy):
            with pytest.raises(StagingError, match="Unable to move app.json into place"):
                stager.stage("api", source_root, token)


class TestStageFromImage:
    def test_copies_from_configured_image(self, stager, store, copier, data_root, source_root, token):
        store.set("git", "api", "source-image", "registry/api:3")

        def fake_copy(app, image, in_path, out_path):
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text("{}")

        copier.copy_from_image.side_effect = fake_copy
        outcome = stager.stage("api", source_root, token)

        paths = StagingPaths.for_app("api", token, data_root)
        assert outcome == Staged(path=paths.attempt)
        copier.copy_from_image.assert_called_once_with("api", "registry/api:3", "app.json", paths.attempt)

    def test_explicit_image_overrides_property(self, stager, copier, source_root, token):
        copier.copy_from_image.side_effect = ContainerError("nope")
        stager.stage("api", source_root, token, source_image="other:1")
        assert copier.copy_from_image.call_args.args[1] == "other:1"

    def test_image_path_uses_build_dir(self, stager, store, copier, source_root, token):
        store.set("builder", "api", "build-dir", "svc")
        copier.copy_from_image.side_effect = ContainerError("nope")
        stager.stage("api", source_root, token, source_image="img:1")
        assert copier.copy_from_image.call_args.args[2] == "svc/app.json"

    @pytest.mark.parametrize("error", [ContainerError("no such file"), FileNotFoundError("gone")])
    def test_copy_failure_writes_marker(self, stager, copier, data_root, source_root, token, error):
        copier.copy_from_image.side_effect = error
        outcome = stager.stage("api", source_root, token, source_image="img:1")
        paths = StagingPaths.for_app("api", token, data_root)
        assert outcome == Missing(marker=paths.missing)
        assert _exclusive(paths)

    def test_image_source_ignores_tree(self, stager, copier, source_root, token, write_document):
        write_document(source_root, {"tree": True})
        copier.copy_from_image.side_effect = ContainerError("nope")
        assert isinstance(stager.stage("api", source_root, token, source_image="img:1"), Missing)

    def test_directory_copied_from_image_does_not_block_later_stages(self, stager, copier, data_root, source_root):
        first = AttemptToken("1")
        paths = StagingPaths.for_app("api", first, data_root)

        def copy_directory(app, image, in_path, out_path):
            tmp = out_path.with_name(f"{out_path.name}.tmp")
            (tmp / "nested").mkdir(parents=True)
            raise ContainerError(f"{in_path} in {image} is not a regular file")

        copier.copy_from_image.side_effect = copy_directory
        assert isinstance(stager.stage("api", source_root, first, source_image="img:1"), Missing)

        second = AttemptToken("2")
        assert isinstance(stager.stage("api", source_root, second, source_image="img:1"), Missing)
        assert sorted(p.name for p in paths.directory.iterdir()) == ["app.json.2.missing", "app.json.2.tmp"]

        copier.copy_from_image.side_effect = ContainerError("gone")
        stager.stage("api", source_root, first, source_image="img:1")
        assert sorted(p.name for p in paths.directory.iterdir()) == ["app.json.1.missing"]


class TestStageValidation:
    def test_invalid_document_never_reaches_repo_root(self, stager, store, data_root, source_root, token, write_document):
        store.set("app-json", "api", "appjson-path", "config/app.json")
        write_document(source_root / "config", "[1, 2]")
        with pytest.raises(DocumentParseError):
            stager.stage("api", source_root, token)
        assert not (source_root / "app.json").exists()
        assert not StagingPaths.for_app("api", token, data_root).attempt.exists()

    def test_invalid_document_from_image_is_removed(self, stager, copier, data_root, source_root, token):
        def fake_copy(app, image, in_path, out_path):
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text("{broken")

        copier.copy_from_image.side_effect = fake_copy
        with pytest.raises(DocumentParseError):
            stager.stage("api", source_root, token, source_image="img:1")
        assert not StagingPaths.for_app("api", token, data_root).attempt.exists()
