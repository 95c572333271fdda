"""
Tests for resolving deployment units from the manifest and a change-set.
"""

import pytest

from portal_deploy.api.exceptions import MissingSource, NothingToDeploy
from portal_deploy.core.manifest_resolver import ManifestResolver, path_matches
from portal_deploy.models import ConfigEntry, EntryKind

from conftest import ASSETS, SITE_NAME


class TestPathMatches:
    """Test change-set path matching"""

    @pytest.mark.parametrize("entry, changed", [
        ("www/index.html", "www/index.html"),
        ("www/shared/header.html", "www/shared"),
        ("www/shared/header.html", "./www/shared/"),
        ("www/shared", "www/shared/header.html"),
    ])
    def test_matches(self, entry, changed):
        assert path_matches(entry, changed)

    @pytest.mark.parametrize("entry, changed", [
        ("www/index.html", "README.md"),
        ("www/index.html", "www/index.html.bak"),
        ("www/shared/header.html", "www/share"),
        ("www/index.html", ""),
    ])
    def test_does_not_match(self, entry, changed):
        assert not path_matches(entry, changed)


class TestManifestResolver:
    """Test ManifestResolver"""

    def test_full_manifest_keeps_order_and_puts_config_last(self, deploy_config):
        unit = ManifestResolver(deploy_config).resolve()

        assert [entry.relative_path for entry in unit.assets] == [
            f"www/{asset}" for asset in ASSETS
        ]
        assert isinstance(unit.config, ConfigEntry)
        assert unit.entries[-1] is unit.config
        assert unit.config.dest_path == deploy_config.config_target / SITE_NAME
        assert unit.config.requires_reload
        assert len(unit) == len(ASSETS) + 1

    def test_destinations_are_below_targets(self, deploy_config):
        unit = ManifestResolver(deploy_config).resolve()

        for entry in unit.assets:
            assert entry.kind == EntryKind.ASSET
            assert deploy_config.web_target in entry.dest_path.parents

    def test_required_flags(self, deploy_config):
        unit = ManifestResolver(deploy_config).resolve()
        required = {entry.relative_path for entry in unit.entries if entry.required}

        assert required == {
            "www/index.html",
            "www/shared/header.html",
            "www/shared/footer.html",
            f"nginx/sites-available/{SITE_NAME}",
        }

    def test_readme_only_change_set_is_nothing_to_deploy(self, deploy_config):
        with pytest.raises(NothingToDeploy):
            ManifestResolver(deploy_config).resolve(["README.md"])

    def test_empty_change_set_is_nothing_to_deploy(self, deploy_config):
        with pytest.raises(NothingToDeploy):
            ManifestResolver(deploy_config).resolve([])

    def test_asset_change_set_has_no_config(self, deploy_config):
        unit = ManifestResolver(deploy_config).resolve(["www/status.html", "README.md"])

        assert [entry.relative_path for entry in unit.assets] == ["www/status.html"]
        assert unit.config is None

    def test_directory_change_selects_every_asset_below(self, deploy_config):
        unit = ManifestResolver(deploy_config).resolve(["www/shared"])

        assert [entry.relative_path for entry in unit.assets] == [
            "www/shared/header.html",
            "www/shared/footer.html",
            "www/shared/images/favicon.ico",
        ]

    def test_config_change_set(self, deploy_config):
        unit = ManifestResolver(deploy_config).resolve([f"nginx/sites-available/{SITE_NAME}"])

        assert unit.assets == ()
        assert unit.config is not None

    def test_config_excluded_when_reload_skipped(self, deploy_config):
        with pytest.raises(NothingToDeploy):
            ManifestResolver(deploy_config).resolve(
                [f"nginx/sites-available/{SITE_NAME}"],
                include_config=False
            )

    def test_missing_required_source(self, deploy_config, source_root):
        (source_root / "www" / "index.html").unlink()
        (source_root / "www" / "shared" / "footer.html").unlink()

        with pytest.raises(MissingSource) as exc_info:
            ManifestResolver(deploy_config).resolve()

        assert len(exc_info.value.paths) == 2
        assert str(deploy_config.web_source / "index.html") in exc_info.value.paths

    def test_missing_required_source_outside_change_set_is_ignored(self, deploy_config, source_root):
        (source_root / "www" / "index.html").unlink()

        unit = ManifestResolver(deploy_config).resolve(["www/status.html"])

        assert len(unit) == 1
