import asyncio
import copy
from pathlib import Path

import pytest

from spindle.errors import SettingsError
from spindle.files import FileUtil
from spindle.log import SpindleLog
from spindle.plugins import Plugin
from spindle.settings import (
    apply_config,
    dedupe_src_dirs,
    default_settings,
    load_settings,
)


def load(root, overrides=None, logger=None):
    logger = logger or SpindleLog()
    return asyncio.run(load_settings(root, FileUtil(logger), logger, overrides))


def test_default_settings(tmp_path):
    settings = default_settings(tmp_path)
    root = tmp_path.resolve()
    assert settings.root_dir == root
    assert settings.pages_folder == root / "src" / "pages"
    assert settings.components_folder == [root / "src" / "components"]
    assert settings.src_dir == [root / "src"]
    assert settings.dist_dir == root / "dist"
    assert settings.template == root / "public" / "index.html"
    assert settings.port == 8080
    assert settings.host == "0.0.0.0"
    assert settings.api_domain == "api.spearly.com"
    assert settings.plugins == []
    assert settings.quiet_mode is False


def test_dedupe_keeps_components_dirs():
    dirs = [Path("/a"), Path("/a/b"), Path("/a/components"), Path("/a/components/sub")]
    assert dedupe_src_dirs(dirs) == [Path("/a"), Path("/a/components"), Path("/a/components/sub")]


def test_dedupe_compares_whole_path_components():
    assert dedupe_src_dirs([Path("/a"), Path("/ab")]) == [Path("/a"), Path("/ab")]
    assert dedupe_src_dirs([Path("/site/src/b"), Path("/site/src")]) == [Path("/site/src")]


def test_dedupe_ignores_components_above_the_containing_entry():
    root = Path("/home/me/components/site")
    assert dedupe_src_dirs([root / "src", root / "src/b"]) == [root / "src"]
    assert dedupe_src_dirs([root / "src", root / "src/components/b"]) == [
        root / "src",
        root / "src/components/b",
    ]


def test_dedupe_keeps_equal_entries():
    assert dedupe_src_dirs([Path("/a"), Path("/a")]) == [Path("/a"), Path("/a")]


def test_yaml_settings_file(tmp_path):
    (tmp_path / "spindle.config.yaml").write_text(
        "project_name: Demo\n"
        "src_dir:\n  - site\n  - site/partials\n"
        "components_folder: site/components\n"
        "dist_dir: public_html\n"
        "port: '9000'\n"
        "cross_origin_isolation: 1\n",
        encoding="utf-8",
    )
    settings = load(tmp_path)
    root = tmp_path.resolve()
    assert settings.project_name == "Demo"
    assert settings.src_dir == [root / "site"]
    assert settings.components_folder == [root / "site" / "components"]
    assert settings.dist_dir == root / "public_html"
    assert settings.port == 9000
    assert settings.cross_origin_isolation is True


def test_json_settings_file(tmp_path):
    (tmp_path / "spindle.config.json").write_text(
        '{"site_url": "https://example.com", "generate_sitemap": true}', encoding="utf-8"
    )
    settings = load(tmp_path)
    assert settings.site_url == "https://example.com"
    assert settings.generate_sitemap is True


def test_missing_settings_file_uses_defaults(tmp_path):
    settings = load(tmp_path)
    assert settings == default_settings(tmp_path)


def test_overrides_win_over_settings_file(tmp_path):
    (tmp_path / "spindle.config.yml").write_text("port: 9000\nquiet_mode: false\n", encoding="utf-8")
    logger = SpindleLog()
    settings = load(tmp_path, {"port": 7000, "quiet_mode": True}, logger)
    assert settings.port == 7000
    assert settings.quiet_mode is True
    assert logger.quiet is True


def test_unknown_keys_warn(tmp_path, capsys):
    settings = apply_config(default_settings(tmp_path), {"colour": "blue"}, SpindleLog())
    assert not hasattr(settings, "colour")
    assert "Unknown setting ignored: colour" in capsys.readouterr().err


def test_apply_config_leaves_input_untouched(tmp_path):
    base = default_settings(tmp_path)
    updated = apply_config(base, {"entry": "src/pages/home.html"})
    assert updated.entry == str(tmp_path.resolve() / "src" / "pages" / "home.html")
    assert base.entry == str(tmp_path.resolve() / "src" / "pages" / "index.*")


@pytest.mark.parametrize(
    "content",
    ["port: eighty\n", "- just\n- a list\n", "key: [unclosed\n"],
)
def test_invalid_settings_file(tmp_path, content):
    (tmp_path / "spindle.config.yaml").write_text(content, encoding="utf-8")
    with pytest.raises(SettingsError):
        load(tmp_path)


def test_empty_settings_file(tmp_path):
    (tmp_path / "spindle.config.yaml").write_text("", encoding="utf-8")
    assert load(tmp_path) == default_settings(tmp_path)


def test_configuration_hook_sees_deduped_dirs(tmp_path):
    seen = {}

    def configure(settings, ctx):
        seen["src_dir"] = list(settings.src_dir)
        settings.site_url = "https://hooked.example"
        return settings

    plugin = Plugin("config", configuration=configure)
    settings = load(
        tmp_path,
        {"src_dir": ["src", "src/pages", "src/components"], "plugins": [plugin]},
    )
    root = tmp_path.resolve()
    assert seen["src_dir"] == [root / "src", root / "src" / "components"]
    assert settings.site_url == "https://hooked.example"
    assert settings.plugins[0] is plugin


def test_failing_configuration_hook_keeps_settings(tmp_path, capsys):
    def configure(settings, ctx):
        settings.port = 1
        raise RuntimeError("bad config")

    settings = load(tmp_path, {"plugins": [Plugin("broken", configuration=configure)]})
    assert settings.port == 8080
    assert "[broken] bad config" in capsys.readouterr().err


def test_deepcopy_shares_plugin_objects(tmp_path):
    plugin = Plugin("shared")
    settings = apply_config(default_settings(tmp_path), {"plugins": [plugin]})
    clone = copy.deepcopy(settings)
    assert clone == settings
    assert clone.plugins is not settings.plugins
    assert clone.plugins[0] is plugin
    assert clone.src_dir is not settings.src_dir
