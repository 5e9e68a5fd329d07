import base64
import os

import pytest

from themekit.asset import (
    Asset,
    AssetIsDirError,
    find_assets,
    load_assets_from_directory,
    read_asset,
)

PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAAEUlEQVR4nGJiYGBgAAQAAP//"
    "AA8AA/6P688AAAAASUVORK5CYII="
)

PROJECT_FILES = {
    "assets/application.js": b"this is js content",
    "assets/image.png": base64.b64decode(PNG_B64),
    "config/settings_data.json": b'{"current": "Default"}',
    "layout/theme.liquid": b"{{ content_for_layout }}",
    "snippets/snippet.liquid": b"snippet",
    "templates/template.liquid": b"template",
    "templates/customers/test.liquid": b"customer",
    "locales/.gitkeep": b"",
}


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    for name, data in PROJECT_FILES.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return str(root)


def ignore_none(path):
    return ".gitkeep" in path


def select_one(path):
    return path != "assets/application.js"


def test_find_assets_single_file(project):
    assert find_assets(project, [os.path.join("assets", "application.js")]) == ["assets/application.js"]


def test_find_assets_whole_project(project):
    assert len(find_assets(project)) == 7


def test_find_assets_bad_directory(tmp_path):
    with pytest.raises(OSError):
        find_assets(str(tmp_path / "nope"))


def test_find_assets_directory_and_file(project):
    assets = find_assets(project, ["assets", "config/settings_data.json"])
    assert len(assets) == 3
    assert "config/settings_data.json" in assets


def test_find_assets_missing_file(project):
    with pytest.raises(OSError, match="readAsset: "):
        find_assets(project, ["snippets/nope.txt"])


def test_find_assets_respects_ignores(project):
    assets = find_assets(project, ignored_files=["*.liquid"])
    assert sorted(assets) == ["assets/application.js", "assets/image.png", "config/settings_data.json"]


def test_write_creates_file(tmp_path):
    Asset(key="blah.txt", value="hello").write(str(tmp_path))
    assert (tmp_path / "blah.txt").read_bytes() == b"hello"


def test_write_creates_subdirectories(tmp_path):
    Asset(key="assets/test.txt").write(str(tmp_path))
    assert (tmp_path / "assets" / "test.txt").exists()


def test_write_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        Asset(key="blah.txt").write(str(tmp_path / "nothere"))


@pytest.mark.parametrize(
    "asset, length",
    [
        (Asset(value="this is content"), 15),
        (Asset(attachment=base64.b64encode(b"this is good content").decode()), 20),
        (Asset(key="test.json", value='{"test":"one"}'), 19),
    ],
)
def test_contents_length(asset, length):
    assert len(asset.contents()) == length


def test_contents_bad_attachment():
    with pytest.raises(ValueError, match="Could not decode"):
        Asset(attachment="this is bad content").contents()


def test_contents_indents_json():
    asset = Asset(key="a.json", value='{"a":[1,2],"b":{}}')
    assert asset.contents() == b'{\n  "a": [\n    1,\n    2\n  ],\n  "b": {}\n}'


def test_contents_invalid_json_is_empty():
    assert Asset(key="a.json", value="{bad").contents() == b""


def test_json_round_trip():
    asset = Asset(key="assets/a.js", value="x", theme_id=12)
    assert asset.to_json() == {"key": "assets/a.js", "value": "x", "theme_id": 12}
    assert Asset.from_json(asset.to_json()) == asset


@pytest.mark.parametrize(
    "path, ignore, expected_count",
    [("", ignore_none, 7), ("", select_one, 1), ("assets", ignore_none, 2)],
)
def test_load_assets_from_directory(project, path, ignore, expected_count):
    assert len(load_assets_from_directory(project, path, ignore)) == expected_count


def test_load_assets_order(project):
    assert load_assets_from_directory(project, "assets", ignore_none) == [
        "assets/application.js",
        "assets/image.png",
    ]


def test_load_assets_missing(project):
    with pytest.raises(FileNotFoundError):
        load_assets_from_directory(project, "nope", ignore_none)


@pytest.mark.parametrize(
    "name", [os.path.join("assets", "application.js"), os.path.join(".", "assets", "application.js")]
)
def test_read_asset_text(project, name):
    asset = read_asset(project, name)
    assert asset.key == "assets/application.js"
    assert asset.value == "this is js content"
    assert asset.attachment == ""


def test_read_asset_binary(project):
    asset = read_asset(project, os.path.join("assets", "image.png"))
    assert asset.key == "assets/image.png"
    assert asset.attachment == PNG_B64
    assert asset.value == ""


def test_read_asset_missing(project):
    with pytest.raises(OSError, match="readAsset: "):
        read_asset(project, "nope.txt")


def test_read_asset_directory(project):
    with pytest.raises(AssetIsDirError, match="requested asset is a directory"):
        read_asset(project, "assets")


def test_read_asset_gif_is_attachment(tmp_path):
    (tmp_path / "a.gif").write_bytes(b"GIF89a plain looking")
    asset = read_asset(str(tmp_path), "a.gif")
    assert asset.attachment == base64.b64encode(b"GIF89a plain looking").decode()