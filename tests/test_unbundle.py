import os
import zipfile

import pytest

from themekit.unbundle import get_zip_contents, register, unbundle

TEST_DATA = (
    b"PK\x03\x04\x14\x00\x08\x00\x08\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00"
    b"\x00\x00\x15\x00\x00\x00assets/application.js\xd2\xd7W\x08(-Q\xa8\xcc/-RH,(\xc8\xc9LN\xcc,"
    b"\xc9\xcfS\xc8J,K,N.\xca,(Q\xc8H-J\xe5\x02\x04\x00\x00\xff\xffPK\x07\x08\x11\xad\xdd#.\x00"
    b"\x00\x00(\x00\x00\x00PK\x01\x02\x14\x00\x14\x00\x08\x00\x08\x00\x00\x00\x00\x00\x11\xad\xdd"
    b"#.\x00\x00\x00(\x00\x00\x00\x15\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00\x00"
    b"\x00\x00assets/application.jsPK\x05\x06\x00\x00\x00\x00\x01\x00\x01\x00C\x00\x00\x00q\x00"
    b"\x00\x00\x00\x00"
)


def _walk_files(root):
    found = {}
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            found.setdefault(dirpath, []).append(os.path.join(dirpath, name))
    return found


def test_get_zip_contents():
    files = get_zip_contents(TEST_DATA)
    assert list(files) == ["assets"]
    assert list(files["assets"]) == ["assets/application.js"]
    assert len(files["assets"]["assets/application.js"]) == 40


def test_get_zip_contents_accepts_text():
    files = get_zip_contents(TEST_DATA.decode("latin-1"))
    assert list(files["assets"]) == ["assets/application.js"]


def test_get_zip_contents_rejects_non_zip():
    with pytest.raises(zipfile.BadZipFile, match="zip: not a valid zip file"):
        get_zip_contents("not zip")


def test_unbundle(tmp_path):
    out = str(tmp_path / "out")
    messages = []
    register(TEST_DATA)
    unbundle(out, log=messages.append)

    files = _walk_files(out)
    assets_dir = os.path.join(out, "assets")
    target = os.path.join(assets_dir, "application.js")
    assert list(files) == [assets_dir]
    assert files[assets_dir] == [target]
    assert os.path.getsize(target) == 40
    assert messages == [f"Created {assets_dir}.", f"\tCreated {target}."]


def test_unbundle_keeps_existing_files(tmp_path):
    out = str(tmp_path / "out")
    register(TEST_DATA)
    unbundle(out, log=lambda message: None)
    target = os.path.join(out, "assets", "application.js")
    with open(target, "w") as handle:
        handle.write("custom")

    messages = []
    unbundle(out, log=messages.append)
    with open(target) as handle:
        assert handle.read() == "custom"
    assert messages == [f"Exists {os.path.join(out, 'assets')}.", f"\tExists {target}."]


def test_unbundle_without_data(tmp_path):
    register(b"")
    with pytest.raises(zipfile.BadZipFile):
        unbundle(str(tmp_path / "out"), log=lambda message: None)
    assert not os.path.exists(tmp_path / "out")