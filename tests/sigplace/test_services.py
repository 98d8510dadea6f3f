from __future__ import annotations

import pytest

from sigplace.errors import SaveFailure
from sigplace.services import DownloadsFolder


def test_downloads_folder_creates_directory_and_writes(tmp_path):
    target = tmp_path / "nested" / "Downloads"

    saved = DownloadsFolder(target).save("signed-document.pdf", b"%PDF-1.7")

    assert saved == target / "signed-document.pdf"
    assert saved.read_bytes() == b"%PDF-1.7"


def test_downloads_folder_never_overwrites(tmp_path):
    folder = DownloadsFolder(tmp_path)

    first = folder.save("contract.pdf", b"one")
    second = folder.save("contract.pdf", b"two")
    third = folder.save("contract.pdf", b"three")

    assert first.name == "contract.pdf"
    assert second.name == "contract (1).pdf"
    assert third.name == "contract (2).pdf"
    assert first.read_bytes() == b"one"


def test_downloads_folder_keeps_names_inside_directory(tmp_path):
    saved = DownloadsFolder(tmp_path).save("../escape.pdf", b"x")

    assert saved.parent == tmp_path
    assert saved.name == ".._escape.pdf"


def test_downloads_folder_rejects_nul_in_name(tmp_path):
    with pytest.raises(SaveFailure):
        DownloadsFolder(tmp_path).save("bad\x00name.pdf", b"x")


def test_downloads_folder_wraps_os_errors(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")

    with pytest.raises(SaveFailure):
        DownloadsFolder(blocker).save("x.pdf", b"x")
