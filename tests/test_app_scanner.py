import os

import pytest

from deskentry import app_scanner
from deskentry.app_scanner import default_search_paths, find_app, scan_applications


@pytest.fixture
def dirs(tmp_path):
    user = tmp_path / "user" / "applications"
    system = tmp_path / "system" / "applications"
    user.mkdir(parents=True)
    system.mkdir(parents=True)
    return user, system


def test_catalog_is_sorted_case_insensitively(dirs, write_entry):
    user, system = dirs
    write_entry(system, "g.desktop", Name="gamma", Exec="g")
    write_entry(system, "a.desktop", Name="Alpha", Exec="a")
    write_entry(user, "b.desktop", Name="beta", Exec="b")
    write_entry(system, "z.desktop", Name="ZULU", Exec="z")

    apps = scan_applications([str(user), str(system)])

    assert [a.name for a in apps] == ["Alpha", "beta", "gamma", "ZULU"]
    for a, b in zip(apps, apps[1:]):
        assert a.name.lower() <= b.name.lower()


def test_equal_names_keep_discovery_order(dirs, write_entry):
    user, system = dirs
    first = write_entry(user, "one.desktop", Name="Same", Exec="one")
    second = write_entry(system, "two.desktop", Name="same", Exec="two")

    apps = scan_applications([str(user), str(system)])
    assert [a.path for a in apps] == [str(first), str(second)]


def test_hidden_entries_are_excluded_but_resolvable(dirs, write_entry):
    user, system = dirs
    write_entry(system, "shown.desktop", Name="Shown", Exec="shown")
    no_display = write_entry(system, "nd.desktop", Name="NoDisp", Exec="nd", NoDisplay="true")
    write_entry(system, "h.desktop", Name="Hidden", Exec="h", Hidden="true")

    apps = scan_applications([str(user), str(system)])
    assert [a.name for a in apps] == ["Shown"]

    app = find_app(str(no_display))
    assert app is not None
    assert app.exec == "nd"


def test_incomplete_and_corrupt_files_are_skipped(dirs, write_entry):
    user, system = dirs
    write_entry(system, "ok.desktop", Name="Ok", Exec="ok")
    write_entry(system, "noexec.desktop", Name="NoExec")
    (system / "corrupt.desktop").write_bytes(b"\x00\xff\xfe")
    (system / "readme.txt").write_text("[Desktop Entry]\nName=Txt\nExec=t\n")

    apps = scan_applications([str(user), str(system)])
    assert [a.name for a in apps] == ["Ok"]


def test_user_entry_shadows_system_entry(dirs, write_entry):
    user, system = dirs
    override = write_entry(user, "editor.desktop", Name="Editor (mine)", Exec="editor --mine")
    write_entry(system, "editor.desktop", Name="Editor", Exec="editor")

    apps = scan_applications([str(user), str(system)])
    assert len(apps) == 1
    assert apps[0].path == str(override)


def test_hidden_user_override_hides_system_entry(dirs, write_entry):
    user, system = dirs
    write_entry(user, "ads.desktop", Name="Ads", Exec="ads", Hidden="true")
    write_entry(system, "ads.desktop", Name="Ads", Exec="ads")

    assert scan_applications([str(user), str(system)]) == []


def test_subdirectories_use_desktop_file_ids(dirs, write_entry):
    user, system = dirs
    write_entry(user / "kde4", "konsole.desktop", Name="Konsole (user)", Exec="konsole")
    write_entry(system, "kde4-konsole.desktop", Name="Konsole", Exec="konsole")

    apps = scan_applications([str(user), str(system)])
    assert [a.name for a in apps] == ["Konsole (user)"]


def test_missing_directories_are_ignored(tmp_path, write_entry):
    real = tmp_path / "real"
    write_entry(real, "a.desktop", Name="A", Exec="a")

    apps = scan_applications([str(tmp_path / "nope"), str(real)])
    assert [a.name for a in apps] == ["A"]


def test_find_app_unknown_or_empty():
    assert find_app("") is None
    assert find_app("/does/not/exist.desktop") is None


def test_default_search_paths_order(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_DATA_DIRS", "/opt/share:/usr/share")
    monkeypatch.setattr(app_scanner, "is_sandboxed", lambda: False)

    paths = default_search_paths(extra_dirs=[str(tmp_path / "extra")])

    assert paths == [
        os.path.join(str(tmp_path), "data", "applications"),
        os.path.join(str(tmp_path), "data", "flatpak", "exports", "share", "applications"),
        os.path.join(str(tmp_path), "extra"),
        "/opt/share/applications",
        "/usr/share/applications",
        "/var/lib/flatpak/exports/share/applications",
    ]


def test_default_search_paths_defaults_and_sandbox(monkeypatch, tmp_path):
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    monkeypatch.delenv("XDG_DATA_DIRS", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr(app_scanner, "is_sandboxed", lambda: True)

    paths = default_search_paths()

    assert paths[0] == os.path.join(str(tmp_path), ".local", "share", "applications")
    assert "/usr/local/share/applications" in paths
    assert paths.index("/usr/local/share/applications") < paths.index("/usr/share/applications")
    assert paths[-len(app_scanner.FLATPAK_HOST_DIRS):] == app_scanner.FLATPAK_HOST_DIRS


def test_default_search_paths_removes_duplicates(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    monkeypatch.setenv("XDG_DATA_DIRS", "/usr/share:/usr/share/")
    monkeypatch.setattr(app_scanner, "is_sandboxed", lambda: False)

    paths = default_search_paths()
    assert paths.count("/usr/share/applications") == 1
