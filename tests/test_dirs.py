import os

import pytest

from notation.dirs import (
    CONFIG_FILE,
    LOCAL_CERTIFICATE_EXTENSION,
    LOCAL_KEY_EXTENSION,
    SIGNING_KEYS_FILE,
    TRUST_POLICY_FILE,
    DirFS,
    MemoryFS,
    PathManager,
    UnionDirFS,
    default_path_manager,
    default_paths,
    load_path,
    new_rooted_fs,
    plugin_fs,
)


def assert_path_equal(want, value):
    assert want.replace("\\", "/") == value.replace("\\", "/")


def union(usr, sys_fs):
    return UnionDirFS(new_rooted_fs("user", usr), new_rooted_fs("system", sys_fs))


@pytest.mark.parametrize(
    "goos, user_dir, env, want",
    [
        (
            "windows",
            "C:\\User\\exampleuser\\AppData\\Roaming",
            {"ProgramFiles": "C:\\Program Files", "ProgramData": "C:\\ProgramData"},
            (
                "C:\\ProgramData\\notation",
                "C:\\Program Files\\notation",
                "C:\\User\\exampleuser\\AppData\\Roaming\\notation",
            ),
        ),
        (
            "linux",
            "/home/exampleuser/.config",
            {},
            ("/etc/notation", "/usr/libexec/notation", "/home/exampleuser/.config/notation"),
        ),
        (
            "darwin",
            "/Users/exampleuser/Library/Application Support",
            {},
            (
                "/Library/Application Support/notation",
                "/usr/local/lib/notation",
                "/Users/exampleuser/Library/Application Support/notation",
            ),
        ),
    ],
)
def test_load_path(goos, user_dir, env, want):
    paths = load_path(goos, lambda: user_dir, lambda name: env.get(name, ""))
    assert_path_equal(want[0], paths.system_config)
    assert_path_equal(want[1], paths.system_libexec)
    assert_path_equal(want[2], paths.user_config)
    assert_path_equal(want[2], paths.user_libexec)


def test_load_path_windows_without_env():
    with pytest.raises(RuntimeError, match="ProgramData"):
        load_path("windows", lambda: "C:\\Users", lambda name: "")


def test_load_path_windows_without_program_files():
    env = {"ProgramData": "C:\\ProgramData"}
    with pytest.raises(RuntimeError, match="ProgramFiles"):
        load_path("windows", lambda: "C:\\Users", lambda name: env.get(name, ""))


@pytest.mark.parametrize("goos", ["linux", "darwin"])
def test_load_path_user_config_error(goos):
    def failing():
        raise OSError("error")

    with pytest.raises(OSError, match="error"):
        load_path(goos, failing, lambda name: "")


@pytest.mark.parametrize(
    "usr, sys_fs, want",
    [
        (
            MemoryFS({"plugin/b/b.exe": b"user a"}),
            MemoryFS({"plugin/a/a.exe": b"system a"}),
            ["b", "b.exe", "a", "a.exe"],
        ),
        (
            MemoryFS({"plugin/b/": b""}),
            MemoryFS({"plugin/a/a.exe": b"system a"}),
            ["b", "a", "a.exe"],
        ),
        (
            MemoryFS({"plugin/b/": b""}),
            MemoryFS({"plugin/a/": b""}),
            ["b", "a"],
        ),
    ],
)
def test_walk(usr, sys_fs, want):
    names = [entry.name for _, entry in union(usr, sys_fs).walk("plugin")]
    assert names == want


def test_walk_paths_are_relative_to_root():
    fsys = union(MemoryFS({"plugin/b/b.exe": b"x"}), MemoryFS())
    assert [path for path, _ in fsys.walk()] == ["plugin", "plugin/b", "plugin/b/b.exe"]


def test_walk_missing_top_raises():
    with pytest.raises(FileNotFoundError):
        list(union(MemoryFS(), MemoryFS()).walk("plugin"))


@pytest.mark.parametrize(
    "usr, sys_fs, want",
    [
        (MemoryFS({"plugin/a/a.exe": b"user a"}), MemoryFS({"plugin/a/a.exe": b"system a"}), b"user a"),
        (MemoryFS({"plugin/a/": b""}), MemoryFS({"plugin/a/a.exe": b"system a"}), b"system a"),
        (MemoryFS({"plugin/": b""}), MemoryFS({"plugin/a/a.exe": b"system a"}), b"system a"),
        (MemoryFS({"": b""}), MemoryFS({"plugin/a/a.exe": b"system a"}), b"system a"),
        (
            MemoryFS({"plugin/a/b.exe": b"user b", "plugin/a/c/c.exe": b"user c"}),
            MemoryFS({"plugin/a/c/c.exe": b"system c"}),
            b"user c",
        ),
    ],
)
def test_read_file(usr, sys_fs, want):
    assert union(usr, sys_fs).read_file("plugin/a/" + ("c/c.exe" if want.endswith(b"c") else "a.exe")) == want


def test_read_file_missing_everywhere():
    with pytest.raises(FileNotFoundError):
        union(MemoryFS(), MemoryFS()).read_file("plugin/a/a.exe")


@pytest.mark.parametrize(
    "usr, sys_fs, elements, want",
    [
        (MemoryFS({"plugin/a/a.exe": b"user a"}), MemoryFS({"plugin/a/a.exe": b"system a"}), ["plugin/a/a.exe"], "user/plugin/a/a.exe"),
        (MemoryFS({"plugin/a/a.exe": b"user a"}), MemoryFS({"plugin/a/a.exe": b"system a"}), ["plugin/a"], "user/plugin/a"),
        (MemoryFS({"plugin/a/": b""}), MemoryFS({"plugin/a/a.exe": b"system a"}), ["plugin/a/a.exe"], "system/plugin/a/a.exe"),
        (MemoryFS({"plugin/a/a.exe": b"user a"}), MemoryFS({"plugin/a/b.exe": b"system b"}), ["plugin/a/b.exe"], "system/plugin/a/b.exe"),
        (MemoryFS({"plugin/a/a.exe": b"user a"}), MemoryFS({"plugin/a/b.exe": b"system b"}), ["plugin/a/a.exe"], "user/plugin/a/a.exe"),
        (MemoryFS({"plugin/a/a.exe": b"user a"}), MemoryFS({"plugin/a/b.exe": b"system b"}), ["plugin/c/c.exe"], "user/plugin/c/c.exe"),
    ],
)
def test_get_path(usr, sys_fs, elements, want):
    assert_path_equal(want, union(usr, sys_fs).get_path(*elements))


def test_lookup_missing_raises():
    fsys = union(MemoryFS({"plugin/a/a.exe": b"user a"}), MemoryFS())
    with pytest.raises(FileNotFoundError):
        fsys.lookup("plugin/c/c.exe")


def test_get_path_trust_store():
    fsys = UnionDirFS(
        new_rooted_fs(
            "/home/exampleuser/.config/notation",
            MemoryFS({"truststore/x509/ca/acme-rockets/cert1.pem": b"user cert1"}),
        ),
        new_rooted_fs(
            "/etc/notation",
            MemoryFS({
                "truststore/x509/ca/acme-rockets/cert1.pem": b"system cert1",
                "truststore/x509/ca/acme-rockets/cert2.pem": b"system cert2",
            }),
        ),
    )
    path = fsys.lookup("truststore", "x509", "ca", "acme-rockets", "cert1.pem")
    assert_path_equal("/home/exampleuser/.config/notation/truststore/x509/ca/acme-rockets/cert1.pem", path)


def test_get_path_empty_union():
    with pytest.raises(ValueError, match="empty"):
        UnionDirFS().get_path("config.json")


def test_read_dir_deduplicates_by_name():
    fsys = union(
        MemoryFS({"plugin/a/x": b"user"}),
        MemoryFS({"plugin/a/x": b"system", "plugin/a/y": b"system"}),
    )
    assert [entry.name for entry in fsys.read_dir("plugin/a")] == ["x", "y"]
    assert fsys.read_file("plugin/a/x") == b"user"


def test_read_dir_missing_everywhere_is_empty():
    assert union(MemoryFS(), MemoryFS()).read_dir("plugin") == []


def test_memory_fs_errors_and_modes():
    fsys = MemoryFS({"a/file": b"data"}, dirs=["d"], symlinks=["a/link", "d"])
    with pytest.raises(NotADirectoryError):
        fsys.read_dir("a/file")
    with pytest.raises(IsADirectoryError):
        fsys.read_file("a")
    with pytest.raises(ValueError):
        fsys.stat("/a")
    with pytest.raises(ValueError):
        fsys.stat("a/../b")
    assert fsys.stat("a/file").is_regular
    assert fsys.stat("a/file").size == 4
    link = fsys.stat("a/link")
    assert link.is_symlink and not link.is_regular
    root_entries = {entry.name: entry for entry in fsys.read_dir(".")}
    assert root_entries["d"].is_dir and root_entries["d"].is_symlink
    assert root_entries["a"].is_dir and not root_entries["a"].is_symlink


def test_plugin_fs_custom():
    assert plugin_fs("/home/user/plugins") == UnionDirFS(new_rooted_fs("/home/user/plugins"))


def test_plugin_fs_default():
    paths = default_paths()
    roots = [rooted.root for rooted in plugin_fs().dirs]
    assert roots == [
        os.path.join(paths.user_libexec, "plugins"),
        os.path.join(paths.system_libexec, "plugins"),
    ]
    assert all(rooted.fsys == DirFS(rooted.root) for rooted in plugin_fs().dirs)


def test_x509_trust_store_existing():
    manager = PathManager(
        config_fs=UnionDirFS(
            new_rooted_fs("/user/exampleuser/.config/notation", MemoryFS(dirs=["truststore/x509/ca/store1"])),
            new_rooted_fs("/etc/notation", MemoryFS(dirs=["truststore/x509/ca/store1"])),
        )
    )
    assert_path_equal(
        "/user/exampleuser/.config/notation/truststore/x509/ca/store1",
        manager.x509_trust_store("ca", "store1"),
    )


ROOT = "/home/exampleuser/.config/notation/"


def test_path_manager_config():
    manager = PathManager(config_fs=UnionDirFS(new_rooted_fs(ROOT)))
    assert_path_equal(ROOT + CONFIG_FILE, manager.config())


def test_path_manager_local_key():
    manager = PathManager(user_config_fs=UnionDirFS(new_rooted_fs(ROOT)))
    key_path, cert_path = manager.local_key("key1")
    assert_path_equal(ROOT + "localkeys/key1" + LOCAL_KEY_EXTENSION, key_path)
    assert_path_equal(ROOT + "localkeys/key1" + LOCAL_CERTIFICATE_EXTENSION, cert_path)


def test_path_manager_signing_key_config():
    manager = PathManager(user_config_fs=UnionDirFS(new_rooted_fs(ROOT)))
    assert_path_equal(ROOT + SIGNING_KEYS_FILE, manager.signing_key_config())


def test_path_manager_trust_policy():
    manager = PathManager(config_fs=UnionDirFS(new_rooted_fs(ROOT)))
    assert_path_equal(ROOT + TRUST_POLICY_FILE, manager.trust_policy())


def test_path_manager_x509_trust_store():
    manager = PathManager(config_fs=UnionDirFS(new_rooted_fs(ROOT)))
    assert_path_equal(ROOT + "truststore/x509/ca/store", manager.x509_trust_store("ca", "store"))


def test_path_manager_without_dirs_raises():
    with pytest.raises(ValueError):
        PathManager().config()


def test_default_path_manager_config_name():
    assert os.path.basename(default_path_manager().config()) == CONFIG_FILE


def test_dir_fs_union_on_disk(tmp_path):
    user = tmp_path / "user"
    system = tmp_path / "system"
    (user / "plugin" / "a").mkdir(parents=True)
    (system / "plugin" / "a").mkdir(parents=True)
    (system / "plugin" / "a" / "a.exe").write_bytes(b"system a")
    fsys = UnionDirFS(new_rooted_fs(str(user)), new_rooted_fs(str(system)))
    assert fsys.read_file("plugin/a/a.exe") == b"system a"
    assert fsys.lookup("plugin", "a", "a.exe") == str(system / "plugin" / "a" / "a.exe")
    assert fsys.get_path("plugin", "b") == str(user / "plugin" / "b")
    assert [path for path, _ in fsys.walk("plugin")] == ["plugin/a", "plugin/a/a.exe"]
    info = fsys.stat("plugin/a/a.exe")
    assert info.is_regular and info.size == 8 and info.name == "a.exe"


def test_dir_fs_read_dir_sorted(tmp_path):
    for name in ["c", "a", "b"]:
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "d").mkdir()
    entries = DirFS(str(tmp_path)).read_dir(".")
    assert [entry.name for entry in entries] == ["a", "b", "c", "d"]
    assert [entry.is_dir for entry in entries] == [False, False, False, True]