"""Notation directory layout and a union view over several directory trees."""

from __future__ import annotations

import errno
import functools
import os
import posixpath
import stat as stat_mod
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Mapping

NOTATION = "notation"
CONFIG_FILE = "config.json"
LOCAL_CERTIFICATE_EXTENSION = ".crt"
LOCAL_KEY_EXTENSION = ".key"
LOCAL_KEYS_DIR = "localkeys"
SIGNATURE_EXTENSION = ".sig"
SIGNATURE_STORE_DIR_NAME = "signatures"
SIGNING_KEYS_FILE = "signingkeys.json"
TRUST_POLICY_FILE = "trustpolicy.json"
TRUST_STORE_DIR = "truststore"


def _not_found(name: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), name)


def _check_name(name: str) -> None:
    if name != "." and (not name or name.startswith("/") or any(
            part in ("", ".", "..") for part in name.split("/"))):
        raise ValueError(f"invalid path: {name!r}")


@dataclass(frozen=True)
class FileInfo:
    """Information about a file or directory."""

    name: str
    size: int = 0
    is_dir: bool = False
    is_symlink: bool = False
    is_regular: bool = False


@dataclass(frozen=True)
class DirEntry:
    """An entry read from a directory."""

    name: str
    is_dir: bool = False
    is_symlink: bool = False


@dataclass(frozen=True)
class DirFS:
    """A file system backed by an operating-system directory."""

    root: str

    def _full(self, name: str) -> str:
        _check_name(name)
        return self.root if name == "." else os.path.join(self.root, *name.split("/"))

    def stat(self, name: str) -> FileInfo:
        st = os.stat(self._full(name))
        return FileInfo(posixpath.basename(name) or name, st.st_size,
                        stat_mod.S_ISDIR(st.st_mode), False, stat_mod.S_ISREG(st.st_mode))

    def read_file(self, name: str) -> bytes:
        with open(self._full(name), "rb") as handle:
            return handle.read()

    def read_dir(self, name: str) -> list[DirEntry]:
        with os.scandir(self._full(name)) as entries:
            result = [DirEntry(e.name, e.is_dir(follow_symlinks=False), e.is_symlink()) for e in entries]
        return sorted(result, key=lambda entry: entry.name)


class MemoryFS:
    """An in-memory file system.

    ``files`` maps names to contents; a name ending in ``/`` is a directory.
    Parent directories exist implicitly; ``dirs`` and ``symlinks`` mark names.
    """

    def __init__(self, files: Mapping[str, bytes] | None = None, *,
                 dirs: Iterable[str] = (), symlinks: Iterable[str] = ()) -> None:
        # name -> [data, is_dir, is_symlink]
        self._nodes: dict[str, list[Any]] = {}
        for name, data in (files or {}).items():
            if name.strip("/"):
                self._nodes[name.strip("/")] = [bytes(data), name.endswith("/"), False]
        for index, names in ((1, dirs), (2, symlinks)):
            for name in names:
                if name.strip("/"):
                    self._nodes.setdefault(name.strip("/"), [b"", False, False])[index] = True

    def _lookup(self, name: str) -> list[Any]:
        _check_name(name)
        if name == ".":
            return [b"", True, False]
        if name in self._nodes:
            return self._nodes[name]
        if any(key.startswith(name + "/") for key in self._nodes):
            return [b"", True, False]
        raise _not_found(name)

    def stat(self, name: str) -> FileInfo:
        data, is_dir, is_link = self._lookup(name)
        return FileInfo(posixpath.basename(name) or name, len(data), is_dir, is_link,
                        not is_dir and not is_link)

    def read_file(self, name: str) -> bytes:
        data, is_dir, _ = self._lookup(name)
        if is_dir:
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), name)
        return data

    def read_dir(self, name: str) -> list[DirEntry]:
        if not self._lookup(name)[1]:
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), name)
        prefix = "" if name == "." else name + "/"
        entries: dict[str, DirEntry] = {}
        for key, (_, is_dir, is_link) in self._nodes.items():
            if key.startswith(prefix):
                child, nested, _ = key[len(prefix):].partition("/")
                if nested:
                    entries.setdefault(child, DirEntry(child, is_dir=True))
                else:
                    entries[child] = DirEntry(child, is_dir, is_link)
        return [entries[key] for key in sorted(entries)]


@dataclass(frozen=True)
class RootedFS:
    """A file system that knows the native path of its root."""

    root: str
    fsys: Any = None

    def __post_init__(self) -> None:
        if self.fsys is None:
            object.__setattr__(self, "fsys", DirFS(self.root))

    def stat(self, name: str) -> FileInfo:
        return self.fsys.stat(name)

    def read_file(self, name: str) -> bytes:
        return self.fsys.read_file(name)

    def read_dir(self, name: str) -> list[DirEntry]:
        return self.fsys.read_dir(name)


def new_rooted_fs(root: str, fsys: Any = None) -> RootedFS:
    """Create a rooted file system; without fsys the root directory is used."""
    return RootedFS(root, fsys)


def _join_elements(elements: Iterable[str]) -> str:
    parts = [element for element in elements if element]
    return posixpath.normpath("/".join(parts)) if parts else ""


def _native_join(root: str, suffix: str) -> str:
    joined = os.path.join(root, *[part for part in suffix.split("/") if part])
    return os.path.normpath(joined) if joined else ""


class UnionDirFS:
    """Several directories seen as one, earlier directories taking priority."""

    def __init__(self, *dirs: RootedFS) -> None:
        self.dirs = tuple(dirs)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UnionDirFS) and self.dirs == other.dirs

    def _first(self, method: str, name: str) -> Any:
        for rooted in self.dirs:
            try:
                return getattr(rooted, method)(name)
            except FileNotFoundError:
                continue
        raise _not_found(name)

    def stat(self, name: str) -> FileInfo:
        return self._first("stat", name)

    def read_file(self, name: str) -> bytes:
        return self._first("read_file", name)

    def read_dir(self, name: str) -> list[DirEntry]:
        """Merge the entries of name across directories, first name wins."""
        merged: dict[str, DirEntry] = {}
        for rooted in self.dirs:
            try:
                entries = rooted.read_dir(name)
            except FileNotFoundError:
                continue
            for entry in entries:
                merged.setdefault(entry.name, entry)
        return list(merged.values())

    def walk(self, top: str = ".") -> Iterator[tuple[str, DirEntry]]:
        """Yield (path, entry) for everything beneath top, depth first."""
        if not self.stat(top).is_dir:
            return
        for entry in self.read_dir(top):
            path = entry.name if top == "." else f"{top}/{entry.name}"
            yield path, entry
            if entry.is_dir:
                yield from self.walk(path)

    def lookup(self, *elements: str) -> str:
        """Return the native path of the first existing match, or raise FileNotFoundError."""
        if not self.dirs:
            raise ValueError("the union directory is empty")
        suffix = _join_elements(elements)
        for rooted in self.dirs:
            try:
                rooted.stat(suffix)
            except FileNotFoundError:
                continue
            return _native_join(rooted.root, suffix)
        raise _not_found(suffix)

    def get_path(self, *elements: str) -> str:
        """Return the existing path, or the path to create in the first directory."""
        try:
            return self.lookup(*elements)
        except FileNotFoundError:
            return _native_join(self.dirs[0].root, _join_elements(elements))


@dataclass(frozen=True)
class SystemPaths:
    """User and system level directories used by notation."""

    system_config: str
    system_libexec: str
    user_config: str
    user_libexec: str


def _current_goos() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    return sys.platform


def _user_config_dir() -> str:
    goos, env = _current_goos(), os.environ
    if goos == "windows":
        base, suffix = env.get("AppData", ""), ""
    elif goos == "darwin":
        base, suffix = env.get("HOME", ""), "/Library/Application Support"
    elif env.get("XDG_CONFIG_HOME"):
        base, suffix = env["XDG_CONFIG_HOME"], ""
    else:
        base, suffix = env.get("HOME", ""), "/.config"
    if not base:
        raise OSError("user config directory is not defined")
    return base + suffix


def load_path(goos: str | None = None, user_config_dir: Callable[[], str] | None = None,
              getenv: Callable[[str], str | None] | None = None) -> SystemPaths:
    """Work out the notation directories for the given operating system."""
    goos = goos or _current_goos()
    getenv = getenv or (lambda name: os.environ.get(name, ""))
    if goos == "darwin":
        system_config, system_libexec = "/Library/Application Support/notation", "/usr/local/lib/notation"
    elif goos == "windows":
        resolved = []
        for var in ("ProgramData", "ProgramFiles"):
            value = getenv(var) or ""
            if not value:
                raise RuntimeError(f"environment variable `{var}` is not set.")
            resolved.append(os.path.join(value, NOTATION))
        system_config, system_libexec = resolved
    else:
        system_config, system_libexec = "/etc/notation", "/usr/libexec/notation"
    user_config = os.path.join((user_config_dir or _user_config_dir)(), NOTATION)
    return SystemPaths(system_config, system_libexec, user_config, user_config)


@dataclass
class PathManager:
    """Resolves the locations of notation's files."""

    config_fs: UnionDirFS = field(default_factory=UnionDirFS)
    libexec_fs: UnionDirFS = field(default_factory=UnionDirFS)
    user_config_fs: UnionDirFS = field(default_factory=UnionDirFS)

    def config(self) -> str:
        return self.config_fs.get_path(CONFIG_FILE)

    def local_key(self, name: str) -> tuple[str, str]:
        """Paths of a local private key and its certificate."""
        return (self.user_config_fs.get_path(LOCAL_KEYS_DIR, name + LOCAL_KEY_EXTENSION),
                self.user_config_fs.get_path(LOCAL_KEYS_DIR, name + LOCAL_CERTIFICATE_EXTENSION))

    def signing_key_config(self) -> str:
        return self.user_config_fs.get_path(SIGNING_KEYS_FILE)

    def trust_policy(self) -> str:
        return self.config_fs.get_path(TRUST_POLICY_FILE)

    def x509_trust_store(self, prefix: str, named_store: str) -> str:
        return self.config_fs.get_path(TRUST_STORE_DIR, "x509", prefix, named_store)


@functools.lru_cache(maxsize=None)
def default_paths() -> SystemPaths:
    """The directories for the running system, computed once."""
    return load_path()


@functools.lru_cache(maxsize=None)
def default_path_manager() -> PathManager:
    """The path manager for the running system, computed once."""
    paths = default_paths()
    return PathManager(
        config_fs=UnionDirFS(new_rooted_fs(paths.user_config), new_rooted_fs(paths.system_config)),
        libexec_fs=UnionDirFS(new_rooted_fs(paths.user_libexec), new_rooted_fs(paths.system_libexec)),
        user_config_fs=UnionDirFS(new_rooted_fs(paths.user_config)),
    )


def plugin_fs(*dirs: str) -> UnionDirFS:
    """Union of plugin directories; defaults to the user and system plugin dirs."""
    if not dirs:
        paths = default_paths()
        dirs = (os.path.join(paths.user_libexec, "plugins"), os.path.join(paths.system_libexec, "plugins"))
    return UnionDirFS(*(new_rooted_fs(directory) for directory in dirs))