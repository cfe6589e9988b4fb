"""Discovery of installed plugins and execution of plugin commands."""

from __future__ import annotations

import json
import os
import posixpath
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Any, Protocol

from .dirs import UnionDirFS, plugin_fs
from .errors import ErrorCode, RequestError
from .metadata import Metadata
from .protocol import (
    PREFIX,
    Command,
    DescribeKeyResponse,
    GenerateEnvelopeResponse,
    GenerateSignatureResponse,
    Request,
    VerifySignatureResponse,
)


class PluginNotFoundError(LookupError):
    """Raised when the requested plugin is not installed."""

    def __init__(self, message: str = "plugin not found") -> None:
        super().__init__(message)


class PluginNotCompliantError(ValueError):
    """Raised when a plugin exists but does not follow the plugin contract."""

    def __init__(self, message: str = "plugin not compliant") -> None:
        super().__init__(message)


_NOT_COMPLIANT_MESSAGE = "failed to decode json response: plugin not compliant"

_RESPONSE_TYPES: dict[Command, Any] = {
    Command.GET_METADATA: Metadata,
    Command.GENERATE_SIGNATURE: GenerateSignatureResponse,
    Command.GENERATE_ENVELOPE: GenerateEnvelopeResponse,
    Command.DESCRIBE_KEY: DescribeKeyResponse,
    Command.VERIFY_SIGNATURE: VerifySignatureResponse,
}


class _Commander(Protocol):
    def output(self, path: str, command: str, req: bytes | None) -> tuple[bytes, bool]: ...


@dataclass
class Plugin:
    """A candidate plugin and its metadata.

    ``err`` is set when the plugin failed one of the candidate checks.
    """

    metadata: Metadata = field(default_factory=Metadata)
    path: str = ""
    err: Exception | None = None


class ExecCommander:
    """Runs plugin executables as child processes."""

    def output(self, path: str, command: str, req: bytes | None) -> tuple[bytes, bool]:
        """Run ``path command`` with req on stdin.

        Returns stdout and True on success, stderr and False when the process
        exits with a non-zero status. Raises OSError if it cannot be started.
        """
        completed = subprocess.run(
            [path, command],
            input=req or b"",
            capture_output=True,
            check=False,
        )
        if completed.returncode != 0:
            return completed.stderr, False
        return completed.stdout, True


def _add_exe_suffix(name: str) -> str:
    if sys.platform.startswith("win"):
        return name + ".exe"
    return name


def _bin_name(name: str) -> str:
    return _add_exe_suffix(PREFIX + name)


def _is_candidate(fsys: UnionDirFS, name: str) -> bool:
    try:
        info = fsys.stat(posixpath.join(name, _bin_name(name)))
    except (OSError, ValueError):
        return False
    return info.is_regular


def _bin_path(fsys: UnionDirFS, name: str) -> str:
    base = _bin_name(name)
    try:
        return fsys.lookup(name, base)
    except (OSError, ValueError):
        return os.path.join(name, base)


def _as_command(command: Command | str) -> Command | None:
    try:
        return Command(command)
    except ValueError:
        return None


def run(
    commander: _Commander,
    plugin_path: str,
    command: Command | str,
    req: bytes | None,
) -> Any:
    """Execute a plugin command and decode its response.

    A failing plugin raises the RequestError it reported.
    """
    try:
        out, success = commander.output(plugin_path, str(command), req)
    except Exception as exc:
        raise RuntimeError(f"failed running the plugin: {exc}") from exc
    if not success:
        try:
            request_error = RequestError.from_json(out)
        except (ValueError, TypeError):
            raise RequestError(
                ErrorCode.GENERIC, PluginNotCompliantError(_NOT_COMPLIANT_MESSAGE)
            ) from None
        raise request_error
    known = _as_command(command)
    if known is None:
        raise ValueError(f"unsupported command: {command}")
    response_type = _RESPONSE_TYPES[known]
    try:
        return response_type.from_dict(json.loads(out))
    except (ValueError, TypeError) as exc:
        raise PluginNotCompliantError(_NOT_COMPLIANT_MESSAGE) from exc


@dataclass(frozen=True)
class PluginRunner:
    """Runs requests against one installed plugin."""

    name: str
    path: str
    commander: Any

    def run(self, req: Request) -> Any:
        """Send req to the plugin and return the decoded response."""
        try:
            data = json.dumps(req.to_dict(), separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise RuntimeError(
                f"{self.name}: failed to marshal request object: {exc}"
            ) from exc
        try:
            return run(self.commander, self.path, req.command(), data)
        except Exception as exc:
            raise RuntimeError(f"{self.name}: {exc}") from exc


class Manager:
    """Manages the plugins installed in a set of plugin directories.

    Plugins live at ``{root}/{name}/notation-{name}[.exe]``.
    """

    def __init__(self, fsys: UnionDirFS, commander: Any = None) -> None:
        self.fsys = fsys
        self.commander = commander if commander is not None else ExecCommander()

    def get(self, name: str) -> Plugin:
        """Return the named plugin; its ``err`` is set if it is not usable.

        Raises PluginNotFoundError if no candidate exists.
        """
        return self._new_plugin(name)

    def list(self) -> list[Plugin]:
        """Return every plugin candidate found in the plugin directories."""
        try:
            entries = self.fsys.read_dir(".")
        except (OSError, ValueError):
            return []
        plugins: list[Plugin] = []
        for entry in entries:
            if not entry.is_dir or entry.is_symlink:
                continue
            try:
                plugins.append(self._new_plugin(entry.name))
            except PluginNotFoundError:
                continue
        return plugins

    def runner(self, name: str) -> PluginRunner:
        """Return a runner for the named plugin.

        Raises PluginNotFoundError if no candidate exists.
        """
        if not _is_candidate(self.fsys, name):
            raise PluginNotFoundError()
        return PluginRunner(name=name, path=_bin_path(self.fsys, name), commander=self.commander)

    def _new_plugin(self, name: str) -> Plugin:
        if not _is_candidate(self.fsys, name):
            raise PluginNotFoundError()
        plugin = Plugin(path=_bin_path(self.fsys, name))
        try:
            metadata = run(self.commander, plugin.path, Command.GET_METADATA, None)
        except Exception as exc:
            failure = RuntimeError(f"failed to fetch metadata: {exc}")
            failure.__cause__ = exc
            plugin.err = failure
            return plugin
        plugin.metadata = metadata
        if metadata.name != name:
            expected = _add_exe_suffix(PREFIX + metadata.name)
            actual = os.path.basename(plugin.path)
            plugin.err = ValueError(
                f"executable name must be {json.dumps(expected)} "
                f"instead of {json.dumps(actual)}"
            )
        else:
            try:
                metadata.validate()
            except ValueError as exc:
                failure = ValueError(f"invalid metadata: {exc}")
                failure.__cause__ = exc
                plugin.err = failure
        return plugin


def new_manager(*roots: str) -> Manager:
    """Create a manager over the given plugin roots, or the default ones."""
    return Manager(plugin_fs(*roots), ExecCommander())