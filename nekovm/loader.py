"""Locating module files on a search path and loading them."""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .module import Module, ModuleFormatError, read_module
from .stats import Stats
from .values import NekoObject

DEFAULT_PATH = "/usr/local/lib/neko:/usr/lib/neko:/usr/local/bin:/usr/bin"
MODULE_EXT = ".n"


class ModuleNotFound(Exception):
    """No file could be opened for the requested module."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Module not found : {name}")
        self.name = name


def _split_path(path: str) -> List[str]:
    parts: List[str] = []
    while True:
        # a drive letter's colon is not a separator
        start = 2 if len(path) > 1 and path[1] == ":" else 0
        colon = path.find(":", start)
        semi = path.find(";", start)
        candidates = [i for i in (colon, semi) if i != -1]
        if not candidates:
            parts.append(path)
            return parts
        cut = min(candidates)
        parts.append(path[:cut])
        path = path[cut + 1:]


def init_path(path: Optional[str]) -> List[str]:
    """Turn a ':' or ';' separated path into directories, in search order.

    Each directory ends with a separator. Later entries of ``path`` are
    searched first. ``None`` stands for the default search path.
    """
    if path is None:
        path = DEFAULT_PATH
    result: List[str] = []
    for part in _split_path(path):
        if not part.endswith(("/", "\\")):
            part += "/"
        result.insert(0, part)
    return result


def select_file(search_path: Iterable[str], file: str, ext: str) -> str:
    """Return the path of ``file + ext``, looking first in the current
    directory, then in each search directory; the bare name if none exists."""
    name = file + ext
    if os.path.exists(name):
        if "/" in file or "\\" in file:
            return name
        return "./" + name
    for directory in search_path:
        candidate = directory + name
        if os.path.exists(candidate):
            return candidate
    return name


def module_file(search_path: Iterable[str], name: str) -> str:
    """Return the file for module ``name``, adding ``.n`` unless present."""
    dot = name.rfind(".")
    ext = "" if dot != -1 and name[dot:] == MODULE_EXT else MODULE_EXT
    return select_file(search_path, name, ext)


class Loader:
    """Loads modules by name from a search path and caches them.

    ``execute`` is called with each newly loaded module; ``stats`` records
    the time spent reading and executing modules.
    """

    def __init__(
        self,
        args: Sequence[str] = (),
        search_path: Optional[List[str]] = None,
        execute: Optional[Callable[[Module], Any]] = None,
        stats: Optional[Stats] = None,
    ) -> None:
        self.args = list(args)
        self.path = (
            search_path if search_path is not None else init_path(os.environ.get("NEKOPATH"))
        )
        self.cache: Dict[str, Module] = {}
        self.execute = execute
        self.stats = stats

    def _measure(self, kind: str, start: bool) -> None:
        if self.stats is not None:
            self.stats.measure(kind, start)

    def load_module(self, name: str) -> NekoObject:
        """Load module ``name`` (once) and return its exports object."""
        cached = self.cache.get(name)
        if cached is not None:
            return cached.exports
        filename = module_file(self.path, name)
        try:
            stream = open(filename, "rb")
        except OSError as exc:
            raise ModuleNotFound(name) from exc
        with stream:
            self._measure("neko_read_module", True)
            try:
                module = read_module(stream, self)
            except ModuleFormatError as exc:
                raise ModuleFormatError(f"Invalid module : {name}") from exc
            finally:
                self._measure("neko_read_module", False)
        module.name = name
        self.cache[name] = module
        if self.execute is not None:
            self._measure(name, True)
            self.execute(module)
            self._measure(name, False)
        return module.exports