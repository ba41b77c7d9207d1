"""Reading of compiled bytecode modules."""

from __future__ import annotations

import io
import re
import struct
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Iterator, List, Optional, Tuple

from .fields import field_id
from .values import Abstract, NekoObject

MAGIC = 0x4F4B454E
MAX_STRING = 0x100
MAX_GLOBALS = 0xFFFF
MAX_FIELDS = 0xFFFF
MAX_CODESIZE = 0xFFFFFF

_FLOAT_PREFIX = re.compile(
    r"\s*[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


class ModuleFormatError(Exception):
    """The data is not a valid bytecode module."""


@dataclass(frozen=True)
class FunctionGlobal:
    """A function defined by the module: its code position and argument count."""

    position: int
    nargs: int


@dataclass
class DebugInfo:
    """Source positions of the module's code.

    ``positions`` holds the distinct (file, line) entries; ``indexes`` gives,
    for each code position, the index of its entry in ``positions``.
    """

    files: List[str]
    positions: List[Tuple[str, int]]
    indexes: List[int]

    def position(self, pc: int) -> Tuple[str, int]:
        """Return the (file, line) of code position ``pc``."""
        return self.positions[self.indexes[pc]]


@dataclass(eq=False)
class Module:
    """A loaded module: globals, field names, unpacked code and metadata."""

    globals: List[Any] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    code: List[int] = field(default_factory=list)
    boundaries: List[bool] = field(default_factory=list)
    version: int = 1
    debug: Optional[DebugInfo] = None
    loader: Any = None
    exports: NekoObject = field(default_factory=NekoObject)
    name: Optional[str] = None

    @property
    def codesize(self) -> int:
        return len(self.code)

    def instructions(self) -> Iterator[Tuple[int, int, Optional[int]]]:
        """Yield (position, opcode, parameter or None) for each instruction."""
        pos = 0
        size = len(self.code)
        while pos < size:
            has_param = pos + 1 < size and not self.boundaries[pos + 1]
            if has_param:
                yield pos, self.code[pos], self.code[pos + 1]
                pos += 2
            else:
                yield pos, self.code[pos], None
                pos += 1


class _Reader:
    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def read(self, n: int) -> bytes:
        data = self._stream.read(n) if n else b""
        if len(data) != n:
            raise ModuleFormatError("unexpected end of module")
        return data

    def byte(self) -> int:
        return self.read(1)[0]

    def long(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def short(self) -> int:
        return struct.unpack("<H", self.read(2))[0]

    def cstring(self) -> bytes:
        out = bytearray()
        while len(out) < MAX_STRING:
            c = self.byte()
            if c == 0:
                return bytes(out)
            out.append(c)
            if len(out) == MAX_STRING:
                break
        raise ModuleFormatError("string too long")


def _text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def _parse_float(data: bytes) -> float:
    match = _FLOAT_PREFIX.match(data.decode("latin-1"))
    if match is None:
        return 0.0
    return float(match.group(0))


def _signed32(n: int) -> int:
    return n - 0x100000000 if n & 0x80000000 else n


def _read_debug_infos(r: _Reader, codesize: int) -> DebugInfo:
    c = r.byte()
    lot_of_files = c >= 0x80
    nfiles = ((c & 0x7F) << 8) | r.byte() if lot_of_files else c
    if nfiles == 0:
        raise ModuleFormatError("no debug files")
    files = [_text(r.cstring()) for _ in range(nfiles)]
    npos = r.long()
    if npos != codesize:
        raise ModuleFormatError("debug positions do not match code size")

    positions: List[Tuple[str, int]] = []
    indexes: List[int] = []
    curfile = files[0]
    curline = 0
    open_entry = False

    def new_entry() -> None:
        positions.append((curfile, curline))
        indexes.append(len(positions) - 1)

    while len(indexes) < npos:
        c = r.byte()
        if c & 1:
            c >>= 1
            index = (c << 8) | r.byte() if lot_of_files else c
            if index >= len(files):
                raise ModuleFormatError("invalid debug file index")
            curfile = files[index]
            open_entry = False
        elif c & 2:
            delta = c >> 6
            count = (c >> 2) & 15
            if len(indexes) + count > npos:
                raise ModuleFormatError("debug positions overflow")
            if not open_entry:
                if count == 0:
                    raise ModuleFormatError("empty debug position run")
                new_entry()
                open_entry = True
                count -= 1
            indexes.extend([len(positions) - 1] * count)
            if delta:
                curline += delta
                open_entry = False
        elif c & 4:
            curline += c >> 3
            new_entry()
            open_entry = True
        else:
            b2 = r.byte()
            b3 = r.byte()
            curline = (c >> 3) | (b2 << 5) | (b3 << 13)
            new_entry()
            open_entry = True
    return DebugInfo(files, positions, indexes)


def _read_code(r: _Reader, codesize: int) -> Tuple[List[int], List[bool]]:
    code: List[int] = []
    boundaries: List[bool] = []

    def op(value: int) -> None:
        code.append(value)
        boundaries.append(True)

    def param(value: int) -> None:
        code.append(value)
        boundaries.append(False)

    while len(code) < codesize:
        t = r.byte()
        kind = t & 3
        if kind == 0:
            op(t >> 2)
        elif kind == 1:
            op(t >> 3)
            param((t >> 2) & 1)
        elif kind == 2:
            if t == 2:
                op(r.byte())
            else:
                op(t >> 2)
                param(r.byte())
        else:
            op(t >> 2)
            param(_signed32(r.long()))
    if len(code) > codesize:
        raise ModuleFormatError("code overflows its declared size")
    return code, boundaries


def read_module(stream: BinaryIO, loader: Any = None) -> Module:
    """Read a module from a binary stream; raise ModuleFormatError if invalid."""
    r = _Reader(stream)
    if r.long() != MAGIC:
        raise ModuleFormatError("bad magic number")
    nglobals = r.long()
    nfields = r.long()
    codesize = r.long()
    if nglobals > MAX_GLOBALS or nfields > MAX_FIELDS or codesize > MAX_CODESIZE:
        raise ModuleFormatError("module header out of range")

    m = Module(loader=loader)
    m.exports.set_field(field_id("__module"), Abstract("module", m))

    for _ in range(nglobals):
        t = r.byte()
        if t == 1:
            r.cstring()
            m.globals.append(None)
        elif t == 2:
            n = r.long()
            pos = n & 0xFFFFFF
            if pos >= codesize:
                raise ModuleFormatError("function outside of code")
            m.globals.append(FunctionGlobal(pos, n >> 24))
        elif t == 3:
            m.globals.append(_text(r.read(r.short())))
        elif t == 4:
            m.globals.append(_parse_float(r.cstring()))
        elif t == 5:
            m.debug = _read_debug_infos(r, codesize)
            m.globals.append(None)
        elif t == 6:
            m.version = r.byte()
            m.globals.append(None)
        else:
            raise ModuleFormatError(f"unknown global type {t}")

    m.fields = [_text(r.cstring()) for _ in range(nfields)]
    m.code, m.boundaries = _read_code(r, codesize)

    prev = 0
    for g in m.globals:
        if isinstance(g, FunctionGlobal):
            if not m.boundaries[g.position] or g.position < prev:
                raise ModuleFormatError("invalid function position")
            prev = g.position
    return m


def read_module_bytes(data: bytes, loader: Any = None) -> Module:
    """Read a module from a bytes object."""
    return read_module(io.BytesIO(data), loader)