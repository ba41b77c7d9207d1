"""Runtime values: objects, functions, comparison and text rendering."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Tuple

from .fields import field_id, field_name
from .objtable import ObjTable

VAR_ARGS = -1
_FLOAT_FMT = "%.15g"


@dataclass(frozen=True)
class Int32:
    """A boxed 32-bit signed integer."""

    value: int

    def __post_init__(self) -> None:
        if not -(2**31) <= self.value < 2**31:
            raise ValueError(f"value out of 32-bit range: {self.value}")


class NekoObject:
    """An object: a field table plus an optional prototype."""

    def __init__(self, proto: Optional["NekoObject"] = None) -> None:
        self.table = ObjTable()
        self.proto = proto

    def get_field(self, fid: int) -> Any:
        """Look ``fid`` up along the prototype chain; None when absent."""
        obj: Optional[NekoObject] = self
        while obj is not None:
            if fid in obj.table:
                return obj.table.find(fid)
            obj = obj.proto
        return None

    def set_field(self, fid: int, value: Any) -> None:
        self.table.replace(fid, value)

    def remove_field(self, fid: int) -> bool:
        return self.table.remove(fid)

    def iter_fields(self) -> Iterator[Tuple[int, Any]]:
        """Yield the object's own (field id, value) pairs in id order."""
        return iter(self.table)


class NekoFunction:
    """A callable value; ``impl`` receives ``this`` followed by the arguments."""

    def __init__(self, impl: Callable[..., Any], nargs: int, name: str = "?") -> None:
        self.impl = impl
        self.nargs = nargs
        self.name = name

    def _invoke(self, this: Any, args: tuple) -> Any:
        if self.nargs != VAR_ARGS and len(args) != self.nargs:
            raise NekoException("Invalid call")
        return self.impl(this, *args)

    def __call__(self, *args: Any) -> Any:
        return self._invoke(None, args)

    def __repr__(self) -> str:
        return f"NekoFunction({self.name!r}, nargs={self.nargs})"


@dataclass(eq=False)
class Abstract:
    """An opaque value of a given kind."""

    kind: str
    data: Any = None


class NekoException(Exception):
    """A value thrown by running code."""

    def __init__(self, value: Any) -> None:
        super().__init__(value)
        self.value = value

    def __str__(self) -> str:
        return to_string(self.value)


def _call(this: Any, func: Any, *args: Any) -> Any:
    if not isinstance(func, NekoFunction):
        raise NekoException("Invalid call")
    return func._invoke(this, args)


def _kind(v: Any) -> str:
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "bool"
    if isinstance(v, Int32):
        return "int32"
    if isinstance(v, int):
        return "int"
    if isinstance(v, float):
        return "float"
    if isinstance(v, str):
        return "string"
    if isinstance(v, list):
        return "array"
    if isinstance(v, NekoObject):
        return "object"
    if isinstance(v, NekoFunction):
        return "function"
    if isinstance(v, Abstract):
        return "abstract"
    return "unknown"


def _sign(x: Any) -> int:
    return (x > 0) - (x < 0)


def _icmp(a: int, b: int) -> int:
    return 0 if a == b else (-1 if a < b else 1)


def _fcmp(a: float, b: float) -> Optional[int]:
    if math.isnan(a) or math.isnan(b):
        return None
    return 0 if a == b else (-1 if a < b else 1)


def _scmp(a: str, b: str) -> int:
    ba, bb = a.encode("utf-8"), b.encode("utf-8")
    return _sign((ba > bb) - (ba < bb))


def _number(v: Any) -> Any:
    return v.value if isinstance(v, Int32) else v


def _scalar_text(v: Any, kind: str) -> str:
    if kind == "int":
        return "%d" % v
    if kind == "int32":
        return "%d" % v.value
    if kind == "float":
        return _FLOAT_FMT % v
    return "true" if v else "false"


_INTS = ("int", "int32")
_NUMBERS = ("int", "int32", "float")


def compare(a: Any, b: Any) -> Optional[int]:
    """Compare two values: -1, 0 or 1, or None when they cannot be ordered."""
    ka, kb = _kind(a), _kind(b)
    if ka in _INTS and kb in _INTS:
        return _icmp(_number(a), _number(b))
    if ka in _NUMBERS and kb in _NUMBERS:
        return _fcmp(float(_number(a)), float(_number(b)))
    if ka == "string" and kb == "string":
        return _scmp(a, b)
    if ka == "string" and kb in ("int", "int32", "float", "bool"):
        return _scmp(a, _scalar_text(b, kb))
    if kb == "string" and ka in ("int", "int32", "float", "bool"):
        return _scmp(_scalar_text(a, ka), b)
    if ka == "bool" and kb == "bool":
        return 0 if a == b else (1 if a else -1)
    if ka == "object" and kb == "object":
        if a is b:
            return 0
        func = a.get_field(field_id("__compare"))
        if func is None:
            return None
        result = _call(a, func, b)
        if _kind(result) == "int":
            return result
        return None
    if a is b:
        return 0
    return None


def to_string(value: Any) -> str:
    """Render a value as text, marking cyclic references with '...'."""
    out: list[str] = []
    _render(value, out, ())
    return "".join(out)


def _render(v: Any, out: list, stack: tuple) -> None:
    if any(s is v for s in stack):
        out.append("...")
        return
    kind = _kind(v)
    if kind in ("int", "int32", "float"):
        out.append(_scalar_text(v, kind))
    elif kind == "string":
        out.append(v)
    elif kind == "null":
        out.append("null")
    elif kind == "bool":
        out.append("true" if v else "false")
    elif kind == "function":
        out.append("#function:%d" % v.nargs)
    elif kind == "object":
        _render_object(v, out, stack)
    elif kind == "array":
        inner = stack + (v,)
        out.append("[")
        for i, item in enumerate(v):
            if i:
                out.append(",")
            _render(item, out, inner)
        out.append("]")
    elif kind == "abstract":
        out.append("#abstract")
    else:
        out.append("#unknown")


def _render_object(obj: NekoObject, out: list, stack: tuple) -> None:
    s = obj.get_field(field_id("__string"))
    if s is not None:
        s = _call(obj, s)
    if isinstance(s, str):
        out.append(s)
        return
    inner = stack + (obj,)
    out.append("{")
    first = True
    for fid, value in obj.iter_fields():
        out.append(" " if first else ", ")
        first = False
        name = field_name(fid)
        if isinstance(name, bytes):
            name = name.decode("utf-8", "replace")
        _render(name, out, stack)
        out.append(" => ")
        _render(value, out, inner)
    out.append("}" if first else " }")


def append_int(text: str, number: int, append: bool) -> str:
    """Join ``number`` after ``text`` when ``append`` is true, otherwise before."""
    digits = "%d" % number
    return text + digits if append else digits + text


def _failure_to_string(this: NekoObject) -> str:
    return "%s(%s) : %s" % (
        to_string(this.get_field(field_id("file"))),
        to_string(this.get_field(field_id("line"))),
        to_string(this.get_field(field_id("msg"))),
    )


def make_failure(msg: Any, file: str, line: int) -> NekoException:
    """Build the exception raised for an internal failure at ``file``:``line``."""
    cut = max(file.rfind("/"), file.rfind("\\"))
    obj = NekoObject()
    obj.set_field(field_id("msg"), msg)
    obj.set_field(field_id("file"), file[cut + 1:])
    obj.set_field(field_id("line"), line)
    obj.set_field(field_id("__string"), NekoFunction(_failure_to_string, 0, "failure_to_string"))
    return NekoException(obj)