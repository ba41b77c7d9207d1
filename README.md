# nekovm

Runtime building blocks for a Neko-style virtual machine, in plain Python
with no third-party dependencies.

## Modules

- `nekovm.objtable` – `ObjTable`, a table of `(field id, value)` cells kept
  sorted by id. `find` returns a value or raises `KeyError`, `get` returns
  `None` when absent, `replace` updates or inserts, `remove` reports whether a
  cell was removed, `optimize` drops cells holding `None`, `copy` makes an
  independent table. Tables support `len`, `in` and iteration in id order.
- `nekovm.fields` – `hash_field` turns a name into a 31-bit signed id;
  `field_id` also registers the name, raising `FieldConflictError` when a
  different name already owns that id; `field_name` gives the registered
  name back, or `None`.
- `nekovm.values` – the value model: `Int32` (boxed 32-bit integer),
  `NekoObject` (field table plus optional prototype, with `get_field`,
  `set_field`, `remove_field`, `iter_fields`), `NekoFunction` (a callable
  with a fixed argument count), `Abstract` and `NekoException`. Also:
  - `compare(a, b)` returns -1, 0 or 1, or `None` when the values cannot be
    ordered; numbers compare with each other, strings compare with numbers
    and booleans by their text, objects may define `__compare`.
  - `to_string(value)` renders a value, marking cycles with `...`; objects
    may define `__string`.
  - `append_int(text, number, append)` and `make_failure(msg, file, line)`.
- `nekovm.stats` – `Stats` times nested named sections with
  `measure(kind, start)`; `build()` returns `StatEntry` rows (kind, total
  time, self time, calls, errors) with the longest total first, and
  `format_report()` gives them as tab-separated text. A section stopped
  while sections inside it are still open counts an error for each of those.
- `nekovm.threads` – `Lock` (recursive, usable with `with`, plus
  `try_acquire`), `Local` (a per-thread value), `create_thread(init, main,
  param)` which returns once `init` has run in the new thread, and
  `run_blocking(func, param)`.
- `nekovm.module` – the bytecode module reader. `read_module(stream,
  loader)` and `read_module_bytes(data, loader)` return a `Module` holding
  globals (strings, floats, `FunctionGlobal` entries, `None` for the rest),
  field names, the unpacked code with its instruction boundaries, the
  format version and optional `DebugInfo`. `Module.instructions()` yields
  `(position, opcode, parameter)`. Malformed data raises `ModuleFormatError`.
- `nekovm.loader` – `init_path` splits a `:`/`;` separated path (drive
  letters such as `C:` are kept) into directories, later entries first;
  `select_file` and `module_file` resolve a file against them. `Loader`
  loads modules by name once, caches them, and raises `ModuleNotFound` when
  no file opens. Its search path defaults to the `NEKOPATH` environment
  variable or a built-in default.

## Examples

```python
from nekovm.objtable import ObjTable

table = ObjTable()
table.replace(42, "answer")
table.replace(7, "seven")
assert table.get(42) == "answer"
assert len(table) == 2
table.remove(7)
```

```python
from nekovm.fields import field_id, field_name

fid = field_id("length")
assert field_name(fid) == "length"
```

```python
from nekovm.values import compare, to_string

compare(1, 2)              # -1
compare("10", 10)          # 0
to_string([1, "a", None])  # "[1,a,null]"
```

```python
from nekovm.stats import Stats

stats = Stats()
stats.measure("total", True)
stats.measure("total", False)
print(stats.format_report())
```

```python
from nekovm.module import read_module_bytes, ModuleFormatError

try:
    module = read_module_bytes(data, None)
    for pos, opcode, param in module.instructions():
        print(pos, opcode, param)
except ModuleFormatError as err:
    print("bad module:", err)
```

```python
from nekovm.loader import Loader, init_path

loader = Loader(search_path=init_path("lib:/opt/modules"), execute=print)
exports = loader.load_module("hello")
```

## What this package does not do

It does not run bytecode: there is no interpreter loop, no compiler and no
command-line program. `Loader` reads and caches modules and hands each new
one to the `execute` callback you give it; what that callback does is up to
you. The module reader checks the file format and function positions but
does not check opcodes, operands or stack use. Native primitive libraries
cannot be loaded.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.