"""Runtime pieces of a Neko-style virtual machine: field tables, values, module reading and loading, statistics and threads."""

__version__ = "0.1.0"

__all__ = ["fields", "loader", "module", "objtable", "stats", "threads", "values"]