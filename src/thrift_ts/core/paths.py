import os
from pathlib import Path

THRIFT_EXTENSIONS = frozenset({".thrift"})
OUTPUT_EXTENSION = ".ts"


def resolve_root(path: str | Path) -> str:
    """Absolute, normalised form of ``path`` against the working directory."""
    return os.path.normpath(os.path.join(os.getcwd(), path))


def source_path(src_root: str, file: str | Path) -> str:
    """Absolute path of an entry file; relative entries live under ``src_root``."""
    return os.path.normpath(os.path.join(src_root, file))


def include_path(current_file: str, include: str) -> str:
    """Resolve an ``include`` against the directory of the including file."""
    return os.path.normpath(os.path.join(os.path.dirname(current_file), include))


def relative_source_path(src_root: str, file: str) -> str:
    relative = os.path.relpath(file, src_root)
    if relative == os.curdir or relative == os.pardir or relative.startswith(os.pardir + os.sep):
        raise ValueError(f"{file} is outside the source root {src_root}")
    return relative.lstrip(os.sep)


def replace_extension(path: str, extension: str = OUTPUT_EXTENSION) -> str:
    """Swap the extension of the last path segment, appending one if there is none."""
    directory, slash, filename = path.rpartition("/")
    stem = module_stem(filename)
    return f"{directory}{slash}{stem}{extension}"


def module_stem(path: str) -> str:
    filename = path.rpartition("/")[2]
    stem, dot, _ = filename.rpartition(".")
    if not dot or not stem:
        return filename
    return stem


def output_path(out_root: str, relative: str) -> Path:
    return Path(out_root) / replace_extension(Path(relative).as_posix())


def import_specifier(include: str) -> str:
    """Module specifier for the ``.ts`` sibling of an included IDL file."""
    target = replace_extension(include)
    if not target.startswith(("./", "../", "/")):
        target = "./" + target
    return target
