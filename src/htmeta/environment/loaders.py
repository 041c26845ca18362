"""Source loaders for ``@import`` and ``@include``.

Loaders hand document source to the template plugin. They implement
``get_source(path)`` returning ``(source, filename)`` and ``exists(path)``.
The path they receive has already been resolved against the importing
file's directory.

Built-in Loaders:
- `FileSystemLoader`: read from the file system, optionally from several roots
- `DictLoader`: read from an in-memory dictionary (testing/embedded)
- `ChoiceLoader`: try several loaders in order

Custom Loaders:
Implement the Loader protocol:
    ```python
    class HttpLoader:
        def get_source(self, path: str) -> tuple[str, str]:
            response = session.get(f"{BASE}/{path}")
            if response.status_code == 404:
                raise TemplateNotFoundError(f"'{path}' not found")
            return response.text, f"{BASE}/{path}"

        def exists(self, path: str) -> bool:
            return session.head(f"{BASE}/{path}").ok
    ```

"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Protocol

from htmeta.environment.exceptions import ErrorCode, TemplateNotFoundError, UserError


class Loader(Protocol):
    def get_source(self, path: str) -> tuple[str, str]: ...

    def exists(self, path: str) -> bool: ...


def resolve_path(current_file: str | None, relative: str) -> str:
    """Resolve ``relative`` against the directory of ``current_file``.

    Pure path arithmetic: nothing is read from disk, so the result is usable
    with any loader.

    Example:
        >>> resolve_path("pages/index.kdl", "../parts/nav.kdl")
        'parts/nav.kdl'
        >>> resolve_path(None, "nav.kdl")
        'nav.kdl'
    """
    relative = relative.replace("\\", "/")
    if posixpath.isabs(relative) or current_file is None:
        return posixpath.normpath(relative)
    base = posixpath.dirname(current_file.replace("\\", "/"))
    return posixpath.normpath(posixpath.join(base, relative))


def read_source(path: Path, encoding: str = "utf-8") -> str:
    """Read a document from disk.

    Raises:
        UserError: If the file is not valid ``encoding``
        OSError: If the file cannot be read
    """
    try:
        return path.read_text(encoding)
    except UnicodeDecodeError as e:
        raise UserError(
            f"File '{path.as_posix()}' is not valid {encoding}: {e.reason} at byte {e.start}",
            code=ErrorCode.INVALID_ENCODING,
            suggestion=f"Save the file as {encoding}",
        ) from e


class FileSystemLoader:
    """Load documents from file system directories.

    Each root is searched in order and the first existing file wins. With
    the default root (the working directory) relative paths behave like
    ordinary relative paths and absolute paths are read as-is.

    Example:
            >>> loader = FileSystemLoader(["site/", "shared/"])
            >>> source, filename = loader.get_source("parts/nav.kdl")
            >>> filename
            'site/parts/nav.kdl'

    Raises:
        TemplateNotFoundError: If the file exists in none of the roots
        UserError: If the file is not valid text in ``encoding``
    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | list[str | Path] = ".",
        encoding: str = "utf-8",
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding

    def _find(self, path: str) -> Path | None:
        for base in self._paths:
            candidate = base / path
            if candidate.is_file():
                return candidate
        return None

    def get_source(self, path: str) -> tuple[str, str]:
        found = self._find(path)
        if found is None:
            raise TemplateNotFoundError(
                f"File '{path}' not found in: {', '.join(str(p) for p in self._paths)}"
            )
        return read_source(found, self._encoding), str(found)

    def exists(self, path: str) -> bool:
        return self._find(path) is not None


class DictLoader:
    """Load documents from an in-memory dictionary.

    Keys are resolved paths (POSIX separators, normalized). Handy for tests:

            >>> loader = DictLoader({
            ...     "parts/button.kdl": '@template name="button" { button "$0" }',
            ... })
            >>> loader.exists("parts/button.kdl")
            True

    Raises:
        TemplateNotFoundError: If the path is not in the mapping
    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: dict[str, str]):
        self._mapping = {posixpath.normpath(k): v for k, v in mapping.items()}

    def get_source(self, path: str) -> tuple[str, str]:
        key = posixpath.normpath(path)
        if key not in self._mapping:
            from difflib import get_close_matches

            available = sorted(self._mapping)
            msg = f"File '{path}' not found"
            matches = get_close_matches(key, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
            raise TemplateNotFoundError(msg)
        return self._mapping[key], key

    def exists(self, path: str) -> bool:
        return posixpath.normpath(path) in self._mapping


class ChoiceLoader:
    """Try several loaders in order, returning the first match.

    Example:
            >>> loader = ChoiceLoader([
            ...     DictLoader({"theme.kdl": "$accent red"}),
            ...     FileSystemLoader("themes/default/"),
            ... ])
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: list[Loader]):
        self._loaders = loaders

    def get_source(self, path: str) -> tuple[str, str]:
        for loader in self._loaders:
            try:
                return loader.get_source(path)
            except TemplateNotFoundError:
                continue
        raise TemplateNotFoundError(
            f"File '{path}' not found in any of {len(self._loaders)} loaders"
        )

    def exists(self, path: str) -> bool:
        return any(loader.exists(path) for loader in self._loaders)
