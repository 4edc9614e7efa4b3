"""
=============================================================================
FILESYSTEM ACCESS
=============================================================================

The narrow view of the disk the server needs: "what is at this path?" and
"give me its bytes".

    ┌──────────────────┐   stat(path)        ┌──────────────────────┐
    │  RouteResolver   │ ──────────────────► │  FileSystem          │
    │                  │   read_file(path)   │  (LocalFileSystem)   │
    └──────────────────┘ ──────────────────► └──────────────────────┘

Both operations raise FileNotFoundError when nothing exists at the path,
and any other OSError for everything else (permissions, I/O errors...).
The resolver relies on that split: the first becomes 404, the rest 500.

Keeping this behind a class lets tests swap in a fake disk without
touching the real one.

=============================================================================
"""

import os
import stat as stat_module
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FileStat:
    """
    What the server needs to know about a path.

    Only returned for paths that exist; neither flag set means something
    else lives there (a socket, a device...).

    Attributes:
        is_dir: It is a directory.
        is_file: It is a regular file.
    """

    is_dir: bool = False
    is_file: bool = False


class FileSystem:
    """Interface for the filesystem collaborator."""

    def stat(self, path: str) -> FileStat:
        """
        Describe the object at path.

        Raises:
            FileNotFoundError: Nothing exists at path.
            OSError: Any other failure.
        """
        raise NotImplementedError

    def read_file(self, path: str) -> bytes:
        """
        Read the full contents of the file at path.

        Raises:
            FileNotFoundError: Nothing exists at path.
            OSError: Any other failure (including path being a directory).
        """
        raise NotImplementedError


class LocalFileSystem(FileSystem):
    """FileSystem backed by the local disk."""

    def stat(self, path: str) -> FileStat:
        # os.stat follows symlinks, like the read below will
        mode = os.stat(path).st_mode
        return FileStat(
            is_dir=stat_module.S_ISDIR(mode),
            is_file=stat_module.S_ISREG(mode),
        )

    def read_file(self, path: str) -> bytes:
        # Note: whole file in memory; fine for the static sites this serves
        return Path(path).read_bytes()
