# Copyright (c) Syntropy Systems
"""Filesystem capability used by report selection and archiving.

Workspaces may live on networked storage, so every call here is treated as
independently fallible and none of them are assumed atomic together. A
different backend only needs to provide the ``ReportFilesystem`` methods.
"""
from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Protocol


class ReportFilesystem(Protocol):
    def is_dir(self, path: Path) -> bool:
        ...

    def exists(self, path: Path) -> bool:
        ...

    def glob(self, root: Path, pattern: str) -> list[Path]:
        ...

    def list_dir(self, path: Path) -> list[Path]:
        ...

    def mtime_ms(self, path: Path) -> int:
        ...

    def make_dirs(self, path: Path) -> None:
        ...

    def make_dir_exclusive(self, path: Path) -> None:
        ...

    def copy_tree(self, source: Path, dest: Path) -> None:
        ...

    def rename(self, source: Path, dest: Path) -> None:
        ...

    def remove_tree(self, path: Path) -> None:
        ...


class LocalFilesystem:
    """ReportFilesystem backed by the local disk."""

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def exists(self, path: Path) -> bool:
        return path.exists()

    def glob(self, root: Path, pattern: str) -> list[Path]:
        return sorted(p for p in root.glob(pattern) if p.is_file())

    def list_dir(self, path: Path) -> list[Path]:
        return sorted(path.iterdir())

    def mtime_ms(self, path: Path) -> int:
        return path.stat().st_mtime_ns // 1_000_000

    def make_dirs(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def make_dir_exclusive(self, path: Path) -> None:
        """Create a single directory, failing if anything already exists there."""
        path.mkdir()

    def copy_tree(self, source: Path, dest: Path) -> None:
        """Copy the contents of source into the existing directory dest."""
        _ = shutil.copytree(source, dest, dirs_exist_ok=True)

    def rename(self, source: Path, dest: Path) -> None:
        """Atomically move source to dest.

        Fails if dest is a non-empty directory, which is always the case for
        a published report.
        """
        if dest.exists():
            raise FileExistsError(f"Destination already exists: {dest}")
        os.rename(source, dest)

    def remove_tree(self, path: Path) -> None:
        shutil.rmtree(path)
