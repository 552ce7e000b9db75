# vault_app/services/paths.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, NamedTuple


class PathResolver:
    """Converte raízes relativas da config em caminhos absolutos."""

    def __init__(self, base_dir: str | os.PathLike):
        self.base_dir = Path(base_dir)

    def base_path(self, relative: str | os.PathLike = "") -> Path:
        p = Path(relative)
        if p.is_absolute():
            return p
        return self.base_dir / p


class TreeEntry(NamedTuple):
    relative: str      # sempre com "/" (formato de entrada de zip)
    absolute: Path
    is_dir: bool


def walk_tree(root: str | os.PathLike) -> Iterator[TreeEntry]:
    """
    Percorre ``root`` em profundidade, de forma preguiçosa.

    Cada diretório é emitido antes do seu conteúdo. Links simbólicos para
    diretórios já visitados (ciclos) são ignorados; a identidade do diretório
    é (st_dev, st_ino) do alvo resolvido.
    """
    root = Path(root)
    seen: set[tuple[int, int]] = set()
    st = root.stat()
    seen.add((st.st_dev, st.st_ino))

    stack: list[tuple[Path, str]] = [(root, "")]
    while stack:
        current, prefix = stack.pop()
        with os.scandir(current) as it:
            entries = sorted(it, key=lambda e: e.name)
        subdirs: list[tuple[Path, str]] = []
        for entry in entries:
            rel = f"{prefix}{entry.name}"
            path = Path(entry.path)
            if entry.is_dir(follow_symlinks=True):
                target = path.stat()
                key = (target.st_dev, target.st_ino)
                if key in seen:
                    continue
                seen.add(key)
                yield TreeEntry(rel, path, True)
                subdirs.append((path, rel + "/"))
            elif entry.is_file(follow_symlinks=True):
                yield TreeEntry(rel, path, False)
            # links quebrados, sockets etc. ficam de fora
        # inverte para manter a ordem alfabética ao desempilhar
        stack.extend(reversed(subdirs))


def directory_size(root: str | os.PathLike) -> int:
    root = Path(root)
    if not root.is_dir():
        return 0
    return sum(e.absolute.stat().st_size for e in walk_tree(root) if not e.is_dir)
