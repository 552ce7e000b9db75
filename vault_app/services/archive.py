# vault_app/services/archive.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import os
import zipfile
from pathlib import Path

DEFLATE_LEVEL = 6


class ZipArchiveCodec:
    """Envoltório fino de zipfile com a interface usada pelo BackupService."""

    def __init__(self, path: str | os.PathLike, mode: str = "r", compress: bool = True):
        self.path = Path(path)
        self.mode = mode
        self.compression = zipfile.ZIP_DEFLATED if compress else zipfile.ZIP_STORED
        if mode == "w":
            # "w" cria ou sobrescreve
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._zip = zipfile.ZipFile(
            self.path, mode=mode, compression=self.compression,
            compresslevel=DEFLATE_LEVEL if compress else None,
        )

    @classmethod
    def create(cls, path, compress: bool = True) -> "ZipArchiveCodec":
        return cls(path, mode="w", compress=compress)

    @classmethod
    def open(cls, path) -> "ZipArchiveCodec":
        return cls(path, mode="r")

    def __enter__(self) -> "ZipArchiveCodec":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def set_compression(self, compress: bool) -> None:
        # vale para as entradas adicionadas a partir daqui
        self.compression = zipfile.ZIP_DEFLATED if compress else zipfile.ZIP_STORED
        self._zip.compression = self.compression
        self._zip.compresslevel = DEFLATE_LEVEL if compress else None

    def add_file(self, source: str | os.PathLike, arcname: str) -> None:
        self._zip.write(source, arcname=arcname, compress_type=self.compression)

    def add_empty_dir(self, arcname: str) -> None:
        name = arcname.rstrip("/") + "/"
        info = zipfile.ZipInfo(name)
        info.external_attr = (0o40755 << 16) | 0x10
        self._zip.writestr(info, b"")

    def extract_all(self, target: str | os.PathLike) -> None:
        target = Path(target).resolve()
        for member in self._zip.infolist():
            dest = (target / member.filename).resolve()
            if dest != target and target not in dest.parents:
                raise ValueError(f"Entrada fora do diretório de destino: {member.filename}")
        self._zip.extractall(target)

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None
