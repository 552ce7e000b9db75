# vault_app/blueprints/vault.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import os
from pathlib import Path
from flask import Blueprint, current_app, request, jsonify, abort
from werkzeug.utils import secure_filename

from vault_app.decorators import quota_required
from vault_app.exceptions import (
    VaultError, StorageNotFound, QuotaExceeded, InvalidArgument, InvalidQuota, OperationFailure,
)
from vault_app.services import get_vault, get_backups
from vault_app.utils import MB_TO_BYTES


bp = Blueprint("vault", __name__, url_prefix="/vault")


@bp.errorhandler(VaultError)
def _vault_error(e: VaultError):
    if isinstance(e, QuotaExceeded):
        return jsonify({"error": "Storage quota exceeded", "message": str(e),
                        "required": e.required, "available": e.available}), 413
    if isinstance(e, StorageNotFound):
        return jsonify({"error": "Storage not found", "message": str(e)}), 404
    if isinstance(e, (InvalidArgument, InvalidQuota)):
        return jsonify({"error": "Invalid request", "message": str(e)}), 400
    if isinstance(e, OperationFailure):
        current_app.logger.error("vault: %s", e)
        return jsonify({"error": "Operation failed", "message": str(e)}), 500
    return jsonify({"error": "Vault error", "message": str(e)}), 500


def _extension_allowed(filename: str) -> bool:
    allowed = current_app.config.get("VAULT_ALLOWED_EXTENSIONS") or ["*"]
    if "*" in allowed:
        return True
    ext = os.path.splitext(filename)[1].lower().lstrip(".")
    return ext in {a.lower().lstrip(".") for a in allowed}

def _safe_relative(raw: str) -> str:
    parts = [secure_filename(p) for p in Path(raw).parts]
    parts = [p for p in parts if p]
    if not parts:
        abort(400)
    return "/".join(parts)

def _unique_target(root: Path, rel: str) -> tuple[Path, str]:
    target = root / rel
    if not target.exists():
        return target, rel
    stem, ext = os.path.splitext(target.name)
    i = 2
    while True:
        candidate = target.with_name(f"{stem} ({i}){ext}")
        if not candidate.exists():
            return candidate, candidate.relative_to(root).as_posix()
        i += 1


@bp.route("/<account_id>/usage", methods=["GET"])
def usage(account_id: str):
    vault = get_vault()
    data = vault.get_usage(account_id)
    data["files"] = vault.get_file_tracker().get_file_count(account_id)
    return jsonify(data)

@bp.route("/<account_id>/files", methods=["GET"])
def list_files(account_id: str):
    include_deleted = request.args.get("deleted") == "1"
    files = get_vault().get_file_tracker().get_files(account_id, include_deleted=include_deleted)
    return jsonify([f.to_dict() for f in files])

@bp.route("/<account_id>/files", methods=["POST"])
@quota_required
def upload_file(account_id: str):
    file = request.files.get("file")
    if not file or not file.filename:
        return jsonify({"error": "Invalid request", "message": "Nenhum arquivo enviado."}), 400

    if not _extension_allowed(file.filename):
        return jsonify({"error": "Invalid request", "message": "Extensão não permitida."}), 400

    # 1) Lê os bytes do upload
    data = file.read()
    max_mb = int(current_app.config.get("VAULT_MAX_FILE_SIZE_MB") or 0)
    if max_mb and len(data) > max_mb * MB_TO_BYTES:
        return jsonify({"error": "Invalid request", "message": f"Arquivo maior que {max_mb}MB."}), 413

    # 2) Caminho relativo seguro/único dentro do storage da conta
    vault = get_vault()
    root = vault.get_storage_path(account_id)
    folder = (request.form.get("folder") or "").strip()
    rel = _safe_relative(f"{folder}/{file.filename}" if folder else file.filename)
    target, rel = _unique_target(root, rel)
    target.parent.mkdir(parents=True, exist_ok=True)

    # 3) Salva no disco e contabiliza; se a conta recusar, desfaz a escrita
    with open(target, "wb") as fh:
        fh.write(data)
    try:
        file_hash = vault.calculate_hash(target)
        rec = vault.track_upload(account_id, rel, len(data), file_hash)
    except Exception:
        target.unlink(missing_ok=True)
        raise

    body = {"path": rel, "size": len(data), "hash": file_hash}
    if rec is not None:
        body["refid"] = rec.refid
        body["duplicates"] = [d.refid for d in vault.find_duplicates(file_hash) if d.id != rec.id]
    return jsonify(body), 201

@bp.route("/<account_id>/files/<path:file_path>", methods=["DELETE"])
def delete_file(account_id: str, file_path: str):
    vault = get_vault()
    root = vault.get_storage_path(account_id)
    target = (root / file_path).resolve()
    if root.resolve() not in target.parents:
        abort(400)
    target.unlink(missing_ok=True)
    rec = vault.track_deletion(account_id, file_path)
    return jsonify({"path": file_path, "tracked": rec is not None})

@bp.route("/<account_id>/backups", methods=["GET"])
def list_backups(account_id: str):
    return jsonify([b.to_dict() for b in get_backups().list(account_id)])

@bp.route("/<account_id>/backups", methods=["POST"])
def create_backup(account_id: str):
    path = get_backups().create(account_id)
    return jsonify({"backup": path.name, "size": path.stat().st_size}), 201

@bp.route("/<account_id>/backups/<int:backup_id>/restore", methods=["POST"])
def restore_backup(account_id: str, backup_id: int):
    backups = get_backups()
    rec = backups.get(backup_id)
    if rec is None:
        abort(404)
    used = backups.restore(account_id, backups.resolve_path(rec))
    return jsonify({"restored": rec.backup_path, "used": used})

@bp.route("/backups/<int:backup_id>", methods=["DELETE"])
def delete_backup(backup_id: int):
    if not get_backups().delete(backup_id):
        abort(404)
    return "", 204
