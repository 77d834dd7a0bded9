from __future__ import annotations

import io
import logging

from flask import Flask, jsonify, request, send_file

from ..common.http import api_login_required, current_user_id, error_response
from ..common.validators import optional_str
from ..core.exceptions import DomainError, InvalidFormatError, StoreFailure, ValidationError
from ..container import Container
from . import codec

logger = logging.getLogger(__name__)


def _attachment(filename: str, payload: bytes):
    return send_file(
        io.BytesIO(payload),
        mimetype="application/json",
        as_attachment=True,
        download_name=filename,
    )


def register(app: Flask, container: Container) -> None:
    def _system_error(e: Exception, message: str):
        logger.exception(message)
        if bool(app.config.get("DEBUG", False)):
            return error_response(e, message=f"{message}: {e}")
        return error_response(e, message=message)

    @app.route("/api/backup", methods=["POST"], endpoint="api_backup_create")
    @api_login_required
    def api_backup_create():
        body = request.get_json(silent=True) or {}
        try:
            name = optional_str(body.get("name") if isinstance(body, dict) else None, "name")
        except ValidationError as e:
            return error_response(e)

        try:
            document = container.snapshot_exporter.export()
        except DomainError as e:
            return _system_error(e, "Error creating backup")

        try:
            meta = container.snapshot_registry.store(name, document, created_by=current_user_id())
        except StoreFailure:
            # Could not persist it: hand the export to the caller instead.
            logger.exception("Storing backup failed, returning it as a download")
            filename = f"backup-{container.clock().date().isoformat()}.json"
            return _attachment(filename, codec.dumps(document).encode("utf-8"))
        except DomainError as e:
            return error_response(e)

        return jsonify({
            "success": True,
            "message": "Backup created",
            "backup": meta.to_dict(),
        }), 200

    @app.route("/api/backup/list", methods=["GET"], endpoint="api_backup_list")
    @api_login_required
    def api_backup_list():
        try:
            snapshots = container.snapshot_registry.list()
        except DomainError as e:
            return _system_error(e, "Error listing backups")
        return jsonify([s.to_dict() for s in snapshots]), 200

    @app.route("/api/backup/<snapshot_id>", methods=["GET"], endpoint="api_backup_download")
    @api_login_required
    def api_backup_download(snapshot_id: str):
        try:
            filename, payload = container.snapshot_registry.download(snapshot_id)
        except StoreFailure as e:
            return _system_error(e, "Error downloading backup")
        except DomainError as e:
            return error_response(e)
        return _attachment(filename, payload)

    @app.route("/api/backup/<snapshot_id>", methods=["DELETE"], endpoint="api_backup_delete")
    @api_login_required
    def api_backup_delete(snapshot_id: str):
        try:
            container.snapshot_registry.delete(snapshot_id)
        except StoreFailure as e:
            return _system_error(e, "Error deleting backup")
        except DomainError as e:
            return error_response(e)
        return jsonify({"success": True, "message": "Backup deleted"}), 200

    @app.route("/api/backup/restore", methods=["POST"], endpoint="api_backup_restore")
    @api_login_required
    def api_backup_restore():
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or not body:
            return error_response(InvalidFormatError("Invalid backup format"))

        try:
            if body.get("backupId"):
                report = container.snapshot_importer.restore_snapshot(str(body["backupId"]))
            else:
                report = container.snapshot_importer.restore_payload(body)
        except StoreFailure as e:
            return _system_error(e, "Error restoring backup")
        except DomainError as e:
            return error_response(e)

        return jsonify({
            "success": True,
            "message": "Backup restored",
            "report": report.to_dict(),
        }), 200
