"""File manager pages and actions as a Flask Blueprint.

All user paths are relative to the upload root passed to the factory.
Mutating endpoints redirect back to the listing with a one-shot notice
carried in the query string (``notice`` + ``level``); the page strips those
parameters from the address bar after rendering them.
"""

from __future__ import annotations

import os
import shutil
from typing import Any

from flask import Blueprint, redirect, render_template, request, send_file, url_for
from werkzeug.exceptions import RequestEntityTooLarge

from services.archive import download_name_for, zip_directory, zip_output_path
from services.logging_setup import core_log as _core_log
from services.paths import join_rel, list_directory, parent_of, resolve, resolve_child, validate_name
from services.uploads import decode_upload_filename, save_upload, split_upload_path


MSG_PATH_NOT_ALLOWED = "Path is outside the upload folder"
MSG_PATH_MISSING = "Path does not exist"


def _form_path() -> str:
    return str(request.form.get("path", "") or "")


def _query_path() -> str:
    return str(request.args.get("path", "") or "")


def back_to_listing(path: str, level: str | None = None, message: str | None = None) -> Any:
    """Redirect to the listing of ``path`` with an optional one-shot notice."""
    if message:
        return redirect(url_for("files.index", path=path, notice=message, level=level or "success"))
    return redirect(url_for("files.index", path=path))


def create_files_blueprint(*, upload_dir: str, zip_dir: str) -> Blueprint:
    """Create the file manager blueprint.

    Args:
        upload_dir: absolute upload root; every user path resolves under it.
        zip_dir: directory where folder archives are written before download.
    """

    bp = Blueprint("files", __name__)

    UPLOAD_DIR = os.path.abspath(upload_dir)
    ZIP_DIR = os.path.abspath(zip_dir)

    @bp.get("/")
    def index() -> Any:
        path = _query_path()
        notice = request.args.get("notice") or None
        level = request.args.get("level") or "success"
        status = 200
        items = []
        try:
            items = list_directory(UPLOAD_DIR, path)
        except PermissionError:
            notice, level, status = MSG_PATH_NOT_ALLOWED, "error", 403
        except FileNotFoundError:
            notice, level, status = MSG_PATH_MISSING, "error", 404
        return render_template(
            "index.html",
            items=items,
            current_path=path,
            parent_path=parent_of(path),
            notice=notice,
            level=level,
        ), status

    @bp.get("/open_folder/", defaults={"folder": ""})
    @bp.get("/open_folder/<path:folder>")
    def open_folder(folder: str) -> Any:
        return back_to_listing(folder)

    @bp.get("/download/<filename>")
    def download(filename: str) -> Any:
        path = _query_path()
        try:
            rp = resolve_child(UPLOAD_DIR, path, validate_name(filename), follow=True)
        except PermissionError:
            return back_to_listing(path, "error", MSG_PATH_NOT_ALLOWED)
        except ValueError:
            return back_to_listing(path, "error", f"Invalid name: {filename}")
        if not os.path.isfile(rp):
            return back_to_listing(path, "error", f"{filename} does not exist")
        _core_log("info", "fs.download", path=path, name=filename)
        return send_file(rp, as_attachment=True, download_name=filename)

    @bp.post("/delete/<filename>")
    def delete(filename: str) -> Any:
        path = _form_path()
        try:
            ap = resolve_child(UPLOAD_DIR, path, validate_name(filename))
        except PermissionError:
            return back_to_listing(path, "error", MSG_PATH_NOT_ALLOWED)
        except ValueError:
            return back_to_listing(path, "error", f"Invalid name: {filename}")

        # lexists: dangling symlinks can still be removed.
        if not os.path.lexists(ap):
            return back_to_listing(path, "error", f"{filename} does not exist")
        try:
            if os.path.isdir(ap) and not os.path.islink(ap):
                shutil.rmtree(ap)
            else:
                os.unlink(ap)
        except OSError as e:
            _core_log("error", "fs.delete failed", path=path, name=filename, error=e)
            return back_to_listing(path, "error", f"Failed to delete {filename}")
        _core_log("info", "fs.delete", path=path, name=filename)
        return back_to_listing(path, "success", f"Deleted {filename}")

    @bp.post("/upload")
    def upload() -> Any:
        path = _form_path()
        f = request.files.get("file")
        if f is None or not f.filename:
            return back_to_listing(path, "error", "No file selected")

        name = os.path.basename(decode_upload_filename(f.filename).replace("\\", "/"))
        try:
            validate_name(name)
            dest_dir = resolve(UPLOAD_DIR, path, follow=True)
        except PermissionError:
            return back_to_listing(path, "error", MSG_PATH_NOT_ALLOWED)
        except ValueError:
            return back_to_listing(path, "error", f"Invalid file name: {name}")
        if not os.path.isdir(dest_dir):
            return back_to_listing(path, "error", MSG_PATH_MISSING)

        dest = os.path.join(dest_dir, name)
        if os.path.isdir(dest):
            return back_to_listing(path, "error", f"{name} is a folder")
        try:
            size = save_upload(f, dest)
        except OSError as e:
            _core_log("error", "fs.upload failed", path=path, name=name, error=e)
            return back_to_listing(path, "error", f"Failed to upload {name}")
        _core_log("info", "fs.upload", path=path, name=name, bytes=size)
        return back_to_listing(path, "success", "File uploaded")

    @bp.post("/upload_folder")
    def upload_folder() -> Any:
        path = _form_path()
        files = [f for f in request.files.getlist("files") if f and f.filename]
        if not files:
            return back_to_listing(path, "error", "No files selected")
        try:
            dest_root = resolve(UPLOAD_DIR, path, follow=True)
        except PermissionError:
            return back_to_listing(path, "error", MSG_PATH_NOT_ALLOWED)
        if not os.path.isdir(dest_root):
            return back_to_listing(path, "error", MSG_PATH_MISSING)

        saved = 0
        for f in files:
            # The browser puts the path relative to the picked folder into the filename.
            rel_name = decode_upload_filename(f.filename)
            try:
                dest = resolve(UPLOAD_DIR, join_rel(path, "/".join(split_upload_path(rel_name))), follow=True)
            except (PermissionError, ValueError):
                return back_to_listing(path, "error", f"Invalid file name: {rel_name}")
            try:
                os.makedirs(os.path.dirname(dest), exist_ok=True)
                save_upload(f, dest)
            except OSError as e:
                _core_log("error", "fs.upload_folder failed", path=path, name=rel_name, saved=saved, error=e)
                return back_to_listing(path, "error", f"Failed to upload {rel_name}")
            saved += 1
        _core_log("info", "fs.upload_folder", path=path, files=saved)
        return back_to_listing(path, "success", "Folder uploaded")

    @bp.post("/create_folder")
    def create_folder() -> Any:
        path = _form_path()
        raw = str(request.form.get("folder_name", "") or "")
        try:
            name = validate_name(raw)
            ap = resolve_child(UPLOAD_DIR, path, name)
        except PermissionError:
            return back_to_listing(path, "error", MSG_PATH_NOT_ALLOWED)
        except ValueError:
            return back_to_listing(path, "error", f"Invalid folder name: {raw}")

        if os.path.lexists(ap):
            return back_to_listing(path, "error", f"Folder {name} already exists")
        try:
            os.mkdir(ap)
        except FileExistsError:
            return back_to_listing(path, "error", f"Folder {name} already exists")
        except FileNotFoundError:
            return back_to_listing(path, "error", MSG_PATH_MISSING)
        except OSError as e:
            _core_log("error", "fs.mkdir failed", path=path, name=name, error=e)
            return back_to_listing(path, "error", f"Failed to create folder {name}")
        _core_log("info", "fs.mkdir", path=path, name=name)
        return back_to_listing(path, "success", f"Folder {name} created")

    @bp.post("/create_file")
    def create_file() -> Any:
        path = _form_path()
        raw = str(request.form.get("file_name", "") or "")
        try:
            name = validate_name(raw)
            ap = resolve_child(UPLOAD_DIR, path, name)
        except PermissionError:
            return back_to_listing(path, "error", MSG_PATH_NOT_ALLOWED)
        except ValueError:
            return back_to_listing(path, "error", f"Invalid file name: {raw}")

        if os.path.lexists(ap):
            return back_to_listing(path, "error", f"File {name} already exists")
        try:
            # "x" mode: never truncate something created since the check above.
            with open(ap, "x", encoding="utf-8"):
                pass
        except FileExistsError:
            return back_to_listing(path, "error", f"File {name} already exists")
        except FileNotFoundError:
            return back_to_listing(path, "error", MSG_PATH_MISSING)
        except OSError as e:
            _core_log("error", "fs.touch failed", path=path, name=name, error=e)
            return back_to_listing(path, "error", f"Failed to create file {name}")
        _core_log("info", "fs.touch", path=path, name=name)
        return back_to_listing(path, "success", f"File {name} created")

    @bp.get("/download_folder/<foldername>")
    def download_folder(foldername: str) -> Any:
        path = _query_path()
        try:
            src = resolve_child(UPLOAD_DIR, path, validate_name(foldername), follow=True)
        except PermissionError:
            return back_to_listing(path, "error", MSG_PATH_NOT_ALLOWED)
        except ValueError:
            return back_to_listing(path, "error", f"Invalid name: {foldername}")
        if not os.path.isdir(src):
            return back_to_listing(path, "error", f"Folder {foldername} does not exist")

        # Errors other than vanished paths propagate: the request fails with 500.
        zip_path = zip_output_path(ZIP_DIR, foldername)
        files = zip_directory(src, zip_path)
        _core_log("info", "fs.download_folder", path=path, name=foldername, files=files, zip=zip_path)
        return send_file(
            zip_path,
            mimetype="application/zip",
            as_attachment=True,
            download_name=download_name_for(zip_path),
            max_age=0,
        )

    @bp.post("/rename")
    def rename() -> Any:
        path = _form_path()
        old_raw = str(request.form.get("old_name", "") or "")
        new_raw = str(request.form.get("new_name", "") or "")
        try:
            old_name = validate_name(old_raw)
            new_name = validate_name(new_raw)
            old_path = resolve_child(UPLOAD_DIR, path, old_name)
            new_path = resolve_child(UPLOAD_DIR, path, new_name)
        except PermissionError:
            return back_to_listing(path, "error", MSG_PATH_NOT_ALLOWED)
        except ValueError:
            return back_to_listing(path, "error", f"Invalid name: {new_raw or old_raw}")

        if not os.path.lexists(old_path):
            return back_to_listing(path, "error", f"{old_name} does not exist")
        if old_name == new_name:
            return back_to_listing(path, "success", f"{old_name} renamed to {new_name}")
        if os.path.lexists(new_path):
            return back_to_listing(path, "error", f"{new_name} already exists")
        try:
            os.rename(old_path, new_path)
        except FileNotFoundError:
            return back_to_listing(path, "error", f"{old_name} does not exist")
        except OSError as e:
            _core_log("error", "fs.rename failed", path=path, src=old_name, dst=new_name, error=e)
            return back_to_listing(path, "error", f"Failed to rename {old_name}")
        _core_log("info", "fs.rename", path=path, src=old_name, dst=new_name)
        return back_to_listing(path, "success", f"{old_name} renamed to {new_name}")

    @bp.app_errorhandler(RequestEntityTooLarge)
    def upload_too_large(e: RequestEntityTooLarge) -> Any:
        _core_log("warning", "fs.upload rejected", reason="too_large", limit=request.max_content_length)
        return back_to_listing("", "error", "Upload is too large")

    return bp
