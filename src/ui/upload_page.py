"""NiceGUI document upload page using the /api/s3 routes."""

import logging
import os
import uuid

import httpx
from nicegui import events, ui

from src.models.schemas import FileStatus, UploadedFile
from src.ui.state import get_store

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
MAX_UPLOAD_SIZE = 10 * 1024 * 1024

STATUS_STYLES = {
    FileStatus.UPLOADING: ("cloud_upload", "text-blue-500"),
    FileStatus.UPLOADED: ("check_circle", "text-green-600"),
    FileStatus.PROCESSING: ("hourglass_top", "text-amber-500"),
    FileStatus.ERROR: ("error", "text-red-600"),
}


class StorageRequestError(Exception):
    """Raised when a storage route answers with an error."""

    pass


def _error_text(response: httpx.Response) -> str:
    try:
        return response.json().get("error") or f"HTTP {response.status_code}"
    except ValueError:
        return f"HTTP {response.status_code}"


async def _call(method: str, path: str, **kwargs) -> dict:
    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=60.0) as client:
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            raise StorageRequestError(f"Connection failed: {e}") from e
    if not response.is_success:
        raise StorageRequestError(_error_text(response))
    return response.json()


async def upload_document(name: str, content: bytes, content_type: str | None) -> str:
    """Upload a document and return its object key."""
    files = {"file": (name, content, content_type or "application/octet-stream")}
    data = await _call("POST", "/api/s3/upload", files=files)
    return data["key"]


async def delete_document(key: str) -> None:
    await _call("DELETE", "/api/s3/delete", params={"key": key})


async def get_document_url(key: str) -> str:
    data = await _call("GET", "/api/s3/get-url", params={"key": key})
    return data["url"]


async def check_storage_connection() -> str:
    data = await _call("GET", "/api/s3/test-connection")
    return data.get("message", "S3 connection successful")


@ui.page("/upload")
def upload_page() -> None:
    """Document upload page."""
    store = get_store()

    files_container: ui.column

    def refresh_files() -> None:
        files_container.clear()
        with files_container:
            if not store.files:
                ui.label("No documents uploaded yet").classes("text-gray-400")
                return
            for file in store.files:
                render_file(file)

    def render_file(file: UploadedFile) -> None:
        icon, color = STATUS_STYLES[file.status]
        with ui.row().classes("w-full items-center gap-3 p-3 bg-gray-50 rounded-lg"):
            ui.icon(icon).classes(f"text-xl {color}")
            with ui.column().classes("flex-grow gap-0"):
                ui.label(file.name).classes("text-sm font-medium")
                detail = file.error or f"{file.size / 1024:.1f} KB - {file.status.value}"
                ui.label(detail).classes("text-xs text-gray-500")
            if file.s3_key:
                ui.button(
                    icon="visibility",
                    on_click=lambda f=file: view_file(f.s3_key),
                ).props("flat round dense")
            ui.button(
                icon="delete",
                on_click=lambda f=file: confirm_delete(f),
            ).props("flat round dense color=negative")

    async def handle_upload(e: events.UploadEventArguments) -> None:
        name = e.file.name
        content = await e.file.read()
        file_id = str(uuid.uuid4())
        store.add_file(UploadedFile(id=file_id, name=name, size=len(content)))
        refresh_files()

        if len(content) > MAX_UPLOAD_SIZE:
            store.update_file(
                file_id,
                status=FileStatus.ERROR,
                error="File too large. Maximum size is 10MB.",
            )
            refresh_files()
            return

        try:
            key = await upload_document(name, content, e.file.content_type)
        except StorageRequestError as err:
            logger.error(f"Upload error for {name}: {err}")
            store.update_file(file_id, status=FileStatus.ERROR, error=str(err))
        else:
            logger.info(f"File uploaded successfully with key: {key}")
            store.update_file(file_id, status=FileStatus.UPLOADED, s3_key=key)
        refresh_files()

    async def view_file(key: str) -> None:
        try:
            url = await get_document_url(key)
        except StorageRequestError as err:
            logger.error(f"Error getting signed URL: {err}")
            ui.notify("Could not open the document", type="negative")
            return
        ui.navigate.to(url, new_tab=True)

    def confirm_delete(file: UploadedFile) -> None:
        async def do_delete() -> None:
            if file.s3_key:
                try:
                    await delete_document(file.s3_key)
                except StorageRequestError as err:
                    logger.error(f"Error deleting file from S3: {err}")
            store.remove_file(file.id)
            dialog.close()
            refresh_files()

        with ui.dialog() as dialog, ui.card():
            ui.label(f"Delete {file.name}?").classes("text-lg font-semibold")
            ui.label("This removes the document from storage.").classes("text-sm text-gray-500")
            with ui.row().classes("w-full justify-end"):
                ui.button("Cancel", on_click=dialog.close).props("flat")
                ui.button("Delete", on_click=do_delete).props("color=negative")
        dialog.open()

    async def test_connection() -> None:
        test_btn.disable()
        try:
            message = await check_storage_connection()
        except StorageRequestError as err:
            ui.notify(f"S3 connection failed: {err}", type="negative")
        else:
            ui.notify(message, type="positive")
        finally:
            test_btn.enable()

    # === UI Layout ===
    with ui.column().classes("w-full max-w-3xl mx-auto p-8 gap-6"):
        with ui.row().classes("w-full items-center justify-between"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("upload_file").classes("text-3xl text-gray-700")
                ui.label("Upload Documents").classes("text-3xl font-bold")
            ui.link("Go to Chat", "/").classes("text-blue-600")

        with ui.row().classes("w-full items-center gap-3"):
            test_btn = ui.button("Test S3 Connection", on_click=test_connection).props(
                "outline"
            )

        ui.upload(
            label="Drop documents here or click to browse",
            multiple=True,
            auto_upload=True,
            on_upload=handle_upload,
        ).classes("w-full")

        files_container = ui.column().classes("w-full gap-2")
        refresh_files()
