"""
Template file storage: Supabase Storage over its REST API, or a local
uploads directory when Supabase is not configured.
"""
import logging
import os
from pathlib import Path

import aiofiles
import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

LOCAL_SCHEME = "local://"


class StorageError(Exception):
    pass


def supabase_configured() -> bool:
    return bool(settings.supabase_url and settings.supabase_service_role_key)


def _auth_headers() -> dict:
    key = settings.supabase_service_role_key
    return {"Authorization": f"Bearer {key}", "apikey": key}


def _local_path(file_path: str) -> Path:
    root = Path(settings.uploads_dir).resolve()
    path = (root / file_path).resolve()
    if root not in path.parents:
        raise StorageError(f"Invalid storage path: {file_path}")
    return path


async def upload_file(content: bytes, file_path: str, content_type: str) -> str:
    """Store content under file_path and return its storage URL."""
    if not supabase_configured():
        path = _local_path(file_path)
        os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(content)
        return f"{LOCAL_SCHEME}{file_path}"

    bucket = settings.template_bucket
    try:
        async with httpx.AsyncClient(timeout=120.0) as client:
            response = await client.post(
                f"{settings.supabase_url}/storage/v1/object/{bucket}/{file_path}",
                headers={
                    **_auth_headers(),
                    "Content-Type": content_type,
                    "Content-Length": str(len(content)),
                },
                content=content,
            )
    except httpx.HTTPError as e:
        raise StorageError(f"Upload failed: {e}")

    if response.status_code not in (200, 201):
        detail = response.text[:500] if response.text else "Unknown error"
        raise StorageError(f"Supabase upload failed ({response.status_code}): {detail}")

    return f"{settings.supabase_url}/storage/v1/object/public/{bucket}/{file_path}"


async def download_file(storage_url: str) -> bytes:
    if storage_url.startswith(LOCAL_SCHEME):
        path = _local_path(storage_url[len(LOCAL_SCHEME):])
        if not path.exists():
            raise StorageError("Template file not found")
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    try:
        async with httpx.AsyncClient(timeout=60.0, follow_redirects=True) as client:
            response = await client.get(storage_url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        raise StorageError(f"Failed to fetch template file: {e}")
    return response.content


async def delete_file(storage_url: str) -> None:
    """Remove a stored file; failures are logged, the caller's delete goes on."""
    if storage_url.startswith(LOCAL_SCHEME):
        path = _local_path(storage_url[len(LOCAL_SCHEME):])
        if path.exists():
            path.unlink()
        return

    marker = f"/storage/v1/object/public/{settings.template_bucket}/"
    if not supabase_configured() or marker not in storage_url:
        return
    file_path = storage_url.split(marker, 1)[1]
    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.delete(
                f"{settings.supabase_url}/storage/v1/object/{settings.template_bucket}/{file_path}",
                headers=_auth_headers(),
            )
        if response.status_code not in (200, 204):
            logger.warning(f"Supabase delete returned {response.status_code} for {file_path}")
    except httpx.HTTPError as e:
        logger.warning(f"Failed to delete {file_path} from storage: {e}")
