"""Product media and staged uploads.

Uploads follow the platform's three steps: ask for pre-signed targets,
POST each file's bytes straight to its target, then turn the resulting
resource URLs into product media (or standalone file records).
"""

import mimetypes
from dataclasses import dataclass
from typing import Callable, List, Optional

import requests

from constants import PRODUCT_MEDIA_LIMIT
from logging_config import get_logger
from models import MediaItem, StagedTarget
from queries import (
    FILE_CREATE_MUTATION,
    PRODUCT_CREATE_MEDIA_MUTATION,
    PRODUCT_DELETE_MEDIA_MUTATION,
    PRODUCT_MEDIA_QUERY,
    PRODUCT_REORDER_MEDIA_MUTATION,
    STAGED_UPLOADS_CREATE_MUTATION,
)
from shopify_client import ShopifyError, raise_for_user_errors

logger = get_logger(__name__)


@dataclass
class UploadFile:
    filename: str
    content: bytes
    mime_type: str = ""

    def __post_init__(self):
        if not self.mime_type:
            self.mime_type = mimetypes.guess_type(self.filename)[0] or "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


# =========================
# Product media
# =========================
def fetch_product_media(client, product_id) -> List[MediaItem]:
    data = client.execute(PRODUCT_MEDIA_QUERY, {"id": product_id, "first": PRODUCT_MEDIA_LIMIT})
    product = data.get("product") or {}
    edges = (product.get("media") or {}).get("edges") or []
    # Non-image media come back as empty objects from the MediaImage fragment
    return [MediaItem.from_node(e["node"]) for e in edges if (e.get("node") or {}).get("id")]


def delete_product_media(client, product_id, media_ids):
    data = client.execute(PRODUCT_DELETE_MEDIA_MUTATION, {"productId": product_id, "mediaIds": list(media_ids)})
    result = data["productDeleteMedia"]
    raise_for_user_errors(result.get("mediaUserErrors"))
    return result.get("deletedMediaIds") or []


def reorder_moves(current_ids, new_order):
    """MoveInput list that turns ``current_ids`` into ``new_order``."""
    return [
        {"id": media_id, "newPosition": str(position)}
        for position, media_id in enumerate(new_order)
        if position >= len(current_ids) or current_ids[position] != media_id
    ]


def reorder_product_media(client, product_id, moves):
    if not moves:
        return True
    data = client.execute(PRODUCT_REORDER_MEDIA_MUTATION, {"id": product_id, "moves": moves})
    raise_for_user_errors(data["productReorderMedia"].get("mediaUserErrors"))
    return True


# =========================
# Staged uploads
# =========================
def create_staged_targets(client, files) -> List[StagedTarget]:
    input_ = [
        {
            "filename": f.filename,
            "mimeType": f.mime_type,
            "resource": "IMAGE",
            "fileSize": str(f.size),
            "httpMethod": "POST",
        }
        for f in files
    ]
    data = client.execute(STAGED_UPLOADS_CREATE_MUTATION, {"input": input_})
    result = data["stagedUploadsCreate"]
    raise_for_user_errors(result.get("userErrors"))
    return [StagedTarget.from_node(t) for t in result.get("stagedTargets") or []]


def upload_to_target(target: StagedTarget, upload: UploadFile, session=None, timeout=120):
    http = session or requests
    form = {p["name"]: p["value"] for p in target.parameters}
    try:
        resp = http.post(
            target.url,
            data=form,
            files={"file": (upload.filename, upload.content, upload.mime_type)},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise ShopifyError(f"Failed to upload {upload.filename}: {e}") from e
    if not resp.ok:
        raise ShopifyError(f"Failed to upload {upload.filename}")
    return target.resource_url


def stage_and_upload(client, files, on_progress: Optional[Callable] = None, session=None) -> List[str]:
    """Steps 1 and 2; returns the resource URLs in upload order."""
    files = list(files)
    targets = create_staged_targets(client, files)
    resource_urls = []
    for i, (target, upload) in enumerate(zip(targets, files)):
        resource_urls.append(upload_to_target(target, upload, session=session))
        logger.info("Uploaded %s (%d/%d)", upload.filename, i + 1, len(files))
        if on_progress:
            on_progress(i + 1, len(files))
    return resource_urls


def upload_product_media(client, product_id, files, on_progress=None, session=None) -> List[MediaItem]:
    resource_urls = stage_and_upload(client, files, on_progress=on_progress, session=session)
    media = [{"originalSource": url, "mediaContentType": "IMAGE"} for url in resource_urls]
    data = client.execute(PRODUCT_CREATE_MEDIA_MUTATION, {"productId": product_id, "media": media})
    result = data["productCreateMedia"]
    raise_for_user_errors(result.get("mediaUserErrors"))
    return [MediaItem.from_node(m) for m in result.get("media") or [] if m and m.get("id")]


def upload_files(client, files, on_progress=None, session=None) -> List[str]:
    """Upload standalone files (flat shots, men/women images); returns file GIDs."""
    resource_urls = stage_and_upload(client, files, on_progress=on_progress, session=session)
    payload = [{"originalSource": url, "contentType": "IMAGE"} for url in resource_urls]
    data = client.execute(FILE_CREATE_MUTATION, {"files": payload})
    result = data["fileCreate"]
    raise_for_user_errors(result.get("userErrors"))
    return [f["id"] for f in result.get("files") or []]
