"""Domain types shared by the grid, grouping and save paths.

Everything here is plain data. Upstream GraphQL nodes are converted with the
``from_node`` constructors so the rest of the code never touches raw edges.
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from constants import METAFIELD_DEFINITIONS, METAFIELD_KEYS

LINKED = "linked"
PARTIALLY_LINKED = "partially_linked"
NOT_LINKED = "not_linked"


# =========================
# GID helpers
# =========================
def extract_id(gid: str) -> str:
    """Numeric tail of a GID: "gid://shopify/Product/123" -> "123"."""
    return (gid or "").split("/")[-1] or gid


def parse_gid_list(value: str) -> List[str]:
    """Decode a JSON list of GIDs; anything malformed reads as an empty list.

    Items come back exactly as stored so serialize_gid_list round-trips.
    """
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return []
    if not isinstance(parsed, list):
        return []
    return parsed


def serialize_gid_list(gids) -> str:
    return json.dumps(list(gids), separators=(",", ":"))


def empty_metafields() -> Dict[str, str]:
    return {key: "" for key in METAFIELD_KEYS}


# =========================
# Products
# =========================
@dataclass
class Product:
    id: str
    title: str
    handle: str = ""
    vendor: str = ""
    product_type: str = ""
    tags: List[str] = field(default_factory=list)
    status: str = "ACTIVE"
    featured_image: Optional[str] = None
    media_count: int = 0
    metafields: Dict[str, str] = field(default_factory=empty_metafields)

    def __post_init__(self):
        # Every known key is always present
        merged = empty_metafields()
        for key, value in (self.metafields or {}).items():
            if key in merged:
                merged[key] = "" if value is None else str(value)
        self.metafields = merged

    @classmethod
    def from_node(cls, node: dict) -> "Product":
        metafields = empty_metafields()
        known = {(d.namespace, d.key) for d in METAFIELD_DEFINITIONS}
        for edge in ((node.get("metafields") or {}).get("edges") or []):
            mf = edge.get("node") or {}
            if (mf.get("namespace"), mf.get("key")) in known:
                metafields[mf["key"]] = mf.get("value") or ""

        featured = node.get("featuredImage") or {}
        media_count = (node.get("mediaCount") or {}).get("count") or 0
        return cls(
            id=node["id"],
            title=node.get("title") or "",
            handle=node.get("handle") or "",
            vendor=node.get("vendor") or "",
            product_type=node.get("productType") or "",
            tags=list(node.get("tags") or []),
            status=node.get("status") or "ACTIVE",
            featured_image=featured.get("url"),
            media_count=media_count,
            metafields=metafields,
        )


@dataclass
class ProductGroup:
    id: str
    base_name: str
    vendor: str
    product_type: str
    members: List[Product]
    link_status: str

    @property
    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]


# =========================
# Edits and writes
# =========================
@dataclass(frozen=True)
class DirtyCell:
    product_id: str
    field: str
    value: str

    @property
    def key(self) -> str:
        return cell_key(self.product_id, self.field)


def cell_key(product_id: str, field_name: str) -> str:
    return f"{product_id}:{field_name}"


@dataclass
class MetafieldInput:
    namespace: str
    key: str
    value: str
    type: str


@dataclass
class BulkMetafieldUpdate:
    product_id: str
    metafields: List[MetafieldInput] = field(default_factory=list)


@dataclass
class SaveResult:
    success: bool
    batches_processed: int = 0
    errors: List[str] = field(default_factory=list)
    completed: int = 0
    total: int = 0
    cancelled: bool = False
    saved_product_ids: List[str] = field(default_factory=list)

    def summary(self, change_count: int) -> str:
        if self.success:
            return f"Saved {change_count} change{'' if change_count == 1 else 's'}"
        if self.cancelled and not self.errors:
            return f"Save cancelled after {self.completed}/{self.total} products"
        return "Some updates failed: " + ", ".join(self.errors)


# =========================
# Reference targets
# =========================
@dataclass
class ShopifyPage:
    id: str
    title: str
    handle: str
    body_summary: str = ""

    @classmethod
    def from_node(cls, node: dict) -> "ShopifyPage":
        return cls(
            id=node["id"],
            title=node.get("title") or "",
            handle=node.get("handle") or "",
            body_summary=node.get("bodySummary") or "",
        )


@dataclass
class ShopifyCollection:
    id: str
    title: str
    handle: str
    image_url: Optional[str] = None

    @classmethod
    def from_node(cls, node: dict) -> "ShopifyCollection":
        return cls(
            id=node["id"],
            title=node.get("title") or "",
            handle=node.get("handle") or "",
            image_url=(node.get("image") or {}).get("url"),
        )


@dataclass
class Model:
    id: str
    handle: str
    name: str = ""
    height: str = ""
    size_worn: str = ""
    notes: str = ""

    @classmethod
    def from_node(cls, node: dict) -> "Model":
        fields = {f.get("key"): f.get("value") for f in node.get("fields") or []}
        return cls(
            id=node["id"],
            handle=node.get("handle") or "",
            name=fields.get("name") or "",
            height=fields.get("height") or "",
            size_worn=fields.get("size_worn") or "",
            notes=fields.get("notes") or "",
        )

    @property
    def info_text(self) -> str:
        return f"Model is {self.height} tall and wearing a size {self.size_worn}"


@dataclass
class MediaItem:
    id: str
    alt: str = ""
    media_content_type: str = "IMAGE"
    image_url: Optional[str] = None
    preview_url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_node(cls, node: dict) -> "MediaItem":
        image = node.get("image") or {}
        preview = ((node.get("preview") or {}).get("image") or {})
        return cls(
            id=node["id"],
            alt=node.get("alt") or "",
            media_content_type=node.get("mediaContentType") or "IMAGE",
            image_url=image.get("url"),
            preview_url=preview.get("url"),
            width=image.get("width"),
            height=image.get("height"),
        )

    @property
    def thumbnail_url(self) -> Optional[str]:
        return self.preview_url or self.image_url


@dataclass
class FileNode:
    id: str
    alt: str = ""
    url: Optional[str] = None

    @classmethod
    def from_node(cls, node: Optional[dict]) -> Optional["FileNode"]:
        # nodes() returns null for ids that no longer resolve
        if not node or not node.get("id"):
            return None
        image = (node.get("image") or {}).get("url")
        preview = ((node.get("preview") or {}).get("image") or {}).get("url")
        return cls(id=node["id"], alt=node.get("alt") or "", url=image or preview)


@dataclass
class StagedTarget:
    url: str
    resource_url: str
    parameters: List[dict] = field(default_factory=list)

    @classmethod
    def from_node(cls, node: dict) -> "StagedTarget":
        return cls(
            url=node["url"],
            resource_url=node["resourceUrl"],
            parameters=list(node.get("parameters") or []),
        )


@dataclass
class FitguideMatch:
    product: Product
    page: ShopifyPage
    # True when a seasonal page replaces an existing fit guide
    is_override: bool = False
