"""Read path: full-catalog fetches plus client-side filtering.

Every list is fetched completely (cursor loop until ``hasNextPage`` is false)
and filtered locally. That is fine for a catalog of a few thousand products;
past that, server-side search queries would be needed.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import Dict, List

from constants import (
    COLLECTIONS_PER_PAGE,
    NODES_BATCH_SIZE,
    PAGES_PER_PAGE,
    PRODUCTS_PER_PAGE,
)
from logging_config import get_logger
from models import FileNode, Product, ShopifyCollection, ShopifyPage
from queries import COLLECTIONS_QUERY, NODES_QUERY, PAGES_QUERY, PRODUCTS_QUERY

logger = get_logger(__name__)


def fetch_products(client) -> List[Product]:
    nodes = client.paginate(PRODUCTS_QUERY, "products", page_size=PRODUCTS_PER_PAGE)
    products = [Product.from_node(n) for n in nodes]
    logger.info("Loaded %d products", len(products))
    return products


def fetch_pages(client) -> List[ShopifyPage]:
    nodes = client.paginate(PAGES_QUERY, "pages", page_size=PAGES_PER_PAGE)
    return [ShopifyPage.from_node(n) for n in nodes]


def fetch_collections(client) -> List[ShopifyCollection]:
    nodes = client.paginate(COLLECTIONS_QUERY, "collections", page_size=COLLECTIONS_PER_PAGE)
    return [ShopifyCollection.from_node(n) for n in nodes]


def resolve_nodes(client, ids) -> List[FileNode]:
    """Resolve file GIDs in chunks of 250; unresolvable ids come back as None."""
    ids = list(ids or [])
    out = []
    for i in range(0, len(ids), NODES_BATCH_SIZE):
        batch = ids[i:i + NODES_BATCH_SIZE]
        data = client.execute(NODES_QUERY, {"ids": batch})
        out.extend(FileNode.from_node(n) for n in data.get("nodes") or [])
    return out


CATALOG_PARTS = ("products", "pages", "collections", "models")


def load_catalog(client, model_store=None, include=CATALOG_PARTS) -> Dict[str, list]:
    """Fetch products, pages, collections (and models) concurrently.

    The reads have no ordering dependency on each other, so they run on a small
    thread pool. ``include`` picks which of them to fetch; models need a
    ``model_store``. Any failure propagates to the caller.
    """
    fetchers = {
        "products": fetch_products,
        "pages": fetch_pages,
        "collections": fetch_collections,
    }
    if model_store is not None:
        fetchers["models"] = lambda _client: model_store.list_models()
    jobs = {name: fn for name, fn in fetchers.items() if name in include}
    if not jobs:
        return {}

    with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
        futures = {name: pool.submit(fn, client) for name, fn in jobs.items()}
        return {name: future.result() for name, future in futures.items()}


# =========================
# Client-side filtering
# =========================
@dataclass
class ProductFilters:
    search: str = ""
    vendors: List[str] = field(default_factory=list)
    product_types: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    statuses: List[str] = field(default_factory=list)
    missing_flat: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data) -> "ProductFilters":
        if not isinstance(data, dict):
            return cls()
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        try:
            return cls(**known)
        except TypeError:
            return cls()


def filter_products(products, filters: ProductFilters) -> List[Product]:
    q = (filters.search or "").lower()
    out = []
    for p in products:
        if q and not (q in p.title.lower() or q in p.handle.lower() or q in p.vendor.lower()):
            continue
        if filters.vendors and p.vendor not in filters.vendors:
            continue
        if filters.product_types and p.product_type not in filters.product_types:
            continue
        if filters.tags and not any(t in p.tags for t in filters.tags):
            continue
        if filters.statuses and p.status not in filters.statuses:
            continue
        if filters.missing_flat and p.metafields["flat"]:
            continue
        out.append(p)
    return out


def facet_values(products) -> Dict[str, List[str]]:
    """Distinct non-empty values for the filter dropdowns, sorted."""
    return {
        "vendors": sorted({p.vendor for p in products if p.vendor}),
        "product_types": sorted({p.product_type for p in products if p.product_type}),
        "tags": sorted({t for p in products for t in p.tags if t}),
        "statuses": sorted({p.status for p in products if p.status}),
    }
