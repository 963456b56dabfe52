"""Shared test fixtures and fakes for the metafield manager suite."""

import itertools

import pytest

from models import Product
from queries import METAFIELDS_DELETE_MUTATION, METAFIELDS_SET_MUTATION
from settings import Settings
from shopify_client import ShopifyError

_ids = itertools.count(1)


def make_product(title, vendor="Livid Jeans", product_type="Jeans", **kwargs):
    """Build a Product with a fresh GID unless one is given."""
    pid = kwargs.pop("id", None) or f"gid://shopify/Product/{next(_ids)}"
    handle = kwargs.pop("handle", None) or title.lower().replace(" ", "-")
    return Product(id=pid, title=title, handle=handle, vendor=vendor, product_type=product_type, **kwargs)


class FakeClient:
    """Stand-in for ShopifyClient that records every call.

    ``responses`` maps a query/mutation string to either a dict (returned as
    ``data``) or a callable ``(variables) -> dict``. Metafield writes succeed
    by default; any batch touching an owner in ``fail_owner_ids`` raises.
    """

    def __init__(self, responses=None, pages=None, fail_owner_ids=()):
        self.calls = []
        self.paginate_calls = []
        self.responses = dict(responses or {})
        self.pages = dict(pages or {})
        self.fail_owner_ids = set(fail_owner_ids)

    def execute(self, query, variables=None):
        variables = variables or {}
        self.calls.append((query, variables))

        if query in (METAFIELDS_SET_MUTATION, METAFIELDS_DELETE_MUTATION):
            owners = {m["ownerId"] for m in variables.get("metafields", [])}
            if owners & self.fail_owner_ids:
                raise ShopifyError("Shopify API error: 500 Internal Server Error")

        response = self.responses.get(query)
        if callable(response):
            return response(variables)
        if response is not None:
            return response
        if query == METAFIELDS_SET_MUTATION:
            return {"metafieldsSet": {"metafields": [], "userErrors": []}}
        if query == METAFIELDS_DELETE_MUTATION:
            return {"metafieldsDelete": {"deletedMetafields": [], "userErrors": []}}
        raise AssertionError("Unexpected query")

    def paginate(self, query, root_key, variables=None, page_size=50):
        self.paginate_calls.append((root_key, variables, page_size))
        return list(self.pages.get(root_key, []))

    def calls_for(self, query):
        return [v for q, v in self.calls if q == query]


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def settings():
    return Settings(store_url="livid-test.myshopify.com", access_token="shpat_test", max_retries=3)
