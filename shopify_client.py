import time

import requests
import shopify
from pyactiveresource.connection import ClientError

from logging_config import get_logger

logger = get_logger(__name__)

THROTTLE_WAIT_SECONDS = 1.0
MAX_THROTTLE_WAIT_SECONDS = 10.0


class ShopifyError(Exception):
    """Terminal failure talking to the Admin API."""


class UserErrorsError(ShopifyError):
    """A mutation came back with userErrors."""

    def __init__(self, user_errors, prefix=""):
        self.user_errors = list(user_errors or [])
        message = ", ".join(e.get("message", "") for e in self.user_errors)
        super().__init__(f"{prefix}{message}" if prefix else message)


def format_user_errors(user_errors):
    """["field.path: message", ...] as shown to staff."""
    out = []
    for e in user_errors or []:
        path = ".".join(str(p) for p in (e.get("field") or []))
        msg = e.get("message", "")
        out.append(f"{path}: {msg}" if path else msg)
    return out


def raise_for_user_errors(user_errors, prefix=""):
    if user_errors:
        raise UserErrorsError(user_errors, prefix=prefix)


# =========================
# GraphQL client
# =========================
class ShopifyClient:
    """POSTs GraphQL documents to the Admin API, retrying on rate limits.

    429 responses honour ``Retry-After``; 5xx responses and ``THROTTLED``
    GraphQL errors back off and retry. After ``max_retries`` attempts the
    call fails with ``ShopifyError``.
    """

    def __init__(self, settings, session=None, sleep=time.sleep):
        self.settings = settings
        self.session = session or requests.Session()
        self._sleep = sleep

    def _headers(self):
        return {
            "X-Shopify-Access-Token": self.settings.access_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def execute(self, query, variables=None):
        url = self.settings.graphql_url
        payload = {"query": query, "variables": variables or {}}
        last_error = None

        for attempt in range(self.settings.max_retries):
            try:
                resp = self.session.post(
                    url, headers=self._headers(), json=payload,
                    timeout=self.settings.request_timeout,
                )
            except requests.RequestException as e:
                raise ShopifyError(f"Shopify request failed: {e}") from e

            if resp.status_code == 429:
                wait = _retry_after(resp, THROTTLE_WAIT_SECONDS * (attempt + 1))
                last_error = ShopifyError("Shopify API error: 429 Too Many Requests")
                logger.warning("Rate limited (attempt %d), waiting %.1fs", attempt + 1, wait)
                self._sleep(wait)
                continue

            if not resp.ok:
                last_error = ShopifyError(f"Shopify API error: {resp.status_code} {resp.reason}")
                if resp.status_code >= 500:
                    logger.warning("Server error %s (attempt %d)", resp.status_code, attempt + 1)
                    self._sleep(THROTTLE_WAIT_SECONDS * (attempt + 1))
                    continue
                raise last_error

            body = resp.json()
            errors = body.get("errors") or []
            if errors:
                throttled = any((e.get("extensions") or {}).get("code") == "THROTTLED" for e in errors)
                if throttled:
                    wait = _throttle_wait(body, attempt)
                    last_error = ShopifyError("Shopify API throttled")
                    logger.warning("Query cost throttled (attempt %d), waiting %.1fs", attempt + 1, wait)
                    self._sleep(wait)
                    continue
                raise ShopifyError(
                    "Shopify GraphQL errors: " + ", ".join(e.get("message", "") for e in errors)
                )

            return body.get("data") or {}

        raise last_error or ShopifyError("Max retries exceeded")

    def paginate(self, query, root_key, variables=None, page_size=50):
        """Follow ``pageInfo`` cursors until exhausted and return every node."""
        nodes = []
        cursor = None
        while True:
            data = self.execute(query, {**(variables or {}), "first": page_size, "after": cursor})
            connection = data[root_key]
            nodes.extend(edge["node"] for edge in connection.get("edges") or [])
            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")
        logger.debug("Fetched %d %s", len(nodes), root_key)
        return nodes


def _retry_after(resp, default):
    header = resp.headers.get("Retry-After")
    if not header:
        return default
    try:
        return float(header)
    except ValueError:
        return default


def _throttle_wait(body, attempt):
    status = (((body.get("extensions") or {}).get("cost") or {}).get("throttleStatus"))
    if status and status.get("restoreRate"):
        missing = status["maximumAvailable"] - status["currentlyAvailable"]
        wait = missing / status["restoreRate"]
    else:
        wait = THROTTLE_WAIT_SECONDS * (attempt + 1)
    return min(wait, MAX_THROTTLE_WAIT_SECONDS)


# =========================
# Store session (ShopifyAPI)
# =========================
def connect_to_store(settings):
    session = shopify.Session(f"https://{settings.store_url}", settings.api_version, settings.access_token)
    shopify.ShopifyResource.activate_session(session)
    return session


def check_shop_access(settings, label="Store"):
    """Return (ok, message) after asking the store for its own Shop record."""
    try:
        connect_to_store(settings)
        shop = shopify.Shop.current()
        return True, f"✅ {label}: Connected to {shop.name} ({shop.myshopify_domain})"
    except ClientError as e:
        logger.warning("Shop access check failed: %s", e)
        return False, f"❌ {label}: {e}"
    except Exception as e:
        logger.warning("Shop access check failed: %s", e)
        return False, f"❌ {label}: {str(e)}"
    finally:
        shopify.ShopifyResource.clear_session()
