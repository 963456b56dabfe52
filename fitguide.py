"""Match products to fit-guide pages by handle.

"nelson-slim-black" tries "nelson-slim-black-fitguide", then
"nelson-slim-fitguide", then "nelson-fitguide". Products tagged with a season
(e.g. SS26) first look for "<prefix>-ss26-fitguide" and may replace a fit
guide that is already set.
"""

import re
from typing import List

from constants import SEASON_TAGS
from models import FitguideMatch

_WHITESPACE = re.compile(r"\s+")


def fitguide_pages(pages):
    return [p for p in pages if "fitguide" in p.title.lower()]


def care_pages(pages):
    return [p for p in pages if p.title.lower().startswith("care")]


def season_tag_for(product, season_tags=SEASON_TAGS):
    """First season tag (in priority order) the product carries, or None."""
    product_tags = {t.lower() for t in product.tags}
    for tag in season_tags:
        if tag.lower() in product_tags:
            return tag
    return None


def _longest_prefix_match(parts, pages_by_handle, suffix):
    for length in range(len(parts), 0, -1):
        page = pages_by_handle.get("-".join(parts[:length]) + suffix)
        if page:
            return page
    return None


def match_fitguides(products, pages, season_tags=SEASON_TAGS) -> List[FitguideMatch]:
    pages_by_handle = {p.handle.lower(): p for p in pages}
    matches = []

    for product in products:
        parts = product.handle.lower().split("-")
        current = product.metafields["fitguide"]

        season = season_tag_for(product, season_tags)
        if season:
            page = _longest_prefix_match(parts, pages_by_handle, f"-{season.lower()}-fitguide")
            if page:
                if current != page.id:
                    matches.append(FitguideMatch(product, page, is_override=bool(current)))
                continue

        if current:
            continue

        page = _longest_prefix_match(parts, pages_by_handle, "-fitguide")
        if page:
            matches.append(FitguideMatch(product, page, is_override=False))

    return matches


def target_products(products, selected_ids):
    """The selection if there is one, else everything."""
    if not selected_ids:
        return list(products)
    selected = set(selected_ids)
    return [p for p in products if p.id in selected]


def actionable_count(products, season_tags=SEASON_TAGS) -> int:
    # Products without a fit guide, plus seasonal ones that may need relinking
    return sum(
        1 for p in products
        if not p.metafields["fitguide"] or season_tag_for(p, season_tags)
    )


def matches_to_edits(matches):
    """(product, field, value) triples to feed into the dirty-state store."""
    return [(m.product, "fitguide", m.page.id) for m in matches]


def _parent_prefix(product, all_products):
    siblings = [
        p for p in all_products
        if p.id != product.id and p.vendor == product.vendor and p.product_type == product.product_type
    ]
    if not siblings:
        return product.title

    longest = ""
    words_a = _WHITESPACE.split(product.title)
    for sibling in siblings:
        common = []
        for wa, wb in zip(words_a, _WHITESPACE.split(sibling.title)):
            if wa != wb:
                break
            common.append(wa)
        prefix = " ".join(common)
        if len(prefix) > len(longest):
            longest = prefix
    return longest or product.title


def suggest_fitguide_page(product, all_products, pages):
    """Page the picker should pre-highlight for ``product``, if any.

    Uses the longest title prefix shared with a sibling (same vendor and type):
    "Amber Japan Fog" suggests the page titled "Amber Japan fitguide".
    """
    if product is None or not pages:
        return None
    prefix = _parent_prefix(product, all_products).lower()
    for page in pages:
        title = page.title.lower()
        if title == f"{prefix} fitguide" or title.startswith(prefix):
            return page
    return None
