"""Detect product families from shared title prefixes.

Products are partitioned by (vendor, product type). Inside a partition every
pair of titles contributes its longest common *word* prefix, and prefixes are
then assigned greedily, longest first, so "Amber Japan Blue Scurry",
"Amber Japan Fog" and "Amber Japan Navy" end up in one "Amber Japan" group.

A product lands in at most one group. Products without a partition-mate are
never grouped.
"""

import re
from collections import defaultdict
from typing import Dict, List

from constants import DEFINITIONS_BY_KEY, LIVID_VENDORS
from models import (
    LINKED,
    NOT_LINKED,
    PARTIALLY_LINKED,
    BulkMetafieldUpdate,
    MetafieldInput,
    ProductGroup,
    parse_gid_list,
    serialize_gid_list,
)

_WHITESPACE = re.compile(r"\s+")
_GROUP_ID_UNSAFE = re.compile(r"[^a-z0-9-]")


def longest_common_word_prefix(a: str, b: str) -> str:
    """Shared leading words of two titles, with a trailing space.

    Identical titles share *every* word and yield "" so a pair of exact
    duplicates never forms a group on its own.
    """
    words_a = _WHITESPACE.split(a)
    words_b = _WHITESPACE.split(b)
    common = []
    for wa, wb in zip(words_a, words_b):
        if wa != wb:
            break
        common.append(wa)

    if len(common) == len(words_a) and len(common) == len(words_b):
        return ""
    if not common:
        return ""
    return " ".join(common) + " "


def _detect_base_names(products) -> Dict[str, list]:
    titles = [p.title for p in products]

    # prefix -> indices in first-seen order
    prefix_indices = defaultdict(dict)
    for i in range(len(titles)):
        for j in range(i + 1, len(titles)):
            prefix = longest_common_word_prefix(titles[i], titles[j])
            if prefix:
                prefix_indices[prefix][i] = None
                prefix_indices[prefix][j] = None

    ordered = sorted(prefix_indices, key=lambda p: (-len(p), p))

    assigned = set()
    base_names = {}
    for prefix in ordered:
        candidates = [i for i in prefix_indices[prefix] if i not in assigned]
        if len(candidates) < 2:
            continue

        # Pull in any other unassigned product that carries the same prefix
        for i, title in enumerate(titles):
            if i not in assigned and title.startswith(prefix) and title[len(prefix):].strip():
                candidates.append(i)

        unique = list(dict.fromkeys(candidates))
        if len(unique) < 2:
            continue

        base_names[prefix.strip()] = [products[i] for i in unique]
        assigned.update(unique)

    return base_names


def compute_link_status(members) -> str:
    member_ids = [m.id for m in members]
    fully = partially = 0

    for member in members:
        linked = set(parse_gid_list(member.metafields["same_product"]))
        others = [mid for mid in member_ids if mid != member.id]
        linked_others = [mid for mid in others if mid in linked]
        if len(linked_others) == len(others):
            fully += 1
        elif linked_others:
            partially += 1

    if fully == len(members):
        return LINKED
    if fully or partially:
        return PARTIALLY_LINKED
    return NOT_LINKED


def group_id(vendor: str, product_type: str, base_name: str) -> str:
    return _GROUP_ID_UNSAFE.sub("-", f"{vendor}--{product_type}--{base_name}".lower())


def detect_product_groups(products) -> List[ProductGroup]:
    partitions = defaultdict(list)
    for p in products:
        partitions[(p.vendor, p.product_type)].append(p)

    groups = []
    for (vendor, product_type), members_in_partition in partitions.items():
        if len(members_in_partition) < 2:
            continue

        for base_name, members in _detect_base_names(members_in_partition).items():
            if len(members) < 2:
                continue
            groups.append(ProductGroup(
                id=group_id(vendor, product_type, base_name),
                base_name=base_name,
                vendor=vendor,
                product_type=product_type,
                members=members,
                link_status=compute_link_status(members),
            ))

    return sorted(groups, key=lambda g: (g.base_name.casefold(), g.base_name, g.id))


# =========================
# same_product suggestions
# =========================
def detect_livid_auto_links(products, vendors=LIVID_VENDORS) -> Dict[str, List[str]]:
    """product id -> existing same_product links plus any missing siblings.

    Only products with something new to add are returned.
    """
    scoped = [p for p in products if p.vendor in vendors]
    suggestions = {}

    for group in detect_product_groups(scoped):
        member_ids = group.member_ids
        for member in group.members:
            current = parse_gid_list(member.metafields["same_product"])
            new_links = [mid for mid in member_ids if mid != member.id and mid not in current]
            if new_links:
                suggestions[member.id] = current + new_links

    return suggestions


def _same_product_input(ids) -> MetafieldInput:
    definition = DEFINITIONS_BY_KEY["same_product"]
    return MetafieldInput(
        namespace=definition.namespace,
        key=definition.key,
        value=serialize_gid_list(ids),
        type=definition.type,
    )


def group_link_updates(member_ids) -> List[BulkMetafieldUpdate]:
    """Point every member's same_product at all of its siblings (overwrites)."""
    return [
        BulkMetafieldUpdate(pid, [_same_product_input([m for m in member_ids if m != pid])])
        for pid in member_ids
    ]


def auto_link_updates(suggestions) -> List[BulkMetafieldUpdate]:
    return [
        BulkMetafieldUpdate(pid, [_same_product_input(linked)])
        for pid, linked in suggestions.items()
    ]
