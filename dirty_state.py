from dataclasses import replace
from typing import Dict, List

from constants import DEFINITIONS_BY_KEY
from logging_config import get_logger
from models import BulkMetafieldUpdate, DirtyCell, MetafieldInput, cell_key

logger = get_logger(__name__)


class DirtyStateStore:
    """Unsaved edits for one editing session, keyed "product_id:field".

    A cell is dirty only while its value differs from the last fetched
    product snapshot; typing the original value back removes it. Every
    read in the UI goes through ``get_effective_value`` so pending edits
    show up before they are saved.
    """

    def __init__(self):
        self._cells: Dict[str, DirtyCell] = {}

    def __len__(self):
        return len(self._cells)

    def __contains__(self, key):
        return key in self._cells

    def __iter__(self):
        return iter(list(self._cells.values()))

    @property
    def cells(self) -> Dict[str, DirtyCell]:
        return dict(self._cells)

    def get(self, product_id, field):
        return self._cells.get(cell_key(product_id, field))

    def set_cell(self, product_id, field, new_value, original_value):
        key = cell_key(product_id, field)
        if new_value == original_value:
            self._cells.pop(key, None)
        else:
            self._cells[key] = DirtyCell(product_id, field, new_value)

    def edit(self, product, field, new_value):
        """set_cell against the product's stored value."""
        self.set_cell(product.id, field, new_value, product.metafields[field])

    def get_effective_value(self, product, field) -> str:
        cell = self._cells.get(cell_key(product.id, field))
        return cell.value if cell else product.metafields[field]

    def clear(self):
        self._cells.clear()

    def discard_products(self, product_ids):
        """Drop the cells of the given products (used after a partial save)."""
        ids = set(product_ids)
        for key in [k for k, c in self._cells.items() if c.product_id in ids]:
            del self._cells[key]

    def dirty_product_ids(self) -> List[str]:
        return list(dict.fromkeys(c.product_id for c in self._cells.values()))

    # =========================
    # Derived views
    # =========================
    def apply_to_products(self, products):
        """Copies of ``products`` with pending values overlaid."""
        if not self._cells:
            return list(products)
        by_product = {}
        for cell in self._cells.values():
            by_product.setdefault(cell.product_id, {})[cell.field] = cell.value

        out = []
        for p in products:
            pending = by_product.get(p.id)
            out.append(replace(p, metafields={**p.metafields, **pending}) if pending else p)
        return out

    def to_updates(self) -> List[BulkMetafieldUpdate]:
        """Group cells per product with namespace/type from the definitions."""
        by_product: Dict[str, List[MetafieldInput]] = {}
        for cell in self._cells.values():
            definition = DEFINITIONS_BY_KEY.get(cell.field)
            if definition is None:
                logger.warning("Skipping unknown field %r for %s", cell.field, cell.product_id)
                continue
            by_product.setdefault(cell.product_id, []).append(
                MetafieldInput(definition.namespace, definition.key, cell.value, definition.type)
            )
        return [BulkMetafieldUpdate(pid, mfs) for pid, mfs in by_product.items()]

    # =========================
    # Bulk edits
    # =========================
    def bulk_apply(self, products, product_ids, field, value) -> int:
        """Set one field to ``value`` on every selected product."""
        ids = set(product_ids)
        touched = 0
        for p in products:
            if p.id in ids:
                self.edit(p, field, value)
                touched += 1
        return touched

    def copy_down(self, products, selected_ids, fields):
        """Copy the first selected product's values (display order) to the rest.

        Returns (source product, number of targets), or (None, 0) when fewer
        than two products are selected or no field was chosen.
        """
        selected = set(selected_ids)
        if len(selected) < 2 or not fields:
            return None, 0

        source = next((p for p in products if p.id in selected), None)
        if source is None:
            return None, 0

        targets = [p for p in products if p.id in selected and p.id != source.id]
        for field in fields:
            value = self.get_effective_value(source, field)
            for target in targets:
                self.edit(target, field, value)
        return source, len(targets)
