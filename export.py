import datetime as dt
from io import BytesIO

import pandas as pd

from constants import METAFIELD_DEFINITIONS

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _is_effectively_empty(v):
    if v is None:
        return True
    if isinstance(v, float) and pd.isna(v):
        return True
    return isinstance(v, str) and v.strip() in ("", "[]")


def _drop_all_empty_columns(df, keep_always=None):
    if df is None or df.empty:
        return df
    keep_always = keep_always or set()
    cols = [c for c in df.columns if c in keep_always or not all(_is_effectively_empty(v) for v in df[c])]
    return df[cols]


def build_products_export(products, store=None, drop_empty=True) -> pd.DataFrame:
    """Products with every metafield (pending edits included when a store is given)."""
    rows = []
    for p in products:
        row = {
            "product_id": p.id,
            "title": p.title,
            "handle": p.handle,
            "vendor": p.vendor,
            "product_type": p.product_type,
            "status": p.status,
            "tags": ", ".join(p.tags),
        }
        for d in METAFIELD_DEFINITIONS:
            row[f"{d.namespace}.{d.key}"] = store.get_effective_value(p, d.key) if store else p.metafields[d.key]
        rows.append(row)

    df = pd.DataFrame(rows)
    if drop_empty:
        df = _drop_all_empty_columns(df, keep_always={"product_id", "title", "handle", "product_type"})
    return df


def make_xlsx_download(products_df, label=""):
    """(filename, BytesIO) ready for st.download_button."""
    if products_df is None:
        products_df = pd.DataFrame()
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="xlsxwriter") as writer:
        products_df.to_excel(writer, index=False, sheet_name="Products")
    buf.seek(0)

    safe = "".join(c if c.isalnum() or c in ("-", "_") else "_" for c in str(label))[:60]
    today = dt.date.today().isoformat()
    fname = f"metafields_{safe}_{today}.xlsx" if safe else f"metafields_{today}.xlsx"
    return fname, buf
