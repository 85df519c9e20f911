# ================================================================
# File     : reference_data.py
# Purpose  : Tenant SKU index + static friendly-name tables
# Notes    : Loaded once per run; read-only afterwards
# ================================================================

import pathlib
from typing import Dict, Any, List, Iterable

from core.utils import fncPrintMessage


class ResourceFileError(Exception):
    """A friendly-name table is missing or unreadable."""


class ReferenceData:
    """
    Everything the flattener needs to turn ids into labels.

    skus          skuId -> subscribed SKU record (skuPartNumber, servicePlans)
    sku_names     skuId -> skuPartNumber
    licence_names skuPartNumber -> friendly licence label
    service_names servicePlanName -> friendly service label
    """

    def __init__(
        self,
        skus: Dict[str, Dict[str, Any]],
        licence_names: Dict[str, str],
        service_names: Dict[str, str],
    ):
        self.skus = skus
        self.sku_names = {sku_id: (s.get("skuPartNumber") or sku_id) for sku_id, s in skus.items()}
        self.licence_names = licence_names
        self.service_names = service_names

    def licence_label(self, sku_id: str) -> str:
        return self.sku_names.get(sku_id) or sku_id

    def licence_friendly(self, sku_id: str) -> str:
        label = self.licence_label(sku_id)
        return self.licence_names.get(label) or label

    def service_friendly(self, plan_name: str) -> str:
        return self.service_names.get(plan_name) or plan_name

    def service_plans(self, sku_id: str) -> List[Dict[str, Any]]:
        return list((self.skus.get(sku_id) or {}).get("servicePlans") or [])


# ================================================================
# Function: fncParseFriendlyNames
# Purpose : Turn key=value lines into a dict
# Notes   : Quotes/whitespace stripped; '#' comments and blanks skipped;
#           a bare name maps to itself
# ================================================================
def fncParseFriendlyNames(lines: Iterable[str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, _, value = line.partition("=")
        else:
            key, value = line, line
        key = key.strip().strip('"').strip("'").strip()
        value = value.strip().strip('"').strip("'").strip()
        if key:
            out[key] = value or key
    return out


# ================================================================
# Function: fncLoadFriendlyNames
# Purpose : Read one friendly-name table from disk
# Notes   : Missing/unreadable file is fatal (ResourceFileError)
# ================================================================
def fncLoadFriendlyNames(path: str) -> Dict[str, str]:
    p = pathlib.Path(path).expanduser()
    if not p.is_file():
        raise ResourceFileError(f"Friendly-name file not found: {p}")
    try:
        with open(p, "r", encoding="utf-8-sig") as f:
            table = fncParseFriendlyNames(f)
    except (OSError, UnicodeDecodeError) as ex:
        raise ResourceFileError(f"Could not read friendly-name file {p}: {ex}") from ex
    fncPrintMessage(f"Loaded {len(table)} friendly names from {p.name}", "debug")
    return table


# ================================================================
# Function: fncIndexSkus
# Purpose : skuId -> SKU record
# ================================================================
def fncIndexSkus(skus: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {s["skuId"]: s for s in skus if s.get("skuId")}


# ================================================================
# Function: fncBuildReferenceData
# Purpose : Combine tenant SKUs with the two static tables
# ================================================================
def fncBuildReferenceData(
    skus: List[Dict[str, Any]],
    licence_names: Dict[str, str],
    service_names: Dict[str, str],
) -> ReferenceData:
    ref = ReferenceData(fncIndexSkus(skus), licence_names, service_names)
    fncPrintMessage(f"Tenant has {len(ref.skus)} subscribed SKU(s)", "info")
    return ref
