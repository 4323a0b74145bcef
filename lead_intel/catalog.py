"""Direct-sales product portfolio."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Product:
    code: str
    name: str
    category: str


PRODUCT_CATALOG: Tuple[Product, ...] = (
    Product("MS", "Motor Spirit (Petrol)", "Light Distillates"),
    Product("HSD", "High Speed Diesel", "Middle Distillates"),
    Product("LDO", "Light Diesel Oil", "Middle Distillates"),
    Product("FO", "Furnace Oil", "Heavy Ends"),
    Product("LSHS", "Low Sulphur Heavy Stock", "Heavy Ends"),
    Product("SKO", "Superior Kerosene Oil", "Middle Distillates"),
    Product("Hexane", "Hexane", "Specialty"),
    Product("Solvent1425", "Solvent 1425", "Specialty"),
    Product("MTO", "Mineral Turpentine Oil (MTO 2445)", "Specialty"),
    Product("Bitumen", "Bitumen", "Heavy Ends"),
    Product("MarineFuels", "Marine Fuels", "Specialty"),
    Product("Sulphur", "Sulphur", "By-Products"),
    Product("Propylene", "Propylene", "Petrochemicals"),
    Product("JBO", "Jute Batching Oil", "Specialty"),
    Product("SKO_NonPDS", "SKO (Non-PDS / Industrial)", "Middle Distillates"),
)

_BY_CODE: Dict[str, Product] = {product.code: product for product in PRODUCT_CATALOG}


def product_name(code: str) -> str:
    """Display name for a product code, or the code itself when unknown."""

    product = _BY_CODE.get(code)
    return product.name if product else code
