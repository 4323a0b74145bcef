"""Rule-based product-need inference.

Maps free text from tenders, news items and directory entries to direct-sales
products using keyword tables, industry hints and volume language. Every rule
that fires is recorded as a :class:`RuleTrigger` so the resulting confidence is
auditable; triggers are rendered into the ``reason`` string only at the end.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .catalog import PRODUCT_CATALOG, Product, product_name
from .models import InferredProduct

MODEL_VERSION = "1.0.0"
MODEL_TYPE = "Rule-based NLP with keyword matching"

CONFIDENCE_FLOOR = 30
CONFIDENCE_CAP = 95
INDUSTRY_BOOST = 15
VOLUME_BOOST = 10
SECONDARY_HIT_BOOST = 5


@dataclass(frozen=True)
class ProductSignals:
    primary: Tuple[str, ...]
    secondary: Tuple[str, ...]
    industries: Tuple[str, ...]
    base_confidence: int


@dataclass(frozen=True)
class RuleTrigger:
    """A single rule firing: which rule, on what, and how it moved confidence."""

    rule: str
    detail: str = ""
    delta: int = 0

    def describe(self) -> str:
        if self.rule == "keyword":
            return f'Keyword match: "{self.detail}"'
        if self.rule == "context":
            return f'Context signal: "{self.detail}"'
        if self.rule == "industry":
            return f'Industry match: "{self.detail}"'
        if self.rule == "volume":
            return "Volume/quantity indicators present"
        return self.detail or self.rule


PRODUCT_SIGNALS: Dict[str, ProductSignals] = {
    "MS": ProductSignals(
        primary=("petrol", "motor spirit", "gasoline", "ms supply", "petrol pump", "fuel station", "retail outlet"),
        secondary=("fuel", "automotive fuel", "filling station", "petroleum retail"),
        industries=("retail fuel", "transportation", "logistics"),
        base_confidence=70,
    ),
    "HSD": ProductSignals(
        primary=("diesel", "high speed diesel", "hsd", "diesel supply", "diesel fuel", "agri diesel"),
        secondary=("dg set", "generator", "heavy vehicle", "transport fuel", "mining", "fleet", "truck"),
        industries=("transportation", "logistics", "mining", "construction", "agriculture", "manufacturing"),
        base_confidence=75,
    ),
    "LDO": ProductSignals(
        primary=("light diesel oil", "ldo", "industrial diesel"),
        secondary=("burner fuel", "industrial heating", "furnace"),
        industries=("manufacturing", "textiles", "ceramics"),
        base_confidence=65,
    ),
    "FO": ProductSignals(
        primary=("furnace oil", "fuel oil", "fo supply", "heavy fuel oil"),
        secondary=("boiler fuel", "industrial heating", "thermal energy", "steam generation", "kiln"),
        industries=("manufacturing", "cement", "steel", "power", "textiles", "chemicals", "paper"),
        base_confidence=70,
    ),
    "LSHS": ProductSignals(
        primary=("lshs", "low sulphur heavy stock", "heavy stock"),
        secondary=("heavy fuel", "industrial fuel", "low sulphur fuel"),
        industries=("shipping", "power", "heavy industry"),
        base_confidence=60,
    ),
    "SKO": ProductSignals(
        primary=("kerosene", "sko", "superior kerosene"),
        secondary=("lighting fuel", "cooking fuel", "pds kerosene"),
        industries=("government supply", "rural distribution"),
        base_confidence=55,
    ),
    "Hexane": ProductSignals(
        primary=("hexane", "n-hexane", "food grade hexane"),
        secondary=("solvent extraction", "edible oil extraction", "soybean extraction", "rice bran oil"),
        industries=("edible oil", "food processing", "pharmaceuticals", "chemicals"),
        base_confidence=75,
    ),
    "Solvent1425": ProductSignals(
        primary=("solvent 1425", "mineral solvent", "petroleum solvent"),
        secondary=("paint thinner", "industrial solvent", "rubber solvent", "adhesive"),
        industries=("paint", "rubber", "adhesives", "coatings", "printing"),
        base_confidence=65,
    ),
    "MTO": ProductSignals(
        primary=("mto", "mineral turpentine", "turpentine oil", "white spirit"),
        secondary=("paint solvent", "thinner", "cleaning solvent", "degreasing"),
        industries=("paint", "coatings", "cleaning", "manufacturing"),
        base_confidence=65,
    ),
    "Bitumen": ProductSignals(
        primary=("bitumen", "asphalt", "road tar", "vg-30", "vg-40", "crumb rubber modified bitumen", "crmb"),
        secondary=("road construction", "highway", "national highway", "nhai", "paving", "waterproofing", "roofing"),
        industries=("construction", "infrastructure", "roads", "real estate"),
        base_confidence=80,
    ),
    "MarineFuels": ProductSignals(
        primary=("marine fuel", "bunker fuel", "ship fuel", "bunkering", "marine gas oil", "mgo", "vlsfo"),
        secondary=("vessel", "shipping", "port", "maritime", "coastal", "naval"),
        industries=("shipping", "maritime", "ports", "navy", "fishing"),
        base_confidence=70,
    ),
    "Sulphur": ProductSignals(
        primary=("sulphur", "sulfur", "sulphur supply"),
        secondary=("fertilizer", "sulphuric acid", "chemical grade sulphur", "dap", "ssp"),
        industries=("fertilizer", "chemicals", "agriculture"),
        base_confidence=60,
    ),
    "Propylene": ProductSignals(
        primary=("propylene", "polypropylene", "pp granules"),
        secondary=("plastic", "polymer", "petrochemical", "packaging"),
        industries=("petrochemicals", "plastics", "packaging", "textiles"),
        base_confidence=65,
    ),
}

VOLUME_PATTERNS = (
    re.compile(r"\d+\s*(mt|kl|litre|ton|barrel|bbl)", re.IGNORECASE),
    re.compile(r"bulk\s*(supply|order|procurement)", re.IGNORECASE),
    re.compile(r"annual\s*(contract|requirement|demand)", re.IGNORECASE),
)


def _evaluate_product(
    signals: ProductSignals,
    text: str,
    lowered: str,
    industry: str,
) -> Tuple[int, List[RuleTrigger]]:
    """Return the confidence for one product and the rules that produced it."""

    confidence = 0
    triggers: List[RuleTrigger] = []

    for keyword in signals.primary:
        if keyword in lowered:
            previous = confidence
            confidence = max(confidence, signals.base_confidence)
            triggers.append(RuleTrigger("keyword", keyword, confidence - previous))

    secondary_hits = 0
    for keyword in signals.secondary:
        if keyword in lowered:
            secondary_hits += 1
            triggers.append(RuleTrigger("context", keyword))

    if secondary_hits > 0 and confidence == 0:
        confidence = min(signals.base_confidence - 15, 50)
    if secondary_hits > 1:
        confidence = min(confidence + secondary_hits * SECONDARY_HIT_BOOST, CONFIDENCE_CAP)

    if industry:
        lowered_industry = industry.lower()
        for related in signals.industries:
            if related in lowered_industry:
                previous = confidence
                confidence = min(confidence + INDUSTRY_BOOST, CONFIDENCE_CAP)
                triggers.append(RuleTrigger("industry", related, confidence - previous))
                break

    if confidence > 0:
        for pattern in VOLUME_PATTERNS:
            if pattern.search(text):
                previous = confidence
                confidence = min(confidence + VOLUME_BOOST, CONFIDENCE_CAP)
                triggers.append(RuleTrigger("volume", pattern.pattern, confidence - previous))
                break

    return confidence, triggers


def render_reason(triggers: List[RuleTrigger]) -> str:
    return "; ".join(trigger.describe() for trigger in triggers)


def infer_products(text: Optional[str], industry: Optional[str] = None) -> List[InferredProduct]:
    """Infer direct-sales products from free text.

    Products below the confidence floor are dropped; the rest are returned
    sorted by confidence, highest first.
    """

    if not text:
        return []

    lowered = text.lower()
    results: List[InferredProduct] = []

    for code, signals in PRODUCT_SIGNALS.items():
        confidence, triggers = _evaluate_product(signals, text, lowered, industry or "")
        if confidence < CONFIDENCE_FLOOR:
            continue
        results.append(
            InferredProduct(
                product_code=code,
                product_name=product_name(code),
                confidence=confidence,
                reason=render_reason(triggers),
            )
        )

    results.sort(key=lambda product: product.confidence, reverse=True)
    return results


def get_product_catalog() -> Tuple[Product, ...]:
    return PRODUCT_CATALOG


def explain_inference(text: str, industry: Optional[str] = None) -> Dict[str, Any]:
    """Audit record describing one inference run."""

    products = infer_products(text, industry)
    preview = text[:200] + ("..." if len(text) > 200 else "")
    return {
        "input": preview,
        "industry": industry or "Not specified",
        "products_identified": len(products),
        "products": [product.model_dump() for product in products],
        "model_version": MODEL_VERSION,
        "model_type": MODEL_TYPE,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
