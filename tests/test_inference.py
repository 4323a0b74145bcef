"""Tests for rule-based product inference."""

import pytest

from lead_intel.inference import (
    CONFIDENCE_FLOOR,
    MODEL_TYPE,
    RuleTrigger,
    explain_inference,
    get_product_catalog,
    infer_products,
    render_reason,
)


def _by_code(results):
    return {product.product_code: product for product in results}


class TestInferProducts:
    """Tests for infer_products."""

    def test_furnace_oil_tender_for_steel(self):
        """Primary keyword, industry match and quantity stack up to the cap."""
        results = infer_products("Tender for 50,000 KL Furnace Oil supply for blast furnace", "Steel")

        fo = _by_code(results)["FO"]
        assert fo.confidence == 95
        assert fo.product_name == "Furnace Oil"
        assert fo.reason == (
            'Keyword match: "furnace oil"; Industry match: "steel"; Volume/quantity indicators present'
        )

    def test_empty_text_returns_empty_list(self):
        assert infer_products("") == []
        assert infer_products(None) == []

    def test_secondary_hits_only(self):
        """Three context signals: min(75 - 15, 50) + 3 * 5."""
        results = infer_products("Generator and heavy vehicle fleet")

        hsd = _by_code(results)["HSD"]
        assert hsd.confidence == 65
        assert hsd.reason == (
            'Context signal: "generator"; Context signal: "heavy vehicle"; Context signal: "fleet"'
        )

    def test_single_secondary_hit_uses_capped_base(self):
        results = infer_products("Kiln operations")

        assert [(p.product_code, p.confidence) for p in results] == [("FO", 50)]

    def test_low_base_secondary_formula(self):
        """SKO base 55 gives min(40, 50) = 40 for a single context signal."""
        results = infer_products("cooking fuel")

        assert [(p.product_code, p.confidence) for p in results] == [("MS", 50), ("SKO", 40)]

    def test_industry_alone_stays_below_floor(self):
        assert infer_products("nothing relevant here", "Steel") == []

    def test_confidence_capped(self):
        results = infer_products(
            "Bitumen and asphalt for highway paving on the national highway, 500 MT", "Construction"
        )
        assert _by_code(results)["Bitumen"].confidence == 95

    def test_only_first_industry_keyword_counts(self):
        """'manufacturing' and 'steel' both relate to FO but the boost applies once."""
        results = infer_products("furnace oil", "Steel manufacturing")
        assert _by_code(results)["FO"].confidence == 85

    def test_volume_boost_requires_signal(self):
        assert infer_products("Bulk supply of office chairs, 500 ton") == []

    def test_bulk_language_boosts(self):
        results = infer_products("Bulk procurement of diesel")
        assert _by_code(results)["HSD"].confidence == 85

    @pytest.mark.parametrize(
        "text, industry",
        [
            ("cooking fuel", None),
            ("Hexane for solvent extraction plant", "Edible Oil"),
            ("Propylene packaging polymer", "Plastics"),
            ("fleet of trucks needs diesel", "Logistics"),
            ("marine bunkering at port", None),
        ],
    )
    def test_never_returns_below_floor(self, text, industry):
        for product in infer_products(text, industry):
            assert product.confidence >= CONFIDENCE_FLOOR

    def test_sorted_by_confidence(self):
        results = infer_products("diesel and kerosene and sulphur supply for fertilizer plant, 200 MT")
        confidences = [product.confidence for product in results]
        assert confidences == sorted(confidences, reverse=True)
        assert len(results) >= 3


class TestRenderReason:
    """Tests for rule trigger rendering."""

    def test_joins_in_trigger_order(self):
        triggers = [
            RuleTrigger("keyword", "diesel", 75),
            RuleTrigger("context", "fleet"),
            RuleTrigger("volume", r"\d+", 10),
        ]
        assert render_reason(triggers) == (
            'Keyword match: "diesel"; Context signal: "fleet"; Volume/quantity indicators present'
        )

    def test_empty(self):
        assert render_reason([]) == ""


class TestExplainInference:
    """Tests for the audit record."""

    def test_defaults(self):
        record = explain_inference("Supply of diesel")

        assert record["industry"] == "Not specified"
        assert record["products_identified"] == 1
        assert record["products"][0]["product_code"] == "HSD"
        assert record["model_type"] == MODEL_TYPE

    def test_truncates_long_input(self):
        record = explain_inference("x" * 250)
        assert record["input"] == "x" * 200 + "..."


class TestProductCatalog:
    def test_catalog_covers_inferred_products(self):
        codes = {product.code for product in get_product_catalog()}
        assert {"MS", "HSD", "FO", "Bitumen", "JBO", "SKO_NonPDS"} <= codes
