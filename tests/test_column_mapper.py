from __future__ import annotations

import unittest
from types import SimpleNamespace

from app.domain.entities import EXPENSE_ENTITY, ORDER_ENTITY, ORDER_ITEM_ENTITY
from app.mappers.column_mapper import (
    MATCH_CASE_INSENSITIVE,
    MATCH_EXACT,
    MATCH_FUZZY,
    MATCH_OVERRIDE,
    MATCH_SAVED_CONFIG,
    ColumnMapper,
)
from app.validators.mapping_validator import SchemaMappingError

ORDER_HEADERS = ["Order Number", "Contact", "Event Date", "Event Type", "Theme", "Order Total"]


class TestColumnMapper(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = ColumnMapper()

    def test_exact_headers_map_every_named_field(self) -> None:
        mapping = self.mapper.propose(ORDER_HEADERS, ORDER_ENTITY)

        self.assertEqual(mapping.source_for("order_number"), "Order Number")
        self.assertEqual(mapping.source_for("contact_name"), "Contact")
        self.assertEqual(mapping.source_for("event_date"), "Event Date")
        self.assertEqual(mapping.source_for("event_type"), "Event Type")
        self.assertEqual(mapping.source_for("theme"), "Theme")
        self.assertEqual(mapping.source_for("total_amount"), "Order Total")
        self.assertEqual(mapping.match_strategies["order_number"], MATCH_EXACT)
        self.assertIsNone(mapping.source_for("status"))
        self.assertIn("status", mapping.unmapped_fields)

    def test_case_insensitive_match(self) -> None:
        mapping = self.mapper.propose(["order number", "CONTACT", "event date"], ORDER_ENTITY)

        self.assertEqual(mapping.source_for("order_number"), "order number")
        self.assertEqual(mapping.match_strategies["contact_name"], MATCH_CASE_INSENSITIVE)

    def test_fuzzy_containment_in_either_direction(self) -> None:
        headers = ["Order No.", "Customer Full Name", "Event Date", "Grand Total"]

        mapping = self.mapper.propose(headers, ORDER_ENTITY)

        self.assertEqual(mapping.source_for("order_number"), "Order No.")
        self.assertEqual(mapping.source_for("contact_name"), "Customer Full Name")
        self.assertEqual(mapping.source_for("total_amount"), "Grand Total")
        self.assertEqual(mapping.match_strategies["total_amount"], MATCH_FUZZY)

    def test_exact_match_of_later_field_beats_fuzzy_match_of_earlier_field(self) -> None:
        headers = ["Order Number", "Contact", "Event Date", "Amount Outstanding"]

        mapping = self.mapper.propose(headers, ORDER_ENTITY)

        self.assertEqual(mapping.source_for("amount_outstanding"), "Amount Outstanding")
        self.assertEqual(mapping.match_strategies["amount_outstanding"], MATCH_EXACT)
        self.assertIsNone(mapping.source_for("total_amount"))

    def test_fuzzy_tie_goes_to_earliest_source_column(self) -> None:
        headers = ["Order Number", "Contact", "Event Date", "Grand Total", "Sub Total"]

        mapping = self.mapper.propose(headers, ORDER_ENTITY)

        self.assertEqual(mapping.source_for("total_amount"), "Grand Total")

    def test_each_source_column_claimed_once(self) -> None:
        mapping = self.mapper.propose(ORDER_HEADERS, ORDER_ENTITY)

        claimed = [source for source in mapping.canonical_to_source.values() if source is not None]
        self.assertEqual(len(claimed), len(set(claimed)))

    def test_propose_is_idempotent(self) -> None:
        headers = ["Order No.", "Customer Full Name", "Event Date", "Grand Total", "Sub Total", "Notes"]

        first = self.mapper.propose(headers, ORDER_ENTITY)
        second = self.mapper.propose(headers, ORDER_ENTITY)
        fresh = ColumnMapper().propose(list(headers), ORDER_ENTITY)

        self.assertEqual(first, second)
        self.assertEqual(first, fresh)

    def test_order_item_headers_map_order_reference(self) -> None:
        headers = ["Order Number", "Description", "Qty", "Cost Price", "Sell Price"]

        mapping = self.mapper.propose(headers, ORDER_ITEM_ENTITY)

        self.assertEqual(mapping.source_for("order_number"), "Order Number")
        self.assertEqual(mapping.source_for("quantity"), "Qty")
        self.assertEqual(mapping.source_for("cost_price"), "Cost Price")
        self.assertEqual(mapping.source_for("sell_price"), "Sell Price")
        self.assertIsNone(mapping.source_for("servings"))

    def test_override_moves_column_and_releases_auto_match(self) -> None:
        mapping = self.mapper.propose(ORDER_HEADERS, ORDER_ENTITY)

        updated = self.mapper.apply_overrides(mapping, {"notes": "Theme"}, entity=ORDER_ENTITY)

        self.assertEqual(updated.source_for("notes"), "Theme")
        self.assertEqual(updated.match_strategies["notes"], MATCH_OVERRIDE)
        self.assertIsNone(updated.source_for("theme"))
        # original mapping untouched
        self.assertEqual(mapping.source_for("theme"), "Theme")

    def test_override_sentinel_unmaps_field(self) -> None:
        mapping = self.mapper.propose(ORDER_HEADERS, ORDER_ENTITY)

        for sentinel in (None, "", "_none_"):
            updated = self.mapper.apply_overrides(mapping, {"theme": sentinel}, entity=ORDER_ENTITY)
            self.assertIsNone(updated.source_for("theme"))

    def test_invalid_override_raises_structured_error(self) -> None:
        mapping = self.mapper.propose(ORDER_HEADERS, ORDER_ENTITY)

        with self.assertRaises(SchemaMappingError) as ctx:
            self.mapper.apply_overrides(
                mapping,
                {"theme": "Missing Column", "flavour": "Theme"},
                entity=ORDER_ENTITY,
            )

        codes = {error.code for error in ctx.exception.errors}
        self.assertEqual(codes, {"override_source_not_found", "invalid_override_field"})

    def test_resolve_raises_when_required_field_unmapped(self) -> None:
        with self.assertRaises(SchemaMappingError) as ctx:
            self.mapper.resolve(["Order Number", "Event Date", "Theme"], ORDER_ENTITY)

        self.assertEqual(ctx.exception.missing_required, ("contact_name",))
        self.assertIn("contact_name", ctx.exception.message)

    def test_resolve_without_require_complete_returns_partial_mapping(self) -> None:
        mapping = self.mapper.resolve(
            ["Order Number", "Event Date", "Theme"],
            ORDER_ENTITY,
            require_complete=False,
        )

        self.assertIsNone(mapping.source_for("contact_name"))

    def test_resolve_rejects_empty_headers(self) -> None:
        with self.assertRaises(SchemaMappingError) as ctx:
            self.mapper.resolve(["", "  "], ORDER_ENTITY)

        self.assertEqual(ctx.exception.errors[0].code, "empty_headers")

    def test_saved_config_applies_before_overrides(self) -> None:
        headers = ["When", "What", "Kind", "Paid", "Shop"]
        config = SimpleNamespace(
            id="cfg-1",
            field_mapping_json={
                "date": "When",
                "description": "What",
                "category": "Kind",
                "amount": "Paid",
                "supplier": "Gone Column",
            },
        )

        mapping = self.mapper.resolve(
            headers,
            EXPENSE_ENTITY,
            mapping_config=config,
            overrides={"supplier": "Shop"},
        )

        self.assertEqual(mapping.source_for("date"), "When")
        self.assertEqual(mapping.match_strategies["date"], MATCH_SAVED_CONFIG)
        self.assertEqual(mapping.source_for("supplier"), "Shop")
        self.assertEqual(mapping.match_strategies["supplier"], MATCH_OVERRIDE)
        self.assertEqual(mapping.mapping_config_id, "cfg-1")

    def test_map_row_projects_only_mapped_fields(self) -> None:
        mapping = self.mapper.propose(ORDER_HEADERS, ORDER_ENTITY)
        raw_row = dict(zip(ORDER_HEADERS, ["Q-1", "Jane Doe", "19/05/2025", "Birthday", "Unicorn", "45.00"]))

        projected = ColumnMapper.map_row(raw_row=raw_row, mapping=mapping)

        self.assertEqual(projected["order_number"], "Q-1")
        self.assertEqual(projected["total_amount"], "45.00")
        self.assertNotIn("status", projected)


if __name__ == "__main__":
    unittest.main()
