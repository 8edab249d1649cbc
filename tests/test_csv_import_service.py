"""
tests/test_csv_import_service.py

End-to-end tests for CSVImportService against an in-memory database.

Coverage
--------
- Order import with contact creation and field coercion
- Idempotent re-import (natural key and content fingerprint)
- Partial failure with 1-based row numbers
- Blank rows skipped without losing their position
- One created contact per distinct name within a batch
- Structural and mapping errors abort before any write
- Deadline truncation
- Banner-format expense export
- Contacts, order items resolved by order number, ingredients
- Commit failure after a contact was created
- Pre-parsed records, saved mapping configs and preview
"""

from __future__ import annotations

import itertools
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.domain.entities import UnknownEntityTypeError
from app.domain.errors import MalformedFileError
from app.domain.import_models import FormatTag, ImportFailure, ImportSuccess
from app.services.csv_import_service import CSVImportService, MappingConfigNotFoundError
from app.validators.mapping_validator import SchemaMappingError
from db.models.contact import Contact
from db.models.expense import Expense
from db.models.ingredient import Ingredient
from db.models.order import Order
from db.models.order_item import OrderItem


TODAY = date(2025, 6, 1)

ORDER_HEADER = "Order Number,Contact,Event Date,Event Type,Theme,Order Total"

EXPENSE_EXPORT = (
    "Bake Diary - Expenses\n"
    "Exported 01/06/2025\n"
    "Date,Description,Category,Amount,Vendor\n"
    "15/05/2025,Flour,Ingredients,£12.50,Mill Co\n"
    ',Cake boxes,Packaging,"$1,020.00",\n'
    "02/05/2025,,Misc,5.00,\n"
)


def _count(session: Session, model: type) -> int:
    return int(session.execute(select(func.count()).select_from(model)).scalar_one())


def _orders(session: Session) -> list[Order]:
    return list(session.execute(select(Order).order_by(Order.id)).scalars())


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


def test_imports_order_and_creates_contact(db_session: Session, service: CSVImportService) -> None:
    content = f"{ORDER_HEADER}\nQ-1,Jane Doe,19/05/2025,Birthday,Unicorn,45.00\n"

    summary = service.import_csv(
        content=content,
        db=db_session,
        tenant_id=1,
        entity_type="order",
        today=TODAY,
    )

    assert summary.success_count == 1
    assert summary.failure_count == 0
    assert summary.message == "Successfully imported 1."

    [order] = _orders(db_session)
    assert order.order_number == "Q-1"
    assert order.event_date == date(2025, 5, 19)
    assert order.total_amount == Decimal("45.00")
    assert order.event_type == "Birthday"
    assert order.theme == "Unicorn"
    assert order.status == "Quote"
    assert order.tenant_id == 1

    contact = db_session.get(Contact, order.contact_id)
    assert contact.full_name == "Jane Doe"

    [outcome] = summary.outcomes
    assert isinstance(outcome, ImportSuccess)
    assert outcome.reference == "Q-1"
    assert outcome.record.to_dict()["total_amount"] == "45.00"
    assert outcome.record.to_dict()["event_date"] == "2025-05-19"


def test_reimport_updates_instead_of_duplicating(db_session: Session, service: CSVImportService) -> None:
    content = f"{ORDER_HEADER}\nQ-1,Jane Doe,19/05/2025,Birthday,Unicorn,45.00\n"

    service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)
    second = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)

    assert _count(db_session, Order) == 1
    assert _count(db_session, Contact) == 1
    assert second.successes[0].updated is True


def test_update_leaves_unmapped_columns_alone(db_session: Session, service: CSVImportService) -> None:
    with_status = "Order Number,Contact,Event Date,Status\nQ-1,Jane Doe,19/05/2025,Paid\n"
    without_status = "Order Number,Contact,Event Date,Order Total\nQ-1,Jane Doe,19/05/2025,60\n"

    service.import_csv(content=with_status, db=db_session, tenant_id=1, entity_type="order", today=TODAY)
    service.import_csv(content=without_status, db=db_session, tenant_id=1, entity_type="order", today=TODAY)

    [order] = _orders(db_session)
    assert order.status == "Paid"
    assert order.total_amount == Decimal("60.00")


def test_same_order_number_is_separate_per_tenant(db_session: Session, service: CSVImportService) -> None:
    content = f"{ORDER_HEADER}\nQ-1,Jane Doe,19/05/2025,Birthday,Unicorn,45.00\n"

    service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)
    service.import_csv(content=content, db=db_session, tenant_id=2, entity_type="order", today=TODAY)

    orders = _orders(db_session)
    assert [order.tenant_id for order in orders] == [1, 2]
    assert orders[0].contact_id != orders[1].contact_id


def test_failed_row_does_not_stop_the_batch(db_session: Session, service: CSVImportService) -> None:
    content = "\n".join(
        [
            ORDER_HEADER,
            "Q-1,Ann Lee,19/05/2025,Birthday,Cars,10",
            "Q-2,Bo Chan,20/05/2025,Wedding,Roses,20",
            "Q-3,,21/05/2025,Other,Plain,30",
            "Q-4,Cy Dee,22/05/2025,Corporate,Logo,40",
            "Q-5,Di Eve,23/05/2025,Birthday,Stars,50",
        ]
    )

    summary = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)

    assert summary.success_count == 4
    assert summary.failure_count == 1
    [failure] = summary.failures
    assert failure.row == 3
    assert failure.reason == "Missing required value for: contact_name."
    assert summary.message == "Successfully imported 4. 1 failed."
    assert [order.order_number for order in _orders(db_session)] == ["Q-1", "Q-2", "Q-4", "Q-5"]
    # the failing row created no orphan contact
    assert _count(db_session, Contact) == 4


def test_cell_count_mismatch_fails_only_that_row(db_session: Session, service: CSVImportService) -> None:
    content = f"{ORDER_HEADER}\nQ-1,Jane Doe\nQ-2,Jane Doe,19/05/2025,Birthday,Unicorn,45.00\n"

    summary = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)

    assert isinstance(summary.outcomes[0], ImportFailure)
    assert summary.outcomes[0].row == 1
    assert "2 cells" in summary.outcomes[0].reason
    assert summary.outcomes[1].row == 2
    assert summary.success_count == 1


def test_blank_rows_are_skipped_but_keep_their_number(db_session: Session, service: CSVImportService) -> None:
    content = f"{ORDER_HEADER}\nQ-1,Jane Doe,19/05/2025,Birthday,Unicorn,45\n,,,,,\n,Jane Doe,19/05/2025,,,\n"

    summary = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)

    assert len(summary.outcomes) == 2
    assert summary.failures[0].row == 3
    assert "order_number" in summary.failures[0].reason


def test_rows_naming_the_same_new_contact_share_it(db_session: Session, service: CSVImportService) -> None:
    content = (
        f"{ORDER_HEADER}\n"
        "Q-1,Sam Lee,19/05/2025,Birthday,Cars,10\n"
        "Q-2,Sam Lee,20/05/2025,Birthday,Trains,20\n"
    )

    summary = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)

    assert summary.success_count == 2
    assert _count(db_session, Contact) == 1
    first, second = _orders(db_session)
    assert first.contact_id == second.contact_id


def test_blank_event_date_defaults_to_today(db_session: Session, service: CSVImportService) -> None:
    content = f"{ORDER_HEADER}\nQ-1,Jane Doe,,Party,Unicorn,\n"

    summary = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)

    assert summary.success_count == 1
    [order] = _orders(db_session)
    assert order.event_date == TODAY
    assert order.event_type == "Other"
    assert order.total_amount == Decimal("0.00")


# ---------------------------------------------------------------------------
# Batch-level errors
# ---------------------------------------------------------------------------


def test_single_line_file_is_malformed(db_session: Session, service: CSVImportService) -> None:
    with pytest.raises(MalformedFileError):
        service.import_csv(content=ORDER_HEADER, db=db_session, tenant_id=1, entity_type="order")

    assert _count(db_session, Order) == 0


def test_empty_file_is_malformed(db_session: Session, service: CSVImportService) -> None:
    with pytest.raises(MalformedFileError):
        service.import_csv(content=b"", db=db_session, tenant_id=1, entity_type="order")


def test_unmapped_required_field_aborts_batch(db_session: Session, service: CSVImportService) -> None:
    content = "Order Number,Event Date\nQ-1,19/05/2025\n"

    with pytest.raises(SchemaMappingError) as exc_info:
        service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order")

    assert exc_info.value.missing_required == ("contact_name",)
    assert _count(db_session, Order) == 0
    assert _count(db_session, Contact) == 0


def test_unknown_entity_type(db_session: Session, service: CSVImportService) -> None:
    with pytest.raises(UnknownEntityTypeError):
        service.import_csv(content="a,b\n1,2\n", db=db_session, tenant_id=1, entity_type="recipe")


def test_column_override_fixes_mapping(db_session: Session, service: CSVImportService) -> None:
    content = "Ref,Who,When\nQ-1,Jane Doe,19/05/2025\n"

    summary = service.import_csv(
        content=content,
        db=db_session,
        tenant_id=1,
        entity_type="orders",
        column_mapping={"order_number": "Ref", "contact_name": "Who", "event_date": "When"},
        today=TODAY,
    )

    assert summary.success_count == 1
    assert _orders(db_session)[0].order_number == "Q-1"


def test_deadline_returns_partial_summary(db_session: Session) -> None:
    ticks = itertools.count(0.0, 0.4)
    service = CSVImportService(deadline_seconds=1.0, clock=lambda: next(ticks))
    rows = [f"Q-{index},Jane Doe,19/05/2025,Birthday,Unicorn,{index}" for index in range(1, 6)]
    content = "\n".join([ORDER_HEADER, *rows])

    summary = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)

    assert summary.truncated is True
    assert summary.success_count == 2
    assert _count(db_session, Order) == 2


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------


def test_banner_expense_export(db_session: Session, service: CSVImportService) -> None:
    summary = service.import_csv(
        content=EXPENSE_EXPORT,
        db=db_session,
        tenant_id=1,
        entity_type="expense",
        today=TODAY,
    )

    assert summary.success_count == 2
    assert [failure.row for failure in summary.failures] == [3]
    assert "description" in summary.failures[0].reason

    expenses = list(db_session.execute(select(Expense).order_by(Expense.id)).scalars())
    assert expenses[0].amount == Decimal("12.50")
    assert expenses[0].supplier == "Mill Co"
    assert expenses[0].date == date(2025, 5, 15)
    assert expenses[1].amount == Decimal("1020.00")
    assert expenses[1].date == TODAY
    assert expenses[1].vat == Decimal("0.00")
    assert all(expense.reference.startswith("EXP-") for expense in expenses)
    assert expenses[0].reference != expenses[1].reference


def test_expense_reimport_is_deduplicated_by_content(db_session: Session, service: CSVImportService) -> None:
    service.import_csv(content=EXPENSE_EXPORT, db=db_session, tenant_id=1, entity_type="expense", today=TODAY)
    references = [expense.reference for expense in db_session.execute(select(Expense)).scalars()]

    second = service.import_csv(
        content=EXPENSE_EXPORT,
        db=db_session,
        tenant_id=1,
        entity_type="expense",
        today=date(2025, 7, 1),
    )

    assert _count(db_session, Expense) == 2
    assert all(outcome.updated for outcome in second.successes)
    assert sorted(outcome.reference for outcome in second.successes) == sorted(references)


# ---------------------------------------------------------------------------
# Contacts, order items, ingredients
# ---------------------------------------------------------------------------


def test_contact_reimport_with_blank_last_name(db_session: Session, service: CSVImportService) -> None:
    header = "First Name,Last Name,Email\n"

    first = service.import_csv(
        content=header + "Jane,Doe,jane@example.com\nSam,,sam@example.com\n",
        db=db_session,
        tenant_id=1,
        entity_type="contact",
    )
    second = service.import_csv(
        content=header + "Jane,,jane@example.com\n",
        db=db_session,
        tenant_id=1,
        entity_type="contacts",
    )

    assert first.success_count == 2
    assert second.success_count == 1
    assert second.successes[0].updated is True
    assert _count(db_session, Contact) == 2

    jane = db_session.execute(select(Contact).where(Contact.email == "jane@example.com")).scalar_one()
    sam = db_session.execute(select(Contact).where(Contact.email == "sam@example.com")).scalar_one()
    assert jane.last_name == ""
    assert sam.last_name == ""


def test_order_items_resolve_their_order(db_session: Session, service: CSVImportService) -> None:
    service.import_csv(
        content=f"{ORDER_HEADER}\nQ-1,Jane Doe,19/05/2025,Birthday,Unicorn,45.00\n",
        db=db_session,
        tenant_id=1,
        entity_type="order",
        today=TODAY,
    )
    [order] = _orders(db_session)
    content = (
        "Order Number,Description,Qty,Sell Price\n"
        "Q-1,Unicorn cake,2,45.00\n"
        "Q-404,Cupcakes,12,1.50\n"
        "Q-1,Toppers,,5\n"
    )

    summary = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order-items")

    assert summary.success_count == 2
    assert [(failure.row, failure.reason) for failure in summary.failures] == [
        (2, "Could not resolve order 'Q-404': no such order"),
    ]
    items = list(db_session.execute(select(OrderItem).order_by(OrderItem.id)).scalars())
    assert [item.order_id for item in items] == [order.id, order.id]
    assert items[0].quantity == Decimal("2.00")
    assert items[0].sell_price == Decimal("45.00")
    assert items[1].description == "Toppers"
    assert items[1].quantity == Decimal("1")

    again = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order_item")

    assert again.success_count == 2
    assert _count(db_session, OrderItem) == 2


def test_order_items_for_another_tenants_order_fail(db_session: Session, service: CSVImportService) -> None:
    service.import_csv(
        content=f"{ORDER_HEADER}\nQ-1,Jane Doe,19/05/2025,Birthday,Unicorn,45.00\n",
        db=db_session,
        tenant_id=2,
        entity_type="order",
        today=TODAY,
    )

    summary = service.import_csv(
        content="Order Number,Description\nQ-1,Unicorn cake\n",
        db=db_session,
        tenant_id=1,
        entity_type="order_item",
    )

    assert summary.success_count == 0
    assert summary.failures[0].reason == "Could not resolve order 'Q-1': no such order"
    assert _count(db_session, OrderItem) == 0


def test_ingredients_upsert_on_name_with_defaults(db_session: Session, service: CSVImportService) -> None:
    header = "Name,Supplier,Cost Per Unit,Pack Cost,Category,Unit\n"

    service.import_csv(
        content=header + 'Flour,Mill Co,0.80,£12.00,,kg\n"Sugar",,0.5,3,Baking,\n',
        db=db_session,
        tenant_id=1,
        entity_type="ingredients",
    )
    second = service.import_csv(
        content=header + "Flour,Mill Co,0.85,£12.75,Dry Goods,kg\n",
        db=db_session,
        tenant_id=1,
        entity_type="ingredient",
    )

    assert second.successes[0].updated is True
    assert second.successes[0].reference == "Flour"
    ingredients = {
        ingredient.name: ingredient
        for ingredient in db_session.execute(select(Ingredient)).scalars()
    }
    assert set(ingredients) == {"Flour", "Sugar"}
    assert ingredients["Flour"].pack_cost == Decimal("12.75")
    assert ingredients["Flour"].category == "Dry Goods"
    assert ingredients["Sugar"].supplier is None
    assert ingredients["Sugar"].unit == ""


def test_failed_commit_does_not_leave_dangling_contact(
    db_session: Session,
    service: CSVImportService,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    real_commit = db_session.commit
    calls = itertools.count()

    def commit_failing_once() -> None:
        if next(calls) == 0:
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
        real_commit()

    monkeypatch.setattr(db_session, "commit", commit_failing_once)
    content = (
        f"{ORDER_HEADER}\n"
        "Q-1,Jane Doe,19/05/2025,Birthday,Unicorn,45.00\n"
        "Q-2,Jane Doe,20/05/2025,Birthday,Unicorn,30.00\n"
    )

    summary = service.import_csv(content=content, db=db_session, tenant_id=1, entity_type="order", today=TODAY)

    assert summary.success_count == 1
    assert summary.failures[0].row == 1
    assert summary.failures[0].reason.startswith("Could not save row:")

    [order] = _orders(db_session)
    assert order.order_number == "Q-2"
    contact = db_session.get(Contact, order.contact_id)
    assert contact is not None
    assert contact.full_name == "Jane Doe"
    assert _count(db_session, Contact) == 1


# ---------------------------------------------------------------------------
# Records, saved mappings, preview
# ---------------------------------------------------------------------------


def test_import_records_strips_quotes(db_session: Session, service: CSVImportService) -> None:
    records = [
        {"Order Number": "Q-7", "Contact": '"Ann Lee"', "Event Date": "2025-07-01"},
        {"Order Number": "Q-8", "Contact": "Bo Chan", "Event Date": "2025-07-02", "Order Total": "$20"},
    ]

    summary = service.import_records(
        records=records,
        db=db_session,
        tenant_id=1,
        entity_type="order",
        today=TODAY,
    )

    assert summary.success_count == 2
    first, second = _orders(db_session)
    assert db_session.get(Contact, first.contact_id).first_name == "Ann"
    assert second.total_amount == Decimal("20.00")


def test_import_records_with_no_records(db_session: Session, service: CSVImportService) -> None:
    summary = service.import_records(records=[], db=db_session, tenant_id=1, entity_type="order")

    assert summary.outcomes == ()
    assert summary.message == "No rows were imported."


def test_saved_mapping_config_is_applied(db_session: Session, service: CSVImportService) -> None:
    service.save_mapping_config(
        db=db_session,
        tenant_id=1,
        entity_type="expense",
        name="bank-feed",
        field_mapping={"date": "When", "description": "What", "category": "Kind", "amount": "Paid"},
    )
    content = "When,What,Kind,Paid\n2025-05-01,Butter,Ingredients,4.20\n"

    summary = service.import_csv(
        content=content,
        db=db_session,
        tenant_id=1,
        entity_type="expense",
        mapping_config_name="bank-feed",
        today=TODAY,
    )

    assert summary.success_count == 1
    expense = db_session.execute(select(Expense)).scalars().one()
    assert expense.description == "Butter"
    assert expense.amount == Decimal("4.20")


def test_unknown_mapping_config_name(db_session: Session, service: CSVImportService) -> None:
    with pytest.raises(MappingConfigNotFoundError):
        service.import_csv(
            content=f"{ORDER_HEADER}\nQ-1,Jane Doe,19/05/2025,Birthday,Unicorn,45.00\n",
            db=db_session,
            tenant_id=1,
            entity_type="order",
            mapping_config_name="missing",
        )


def test_save_mapping_config_rejects_unknown_fields(db_session: Session, service: CSVImportService) -> None:
    with pytest.raises(SchemaMappingError):
        service.save_mapping_config(
            db=db_session,
            tenant_id=1,
            entity_type="expense",
            name="bad",
            field_mapping={"flavour": "Taste"},
        )


def test_preview_suggests_entity_and_writes_nothing(db_session: Session, service: CSVImportService) -> None:
    preview = service.preview(content=EXPENSE_EXPORT, db=db_session, tenant_id=1)

    assert preview.entity_type == "expense"
    assert preview.layout.format_tag == FormatTag.BANNER_EXPORT
    assert preview.layout.header_row_index == 2
    assert preview.canonical_to_source["supplier"] == "Vendor"
    assert preview.missing_required == ()
    assert preview.total_data_rows == 3
    assert preview.sample_rows[0]["Description"] == "Flour"
    assert _count(db_session, Expense) == 0


def test_preview_reports_missing_required(db_session: Session, service: CSVImportService) -> None:
    preview = service.preview(
        content="Order Number,Event Date\nQ-1,19/05/2025\n",
        db=db_session,
        tenant_id=1,
        entity_type="order",
    )

    assert preview.missing_required == ("contact_name",)
