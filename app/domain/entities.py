"""
app/domain/entities.py

Canonical field tables for every importable entity type.

The import pipeline is generic; everything entity-specific (field names,
labels, aliases, types, required set, natural key, target model) lives in
the EntityDefinition objects below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from db.models.contact import Contact, ContactType
from db.models.expense import Expense
from db.models.ingredient import Ingredient
from db.models.order import DeliveryType, Order, OrderStatus
from db.models.order_item import OrderItem
from db.models.quote import Quote, QuoteStatus


class FieldType:
    TEXT = "text"
    DATE = "date"
    AMOUNT = "amount"
    BOOLEAN = "boolean"
    CHOICE = "choice"
    CONTACT = "contact"
    ORDER = "order"


EVENT_TYPES: tuple[str, ...] = (
    "Birthday",
    "Wedding",
    "Corporate",
    "Anniversary",
    "Baby Shower",
    "Gender Reveal",
    "Other",
)

EVENT_TYPE_ALIASES: dict[str, str] = {
    "babyshower": "Baby Shower",
    "baby shower": "Baby Shower",
    "gender reveal": "Gender Reveal",
    "genderreveal": "Gender Reveal",
    "business": "Corporate",
}


class UnknownEntityTypeError(ValueError):
    """
    Raised when an import targets an entity type with no definition.
    """

    def __init__(self, entity_type: str) -> None:
        supported = ", ".join(sorted(ENTITY_DEFINITIONS))
        super().__init__(f"Unknown entity type '{entity_type}'. Supported: {supported}.")
        self.entity_type = entity_type


@dataclass(frozen=True)
class FieldSpec:
    """
    One canonical field of an entity.

    `attribute` names the model column when it differs from the field name.
    `allow_default` lets a required field fall back to its coercion default
    (today's date, zero amount) instead of failing the row.
    `default` replaces a blank or unparseable cell for text, amount and
    choice fields.
    """

    name: str
    label: str
    field_type: str = FieldType.TEXT
    required: bool = False
    allow_default: bool = False
    aliases: tuple[str, ...] = ()
    choices: tuple[str, ...] = ()
    choice_aliases: Mapping[str, str] = field(default_factory=dict)
    default: str | None = None
    attribute: str | None = None

    @property
    def column(self) -> str:
        return self.attribute or self.name

    @property
    def match_candidates(self) -> tuple[str, ...]:
        """Header spellings tried by the column mapper, in priority order."""
        candidates: list[str] = []
        for candidate in (self.label, self.name.replace("_", " "), self.name, *self.aliases):
            if candidate and candidate not in candidates:
                candidates.append(candidate)
        return tuple(candidates)


@dataclass(frozen=True)
class EntityDefinition:
    """
    Canonical field table plus persistence details for one entity type.
    """

    name: str
    label: str
    model: type
    fields: tuple[FieldSpec, ...]
    natural_key: str | None = None
    reference_prefix: str | None = None
    reference_attribute: str | None = None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(field_spec.name for field_spec in self.fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(field_spec.name for field_spec in self.fields if field_spec.required)

    def get_field(self, name: str) -> FieldSpec | None:
        for field_spec in self.fields:
            if field_spec.name == name:
                return field_spec
        return None

    def to_model_values(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """
        Translate canonical field values into model column values.
        """

        return {
            field_spec.column: values[field_spec.name]
            for field_spec in self.fields
            if field_spec.name in values
        }


def _event_type_field() -> FieldSpec:
    return FieldSpec(
        name="event_type",
        label="Event Type",
        field_type=FieldType.CHOICE,
        aliases=("Occasion", "Event"),
        choices=EVENT_TYPES,
        choice_aliases=EVENT_TYPE_ALIASES,
        default="Other",
    )


QUOTE_ENTITY = EntityDefinition(
    name="quote",
    label="Quote",
    model=Quote,
    natural_key="quote_number",
    fields=(
        FieldSpec(
            name="quote_number",
            label="Quote Number",
            required=True,
            aliases=("Quote ID", "Quote #", "Quote No", "Number"),
        ),
        FieldSpec(
            name="contact_name",
            label="Contact",
            field_type=FieldType.CONTACT,
            required=True,
            aliases=("Customer", "Client", "Name", "Customer Name"),
            attribute="contact_id",
        ),
        FieldSpec(
            name="event_date",
            label="Event Date",
            field_type=FieldType.DATE,
            required=True,
            allow_default=True,
            aliases=("Date",),
        ),
        _event_type_field(),
        FieldSpec(name="description", label="Description", aliases=("Theme", "Details")),
        FieldSpec(
            name="price",
            label="Price",
            field_type=FieldType.AMOUNT,
            aliases=("Total", "Quote Total", "Amount"),
            attribute="total_amount",
        ),
        FieldSpec(
            name="status",
            label="Status",
            field_type=FieldType.CHOICE,
            choices=(
                QuoteStatus.DRAFT,
                QuoteStatus.SENT,
                QuoteStatus.ACCEPTED,
                QuoteStatus.DECLINED,
                QuoteStatus.EXPIRED,
                QuoteStatus.CANCELLED,
            ),
            choice_aliases={"pending": QuoteStatus.SENT, "booked": QuoteStatus.ACCEPTED},
            default=QuoteStatus.DRAFT,
        ),
        FieldSpec(name="notes", label="Notes", aliases=("Comments",)),
        FieldSpec(
            name="expiry_date",
            label="Expiry Date",
            field_type=FieldType.DATE,
            aliases=("Valid Until", "Expires"),
        ),
    ),
)

ORDER_ENTITY = EntityDefinition(
    name="order",
    label="Order",
    model=Order,
    natural_key="order_number",
    fields=(
        FieldSpec(
            name="order_number",
            label="Order Number",
            required=True,
            aliases=("Order ID", "Order #", "Order No", "Number"),
        ),
        FieldSpec(
            name="contact_name",
            label="Contact",
            field_type=FieldType.CONTACT,
            required=True,
            aliases=("Customer", "Client", "Name", "Customer Name"),
            attribute="contact_id",
        ),
        FieldSpec(
            name="event_date",
            label="Event Date",
            field_type=FieldType.DATE,
            required=True,
            allow_default=True,
            aliases=("Date", "Due Date"),
        ),
        _event_type_field(),
        FieldSpec(name="theme", label="Theme", aliases=("Description",)),
        FieldSpec(
            name="status",
            label="Status",
            field_type=FieldType.CHOICE,
            choices=(
                OrderStatus.QUOTE,
                OrderStatus.CONFIRMED,
                OrderStatus.PAID,
                OrderStatus.READY,
                OrderStatus.DELIVERED,
                OrderStatus.CANCELLED,
            ),
            choice_aliases={"booked": OrderStatus.CONFIRMED, "draft": OrderStatus.QUOTE},
            default=OrderStatus.QUOTE,
        ),
        FieldSpec(
            name="delivery_type",
            label="Delivery Type",
            field_type=FieldType.CHOICE,
            aliases=("Delivery Method", "Collection"),
            choices=(DeliveryType.PICKUP, DeliveryType.DELIVERY),
            choice_aliases={"collection": DeliveryType.PICKUP, "collect": DeliveryType.PICKUP},
            default=DeliveryType.PICKUP,
        ),
        FieldSpec(name="delivery_address", label="Delivery Address", aliases=("Address",)),
        FieldSpec(
            name="delivery_cost",
            label="Delivery Cost",
            field_type=FieldType.AMOUNT,
            aliases=("Delivery Fee", "Delivery Charge"),
        ),
        FieldSpec(
            name="total_amount",
            label="Order Total",
            field_type=FieldType.AMOUNT,
            aliases=("Total", "Total Amount", "Price", "Amount"),
        ),
        FieldSpec(
            name="amount_outstanding",
            label="Amount Outstanding",
            field_type=FieldType.AMOUNT,
            aliases=("Outstanding", "Balance Due", "Balance"),
        ),
        FieldSpec(
            name="deposit_paid",
            label="Deposit Paid",
            field_type=FieldType.BOOLEAN,
            aliases=("Deposit",),
        ),
        FieldSpec(
            name="balance_paid",
            label="Balance Paid",
            field_type=FieldType.BOOLEAN,
        ),
        FieldSpec(name="notes", label="Notes", aliases=("Comments",)),
    ),
)

EXPENSE_ENTITY = EntityDefinition(
    name="expense",
    label="Expense",
    model=Expense,
    reference_prefix="EXP",
    reference_attribute="reference",
    fields=(
        FieldSpec(
            name="date",
            label="Date",
            field_type=FieldType.DATE,
            required=True,
            allow_default=True,
            aliases=("Expense Date", "Transaction Date"),
        ),
        FieldSpec(name="description", label="Description", required=True, aliases=("Details", "Item")),
        FieldSpec(name="category", label="Category", required=True, aliases=("Type",)),
        FieldSpec(
            name="amount",
            label="Amount (Incl VAT)",
            field_type=FieldType.AMOUNT,
            required=True,
            allow_default=True,
            aliases=("Amount", "Total", "Cost"),
        ),
        FieldSpec(name="supplier", label="Vendor", aliases=("Supplier", "Payee")),
        FieldSpec(name="payment_source", label="Payment", aliases=("Payment Source", "Payment Method", "Paid With")),
        FieldSpec(name="vat", label="VAT", field_type=FieldType.AMOUNT, aliases=("Tax",)),
        FieldSpec(
            name="tax_deductible",
            label="Tax Deductible",
            field_type=FieldType.BOOLEAN,
            aliases=("Deductible",),
        ),
    ),
)

CONTACT_ENTITY = EntityDefinition(
    name="contact",
    label="Contact",
    model=Contact,
    natural_key="email",
    fields=(
        FieldSpec(name="first_name", label="First Name", required=True, aliases=("Forename", "Given Name")),
        FieldSpec(name="last_name", label="Last Name", aliases=("Surname", "Family Name"), default=""),
        FieldSpec(name="email", label="Email", aliases=("Email Address", "E-mail")),
        FieldSpec(name="phone", label="Number", aliases=("Phone", "Phone Number", "Mobile", "Telephone")),
        FieldSpec(
            name="business_name",
            label="Supplier Name",
            aliases=("Business Name", "Company"),
        ),
        FieldSpec(
            name="contact_type",
            label="Type",
            field_type=FieldType.CHOICE,
            aliases=("Contact Type",),
            choices=(ContactType.CUSTOMER, ContactType.SUPPLIER),
            choice_aliases={"client": ContactType.CUSTOMER, "vendor": ContactType.SUPPLIER},
            default=ContactType.CUSTOMER,
        ),
    ),
)

ORDER_ITEM_ENTITY = EntityDefinition(
    name="order_item",
    label="Order Item",
    model=OrderItem,
    fields=(
        FieldSpec(
            name="order_number",
            label="Order Number",
            field_type=FieldType.ORDER,
            required=True,
            aliases=("Order ID", "Order #", "Order No", "Order"),
            attribute="order_id",
        ),
        FieldSpec(name="description", label="Description", aliases=("Item", "Product")),
        FieldSpec(
            name="servings",
            label="Servings",
            field_type=FieldType.AMOUNT,
            aliases=("Serving", "Portions"),
        ),
        FieldSpec(name="labour", label="Labour", field_type=FieldType.AMOUNT, aliases=("Labor",)),
        FieldSpec(name="hours", label="Hours", field_type=FieldType.AMOUNT),
        FieldSpec(name="overhead", label="Overhead", field_type=FieldType.AMOUNT),
        FieldSpec(name="recipes", label="Recipes", aliases=("Recipe",)),
        FieldSpec(name="cost_price", label="Cost Price", field_type=FieldType.AMOUNT, aliases=("Cost",)),
        FieldSpec(
            name="sell_price",
            label="Sell Price",
            field_type=FieldType.AMOUNT,
            aliases=("Sale Price", "Price"),
        ),
        FieldSpec(
            name="quantity",
            label="Quantity",
            field_type=FieldType.AMOUNT,
            aliases=("Qty",),
            default="1",
        ),
        FieldSpec(name="notes", label="Notes", aliases=("Comments",)),
    ),
)

INGREDIENT_ENTITY = EntityDefinition(
    name="ingredient",
    label="Ingredient",
    model=Ingredient,
    natural_key="name",
    fields=(
        FieldSpec(
            name="name",
            label="Name",
            required=True,
            aliases=("Ingredient", "Ingredient Name"),
        ),
        FieldSpec(name="supplier", label="Supplier", aliases=("Vendor", "Brand")),
        FieldSpec(
            name="cost_per_unit",
            label="Cost Per Unit",
            field_type=FieldType.AMOUNT,
            aliases=("Unit Cost", "Price Per Unit"),
        ),
        FieldSpec(
            name="pack_cost",
            label="Pack Cost",
            field_type=FieldType.AMOUNT,
            aliases=("Pack Price",),
        ),
        FieldSpec(name="category", label="Category", aliases=("Type",), default="General"),
        FieldSpec(name="unit", label="Unit", aliases=("Units", "Measure"), default=""),
    ),
)

ENTITY_DEFINITIONS: dict[str, EntityDefinition] = {
    definition.name: definition
    for definition in (
        QUOTE_ENTITY,
        ORDER_ENTITY,
        EXPENSE_ENTITY,
        CONTACT_ENTITY,
        ORDER_ITEM_ENTITY,
        INGREDIENT_ENTITY,
    )
}


def get_entity_definition(entity_type: str) -> EntityDefinition:
    """
    Look up an entity definition by name (case-insensitive, plural tolerated).
    """

    key = (entity_type or "").strip().lower().replace("-", "_").replace(" ", "_")
    definition = ENTITY_DEFINITIONS.get(key) or ENTITY_DEFINITIONS.get(key.rstrip("s"))
    if definition is None:
        raise UnknownEntityTypeError(entity_type)
    return definition
