from cardflow.core.definitions import StepDefinition, VerificationSpec, WorkflowDefinition
from cardflow.core.schema import ARRAY, EMAIL_PATTERN, ENUM, INTEGER, NUMBER, FieldSpec, RecordConstraint
from cardflow.verification.services import ORDER_VERIFICATION
from cardflow.workflows.reference import DENOMINATIONS, NG_PHONE_PATTERN, TITLES

CAMPAIGN_ORDER = "campaign-order"
DASHBOARD_ORDER = "dashboard-order"

MIN_ORDER_QUANTITY = 100

ORDER_ITEM_FIELDS = (
    FieldSpec("denomination", kind=ENUM, choices=DENOMINATIONS),
    FieldSpec("quantity", kind=INTEGER, minimum=1, messages={"minimum": "Quantity must be at least 1."}),
)


def total_quantity(values) -> int:
    return sum(item["quantity"] for item in values.get("orderItems") or [])


def build_campaign_order() -> WorkflowDefinition:
    return WorkflowDefinition(
        name=CAMPAIGN_ORDER,
        description="New politician card order with card customization and line items.",
        fields=(
            FieldSpec("title", kind=ENUM, choices=TITLES, messages={"required": "Please select a title.", "choices": "Please select a title."}),
            FieldSpec(
                "politicianName",
                min_length=3,
                messages={"required": "Name must be at least 3 characters.", "min_length": "Name must be at least 3 characters."},
            ),
            FieldSpec(
                "politicalParty",
                min_length=2,
                messages={"required": "Political party is required.", "min_length": "Political party is required."},
            ),
            FieldSpec("politicalRole", required=False, max_length=80, messages={"max_length": "Political role is too long."}),
            FieldSpec(
                "email",
                pattern=EMAIL_PATTERN,
                messages={"required": "Please enter a valid email address.", "pattern": "Please enter a valid email address."},
            ),
            FieldSpec(
                "phone",
                pattern=NG_PHONE_PATTERN,
                messages={"required": "Please enter a valid Nigerian phone number.", "pattern": "Please enter a valid Nigerian phone number."},
            ),
            FieldSpec(
                "orderItems",
                kind=ARRAY,
                min_items=1,
                item_fields=ORDER_ITEM_FIELDS,
                messages={
                    "required": "Please add at least one card to your order.",
                    "type": "Invalid JSON for order items.",
                    "min_items": "Please add at least one card to your order.",
                    "items": "Invalid order items structure.",
                },
            ),
        ),
        steps=(
            StepDefinition("Card Customization", ("title", "politicianName", "politicalParty", "politicalRole", "email", "phone")),
            StepDefinition("Card Details", ("orderItems",)),
        ),
        record_constraints=(
            RecordConstraint(
                name="min_total_quantity",
                check=lambda values: total_quantity(values) >= MIN_ORDER_QUANTITY,
                message="Total quantity must be at least 100.",
                anchor="orderItems",
            ),
        ),
        verification=VerificationSpec(
            service=ORDER_VERIFICATION,
            fields=("politicianName", "politicalParty", "politicalRole", "email", "phone", "orderItems"),
        ),
        success_message="Your order has been placed successfully!",
        redirect="/dashboard",
    )


def build_dashboard_order() -> WorkflowDefinition:
    return WorkflowDefinition(
        name=DASHBOARD_ORDER,
        description="Repeat order from the politician dashboard.",
        fields=(
            FieldSpec(
                "denomination",
                kind=ENUM,
                choices=DENOMINATIONS,
                messages={"required": "Please select a denomination.", "choices": "Please select a denomination."},
            ),
            FieldSpec(
                "quantity",
                kind=NUMBER,
                minimum=MIN_ORDER_QUANTITY,
                messages={
                    "required": "Quantity must be at least 100.",
                    "type": "Quantity must be a number.",
                    "minimum": "Quantity must be at least 100.",
                },
            ),
        ),
        steps=(StepDefinition("Card Details", ("denomination", "quantity")),),
        success_message="Your order has been created.",
        redirect="/dashboard/orders",
    )
