from cardflow.core.definitions import StepDefinition, VerificationSpec, WorkflowDefinition, reject_prefix
from cardflow.core.schema import BOOLEAN, ENUM, EMAIL_PATTERN, FieldSpec, RecordConstraint
from cardflow.settings import settings
from cardflow.verification.services import FRAUD_DETECTION
from cardflow.workflows.reference import NG_PHONE_PATTERN, NIGERIAN_BANKS, STATES_AND_LGAS

REDEMPTION = "redemption"
PAYOUT_DETAILS = "payout-details"

CARD_REJECTED_MESSAGE = "This card code is invalid or has already been used."


def build_redemption() -> WorkflowDefinition:
    consent_msg = "You must agree to the terms to continue."
    return WorkflowDefinition(
        name=REDEMPTION,
        description="Scratch-card check before the payout details form.",
        fields=(
            FieldSpec("cardCode", label="Scratch Card Code", messages={"required": "Card code is required."}),
            FieldSpec("serialNumber", label="Serial Number", messages={"required": "Serial number is required."}),
            FieldSpec(
                "consent",
                kind=BOOLEAN,
                must_be_true=True,
                messages={"required": consent_msg, "type": consent_msg, "must_be_true": consent_msg},
            ),
        ),
        steps=(StepDefinition("Card Details", ("cardCode", "serialNumber", "consent")),),
        terminal_checks=(reject_prefix("cardCode", settings.REJECTED_CARD_PREFIX, CARD_REJECTED_MESSAGE),),
        success_message="Card verified! Please provide your payout details.",
        redirect="/redeem/details",
    )


def _lga_matches_state(values) -> bool:
    return values["lga"] in STATES_AND_LGAS.get(values["state"], ())


def build_payout_details() -> WorkflowDefinition:
    return WorkflowDefinition(
        name=PAYOUT_DETAILS,
        description="Citizen personal, bank and location details for a card payout.",
        fields=(
            FieldSpec(
                "accountName",
                min_length=2,
                max_length=50,
                messages={
                    "required": "Full name is required.",
                    "min_length": "Full name must be at least 2 characters.",
                    "max_length": "Full name cannot be more than 50 characters.",
                },
            ),
            FieldSpec(
                "email",
                max_length=50,
                pattern=EMAIL_PATTERN,
                messages={
                    "required": "Please enter a valid email address.",
                    "max_length": "Email cannot be more than 50 characters.",
                    "pattern": "Please enter a valid email address.",
                },
            ),
            FieldSpec(
                "phone",
                pattern=NG_PHONE_PATTERN,
                messages={
                    "required": "Please enter a valid Nigerian phone number.",
                    "pattern": "Please enter a valid Nigerian phone number.",
                },
            ),
            FieldSpec("nin", pattern=r"\d{11}", messages={"required": "NIN must be 11 digits.", "pattern": "NIN must be 11 digits."}),
            FieldSpec(
                "accountNumber",
                pattern=r"\d{10}",
                messages={"required": "Account number must be 10 digits.", "pattern": "Account number must be 10 digits."},
            ),
            FieldSpec(
                "bankName",
                kind=ENUM,
                choices=NIGERIAN_BANKS,
                messages={"required": "Please select a bank.", "choices": "Please select a bank."},
            ),
            FieldSpec("bvn", pattern=r"\d{11}", messages={"required": "BVN must be 11 digits.", "pattern": "BVN must be 11 digits."}),
            FieldSpec(
                "state",
                kind=ENUM,
                choices=tuple(STATES_AND_LGAS),
                messages={"required": "Please select a state.", "choices": "Please select a state."},
            ),
            FieldSpec("lga", messages={"required": "Please select an LGA."}),
        ),
        steps=(
            StepDefinition("Personal Info", ("accountName", "email", "phone", "nin")),
            StepDefinition("Bank Details", ("accountNumber", "bankName", "bvn")),
            StepDefinition("Location", ("state", "lga")),
        ),
        record_constraints=(
            RecordConstraint(
                name="lga_in_state",
                check=_lga_matches_state,
                message="Please select a valid LGA for the chosen state.",
                anchor="lga",
            ),
        ),
        verification=VerificationSpec(
            service=FRAUD_DETECTION,
            fields=("accountName", "accountNumber", "bankName", "bvn", "nin", "state", "lga"),
            context_keys=("cardCode", "ipAddress", "location", "timestamp"),
        ),
        success_message="Your details have been submitted successfully! Your payout is being processed.",
        redirect="/redeem",
    )
