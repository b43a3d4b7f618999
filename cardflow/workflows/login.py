import hmac

from cardflow.core.definitions import StepDefinition, TerminalCheck, WorkflowDefinition
from cardflow.core.schema import EMAIL_PATTERN, FieldSpec
from cardflow.settings import settings

LOGIN = "login"


def _credentials_rejected(values) -> bool:
    # Demo gate only; there is no user store behind it.
    email_ok = hmac.compare_digest(
        str(values["email"]).lower().encode("utf-8"), settings.DEMO_LOGIN_EMAIL.lower().encode("utf-8")
    )
    password_ok = hmac.compare_digest(
        str(values["password"]).encode("utf-8"), settings.DEMO_LOGIN_PASSWORD.encode("utf-8")
    )
    return not (email_ok and password_ok)


def build_login() -> WorkflowDefinition:
    return WorkflowDefinition(
        name=LOGIN,
        description="Politician dashboard sign-in (demo credentials).",
        fields=(
            FieldSpec(
                "email",
                pattern=EMAIL_PATTERN,
                messages={"required": "Please enter a valid email address.", "pattern": "Please enter a valid email address."},
            ),
            FieldSpec("password", messages={"required": "Password is required."}),
        ),
        steps=(StepDefinition("Sign In", ("email", "password")),),
        terminal_checks=(
            TerminalCheck(
                name="demo_credentials",
                fields=("email", "password"),
                rejects=_credentials_rejected,
                message="Invalid email or password.",
            ),
        ),
        success_message="Welcome back!",
        redirect="/dashboard",
    )
