"""
Screen model for the sign-in state.

render() is a pure function of SignInState: the trigger is disabled and busy
while Pending, a success panel greets the user, an error panel shows the failure
message. The UI re-renders from this on every transition and never writes state.
"""

from typing import Any, Dict

from onetap_auth.state import Failed, FailureKind, Idle, Pending, SignInState, Succeeded

TRIGGER_LABEL = "Login by Gmail"
CANCELLED_TEXT = "User canceled the {provider} sign-in process."


def status_of(state: SignInState) -> str:
    if isinstance(state, Pending):
        return "pending"
    if isinstance(state, Succeeded):
        return "succeeded"
    if isinstance(state, Failed):
        return "failed"
    if isinstance(state, Idle):
        return "idle"
    raise TypeError(f"unknown sign-in state: {state!r}")


def render(state: SignInState, provider_name: str = "Google") -> Dict[str, Any]:
    """Return the trigger/success/error panels for state."""
    busy = isinstance(state, Pending)
    view: Dict[str, Any] = {
        "status": status_of(state),
        "trigger": {"label": TRIGGER_LABEL, "enabled": not busy, "busy": busy},
        "success": None,
        "error": None,
    }

    if isinstance(state, Succeeded):
        view["success"] = {
            "heading": "Success!",
            "greeting": f"Hi {state.email}",
            "user_id": state.user_id,
            "display_name": state.display_name,
            "photo_url": state.photo_url,
        }
    elif isinstance(state, Failed):
        # The cancellation wording is only used when the hand-off really came back empty.
        if state.kind is FailureKind.TOKEN_MISSING:
            detail = CANCELLED_TEXT.format(provider=provider_name)
        else:
            detail = state.message
        view["error"] = {
            "heading": f"{provider_name} Sign-In Failed",
            "message": state.message,
            "detail": detail,
            "kind": state.kind.value,
        }
    return view
