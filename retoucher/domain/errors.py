from __future__ import annotations


class EditorValidationError(ValueError):
    """Local input problem detected before any state change or network call."""


class SessionNotFoundError(KeyError):
    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


class SessionBusyError(RuntimeError):
    """Another generation or segmentation request is still outstanding."""


class StaleResultError(RuntimeError):
    """A result arrived after the history moved on; it was discarded."""


class GenerationError(RuntimeError):
    """Base class for failures reported by the generation collaborator."""

    kind = "generation_error"


class PolicyBlockedError(GenerationError):
    kind = "policy_blocked"

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        self.message = message
        text = f"Request was blocked. Reason: {reason}."
        if message:
            text = f"{text} {message}"
        super().__init__(text)


class NoImageReturnedError(GenerationError):
    kind = "no_image_returned"

    def __init__(self, context: str, text_feedback: str | None = None) -> None:
        self.context = context
        self.text_feedback = text_feedback
        msg = f"The model did not return an image for {context}."
        if text_feedback:
            msg = f'{msg} The model replied with text: "{text_feedback}"'
        else:
            msg = (
                f"{msg} This can happen because of safety filters or an overly complex "
                "request. Try rephrasing the instruction to be more direct."
            )
        super().__init__(msg)


class UpstreamError(GenerationError):
    kind = "upstream_error"

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)
