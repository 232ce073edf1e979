"""Exception hierarchy shared by all widgets.

  - UIError: a failure whose message is meant for the chat user.
    Widgets catch it around user-supplied handlers and send str(exc)
    back to the chat instead of letting it reach the PTB error handler.
  - ValidationError: raised by answer validators and input transformers.
"""


class UIError(Exception):
    """User-facing widget error; the message is shown in the chat."""


class ValidationError(UIError, ValueError):
    """An answer or input value was rejected."""
