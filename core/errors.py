class BridgeError(Exception):
    """Base class for failures crossing the host/page boundary."""


class ContextUnavailable(BridgeError):
    """The page context is gone (tab closed, view destroyed)."""


class InjectionFailure(BridgeError):
    """The page rejected a style or script injection."""


class InteractionAborted(BridgeError):
    """The user cancelled an interactive selection."""


class CallbackDeliveryFailure(BridgeError):
    """A page-side call raised inside the page's own script context."""


class SessionActive(BridgeError):
    """An interactive session already runs against this page context."""


class BridgeDefinitionError(BridgeError, ValueError):
    """A bridge function declaration is malformed."""
