from typing import Dict, Optional, Sequence

from core.theme import DARK, HintTheme
from services.bridge import BridgeInvoker, PageContext
from services.dom_select import (
    FOLLOW_LINK,
    FOLLOW_LINK_FUNCTIONS,
    HINT_STYLE_ID,
    SECTION,
    SECTION_FUNCTIONS,
    define_hint_namespace,
)
from services.selection import ActiveCandidateProvider, Completer, SelectionController


class HintCommands:
    """The hint commands the browser exposes, one controller per namespace.

    ``ContextUnavailable`` and ``SessionActive`` raised by ``start`` reach the
    caller; everything after that is handled by the controller.
    """

    def __init__(
        self,
        invoker: BridgeInvoker,
        completer: Completer,
        providers: Sequence[ActiveCandidateProvider] = (),
        theme: Optional[HintTheme] = None,
    ) -> None:
        self.invoker = invoker
        style = (HINT_STYLE_ID, (theme or DARK).classes())
        self.controllers: Dict[str, SelectionController] = {}
        for namespace, table in ((FOLLOW_LINK, FOLLOW_LINK_FUNCTIONS), (SECTION, SECTION_FUNCTIONS)):
            functions = define_hint_namespace(invoker, namespace, table)
            self.controllers[namespace] = SelectionController(
                invoker, namespace, functions, completer, providers=providers, style=style
            )

    def follow_link(self, context: PageContext) -> None:
        self.controllers[FOLLOW_LINK].start(context)

    def jump_to_section(self, context: PageContext) -> None:
        self.controllers[SECTION].start(context)
