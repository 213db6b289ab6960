from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Tuple

EntryKey = Tuple[str, str]

STATEMENT_SEPARATOR = ";\n"


@dataclass(frozen=True)
class FunctionEntry:
    namespace: str
    name: str
    params: Tuple[str, ...]
    source: str


class ScriptRegistry:
    """Page-side function sources grouped by namespace.

    Entries keep the order of their first registration; registering the same
    name again replaces the source in place.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, "OrderedDict[str, FunctionEntry]"] = {}

    def register(self, namespace: str, name: str, source: str, params: Tuple[str, ...] = ()) -> EntryKey:
        table = self._entries.setdefault(namespace, OrderedDict())
        table[name] = FunctionEntry(namespace=namespace, name=name, params=tuple(params), source=source)
        return namespace, name

    def render_injection_script(self, namespace: str) -> str:
        table = self._entries.get(namespace)
        if not table:
            return ""
        return STATEMENT_SEPARATOR.join(e.source for e in table.values())

    def entries(self, namespace: str) -> List[FunctionEntry]:
        return list(self._entries.get(namespace, {}).values())

    def get(self, namespace: str, name: str) -> FunctionEntry:
        return self._entries[namespace][name]

    def namespaces(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        namespace, name = key
        return name in self._entries.get(namespace, {})
