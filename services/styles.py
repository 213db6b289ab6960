from typing import Mapping, Optional

from services.bridge import BridgeInvoker, ErrorCallback, PageContext, encode_arg


def css_rules(class_name: str, rules: Mapping[str, str]) -> str:
    body = " ".join(f"{attr}: {value};" for attr, value in rules.items())
    return f".{class_name} {{ {body} }}"


def style_script(style_id: str, classes: Mapping[str, Mapping[str, str]]) -> str:
    """JS that adds a ``<style>`` element to the head unless one with ``style_id`` exists."""
    css = "\n".join(css_rules(name, rules) for name, rules in classes.items())
    return (
        "(() => {"
        f"  const styleId = {encode_arg(style_id)};"
        "  if (document.getElementById(styleId)) { return false; }"
        "  const st = document.createElement('style');"
        "  st.id = styleId;"
        f"  st.textContent = {encode_arg(css)};"
        "  (document.head || document.documentElement).appendChild(st);"
        "  return true;"
        "})();"
    )


def inject_style(
    invoker: BridgeInvoker,
    context: PageContext,
    style_id: str,
    classes: Mapping[str, Mapping[str, str]],
    on_error: Optional[ErrorCallback] = None,
) -> None:
    invoker.run(context, style_script(style_id, classes), None, on_error)
