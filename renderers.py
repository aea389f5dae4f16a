"""
Render backends for the composed page layouts.

Both backends walk the same ``Node`` tree produced by the compositor and take
every coordinate from it:

  - ``InteractiveRenderer`` emits a JSON-ready view tree for on-screen preview
  - ``DocumentRenderer`` emits a self-contained HTML document per page, with
    every element absolutely positioned inside the fixed-width container
"""

import html
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from compositor import PageLayout, compose_pages
from form_config import LayoutConstants
from layout import Node, Style
from schemas import FormDataset

_DEFAULT_STYLE = asdict(Style())


def _round(value: float) -> float:
    value = round(float(value), 2)
    return 0.0 if value == 0 else value


def _style_dict(style: Style) -> Dict[str, Any]:
    """Only the style properties that differ from the defaults."""
    out = {}
    for name, value in asdict(style).items():
        if value != _DEFAULT_STYLE[name]:
            out[name] = _round(value) if isinstance(value, float) else value
    return out


class InteractiveRenderer:
    def __init__(self, constants: LayoutConstants):
        self.constants = constants

    def render_node(self, node: Node) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": node.kind,
            "x": _round(node.x),
            "y": _round(node.y),
            "width": _round(node.width),
            "height": _round(node.height),
        }
        if node.key:
            out["key"] = node.key
        if node.lines:
            out["lines"] = list(node.lines)
        if node.kind == "checkbox":
            out["checked"] = node.checked
        if node.src:
            out["src"] = node.src
        if node.clip:
            out["clip"] = True
        style = _style_dict(node.style)
        if style:
            out["style"] = style
        if node.children:
            out["children"] = [self.render_node(child) for child in node.children]
        return out

    def render_page(self, page: PageLayout) -> Dict[str, Any]:
        return {
            "page_number": page.page_number,
            "slot": page.slot,
            "title": page.title,
            "root": self.render_node(page.root),
        }

    def render(self, dataset: FormDataset) -> Dict[str, Any]:
        return {
            "container_width": self.constants.container_width,
            "variant": self.constants.name,
            "pages": [self.render_page(page) for page in compose_pages(dataset, self.constants)],
        }


# ---------- HTML document backend ----------

@dataclass(frozen=True)
class RenderSettings:
    font_family: str = "Helvetica, Arial, sans-serif"
    page_background: str = "#f3f4f6"
    title: str = "Monarch Residences Application"


@dataclass(frozen=True)
class DocumentPage:
    page_number: int
    slot: str
    title: str
    html: str
    layout: PageLayout


def _px(value: float) -> str:
    text = f"{_round(value):.2f}".rstrip("0").rstrip(".")
    return f"{text}px"


def _css(style: Style, node: Node) -> List[str]:
    rules = []
    if style.background:
        rules.append(f"background:{style.background}")
    if style.border_width:
        border = f"{_px(style.border_width)} {style.border_style} {style.border_color}"
        if style.border_sides == "all":
            rules.append(f"border:{border}")
        else:
            rules.append(f"border-{style.border_sides}:{border}")
    if style.font_size:
        rules.append(f"font-size:{_px(style.font_size)}")
        rules.append(f"line-height:{_px(style.effective_line_height)}")
        rules.append(f"color:{style.color}")
        if style.bold:
            rules.append("font-weight:700")
        if style.italic:
            rules.append("font-style:italic")
        if style.align != "left":
            rules.append(f"text-align:{style.align}")
    if node.clip:
        rules.append("overflow:hidden")
    return rules


class DocumentRenderer:
    def __init__(self, constants: LayoutConstants, settings: RenderSettings):
        self.constants = constants
        self.settings = settings

    def render_node(self, node: Node) -> str:
        rules = [
            "position:absolute",
            f"left:{_px(node.x)}",
            f"top:{_px(node.y)}",
            f"width:{_px(node.width)}",
            f"height:{_px(node.height)}",
        ]
        rules.extend(_css(node.style, node))
        attrs = f' style="{";".join(rules)}"'
        if node.key:
            attrs = f' data-key="{html.escape(node.key)}"' + attrs

        if node.kind == "image":
            fit = node.style.object_fit
            inner = (
                f'<img src="{html.escape(node.src or "")}" alt="{html.escape(node.text)}" '
                f'style="display:block;width:100%;height:100%;object-fit:{fit}">'
            )
        elif node.kind == "checkbox":
            attrs = f' data-checked="{str(node.checked).lower()}"' + attrs
            inner = "&#10003;" if node.checked else ""
        else:
            inner = "<br>".join(html.escape(line) for line in node.lines)
        inner += "".join(self.render_node(child) for child in node.children)
        return f'<div class="{node.kind}"{attrs}>{inner}</div>'

    def render_page(self, page: PageLayout) -> str:
        root = page.root
        body = self.render_node(root.at(0, 0))
        return (
            "<!DOCTYPE html>\n"
            "<html>\n<head>\n"
            '<meta charset="utf-8">\n'
            f"<title>{html.escape(self.settings.title)} - {html.escape(page.title)}</title>\n"
            "<style>\n"
            f"body {{ margin:0; padding:24px 0; background:{self.settings.page_background}; "
            f"font-family:{self.settings.font_family}; }}\n"
            f".page {{ position:relative; margin:0 auto; width:{_px(self.constants.container_width)}; "
            f"height:{_px(root.height)}; }}\n"
            "div { box-sizing:border-box; white-space:pre; }\n"
            "</style>\n"
            "</head>\n<body>\n"
            f'<div class="page" data-page="{page.page_number}">{body}</div>\n'
            "</body>\n</html>\n"
        )

    def render_pages(self, dataset: FormDataset) -> List[DocumentPage]:
        return [
            DocumentPage(page.page_number, page.slot, page.title, self.render_page(page), page)
            for page in compose_pages(dataset, self.constants)
        ]
