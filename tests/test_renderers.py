import pytest

from compositor import compose_pages
from conftest import png_data_url
from form_config import COMPACT, WIDE
from layout import Node
from renderers import DocumentRenderer, InteractiveRenderer, RenderSettings, _px
from schemas import FormDataset


def find_key(tree, key):
    if tree.get("key") == key:
        return tree
    for child in tree.get("children", []):
        found = find_key(child, key)
        if found is not None:
            return found
    return None


def node_widths(node: Node, renderer: InteractiveRenderer):
    rendered = renderer.render_node(node)
    pairs = []

    def walk(n, r):
        pairs.append((round(n.width, 2), r["width"]))
        for cn, cr in zip(n.children, r.get("children", [])):
            walk(cn, cr)

    walk(node, rendered)
    return pairs


@pytest.mark.parametrize("constants", [COMPACT, WIDE], ids=["compact", "wide"])
def test_backends_report_identical_widths(dataset, constants):
    interactive = InteractiveRenderer(constants)
    document = DocumentRenderer(constants, RenderSettings())

    view = interactive.render(dataset)
    pages = document.render_pages(dataset)
    assert view["container_width"] == 612
    assert [p["page_number"] for p in view["pages"]] == [p.page_number for p in pages]

    for view_page, doc_page in zip(view["pages"], pages):
        assert view_page["root"]["width"] == 612
        for layout_width, view_width in node_widths(doc_page.layout.root, interactive):
            assert layout_width == view_width

    cells = find_key(view["pages"][0]["root"], "field-email-cells")
    expected = 20 * (constants.cell_width + 2 * constants.border_width)
    assert cells["width"] == expected
    assert f'data-key="field-email-cells" style="position:absolute;left:165px;top:0px;width:{_px(expected)}' in pages[0].html


def test_rendering_is_idempotent(dataset):
    interactive = InteractiveRenderer(COMPACT)
    document = DocumentRenderer(COMPACT, RenderSettings())
    assert interactive.render(dataset) == interactive.render(dataset)
    first = [p.html for p in document.render_pages(dataset)]
    second = [p.html for p in document.render_pages(dataset)]
    assert first == second


def test_interactive_tree_shape(dataset):
    view = InteractiveRenderer(COMPACT).render(dataset)
    assert view["variant"] == "compact"
    page = view["pages"][0]
    assert page["slot"] == "applicant-1"
    checkbox = find_key(page["root"], "field-residential_status-options-1")
    assert checkbox["type"] == "checkbox"
    assert checkbox["checked"] is True
    assert find_key(page["root"], "field-residential_status-options-2")["checked"] is False
    cells = find_key(page["root"], "field-age-cells")
    assert [c.get("lines", [""])[0] for c in cells["children"][:3]] == ["3", "4", ""]


def test_money_is_normalized_in_both_backends(dataset):
    view = InteractiveRenderer(COMPACT).render(dataset)
    cells = find_key(view["pages"][-1]["root"], "field-unit_price-cells")
    assert "".join(c.get("lines", [""])[0] for c in cells["children"]) == "1234567"

    html = DocumentRenderer(COMPACT, RenderSettings()).render_pages(dataset)[-1].html
    assert "₹" not in html
    assert "," not in html.split('data-key="field-unit_price-cells"')[1].split("</div></div>")[0]


def test_document_page_is_self_contained(dataset):
    settings = RenderSettings(font_family="Arial, sans-serif", page_background="#eeeeee")
    page = DocumentRenderer(COMPACT, settings).render_pages(dataset)[0]
    assert page.html.startswith("<!DOCTYPE html>")
    assert "font-family:Arial, sans-serif" in page.html
    assert "background:#eeeeee" in page.html
    assert ".page { position:relative; margin:0 auto; width:612px;" in page.html
    assert 'data-page="5"' in page.html
    assert "<script" not in page.html


def test_document_escapes_user_text(dataset_dict):
    dataset_dict["applicants"][0]["name"] = "A<B & C"
    dataset = FormDataset.model_validate(dataset_dict)
    html = DocumentRenderer(COMPACT, RenderSettings()).render_pages(dataset)[0].html
    assert ">&lt;<" in html
    assert ">&amp;<" in html
    assert "A<B" not in html


def test_checked_box_has_mark(dataset):
    html = DocumentRenderer(COMPACT, RenderSettings()).render_pages(dataset)[0].html
    assert 'data-checked="true" data-key="field-residential_status-options-1"' in html
    assert html.count('data-checked="true"') == 1


def test_end_to_end_single_applicant(dataset):
    pages = DocumentRenderer(COMPACT, RenderSettings()).render_pages(dataset)
    assert [p.page_number for p in pages] == [5, 8]

    applicant, apartment = (p.layout.root for p in pages)
    assert applicant.find("field-title_name-cells").texts() == ["Ms. Asha Rao"]
    assert apartment.find("field-unit_type-cells").texts() == ["3 BHK"]
    assert apartment.find("field-unit_price-cells").texts() == ["1234567"]
    # no signatures were captured, so no footer on either page
    for page in pages:
        assert "signature-footer" not in page.html
        assert "Second Applicant, if any" not in page.html


def test_end_to_end_with_first_signature(dataset_dict):
    signature = png_data_url()
    dataset_dict["applicants"][0]["signature"] = signature
    pages = DocumentRenderer(COMPACT, RenderSettings()).render_pages(FormDataset.model_validate(dataset_dict))

    for page in pages:
        assert 'data-key="signature-footer"' in page.html
        assert "Second Applicant, if any" in page.html
        assert f'<img src="{signature}"' in page.html


def test_pages_match_compositor(dataset):
    pages = DocumentRenderer(WIDE, RenderSettings()).render_pages(dataset)
    assert [p.layout for p in pages] == compose_pages(dataset, WIDE)


@pytest.mark.parametrize(
    "value, expected",
    [(10, "10px"), (12.5, "12.5px"), (146.6666, "146.67px"), (-0.001, "0px"), (100.0, "100px")],
)
def test_px_formatting(value, expected):
    assert _px(value) == expected
