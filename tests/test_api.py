import os

from conftest import png_data_url
from renderers import _px
from repository import get_application, list_applications


def find_key(tree, key):
    if tree.get("key") == key:
        return tree
    for child in tree.get("children", []):
        found = find_key(child, key)
        if found is not None:
            return found
    return None


def create(client, payload):
    resp = client.post("/applications", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_create_application(client, dataset_dict):
    body = create(client, dataset_dict)
    assert len(body["id"]) == 32
    assert body["pages"] == [5, 8]
    assert body["active_applicants"] == 1
    assert body["warnings"] == []

    row = get_application(body["id"])
    assert row["unit_type"] == "3bhk"
    assert os.path.exists(row["pdf_path"])


def test_invalid_payload_is_rejected(client, dataset_dict):
    dataset_dict["applicants"] = []
    assert client.post("/applications", json=dataset_dict).status_code == 422


def test_download_pdf_and_regenerate(client, dataset_dict):
    app_id = create(client, dataset_dict)["id"]

    resp = client.get(f"/applications/{app_id}")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")

    os.remove(get_application(app_id)["pdf_path"])
    resp = client.get(f"/applications/{app_id}")
    assert resp.status_code == 200
    assert resp.content.startswith(b"%PDF")


def test_unknown_application(client):
    assert client.get("/applications/doesnotexist").status_code == 404
    assert client.get("/applications/doesnotexist/preview").status_code == 404
    assert client.get("/applications/doesnotexist/pages/5").status_code == 404


def test_form_data(client, dataset_dict):
    app_id = create(client, dataset_dict)["id"]
    body = client.get(f"/applications/{app_id}/form-data").json()
    assert body["form_data"]["applicants"][0]["name"] == "Asha Rao"
    assert body["form_data"]["applicants"][0]["age"] == "34"
    assert body["applicant_count"] == 1
    assert body["unit_type"] == "3bhk"


def test_preview_variants(client, dataset_dict):
    app_id = create(client, dataset_dict)["id"]

    compact = client.get(f"/applications/{app_id}/preview").json()
    assert compact["variant"] == "compact"
    assert compact["container_width"] == 612
    assert [p["page_number"] for p in compact["pages"]] == [5, 8]
    assert find_key(compact["pages"][0]["root"], "field-email-cells")["width"] == 260

    wide = client.get(f"/applications/{app_id}/preview", params={"variant": "wide"}).json()
    assert find_key(wide["pages"][0]["root"], "field-email-cells")["width"] == 460

    resp = client.get(f"/applications/{app_id}/preview", params={"variant": "poster"})
    assert resp.status_code == 400


def test_page_html(client, dataset_dict):
    app_id = create(client, dataset_dict)["id"]

    resp = client.get(f"/applications/{app_id}/pages/5")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert f"width:{_px(612)}" in resp.text

    # joint applicant page is not used, page 3 is not a form page
    assert client.get(f"/applications/{app_id}/pages/6").status_code == 404
    assert client.get(f"/applications/{app_id}/pages/3").status_code == 404
    assert client.get(f"/applications/{app_id}/pages/8", params={"variant": "x"}).status_code == 400


def test_list_applications(client, dataset_dict):
    app_id = create(client, dataset_dict)["id"]
    items = client.get("/applications", params={"limit": 500}).json()["items"]
    assert app_id in [item["id"] for item in items]
    assert {"id", "applicant_count", "unit_type", "created_at", "updated_at"} <= set(items[0])


def test_form_definition(client):
    body = client.get("/forms/definition", params={"variant": "wide"}).json()
    assert body["variant"] == "wide"
    assert body["constants"]["cell_width"] == 20
    assert body["designated_pages"] == [5, 6, 7, 8]
    assert body["applicant_fields"][0]["key"] == "title_name"
    assert client.get("/forms/definition", params={"variant": "poster"}).status_code == 400


def test_template_failure_is_500_and_keeps_no_row(client, dataset_dict, tmp_path):
    import form_filler

    before = len(list_applications(limit=500))
    form_filler.init_pdf_filler(template_path=tmp_path / "missing.pdf", output_dir=tmp_path)
    resp = client.post("/applications", json=dataset_dict)
    assert resp.status_code == 500
    assert "not found" in resp.json()["detail"]
    assert len(list_applications(limit=500)) == before


def test_server_paths_are_rejected_as_images(client, dataset_dict, tmp_path):
    secret = tmp_path / "server_secret.png"
    secret.write_bytes(b"\x89PNG")
    before = len(list_applications(limit=500))

    for field, ref in (("photograph", str(secret)), ("signature", "/etc/shadow_does_not_exist")):
        payload = {**dataset_dict, "applicants": [dict(dataset_dict["applicants"][0], **{field: ref})]}
        resp = client.post("/applications", json=payload)
        assert resp.status_code == 422

    assert len(list_applications(limit=500)) == before


def test_oversized_photo_becomes_a_warning(client, dataset_dict, monkeypatch):
    from PIL import Image

    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    dataset_dict["applicants"][0]["photograph"] = png_data_url(size=(200, 200))
    body = create(client, dataset_dict)
    assert body["pages"] == [5, 8]
    assert body["warnings"] and body["warnings"][0].startswith("photo-image:")
