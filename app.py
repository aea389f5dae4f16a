# app.py
# Streamlit frontend for the Monarch Residences application form
# Flow:
# 1) Enter up to three applicants (photo + signature uploads)
# 2) Enter apartment / pricing / declaration details
# 3) POST form data -> /applications (stores it and generates the PDF)
# 4) Preview the filled pages and download the PDF
# 5) GET /applications for history

import streamlit as st
import streamlit.components.v1 as components
import requests

from config import API_BASE_URL
from form_config import APPLICANT_FIELDS, DESIGNATED_PAGES, RESIDENTIAL_STATUS_OPTIONS, UNIT_TYPE_DISPLAY
from images import to_data_url

# ==============================
# Backend Endpoints
# ==============================
APPLICATIONS_ENDPOINT = f"{API_BASE_URL}/applications"

TITLES = ["", "Mr.", "Mrs.", "Ms.", "M/s."]


# ==============================
# BACKEND HELPERS
# ==============================
def submit_application(payload):
    try:
        resp = requests.post(APPLICATIONS_ENDPOINT, json=payload, timeout=60)
        resp.raise_for_status()
        return {"ok": True, "response": resp.json()}
    except requests.exceptions.HTTPError as e:
        detail = e.response.json().get("detail") if e.response is not None else None
        return {"ok": False, "error": detail or str(e)}
    except requests.exceptions.RequestException as e:
        return {"ok": False, "error": str(e)}


def fetch_page_html(application_id, page_number, variant):
    resp = requests.get(
        f"{APPLICATIONS_ENDPOINT}/{application_id}/pages/{page_number}",
        params={"variant": variant},
        timeout=30,
    )
    if resp.status_code == 404:
        return None
    resp.raise_for_status()
    return resp.text


def fetch_pdf(application_id):
    resp = requests.get(f"{APPLICATIONS_ENDPOINT}/{application_id}", timeout=60)
    resp.raise_for_status()
    return resp.content


def get_history(limit=20):
    try:
        resp = requests.get(APPLICATIONS_ENDPOINT, params={"limit": limit}, timeout=10)
        resp.raise_for_status()
        return resp.json().get("items", [])
    except requests.exceptions.RequestException as e:
        return {"status": "error", "error": str(e)}


def uploaded_image(upload):
    """Turn an uploaded image into the data: URL the backend stores."""
    if upload is None:
        return None
    return to_data_url(upload.getvalue(), upload.type or "image/png")


# ==============================
# STREAMLIT UI
# ==============================
st.set_page_config(page_title="Monarch Residences - Application", layout="wide")
st.title("Monarch Residences Application Form")

# Sidebar
st.sidebar.header("Settings")
variant = st.sidebar.selectbox("Layout variant", ["compact", "wide"], index=0)
show_raw = st.sidebar.checkbox("Show raw JSON", value=False)

# -------------------------------
# 1) APPLICANTS
# -------------------------------
st.header("1) Applicants")

applicant_count = st.radio("Number of applicants", [1, 2, 3], horizontal=True)
status_values = [""] + [value for value, _ in RESIDENTIAL_STATUS_OPTIONS]

applicants = []
tabs = st.tabs(["Sole / First Applicant", "Joint Applicant 1", "Joint Applicant 2"][:applicant_count])
for index, tab in enumerate(tabs):
    with tab:
        record = {}
        col_title, col_name = st.columns([1, 4])
        record["title"] = col_title.selectbox("Title", TITLES, key=f"title_{index}")
        record["name"] = col_name.text_input("Name", key=f"name_{index}")

        for spec in APPLICANT_FIELDS:
            if spec.key == "title_name":
                continue
            widget_key = f"{spec.key}_{index}"
            if spec.kind == "checkbox":
                record[spec.key] = st.selectbox(spec.label, status_values, key=widget_key)
            elif spec.rows > 1:
                record[spec.key] = st.text_area(
                    spec.label, key=widget_key, max_chars=spec.cells * spec.rows, height=80
                )
            else:
                record[spec.key] = st.text_input(spec.label, key=widget_key, max_chars=spec.cells)

        col_photo, col_sign = st.columns(2)
        record["photograph"] = uploaded_image(
            col_photo.file_uploader("Photograph", type=["png", "jpg", "jpeg"], key=f"photo_{index}")
        )
        if index < 2:
            record["signature"] = uploaded_image(
                col_sign.file_uploader("Signature", type=["png", "jpg", "jpeg"], key=f"signature_{index}")
            )
        applicants.append(record)

# -------------------------------
# 2) APARTMENT & DECLARATION
# -------------------------------
st.header("2) Apartment, Pricing & Declaration")

col1, col2 = st.columns(2)
application = {
    "tower": col1.text_input("Tower", max_chars=15),
    "apartment_number": col2.text_input("Apartment No.", max_chars=15),
    "unit_type": col1.selectbox(
        "Type", [""] + list(UNIT_TYPE_DISPLAY), format_func=lambda v: UNIT_TYPE_DISPLAY.get(v, "-")
    ) or None,
    "floor": col2.text_input("Floor", max_chars=15),
    "carpet_area_sqm": col1.text_input("Carpet area (sq. m)", max_chars=10),
    "carpet_area_sqft": col2.text_input("Carpet area (sq. ft)", max_chars=10),
    "unit_price": col1.text_input("Unit price (₹)"),
    "total_price": col2.text_input("Total price (₹)"),
    "declaration_date": col1.text_input("Date", max_chars=10, placeholder="DD/MM/YYYY"),
    "declaration_place": col2.text_input("Place", max_chars=25),
}

payload = {
    "applicants": applicants,
    "application": application,
    "applicant_count": applicant_count,
}

if show_raw:
    st.json(payload)

# SUBMIT
if st.button("Submit application"):
    if not applicants[0]["name"].strip():
        st.error("The sole / first applicant needs a name.")
    else:
        with st.spinner("Generating PDF..."):
            result = submit_application(payload)
        if result["ok"]:
            st.session_state["application"] = result["response"]
            st.success(f"Application saved: {result['response']['id']}")
            for warning in result["response"].get("warnings", []):
                st.warning(warning)
        else:
            st.error(result["error"])

# -------------------------------
# 3) PREVIEW & DOWNLOAD
# -------------------------------
st.header("3) Preview")

created = st.session_state.get("application")
if created:
    if show_raw:
        st.json(created)

    application_id = created["id"]
    pages = [p for p in DESIGNATED_PAGES if p in created.get("pages", [])]
    page_tabs = st.tabs([f"Page {p}" for p in pages])
    for page_number, tab in zip(pages, page_tabs):
        with tab:
            html = fetch_page_html(application_id, page_number, variant)
            if html is None:
                st.info("This page is not used by the application.")
            else:
                components.html(html, height=1100, scrolling=True)

    try:
        st.download_button(
            "Download filled PDF",
            data=fetch_pdf(application_id),
            file_name=f"application_{application_id}.pdf",
            mime="application/pdf",
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Could not fetch PDF: {e}")
else:
    st.info("Submit an application to see the filled pages.")

# -------------------------------
# 4) HISTORY
# -------------------------------
st.header("4) Submission History")

with st.expander("View History"):
    if st.button("Load history"):
        hist = get_history()
        if isinstance(hist, list):
            st.table(hist)
        else:
            st.json(hist)

# Footer
st.markdown("---")
st.caption("Suncity's Monarch Residences")
