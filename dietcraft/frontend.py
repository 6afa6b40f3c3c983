import os

import requests
import streamlit as st

# Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
API_DOCS_URL = os.getenv("API_DOCS_URL", f"{API_BASE_URL}/docs")
USER_ID = os.getenv("DIETCRAFT_USER_ID", "demo-dietitian")

HEADERS = {"X-User-Id": USER_ID}


def render_sections(sections) -> None:
    if not sections:
        st.info("No plan content available")
        return

    for section in sections:
        if section.get("title"):
            st.subheader(section["title"])

        table = section.get("meal_table") or {}
        rows = table.get("rows") or []
        if rows:
            show_notes = any(row.get("notes") for row in rows)
            data = []
            for row in rows:
                entry = {"Meal": row["meal"], "Foods": row["foods"], "Portions": row["portions"]}
                if show_notes:
                    entry["Notes"] = row["notes"]
                data.append(entry)
            st.table(data)

        bullets = (section.get("bullet_list") or {}).get("items") or []
        if bullets:
            st.markdown("\n".join(f"- {item}" for item in bullets))

        for paragraph in section.get("paragraphs") or []:
            st.write(paragraph)


st.set_page_config(page_title="DietCraft", layout="wide")

col1, col2 = st.columns([5, 1])
with col1:
    st.title("DietCraft: Client Nutrition Plans")
with col2:
    st.link_button("API Docs", API_DOCS_URL, type="secondary", use_container_width=True)

try:
    usage = requests.get(f"{API_BASE_URL}/api/usage", headers=HEADERS, timeout=10).json()
    st.caption(f"AI generations left today: {usage['remaining']} of {usage['limit']}")
except (requests.exceptions.RequestException, ValueError, KeyError):
    st.caption("Usage information unavailable.")

# Client Section
st.header("Client")
c1, c2, c3 = st.columns(3)
with c1:
    full_name = st.text_input("Full name")
    age = st.text_input("Age")
with c2:
    gender = st.selectbox("Gender", ["", "Female", "Male", "Other"])
    height = st.text_input("Height", placeholder="e.g. 170 cm")
with c3:
    weight = st.text_input("Weight", placeholder="e.g. 68 kg")
    goals = st.text_input("Goals", placeholder="e.g. gradual weight loss")

conditions = st.text_input("Medical conditions (comma separated)")
allergies = st.text_input("Allergies (comma separated)")
raw_input = st.text_area("Dietitian notes", height=120, placeholder="Preferences, routine, constraints...")

if st.button("Generate Plan", type="primary"):
    if not full_name.strip():
        st.warning("Please enter the client's name first.")
    else:
        payload = {
            "client": {
                "full_name": full_name,
                "age": age or None,
                "gender": gender or None,
                "height": height or None,
                "weight": weight or None,
                "goals": goals or None,
                "medical_conditions": [c.strip() for c in conditions.split(",") if c.strip()],
                "allergies": [a.strip() for a in allergies.split(",") if a.strip()],
            },
            "raw_input": raw_input,
        }
        with st.spinner("Writing the nutrition plan..."):
            try:
                response = requests.post(
                    f"{API_BASE_URL}/api/plans/generate", json=payload, headers=HEADERS, timeout=120
                )
                data = response.json()

                if response.status_code == 200:
                    st.success(f"Plan generated. {data['remaining']} of {data['limit']} generations left today.")
                    st.divider()
                    render_sections(data["sections"])

                    st.divider()
                    with st.expander("📋 Raw plan text", expanded=False):
                        st.text(data["generated_plan"])
                else:
                    detail = data.get("detail", data) if isinstance(data, dict) else {}
                    st.error(detail.get("message") or f"Error {response.status_code}")

            except requests.exceptions.ConnectionError:
                st.error("Could not connect to the API. Is the backend running? (`uvicorn dietcraft.main:app`)")
            except ValueError:
                st.error("The API returned an unexpected response.")
