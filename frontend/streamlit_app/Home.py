
import os
import json
import datetime as dt
import requests
import pandas as pd
import streamlit as st

DEFAULT_BACKEND = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")
if "backend_url" not in st.session_state:
    st.session_state.backend_url = DEFAULT_BACKEND
if "user_id" not in st.session_state:
    st.session_state.user_id = "admin"

st.set_page_config(page_title="Senior Citizen Benefits", layout="wide")
st.title("Senior Citizen Benefits – Admin Console")

with st.sidebar:
    st.header("Settings")
    st.session_state.backend_url = st.text_input(
        "Backend URL",
        value=st.session_state.backend_url,
        help="FastAPI base URL (default http://127.0.0.1:8000)",
    )
    st.session_state.user_id = st.text_input("Staff user id", value=st.session_state.user_id)
    backend = st.session_state.backend_url
    if st.button("Check Health"):
        try:
            r = requests.get(f"{backend}/healthz", timeout=10)
            if r.ok:
                st.success(f"Backend healthy: {r.text}")
            else:
                st.error(f"Health check failed: {r.status_code} {r.text}")
        except requests.RequestException as e:
            st.error(f"Health check error: {e}")

def api(method: str, path: str, **kwargs):
    try:
        r = requests.request(method, f"{backend}{path}", timeout=30, **kwargs)
    except requests.RequestException as e:
        st.error(f"Request error: {e}")
        return None
    if not r.ok:
        try:
            st.error(r.json().get("msg", r.text))
        except ValueError:
            st.error(f"{r.status_code} {r.text}")
        return None
    return r.json()

def show_json(label: str, data):
    st.subheader(label)
    if isinstance(data, (dict, list)):
        st.json(data)
    else:
        try:
            st.json(json.loads(str(data)))
        except ValueError:
            st.code(str(data))

def senior_label(s: dict) -> str:
    return f"#{s['id']} {s['firstname']} {s['lastname']} ({s['barangay']})"

# Notifications
notifications = api("GET", "/notifications", params={"userId": st.session_state.user_id})
if notifications:
    with st.sidebar:
        st.header(f"Notifications ({notifications['unreadCount']} unread)")
        for n in notifications["notifications"][:10]:
            marker = "" if n["isRead"] else "🔵 "
            st.caption(f"{marker}{n['message']}")
        if st.button("Mark all as read"):
            api("PUT", "/notifications/status", json={"userId": st.session_state.user_id})
            st.rerun()

tab_register, tab_seniors, tab_apps, tab_fund, tab_dash = st.tabs(
    ["Register", "Seniors", "Applications", "Fund Ledger", "Dashboard"]
)

# Registration
with tab_register:
    with st.form("register_form", clear_on_submit=False):
        col1, col2, col3 = st.columns(3)
        with col1:
            firstname = st.text_input("First name")
            middlename = st.text_input("Middle name")
            lastname = st.text_input("Last name")
            gender = st.selectbox("Gender", ["male", "female"])
        with col2:
            birthdate = st.date_input("Birthdate", value=dt.date(1955, 1, 1), min_value=dt.date(1890, 1, 1))
            barangay = st.text_input("Barangay")
            purok = st.text_input("Purok")
            email = st.text_input("Email")
        with col3:
            contact_no = st.text_input("Contact number (11 digits)")
            emergency_no = st.text_input("Emergency number (11 digits)")
            contact_person = st.text_input("Contact person")
            contact_relationship = st.text_input("Relationship")
        pwd = st.checkbox("Person with disability")
        low_income = st.checkbox("Low income")
        docs = {
            tag: st.file_uploader(tag.replace("_", " ").title(), type=["pdf", "jpg", "jpeg", "png"], key=f"doc_{tag}")
            for tag in ["birth_certificate", "certificate_of_residency", "government_issued_id",
                        "membership_certificate", "id_photo"]
        }
        submitted = st.form_submit_button("Register Senior")

    if submitted:
        form = {
            "firstname": firstname, "middlename": middlename, "lastname": lastname, "gender": gender,
            "birthdate": birthdate.isoformat(), "barangay": barangay, "purok": purok, "email": email,
            "contact_no": contact_no, "emergency_no": emergency_no, "contact_person": contact_person,
            "contact_relationship": contact_relationship, "pwd": str(pwd).lower(), "low_income": str(low_income).lower(),
        }
        files = [(tag, (f.name, f.getvalue(), f.type or "application/octet-stream")) for tag, f in docs.items() if f]
        result = api("POST", "/seniors", data=form, files=files)
        if result:
            st.success(result["msg"])
            show_json("Registered senior", result["data"])

# Seniors
with tab_seniors:
    col1, col2, col3 = st.columns([2, 1, 1])
    with col1:
        name_filter = st.text_input("Search name, barangay or purok")
    with col2:
        release_filter = st.selectbox("Release status", ["", "Released", "Pending"])
    with col3:
        show_archived = st.checkbox("Show archived")

    if show_archived:
        seniors = api("GET", "/seniors/archived", params={"name": name_filter or None}) or []
    else:
        seniors = api("GET", "/seniors", params={"name": name_filter or None,
                                                 "release_status": release_filter or None}) or []
    if seniors:
        st.dataframe(pd.DataFrame(seniors)[["id", "lastname", "firstname", "age", "gender", "barangay",
                                            "purok", "remark", "released_at", "deleted_at"]],
                     use_container_width=True)
        picked = st.selectbox("Senior", seniors, format_func=senior_label)
        colA, colB, colC = st.columns(3)
        with colA:
            if not show_archived and st.button("Release benefits"):
                result = api("POST", "/seniors/release", json={"seniorId": picked["id"]})
                if result:
                    st.success(result["message"])
        with colB:
            if show_archived:
                if st.button("Restore"):
                    if api("PUT", f"/seniors/{picked['id']}/restore"):
                        st.rerun()
            elif st.button("Archive"):
                if api("DELETE", f"/seniors/{picked['id']}"):
                    st.rerun()
        with colC:
            if show_archived and st.button("Delete permanently"):
                if api("DELETE", f"/seniors/{picked['id']}", params={"permanent": True}):
                    st.rerun()
    else:
        st.info("No seniors found.")

# Applications
with tab_apps:
    benefits = api("GET", "/benefits") or []
    with st.expander("Add benefit"):
        with st.form("benefit_form"):
            b_name = st.text_input("Benefit name")
            b_desc = st.text_area("Description")
            b_reqs = st.text_area("Requirements (one per line)")
            if st.form_submit_button("Create benefit"):
                result = api("POST", "/benefits", json={
                    "name": b_name, "description": b_desc,
                    "requirements": [r for r in b_reqs.splitlines() if r.strip()],
                })
                if result:
                    st.success(result["msg"])

    if benefits:
        active = api("GET", "/seniors") or []
        with st.form("apply_form"):
            benefit = st.selectbox("Benefit", benefits, format_func=lambda b: b["name"])
            selected = st.multiselect("Seniors", active, format_func=senior_label)
            if st.form_submit_button("Submit applications"):
                result = api("POST", "/benefits/application", json={
                    "benefit_id": benefit["id"], "selected_senior_ids": [s["id"] for s in selected],
                })
                if result:
                    st.success(f"{result['msg']} ({result['created']} created)")

    statuses = api("GET", "/benefits/application/status") or []
    categories = api("GET", "/categories") or []
    status_filter = st.multiselect("Status", [s["id"] for s in statuses])
    applications = api("GET", "/benefits/application",
                       params={"status": ",".join(status_filter) or None}) or []
    for a in applications:
        senior = a["senior"]
        with st.expander(f"#{a['id']} {senior['firstname']} {senior['lastname']} – {a['benefit']['name']} "
                         f"[{a['status']}] {a['category'] or ''}"):
            col1, col2 = st.columns(2)
            with col1:
                new_status = st.selectbox("Status", [s["id"] for s in statuses], key=f"status_{a['id']}",
                                          index=[s["id"] for s in statuses].index(a["status"]))
                reason = st.text_input("Rejection reason", value=a["rejection_reason"] or "", key=f"reason_{a['id']}")
                if st.button("Update status", key=f"upd_{a['id']}"):
                    body = {"application_id": a["id"], "status": new_status}
                    if new_status == "REJECT":
                        body["rejection_reason"] = reason
                    if api("PUT", "/benefits/application/status", json=body):
                        st.rerun()
            with col2:
                new_category = st.selectbox("Category", [c["name"] for c in categories], key=f"cat_{a['id']}")
                if st.button("Set category", key=f"setcat_{a['id']}"):
                    if api("PUT", "/categories", json={"application_id": a["id"], "category": new_category}):
                        st.rerun()
                if st.button("Derive from age", key=f"derive_{a['id']}"):
                    if api("POST", f"/benefits/application/{a['id']}/derive-category"):
                        st.rerun()

# Fund ledger
with tab_fund:
    fund = api("GET", "/government-fund")
    if fund:
        st.metric("Current balance", f"₱{fund['current_balance']:,.2f}")
    with st.form("fund_form"):
        col1, col2 = st.columns(2)
        with col1:
            f_date = st.date_input("Date", value=dt.date.today())
            f_amount = st.number_input("Amount", min_value=0.0, step=1000.0)
        with col2:
            f_source = st.text_input("From")
            f_desc = st.text_input("Description")
        receipt = st.file_uploader("Receipt", type=["pdf", "jpg", "jpeg", "png"])
        if st.form_submit_button("Add funds"):
            files = [("receipt", (receipt.name, receipt.getvalue(), receipt.type or "application/octet-stream"))] if receipt else []
            result = api("POST", "/fund-history", data={
                "date": f_date.isoformat(), "amount": str(f_amount), "from": f_source, "description": f_desc,
                "availableBalance": str(fund["current_balance"] if fund else 0),
            }, files=files)
            if result:
                st.success(result["msg"])
                st.rerun()

    history = api("GET", "/fund-history") or []
    if history:
        st.subheader("Fund history")
        st.dataframe(pd.DataFrame(history), use_container_width=True)

    st.subheader("Transactions")
    summary = api("GET", "/transactions/summary")
    if summary:
        col1, col2, col3 = st.columns(3)
        col1.metric("Released", f"₱{summary['data']['released']:,.2f}")
        col2.metric("Pending", f"₱{summary['data']['pending']:,.2f}")
        col3.metric("Total", f"₱{summary['data']['total']:,.2f}")
    transactions = api("GET", "/transactions") or []
    if transactions:
        st.dataframe(pd.DataFrame(transactions), use_container_width=True)

# Dashboard
with tab_dash:
    stats = api("GET", "/dashboard/stats")
    if stats:
        data = stats["data"]
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Seniors", data["total_seniors"])
        col2.metric("PWD", data["pwd"])
        col3.metric("Low income", data["low_income"])
        col4.metric("Newly registered", data["newly_registered"])

    col1, col2 = st.columns(2)
    with col1:
        ages = api("GET", "/dashboard/age-distribution")
        if ages:
            st.subheader("Age distribution")
            st.bar_chart(pd.DataFrame(ages["data"]).set_index("ageGroup"))
    with col2:
        cats = api("GET", "/dashboard/categories")
        if cats:
            st.subheader("Categories")
            st.bar_chart(pd.DataFrame(cats["data"]).set_index("category")["count"])

    barangays = api("GET", "/dashboard/barangay-distribution")
    if barangays and barangays["data"]:
        st.subheader("Barangays")
        st.dataframe(pd.DataFrame(barangays["data"]).drop(columns=["categories"]), use_container_width=True)

    view = st.radio("Registration trend", ["monthly", "yearly"], horizontal=True)
    trends = api("GET", "/seniors/registration-trends", params={"view": view})
    if trends:
        st.line_chart(pd.DataFrame(trends["data"]).set_index("label"))

    st.subheader("Exports")
    cols = st.columns(5)
    for col, report in zip(cols, ["seniors", "released", "applications", "fund-history", "transactions"]):
        with col:
            try:
                r = requests.get(f"{backend}/reports/{report}.csv", timeout=30)
            except requests.RequestException as e:
                st.error(f"Export error: {e}")
                continue
            if r.ok:
                st.download_button(report, r.content, file_name=f"{report}.csv", mime="text/csv")
