# frontend/app.py
# Real-estate listings: browse/search, listing detail + contact form,
# login/signup and the agent dashboard (listings, new listing, leads).
#
# Run from repo root: streamlit run frontend/app.py

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from frontend.api_client import (
    build_search_params,
    create_listing,
    delete_listing,
    error_message,
    get_listing,
    login,
    my_leads,
    my_listings,
    search_listings,
    signup,
    submit_lead,
    update_lead_status,
    update_listing,
)
from frontend.auth import (
    clear_auth,
    get_current_user,
    init_auth_state,
    is_agent,
    is_authenticated,
    require_auth,
    set_auth,
)
from frontend.config import IS_DEV, LEAD_STATUSES, LISTING_STATUSES, PAGE_SIZE, PROPERTY_TYPES, SORT_OPTIONS

st.set_page_config(page_title="Real Estate Listings", page_icon="🏠", layout="wide")


def init_state() -> None:
    ss = st.session_state
    init_auth_state()
    ss.setdefault("nav_page", "Browse")
    ss.setdefault("selected_listing_id", None)
    ss.setdefault("search_page", 0)


init_state()

ss = st.session_state


# --------------------------------------------------------------------
# Navigation helper (single source of truth)
# --------------------------------------------------------------------
def go_to(page: str) -> None:
    st.session_state["nav_page"] = page
    st.rerun()


def open_listing(listing_id: str) -> None:
    ss["selected_listing_id"] = listing_id
    ss.pop("_listing_detail", None)
    go_to("Listing")


# --------------------------------------------------------------------
# Formatting
# --------------------------------------------------------------------
def format_money(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"${value:,.0f}"


def listing_headline(listing: Dict[str, Any]) -> str:
    beds = listing.get("bedrooms", 0)
    baths = listing.get("bathrooms", 0)
    sq_ft = listing.get("sqFt", 0)
    return f"{beds} bd · {baths:g} ba · {sq_ft:,} sqft · {listing.get('propertyType', '')}"


def cover_image(listing: Dict[str, Any]) -> Optional[str]:
    images = sorted(listing.get("images") or [], key=lambda image: image.get("orderIndex", 0))
    return images[0]["url"] if images else None


# --------------------------------------------------------------------
# Sidebar
# --------------------------------------------------------------------
def _on_nav_change() -> None:
    ss["nav_page"] = ss["_nav_radio"]


def render_sidebar() -> None:
    with st.sidebar:
        st.title("🏠 Listings")

        pages = ["Browse"]
        if is_authenticated() and is_agent():
            pages += ["My Listings", "New Listing", "Leads"]
        if not is_authenticated():
            pages += ["Login"]

        current = ss.get("nav_page")
        index = pages.index(current) if current in pages else None
        st.radio("Navigate", pages, index=index, key="_nav_radio", on_change=_on_nav_change)

        st.divider()
        user = get_current_user()
        if user:
            st.caption(f"Signed in as {user.get('firstName', '')} {user.get('lastName', '')}")
            st.caption(f"Role: {user.get('role', '-')}")
            if st.button("Log out"):
                clear_auth()
                go_to("Browse")

        if IS_DEV:
            st.caption(f"page={ss.get('nav_page')}")


# --------------------------------------------------------------------
# Browse / search
# --------------------------------------------------------------------
def render_browse() -> None:
    st.header("Find your next home")

    with st.form("search_form"):
        keyword = st.text_input("Keyword", placeholder="City, street, or anything in the description")
        col1, col2, col3, col4 = st.columns(4)
        price_min = col1.number_input("Min price", min_value=0, step=10000, value=0)
        price_max = col2.number_input("Max price", min_value=0, step=10000, value=0)
        beds = col3.number_input("Min beds", min_value=0, step=1, value=0)
        baths = col4.number_input("Min baths", min_value=0.0, step=0.5, value=0.0)
        col5, col6 = st.columns(2)
        property_type = col5.selectbox("Property type", ["Any"] + PROPERTY_TYPES)
        sort_label = col6.selectbox("Sort by", list(SORT_OPTIONS))
        if st.form_submit_button("Search"):
            ss["search_page"] = 0
            ss["search_filters"] = {
                "keyword": keyword,
                "price_min": price_min or None,
                "price_max": price_max or None,
                "beds": beds or None,
                "baths": baths or None,
                "property_type": property_type,
                "sort": SORT_OPTIONS[sort_label],
            }

    filters = ss.get("search_filters", {})
    params = build_search_params(page=ss["search_page"], **filters)
    listings = search_listings(params)

    if not listings:
        st.info("No listings match your search.")
    for listing in listings:
        render_listing_card(listing)

    prev_col, page_col, next_col = st.columns([1, 2, 1])
    if prev_col.button("← Previous", disabled=ss["search_page"] == 0):
        ss["search_page"] -= 1
        st.rerun()
    page_col.caption(f"Page {ss['search_page'] + 1}")
    if next_col.button("Next →", disabled=len(listings) < PAGE_SIZE):
        ss["search_page"] += 1
        st.rerun()


def render_listing_card(listing: Dict[str, Any]) -> None:
    with st.container(border=True):
        image_col, info_col = st.columns([1, 3])
        image = cover_image(listing)
        if image:
            image_col.image(image, use_container_width=True)
        info_col.subheader(listing["title"])
        info_col.write(f"**{format_money(listing.get('price'))}** · {listing.get('city')}, {listing.get('state')}")
        info_col.caption(listing_headline(listing))
        if info_col.button("View details", key=f"view_{listing['id']}"):
            open_listing(listing["id"])


# --------------------------------------------------------------------
# Listing detail + contact form
# --------------------------------------------------------------------
def render_listing_detail() -> None:
    listing_id = ss.get("selected_listing_id")
    if st.button("← Back to listings"):
        go_to("Browse")
    if not listing_id:
        st.info("Select a listing first.")
        return

    # Fetched once per visit: every GET counts as a view
    listing = ss.get("_listing_detail")
    if listing is None or listing.get("id") != listing_id:
        listing = get_listing(listing_id)
        ss["_listing_detail"] = listing
    if listing is None:
        st.error("This listing is no longer available.")
        return

    st.header(listing["title"])
    st.subheader(format_money(listing.get("price")))
    st.write(f"{listing['address']}, {listing['city']}, {listing['state']} {listing['zipCode']}")
    st.caption(f"{listing_headline(listing)} · Built {listing.get('yearBuilt')} · {listing.get('viewsCount', 0)} views")

    images = sorted(listing.get("images") or [], key=lambda image: image.get("orderIndex", 0))
    if images:
        st.image([image["url"] for image in images], caption=[image.get("altText") or "" for image in images], width=320)

    st.write(listing["description"])
    st.map(pd.DataFrame([{"lat": listing["latitude"], "lon": listing["longitude"]}]))

    agent = listing.get("agent") or {}
    if agent:
        st.markdown(f"**Listed by** {agent.get('firstName', '')} {agent.get('lastName', '')}")

    st.divider()
    st.subheader("Contact the agent")
    user = get_current_user() or {}
    with st.form("lead_form", clear_on_submit=True):
        name = st.text_input("Name", value=f"{user.get('firstName', '')} {user.get('lastName', '')}".strip())
        email = st.text_input("Email", value=user.get("email", ""))
        phone = st.text_input("Phone (optional)")
        message = st.text_area("Message", value=f"I'm interested in {listing['title']}.")
        if st.form_submit_button("Send inquiry"):
            if not name or not email or not message:
                st.error("Please fill in name, email and message.")
                return
            resp = submit_lead(listing["id"], name, email, message, phone)
            if resp is not None and resp.status_code == 201:
                st.success("Thanks! The agent will be in touch.")
            elif resp is not None:
                st.error(error_message(resp, "Could not send your inquiry."))


# --------------------------------------------------------------------
# Login / signup
# --------------------------------------------------------------------
def _finish_auth(resp) -> None:
    data = resp.json()
    set_auth(data["token"], data["user"])
    go_to("My Listings" if data["user"].get("role") in ("Agent", "Admin") else "Browse")


def render_login() -> None:
    login_tab, signup_tab = st.tabs(["Login", "Sign up"])

    with login_tab:
        with st.form("login_form"):
            email = st.text_input("Email", key="login_email")
            password = st.text_input("Password", type="password", key="login_password")
            if st.form_submit_button("Login"):
                if not email or not password:
                    st.error("Please enter email and password.")
                    return
                resp = login(email, password)
                if resp is None:
                    return
                if resp.status_code == 200:
                    _finish_auth(resp)
                else:
                    st.error(error_message(resp, "Login failed."))

    with signup_tab:
        with st.form("signup_form"):
            col1, col2 = st.columns(2)
            first_name = col1.text_input("First name")
            last_name = col2.text_input("Last name")
            email = st.text_input("Email", key="signup_email")
            phone = st.text_input("Phone (optional)")
            password = st.text_input("Password (min 6 characters)", type="password", key="signup_password")
            is_agent_account = st.checkbox("I am a real-estate agent")
            if st.form_submit_button("Create account"):
                payload = {
                    "email": email,
                    "password": password,
                    "firstName": first_name,
                    "lastName": last_name,
                    "phone": phone or None,
                    "role": "Agent" if is_agent_account else "Buyer",
                }
                resp = signup(payload)
                if resp is None:
                    return
                if resp.status_code == 201:
                    _finish_auth(resp)
                else:
                    st.error(error_message(resp, "Signup failed."))


# --------------------------------------------------------------------
# Agent dashboard
# --------------------------------------------------------------------
def _listing_form_fields(prefix: str, listing: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Render listing inputs and return wire-format (camelCase) values."""
    listing = listing or {}
    title = st.text_input("Title", value=listing.get("title", ""), key=f"{prefix}_title")
    description = st.text_area("Description", value=listing.get("description", ""), key=f"{prefix}_description")
    col1, col2, col3 = st.columns(3)
    price = col1.number_input("Price", min_value=0.0, step=1000.0, value=float(listing.get("price", 0)), key=f"{prefix}_price")
    property_type = col2.selectbox(
        "Property type",
        PROPERTY_TYPES,
        index=PROPERTY_TYPES.index(listing["propertyType"]) if listing.get("propertyType") in PROPERTY_TYPES else 0,
        key=f"{prefix}_type",
    )
    year_built = col3.number_input("Year built", min_value=1800, max_value=2100, step=1, value=int(listing.get("yearBuilt", 2000)), key=f"{prefix}_year")
    address = st.text_input("Street address", value=listing.get("address", ""), key=f"{prefix}_address")
    col4, col5, col6 = st.columns(3)
    city = col4.text_input("City", value=listing.get("city", ""), key=f"{prefix}_city")
    state = col5.text_input("State", value=listing.get("state", ""), key=f"{prefix}_state")
    zip_code = col6.text_input("Zip code", value=listing.get("zipCode", ""), key=f"{prefix}_zip")
    col7, col8, col9 = st.columns(3)
    bedrooms = col7.number_input("Bedrooms", min_value=0, step=1, value=int(listing.get("bedrooms", 0)), key=f"{prefix}_beds")
    bathrooms = col8.number_input("Bathrooms", min_value=0.0, step=0.5, value=float(listing.get("bathrooms", 0)), key=f"{prefix}_baths")
    sq_ft = col9.number_input("Square feet", min_value=0, step=50, value=int(listing.get("sqFt", 0)), key=f"{prefix}_sqft")
    col10, col11 = st.columns(2)
    latitude = col10.number_input("Latitude", value=float(listing.get("latitude", 0.0)), format="%.6f", key=f"{prefix}_lat")
    longitude = col11.number_input("Longitude", value=float(listing.get("longitude", 0.0)), format="%.6f", key=f"{prefix}_lon")
    is_featured = st.checkbox("Featured", value=bool(listing.get("isFeatured", False)), key=f"{prefix}_featured")
    return {
        "title": title,
        "description": description,
        "price": price,
        "propertyType": property_type,
        "yearBuilt": year_built,
        "address": address,
        "city": city,
        "state": state,
        "zipCode": zip_code,
        "bedrooms": bedrooms,
        "bathrooms": bathrooms,
        "sqFt": sq_ft,
        "latitude": latitude,
        "longitude": longitude,
        "isFeatured": str(is_featured).lower(),
    }


def _uploads(files) -> List[tuple]:
    return [(f.name, f.getvalue(), f.type or "application/octet-stream") for f in files or []]


def render_new_listing() -> None:
    if not require_auth():
        return
    st.header("New listing")
    st.caption("New listings start as Draft. Publish them from My Listings.")
    with st.form("new_listing_form", clear_on_submit=False):
        fields = _listing_form_fields("new")
        files = st.file_uploader("Photos (up to 5, 10 MB each)", type=["jpg", "jpeg", "png", "webp"], accept_multiple_files=True)
        if st.form_submit_button("Create listing"):
            resp = create_listing(fields, _uploads(files))
            if resp is None:
                return
            if resp.status_code == 201:
                st.success("Listing created as Draft.")
                go_to("My Listings")
            else:
                st.error(error_message(resp, "Could not create listing."))


def render_my_listings() -> None:
    if not require_auth():
        return
    st.header("My listings")
    listings = my_listings()
    if not listings:
        st.info("You have no listings yet.")
        return

    for listing in listings:
        with st.expander(f"{listing['title']} · {listing['status']} · {format_money(listing.get('price'))}"):
            st.caption(f"{listing.get('viewsCount', 0)} views · {listing.get('leadsCount', 0)} leads")
            with st.form(f"edit_{listing['id']}"):
                status = st.selectbox("Status", LISTING_STATUSES, index=LISTING_STATUSES.index(listing["status"]), key=f"status_{listing['id']}")
                fields = _listing_form_fields(f"edit_{listing['id']}", listing)
                images = listing.get("images") or []
                to_delete = st.multiselect(
                    "Remove photos",
                    [image["externalId"] for image in images],
                    format_func=lambda external_id: next(
                        (image.get("altText") or external_id for image in images if image["externalId"] == external_id),
                        external_id,
                    ),
                    key=f"delete_images_{listing['id']}",
                )
                new_files = st.file_uploader("Add photos", type=["jpg", "jpeg", "png", "webp"], accept_multiple_files=True, key=f"files_{listing['id']}")
                if st.form_submit_button("Save changes"):
                    fields["status"] = status
                    resp = update_listing(listing["id"], fields, _uploads(new_files), to_delete)
                    if resp is not None and resp.status_code == 200:
                        st.success("Saved.")
                        st.rerun()
                    elif resp is not None:
                        st.error(error_message(resp, "Could not save listing."))

            if st.button("Delete listing", key=f"delete_{listing['id']}", type="secondary"):
                if delete_listing(listing["id"]):
                    st.success("Listing deleted.")
                    st.rerun()


def render_leads() -> None:
    if not require_auth():
        return
    st.header("Leads")
    leads = my_leads()
    if not leads:
        st.info("No leads yet.")
        return

    table = pd.DataFrame([
        {
            "Received": lead.get("createdAt", "")[:16].replace("T", " "),
            "Listing": (lead.get("listing") or {}).get("title", "(deleted listing)"),
            "Name": lead["name"],
            "Email": lead["email"],
            "Phone": lead.get("phone") or "",
            "Status": lead["status"],
        }
        for lead in leads
    ])
    st.dataframe(table, use_container_width=True, hide_index=True)

    for lead in leads:
        with st.expander(f"{lead['name']} · {(lead.get('listing') or {}).get('title', '')} · {lead['status']}"):
            st.write(lead["message"])
            new_status = st.selectbox("Status", LEAD_STATUSES, index=LEAD_STATUSES.index(lead["status"]), key=f"lead_status_{lead['id']}")
            if st.button("Update status", key=f"lead_update_{lead['id']}"):
                resp = update_lead_status(lead["id"], new_status)
                if resp is not None and resp.status_code == 200:
                    st.success("Status updated.")
                    st.rerun()
                elif resp is not None:
                    st.error(error_message(resp, "Could not update lead."))


# --------------------------------------------------------------------
# Main
# --------------------------------------------------------------------
def main() -> None:
    render_sidebar()

    nav_page = ss.get("nav_page", "Browse")
    if nav_page == "Browse":
        render_browse()
    elif nav_page == "Listing":
        render_listing_detail()
    elif nav_page == "Login":
        render_login()
    elif nav_page == "My Listings":
        render_my_listings()
    elif nav_page == "New Listing":
        render_new_listing()
    elif nav_page == "Leads":
        render_leads()
    else:
        ss["nav_page"] = "Browse"
        render_browse()


if __name__ == "__main__":
    main()
