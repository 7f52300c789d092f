# frontend/test_api_client.py
# Unit tests for the API client (no Streamlit runtime, no network)

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests

import frontend.api_client as api_client
import frontend.auth as auth
import frontend.config as config


@pytest.fixture
def fake_st(monkeypatch):
    """Stand-in for the streamlit module: plain dict session state, recorded messages."""
    st = SimpleNamespace(session_state={}, error=MagicMock(), warning=MagicMock())
    monkeypatch.setattr(api_client, "st", st)
    monkeypatch.setattr(auth, "st", st)
    monkeypatch.setattr(api_client, "get_api_base_url", lambda: "http://api.test")
    return st


@pytest.fixture
def http(monkeypatch):
    request = MagicMock()
    monkeypatch.setattr(api_client.requests, "request", request)
    return request


def response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    return resp


def test_build_search_params_drops_empty_filters():
    params = api_client.build_search_params(
        keyword="  lake ",
        price_min=None,
        price_max=500000,
        beds=0,
        property_type="Any",
        sort="-price",
        page=2,
        page_size=10,
    )
    assert params == {"limit": 10, "skip": 20, "keyword": "lake", "priceMax": 500000, "sort": "-price"}


def test_build_search_params_property_type():
    assert api_client.build_search_params(property_type="Condo")["propertyType"] == "Condo"


@pytest.mark.parametrize(
    "method, path, public",
    [
        ("GET", "/listings", True),
        ("GET", "/listings/abc", True),
        ("GET", "/listings/agent/my-listings", False),
        ("POST", "/auth/login", True),
        ("POST", "/leads", True),
        ("POST", "/listings", False),
        ("PATCH", "/leads/abc", False),
    ],
)
def test_public_endpoints(method, path, public):
    assert api_client.is_public_endpoint(method, path) is public


def test_error_message_reads_detail():
    assert api_client.error_message(response(400, {"status": "fail", "detail": "Missing required fields."})) == "Missing required fields."
    assert api_client.error_message(None, "offline") == "offline"

    broken = MagicMock()
    broken.json.side_effect = ValueError("not json")
    assert api_client.error_message(broken, "fallback") == "fallback"


def test_protected_call_attaches_bearer_token(fake_st, http):
    fake_st.session_state["auth_token"] = "tok123"
    http.return_value = response(200, {"listings": [{"id": "l1"}]})

    assert api_client.my_listings() == [{"id": "l1"}]

    method, url = http.call_args.args
    assert (method, url) == ("GET", "http://api.test/listings/agent/my-listings")
    assert http.call_args.kwargs["headers"]["Authorization"] == "Bearer tok123"


def test_public_call_never_sends_token(fake_st, http):
    fake_st.session_state["auth_token"] = "tok123"
    http.return_value = response(200, {"listings": []})

    api_client.search_listings({"limit": 10})

    assert "Authorization" not in http.call_args.kwargs["headers"]
    assert http.call_args.kwargs["params"] == {"limit": 10}


def test_expired_session_clears_auth(fake_st, http):
    fake_st.session_state.update(auth_token="stale", current_user={"role": "Agent"})
    http.return_value = response(401, {"status": "fail", "detail": "Your session has expired. Please log in again."})

    assert api_client.my_leads() == []
    assert fake_st.session_state["auth_token"] is None
    assert fake_st.session_state["nav_page"] == "Login"
    fake_st.warning.assert_called_once()


def test_connection_error_returns_none(fake_st, http):
    http.side_effect = requests.exceptions.ConnectionError("refused")
    assert api_client.get_listing("abc") is None
    fake_st.error.assert_called_once()


def test_update_listing_uses_json_without_files(fake_st, http):
    fake_st.session_state["auth_token"] = "tok"
    http.return_value = response(200, {"listing": {}})

    api_client.update_listing("l1", {"price": 1}, images_to_delete=["realestate/l1/a"])

    kwargs = http.call_args.kwargs
    assert kwargs["json"] == {"price": 1, "imagesToDelete": ["realestate/l1/a"]}
    assert kwargs["files"] is None


def test_update_listing_uses_multipart_with_files(fake_st, http):
    fake_st.session_state["auth_token"] = "tok"
    http.return_value = response(200, {"listing": {}})

    api_client.update_listing(
        "l1",
        {"title": "New"},
        images=[("a.jpg", b"data", "image/jpeg")],
        images_to_delete=["x", "y"],
    )

    kwargs = http.call_args.kwargs
    assert kwargs["json"] is None
    assert kwargs["data"] == [("title", "New"), ("imagesToDelete", "x"), ("imagesToDelete", "y")]
    assert kwargs["files"] == [("images", ("a.jpg", b"data", "image/jpeg"))]


def test_submit_lead_payload(fake_st, http):
    http.return_value = response(201, {"lead": {"id": "lead1"}})

    resp = api_client.submit_lead("l1", "Bob", "bob@example.com", "Hello")

    assert resp.status_code == 201
    assert http.call_args.kwargs["json"] == {"listingId": "l1", "name": "Bob", "email": "bob@example.com", "message": "Hello"}


def test_delete_listing_reports_success(fake_st, http):
    fake_st.session_state["auth_token"] = "tok"
    http.return_value = response(204)
    assert api_client.delete_listing("l1") is True

    http.return_value = response(403, {"status": "fail", "detail": "nope"})
    assert api_client.delete_listing("l1") is False
    fake_st.error.assert_called_once()


@pytest.mark.parametrize(
    "url, env",
    [
        ("http://127.0.0.1:8000", "local"),
        ("https://api.example.com", "production"),
        ("https://staging-api.example.com", "staging"),
    ],
)
def test_validate_api_url_accepts(url, env):
    config.validate_api_url(url, env)


@pytest.mark.parametrize(
    "url, env",
    [
        ("", "local"),
        ("api.example.com", "local"),
        ("http://api.example.com", "production"),
        ("https://localhost:8000", "staging"),
    ],
)
def test_validate_api_url_rejects(url, env):
    with pytest.raises(ValueError):
        config.validate_api_url(url, env)


def test_bad_backend_url_is_reported_not_raised(monkeypatch):
    st = SimpleNamespace(session_state={}, error=MagicMock(), warning=MagicMock())
    monkeypatch.setattr(api_client, "st", st)
    monkeypatch.setattr(auth, "st", st)

    def bad_url():
        raise ValueError("BACKEND_URL must use HTTPS")

    monkeypatch.setattr(api_client, "get_api_base_url", bad_url)

    assert api_client.api_request("GET", "/listings") is None
    st.error.assert_called_once()
