# client/ui/login.py

import os
import time
import requests
import streamlit as st
from dotenv import load_dotenv
from streamlit_cookies_manager import EncryptedCookieManager
from client.services.api import BACKEND_URL, check_backend, parse_response, submit_auth
from client.services.validation import (
    IS_ADMIN_KEY,
    MODE_LABELS,
    TOKEN_KEY,
    USER_ID_KEY,
    USERNAME_KEY,
    interpret_auth_response,
    validate_form,
)

load_dotenv()

COOKIE_PASSWORD = os.getenv("COOKIE_PASSWORD")
SUCCESS_DELAY = 0.5

cookies = EncryptedCookieManager(prefix="genmon/", password=COOKIE_PASSWORD)
if not cookies.ready():
    st.stop()


def stored_credentials():
    if cookies.get(TOKEN_KEY) and cookies.get(USERNAME_KEY):
        return {key: cookies.get(key) for key in (USERNAME_KEY, TOKEN_KEY, USER_ID_KEY, IS_ADMIN_KEY)}
    return None


def logout():
    for key in (USERNAME_KEY, TOKEN_KEY, USER_ID_KEY, IS_ADMIN_KEY):
        if key in cookies:
            del cookies[key]
    cookies.save()


def switch_mode():
    st.session_state["auth_mode"] = "register" if st.session_state["auth_mode"] == "login" else "login"
    st.session_state["auth_error"] = None
    st.session_state["auth_success"] = None
    st.session_state.pop("auth_password", None)
    st.session_state.pop("auth_confirm", None)


def show_connection_status():
    connected = st.session_state.get("backend_connected")
    if connected is None:
        return
    if connected:
        st.caption("🟢 Connected")
    else:
        st.caption("🔴 Not connected")
        st.warning(f"Cannot reach the backend server ({BACKEND_URL}), make sure it is running.")


def login_page(on_auth_success):
    """
    Login / registration panel.
    `on_auth_success(username, token)` is called once credentials are stored.
    """
    st.session_state.setdefault("auth_mode", "login")
    st.session_state.setdefault("auth_error", None)
    st.session_state.setdefault("auth_success", None)
    if "backend_connected" not in st.session_state:
        st.session_state["backend_connected"] = check_backend()

    mode = st.session_state["auth_mode"]
    st.title("🔐 Sign in" if mode == "login" else "📝 Create account")
    show_connection_status()
    st.write(
        "Enter your account details to continue playing."
        if mode == "login"
        else "Create a new account to start your adventure."
    )

    with st.form("auth_form"):
        username = st.text_input("Username", key="auth_username")
        password = st.text_input("Password", type="password", key="auth_password")
        confirm_password = ""
        if mode == "register":
            confirm_password = st.text_input("Confirm password", type="password", key="auth_confirm")
        submitted = st.form_submit_button("Login" if mode == "login" else "Register")

    if submitted:
        handle_submit(mode, username, password, confirm_password, on_auth_success)

    if st.session_state["auth_error"]:
        st.error(f"❌ {st.session_state['auth_error']}")
    if st.session_state["auth_success"]:
        st.success(f"✅ {st.session_state['auth_success']}")

    st.button(
        "No account yet? Register" if mode == "login" else "Already registered? Log in",
        on_click=switch_mode,
    )


def handle_submit(mode, username, password, confirm_password, on_auth_success):
    st.session_state["auth_error"] = None
    st.session_state["auth_success"] = None

    if st.session_state.get("backend_connected") is False:
        st.session_state["auth_error"] = (
            f"Cannot reach the backend server ({BACKEND_URL}). Make sure it is running."
        )
        return

    error = validate_form(mode, username, password, confirm_password)
    if error:
        st.session_state["auth_error"] = error
        return

    with st.spinner(f"{MODE_LABELS[mode]} in progress..."):
        try:
            res = submit_auth(mode, username, password)
        except requests.ConnectionError:
            st.session_state["auth_error"] = (
                f"Cannot connect to the server ({BACKEND_URL}). Make sure it is running."
            )
            return
        except requests.RequestException as e:
            st.session_state["auth_error"] = f"Network error: {e}"
            return

    error, credentials = interpret_auth_response(mode, res.status_code, parse_response(res), res.text)
    if error:
        st.session_state["auth_error"] = error
        return

    for key, value in credentials.items():
        cookies[key] = value
    cookies.save()

    st.success(f"✅ {MODE_LABELS[mode]} successful!")
    time.sleep(SUCCESS_DELAY)
    on_auth_success(credentials[USERNAME_KEY], credentials[TOKEN_KEY])
