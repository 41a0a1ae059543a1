# client/main.py

import streamlit as st
from dotenv import load_dotenv
from client.services.api import list_monsters, reset_user_password
from client.services.validation import IS_ADMIN_KEY, TOKEN_KEY, USERNAME_KEY
from client.ui.login import login_page, logout, stored_credentials


load_dotenv()


def on_auth_success(username, token):
    st.session_state["username"] = username
    st.session_state["access_token"] = token
    st.session_state["is_admin"] = (stored_credentials() or {}).get(IS_ADMIN_KEY) == "true"
    st.rerun()


def admin_reset_form():
    with st.sidebar.expander("Reset a user password"):
        with st.form("admin_reset_form"):
            target = st.text_input("Username")
            new_password = st.text_input("New password", type="password")
            admin_password = st.text_input("Your admin password", type="password")
            submitted = st.form_submit_button("Reset")
        if submitted:
            status_code, body = reset_user_password(
                target, new_password, st.session_state["username"], admin_password
            )
            if status_code == 200:
                st.success("Password has been reset")
            else:
                st.error(body.get("error", f"Error: {status_code}"))


def main_page():
    st.title(f"Welcome, {st.session_state['username']}!")

    if st.session_state.get("is_admin"):
        st.sidebar.markdown("🛡️ Admin")
    if st.sidebar.button("🔓 Logout"):
        logout()
        st.session_state.clear()
        st.rerun()

    if st.session_state.get("is_admin"):
        admin_reset_form()

    st.subheader("Monster inventory")
    monsters = list_monsters(st.session_state["username"])
    if not monsters:
        st.info("No monsters yet.")
    for monster in monsters:
        with st.expander(f"{monster['name']} ({monster['element']})"):
            if monster.get("imageUrl"):
                st.image(monster["imageUrl"])
            if monster.get("description"):
                st.write(monster["description"])
            st.caption(f"Created {monster.get('createdAt')}")


if "access_token" not in st.session_state:
    credentials = stored_credentials()
    if credentials:
        st.session_state["username"] = credentials[USERNAME_KEY]
        st.session_state["access_token"] = credentials[TOKEN_KEY]
        st.session_state["is_admin"] = credentials[IS_ADMIN_KEY] == "true"

if "access_token" not in st.session_state:
    login_page(on_auth_success)
else:
    main_page()
