# client/services/api.py

import os
import requests
from dotenv import load_dotenv


load_dotenv()

# Base URL of the FastAPI backend
BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:4000")

HEALTH_TIMEOUT = 3


# -------------------------------
# Connectivity
# -------------------------------

def check_backend(timeout=HEALTH_TIMEOUT) -> bool:
    """
    Probes the backend health endpoint; any error or non-2xx answer counts as offline.
    """
    try:
        res = requests.get(f"{BACKEND_URL}/api/health", timeout=timeout)
        return res.ok
    except requests.RequestException:
        return False


# -------------------------------
# Authentication-related functions
# -------------------------------

def parse_response(res):
    """
    Returns the decoded JSON body, or None when the body is not JSON.
    An empty body decodes to an empty dict.
    """
    if not res.text:
        return {}
    try:
        return res.json()
    except ValueError:
        return None


def submit_auth(mode, username, password):
    """
    Posts credentials to the login or register endpoint.
    Returns the raw response so the caller can look at the status code.
    """
    endpoint = "/api/auth/login" if mode == "login" else "/api/auth/register"
    return requests.post(
        f"{BACKEND_URL}{endpoint}",
        json={"username": username.strip(), "password": password},
    )


def reset_user_password(username, new_password, admin_username, admin_password):
    res = requests.post(
        f"{BACKEND_URL}/api/auth/admin/reset-password",
        json={
            "username": username,
            "newPassword": new_password,
            "adminUsername": admin_username,
            "adminPassword": admin_password,
        },
    )
    return res.status_code, parse_response(res) or {}


# -------------------------
# Save slots
# -------------------------

def load_save(username, slot):
    """
    Returns the stored save document, or None when the slot is empty.
    """
    res = requests.get(f"{BACKEND_URL}/api/saves/{username}/{slot}")
    if res.status_code == 200:
        return res.json().get("data")
    return None


def store_save(username, slot, data):
    try:
        res = requests.post(f"{BACKEND_URL}/api/saves/{username}/{slot}", json=data)
        if res.status_code == 200:
            return {"status": "success"}
        body = parse_response(res) or {}
        return {"status": "error", "message": body.get("error", f"Error: {res.status_code}")}
    except requests.RequestException as e:
        return {"status": "error", "message": str(e)}


# -------------------------
# Monster inventory
# -------------------------

def save_monster(username, monster):
    try:
        res = requests.post(f"{BACKEND_URL}/api/monsters/{username}", json=monster)
        if res.status_code in (200, 201):
            return {"status": "success", "monsterId": res.json().get("monsterId")}
        body = parse_response(res) or {}
        return {"status": "error", "message": body.get("error", f"Error: {res.status_code}")}
    except requests.RequestException as e:
        return {"status": "error", "message": str(e)}


def list_monsters(username):
    """
    Lists the user's monsters, newest first.
    """
    try:
        res = requests.get(f"{BACKEND_URL}/api/monsters/{username}")
        if res.status_code == 200:
            return res.json().get("monsters", [])
        return []
    except requests.RequestException:
        return []
