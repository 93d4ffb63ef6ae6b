# Role: Streamlit transaction simulator.
# - Backend is authoritative (/simulate + /state snapshot).
# - Buttons play the platform: each click sends one intent (with a result code where the flow needs one).

from __future__ import annotations

import json
import uuid
from typing import Any, Dict, List, Optional

import requests
import streamlit as st

BACKEND_URL = "http://127.0.0.1:8000"

SAMPLE_LOCATION: Dict[str, Any] = {
    "postalAddress": {
        "regionCode": "US",
        "postalCode": "94043",
        "administrativeArea": "CA",
        "locality": "Mountain View",
        "addressLines": ["1600 Amphitheatre Parkway"],
        "recipients": ["Jane Doe"],
    }
}


# ----------------------------
# Session helpers
# ----------------------------
def ensure_session() -> None:
    if "session_id" not in st.session_state:
        st.session_state["session_id"] = str(uuid.uuid4())
    if "turns" not in st.session_state:
        st.session_state["turns"] = []
    if "busy" not in st.session_state:
        st.session_state["busy"] = False
    if "snapshot" not in st.session_state:
        st.session_state["snapshot"] = None


def reset_session() -> None:
    st.session_state["session_id"] = str(uuid.uuid4())
    st.session_state["turns"] = []
    st.session_state["snapshot"] = None


# ----------------------------
# Backend calls
# ----------------------------
def send_turn(session_id: str, intent: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    resp = requests.post(
        f"{BACKEND_URL}/simulate",
        json={"session_id": session_id, "intent": intent, "arguments": arguments or {}},
        timeout=30,
    )
    resp.raise_for_status()
    return resp.json()


def fetch_snapshot(session_id: str) -> Optional[Dict[str, Any]]:
    try:
        r = requests.get(f"{BACKEND_URL}/state/{session_id}", timeout=10)
        if r.status_code != 200:
            return None
        return r.json()
    except requests.RequestException:
        return None


# ----------------------------
# Rendering
# ----------------------------
def render_directives(directives: List[Dict[str, Any]]) -> None:
    for d in directives:
        kind = d.get("type")
        if kind == "speech":
            st.write((d.get("text") or d.get("speech") or "").strip())
        elif kind == "suggestions":
            st.caption("Suggestions: " + " · ".join(d.get("titles") or []))
        elif kind == "payload":
            with st.expander(d.get("kind", "payload")):
                st.code(json.dumps(d.get("data"), indent=2), language="json")
        elif kind == "close":
            st.warning(d.get("message", ""))


def render_sidebar() -> None:
    st.sidebar.title("Session")
    st.sidebar.code(st.session_state["session_id"])

    if st.sidebar.button("New session", use_container_width=True, disabled=st.session_state["busy"]):
        reset_session()
        st.rerun()

    st.sidebar.divider()

    snap = st.session_state.get("snapshot")
    if not snap:
        st.sidebar.info("No live session yet (or it was closed).")
        return

    st.sidebar.markdown(f"**Turns:** {snap.get('turn_count')}")
    st.sidebar.markdown(f"**Last intent:** {snap.get('last_intent') or '-'}")
    st.sidebar.markdown("**Contexts**")
    st.sidebar.json(snap.get("contexts") or {})
    st.sidebar.markdown("**Session state**")
    st.sidebar.json(snap.get("session_state") or {})


def render_history() -> None:
    for turn in st.session_state["turns"]:
        with st.chat_message("user"):
            st.write(turn["label"])
        with st.chat_message("assistant"):
            render_directives(turn["directives"])
            st.caption(f"state: {turn['conversation_state']}")


# ----------------------------
# Flow controls
# ----------------------------
def _actions() -> List[Dict[str, Any]]:
    return [
        {"label": "Welcome", "intent": "Default Welcome Intent"},
        {"label": "Merchant Transaction", "intent": "Transaction Merchant"},
        {"label": "Google Pay Transaction", "intent": "Transaction Google"},
        {
            "label": "Requirements OK",
            "intent": "Transaction Check Complete",
            "arguments": {"TRANSACTION_REQUIREMENTS_CHECK_RESULT": {"resultType": "OK"}},
        },
        {"label": "Get Delivery Address", "intent": "Delivery Address"},
        {
            "label": "Address Accepted",
            "intent": "Delivery Address Complete",
            "arguments": {"DELIVERY_ADDRESS_VALUE": {"userDecision": "ACCEPTED", "location": SAMPLE_LOCATION}},
        },
        {"label": "Confirm Transaction", "intent": "Transaction Decision"},
        {
            "label": "Order Accepted",
            "intent": "Transaction Decision Complete",
            "arguments": {
                "TRANSACTION_DECISION_VALUE": {
                    "userDecision": "ORDER_ACCEPTED",
                    "order": {"finalOrder": {"id": "final-order"}},
                }
            },
        },
        {
            "label": "Order Rejected",
            "intent": "Transaction Decision Complete",
            "arguments": {"TRANSACTION_DECISION_VALUE": {"userDecision": "ORDER_REJECTED"}},
        },
    ]


def run_action(action: Dict[str, Any]) -> None:
    session_id = st.session_state["session_id"]
    st.session_state["busy"] = True
    try:
        with st.spinner("Sending..."):
            result = send_turn(session_id, action["intent"], action.get("arguments"))
        st.session_state["turns"].append(
            {
                "label": action["label"],
                "directives": result.get("directives") or [],
                "conversation_state": result.get("conversation_state"),
            }
        )
        st.session_state["snapshot"] = fetch_snapshot(session_id)
    except requests.RequestException:
        st.error("I couldn't reach the backend. Make sure the API is running on http://127.0.0.1:8000.")
    finally:
        st.session_state["busy"] = False


def main() -> None:
    st.set_page_config(page_title="Transaction Simulator", layout="wide")

    st.title("Transaction Simulator")
    st.caption("Walk the merchant / Google Pay transaction flow one intent at a time.")

    ensure_session()
    render_sidebar()
    render_history()

    cols = st.columns(3)
    for i, action in enumerate(_actions()):
        with cols[i % 3]:
            if st.button(action["label"], use_container_width=True, disabled=st.session_state["busy"]):
                run_action(action)
                st.rerun()


if __name__ == "__main__":
    main()
