"""
Helpers for generating signed internal auth headers in tests.
"""
import hashlib
import hmac
import os
import time


def build_internal_auth_headers(method: str, path_with_query: str, user_id: str) -> dict[str, str]:
    """
    Build signed headers accepted by the backend internal auth middleware.
    """
    secret = os.getenv("INTERNAL_AUTH_SECRET", "").strip()
    if not secret:
        raise RuntimeError("INTERNAL_AUTH_SECRET is required for backend tests.")

    timestamp = str(int(time.time()))
    payload = "\n".join([method.upper(), path_with_query, user_id, timestamp])
    signature = hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

    return {
        "X-Finance-User-Id": user_id,
        "X-Finance-Timestamp": timestamp,
        "X-Finance-Signature": signature,
    }


class SignedClient:
    """
    Wraps a TestClient so every request is signed for a given user.
    Query strings must be part of the path so they are covered by the signature.
    """

    def __init__(self, client, user_id: str):
        self.client = client
        self.user_id = user_id

    def request(self, method: str, path: str, **kwargs):
        headers = build_internal_auth_headers(method, path, self.user_id)
        headers.update(kwargs.pop("headers", {}))
        return self.client.request(method, path, headers=headers, **kwargs)

    def get(self, path: str, **kwargs):
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs):
        return self.request("POST", path, **kwargs)

    def patch(self, path: str, **kwargs):
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self.request("DELETE", path, **kwargs)
