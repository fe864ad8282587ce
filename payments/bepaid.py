# payments/bepaid.py
"""Minimal bePaid API client (ERIP bills)."""
import requests


class BePaidError(Exception):
    def __init__(self, message, http_body=None, status_code=None):
        super().__init__(message)
        self.http_body = http_body
        self.status_code = status_code


class BePaidClient:
    def __init__(self, base_url, shop_id, secret, timeout=10):
        if not base_url or not shop_id or not secret:
            raise BePaidError("bePaid base URL / shop id / secret not configured")
        self.base_url = base_url.rstrip("/")
        self.auth = (str(shop_id), str(secret))
        self.timeout = timeout

    def post_bill(self, bill: dict) -> dict:
        """Create an ERIP bill. Returns the decoded response, raises BePaidError."""
        url = f"{self.base_url}/beyag/payments"
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        try:
            r = requests.post(url, json=bill, auth=self.auth, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise BePaidError(f"bePaid request failed: {e}") from e

        if r.status_code >= 400:
            raise BePaidError(
                f"bePaid responded with HTTP {r.status_code}",
                http_body=r.text,
                status_code=r.status_code,
            )
        try:
            return r.json()
        except ValueError as e:
            raise BePaidError("bePaid returned a non-JSON body", http_body=r.text) from e
