import os
from urllib.parse import urljoin
from dotenv import load_dotenv
from .base import LedgerHost
from .utils import open_session, get_jwt_token
from typing import Any, Optional, Mapping


class ChainClient(LedgerHost):
    """HTTP client for a ledger host exposing accounts, transfers and a clock."""

    def __init__(
        self,
        base_fqdn: Optional[str] = None,
        timeout: int = 45,
        program_id: Optional[str] = None,
    ):
        load_dotenv()
        fqdn = base_fqdn or os.getenv("LEDGER_BASE_FQDN")
        if not fqdn:
            raise ValueError("Environment variable 'LEDGER_BASE_FQDN' is not set")
        super().__init__(program_id=program_id)

        self.base_url = f"https://{fqdn}".rstrip("/")
        session_info = open_session()
        if not session_info or len(session_info) != 2:
            raise ValueError("open_session() must return (session, csrf_token)")
        self.session, self.csrf = session_info
        self.jwt = get_jwt_token(self.session)
        self.timeout = timeout

    # -------- headers --------
    @property
    def public_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json"}

    @property
    def auth_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json", "Authorization": f"Bearer {self.jwt}"}

    @property
    def auth_csrf_headers(self) -> Mapping[str, str]:
        return {**self.auth_headers, "X-CSRFTOKEN": self.csrf}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=headers or self.public_headers,
            params=params,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- API callers --------
    @property
    def clock(self) -> dict:
        return self._request("GET", "/api/v1/clock", headers=self.public_headers)

    def get_account(self, identity: bytes) -> dict:
        return self._request(
            "GET",
            f"/api/v1/accounts/{identity.hex()}",
            headers=self.auth_headers,
        )

    # -------- LedgerHost --------
    def balance_of(self, identity: bytes) -> int:
        return int(self.get_account(identity)["balance"])

    def transfer(self, source: bytes, destination: bytes, amount: int) -> None:
        response = self._request(
            "POST",
            "/api/v1/transfers",
            headers=self.auth_csrf_headers,
            json={
                "from": source.hex(),
                "to": destination.hex(),
                "amount": amount,
            },
        )
        if not isinstance(response, dict) or response.get("status") != "success":
            message = response.get("message") if isinstance(response, dict) else None
            raise RuntimeError(
                "Ledger transfer failed" + (f": {message}" if message else ".")
            )

    def current_slot(self) -> int:
        return int(self.clock["slot"])

    def unix_timestamp(self) -> int:
        return int(self.clock["unix_timestamp"])
