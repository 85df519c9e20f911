# ================================================================
# File     : client.py
# Purpose  : Microsoft Graph API read-only client for Entra (Azure AD)
# Notes    : Read-only: GET + pagination. No destructive ops, no retries.
#            - App-only (client secret) or delegated (device code) sign-in
#            - Proactive refresh if token expires in <5 minutes
# ================================================================

import time
import msal
import requests
from typing import Dict, Any, List, Optional
from core.utils import fncPrintMessage, fncMask
from handlers.graph.errors import GraphAuthError, GraphRequestError

GRAPH_ROOT = "https://graph.microsoft.com/v1.0"
APP_SCOPES = ["https://graph.microsoft.com/.default"]
DELEGATED_SCOPES = [
    "https://graph.microsoft.com/User.Read",
    "https://graph.microsoft.com/User.Read.All",
    "https://graph.microsoft.com/Directory.Read.All",
]


class GraphClient:
    def __init__(
        self,
        tenant_id: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        public_client_id: Optional[str] = None,
        authority_host: str = "https://login.microsoftonline.com",
        timeout: int = 60,
    ):
        self.tenant_id = tenant_id or ""
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""
        self.timeout = timeout
        self.session = requests.Session()

        # App-only when a secret is present, otherwise an interactive operator signs in
        self.app_only = bool(self.client_id and self.client_secret)

        if self.app_only:
            if not self.tenant_id:
                raise GraphAuthError("App-only sign-in needs a tenant id (--tenant-id or LICENCEHOUND_TENANT_ID)")
            self.scope = APP_SCOPES
            self.authority = f"{authority_host.rstrip('/')}/{self.tenant_id}"
            fncPrintMessage(
                f"Initialising Microsoft Graph client (app-only, client={fncMask(self.client_id)})...", "info"
            )
            self.app = self._build_app(
                msal.ConfidentialClientApplication,
                client_id=self.client_id,
                client_credential=self.client_secret,
                authority=self.authority,
            )
        else:
            self.client_id = public_client_id or self.client_id
            if not self.client_id:
                raise GraphAuthError("No public client id configured for delegated sign-in")
            self.scope = DELEGATED_SCOPES
            self.authority = f"{authority_host.rstrip('/')}/{self.tenant_id or 'organizations'}"
            fncPrintMessage("Initialising Microsoft Graph client (delegated, device code)...", "info")
            self.app = self._build_app(
                msal.PublicClientApplication,
                client_id=self.client_id,
                authority=self.authority,
            )

        # token/bookkeeping
        self.token: str = ""
        self._token_expires_on: int = 0  # epoch seconds
        self._set_token(self._acquire_token())

        fncPrintMessage("GraphClient initialised (read-only).", "success")

    # ---------- Token helpers ----------

    def _build_app(self, factory, **kwargs):
        """MSAL validates the authority on construction, which can touch the network."""
        try:
            return factory(**kwargs)
        except requests.exceptions.RequestException as ex:
            fncPrintMessage(f"Could not reach the sign-in service: {ex}", "error")
            raise GraphAuthError(f"Sign-in service unreachable: {ex}") from ex

    def _acquire_token(self) -> Dict[str, Any]:
        """Acquire a token using MSAL (silent first). Returns MSAL result dict."""
        fncPrintMessage("Requesting Microsoft Graph access token...", "debug")
        try:
            result = self._acquire_token_msal()
        except requests.exceptions.RequestException as ex:
            fncPrintMessage(f"Could not reach the sign-in service: {ex}", "error")
            raise GraphAuthError(f"Sign-in service unreachable: {ex}") from ex

        if not result or "access_token" not in result:
            reason = (result or {}).get("error_description", "Unknown error")
            fncPrintMessage(f"MSAL Authentication failed: {reason}", "error")
            raise GraphAuthError(f"Failed to acquire access token: {reason}")
        return result

    def _acquire_token_msal(self) -> Optional[Dict[str, Any]]:
        if self.app_only:
            result = self.app.acquire_token_silent(self.scope, account=None)
            if not result:
                result = self.app.acquire_token_for_client(scopes=self.scope)
        else:
            result = None
            accounts = self.app.get_accounts()
            if accounts:
                fncPrintMessage(f"Found cached account: {accounts[0].get('username')}", "debug")
                result = self.app.acquire_token_silent(self.scope, account=accounts[0])
            if not result:
                flow = self.app.initiate_device_flow(scopes=self.scope)
                if "user_code" not in flow:
                    raise GraphAuthError(
                        f"Could not start device code sign-in: {flow.get('error_description', 'Unknown error')}"
                    )
                fncPrintMessage(flow["message"], "warn")
                result = self.app.acquire_token_by_device_flow(flow)
        return result

    def _set_token(self, msal_result: Dict[str, Any]) -> None:
        """Store token and expiry from MSAL result."""
        self.token = msal_result["access_token"]
        try:
            self._token_expires_on = int(msal_result.get("expires_on") or 0)
        except (TypeError, ValueError):
            self._token_expires_on = 0
        if not self._token_expires_on:
            self._token_expires_on = int(time.time()) + int(msal_result.get("expires_in", 3600))

    def _ensure_fresh_token(self) -> None:
        """Proactively refresh token if it expires in <5 minutes."""
        now = int(time.time())
        if now >= (self._token_expires_on - 300):
            fncPrintMessage("Refreshing access token (nearing expiry)...", "debug")
            self._set_token(self._acquire_token())

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/json",
            "ConsistencyLevel": "eventual",
        }

    # ---------- HTTP handling ----------

    def _handle_response(self, response: requests.Response) -> Dict[str, Any]:
        status = response.status_code

        if status == 200:
            return response.json()

        if status >= 400:
            fncPrintMessage(f"Graph API Error [{status}] -> {response.text}", "error")
            raise GraphRequestError(status, response.text, url=getattr(response, "url", ""))

        try:
            return response.json()
        except ValueError:
            return {"status": status, "text": response.text}

    def _request(self, method: str, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self._ensure_fresh_token()
        try:
            resp = self.session.request(method, url, headers=self._auth_headers(), params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as ex:
            fncPrintMessage(f"Graph API unreachable -> {ex}", "error")
            raise GraphRequestError(0, str(ex), url=url) from ex
        return self._handle_response(resp)

    # ---------- Public API ----------

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Perform a GET request to a Graph endpoint (single page).
        Use get_all for paginated resources.
        """
        url = f"{GRAPH_ROOT}/{endpoint.strip().lstrip('/')}"
        fncPrintMessage(f"GET {url}", "debug")
        return self._request("GET", url, params=params)

    def get_all(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Retrieve all items from a paginated Graph endpoint.
        Returns a flat list of items (value) for list endpoints.
        Example: client.get_all("subscribedSkus?$select=skuId,skuPartNumber,servicePlans")
        """
        url = f"{GRAPH_ROOT}/{endpoint.strip().lstrip('/')}"
        fncPrintMessage(f"GET (all pages) {url}", "debug")

        data = self._request("GET", url, params=params)

        if not isinstance(data, dict):
            return []
        if "value" not in data:
            return [data]

        items: List[Dict[str, Any]] = list(data.get("value") or [])
        next_link = data.get("@odata.nextLink")

        while next_link:
            fncPrintMessage(f"Following nextLink -> {next_link}", "debug")
            # nextLink already carries the query string
            page = self._request("GET", next_link)
            if not isinstance(page, dict):
                break
            items.extend(page.get("value") or [])
            next_link = page.get("@odata.nextLink")

        return items
