# ================================================================
# File     : handlers/graph/errors.py
# Purpose  : Graph exceptions, importable before msal is installed
# ================================================================


class GraphAuthError(Exception):
    """Sign-in to Microsoft Graph failed."""


class GraphRequestError(Exception):
    """Graph answered with an HTTP error."""

    def __init__(self, status: int, body: str, url: str = ""):
        super().__init__(f"Graph API request failed with status {status}: {body}")
        self.status = status
        self.body = body
        self.url = url
