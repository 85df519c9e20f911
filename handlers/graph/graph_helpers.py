# ================================================================
# File     : handlers/graph/graph_helpers.py
# Purpose  : Small Graph query helpers used by the licence report
# Notes    : OData quoting, user lookups, caller identity, role members
# ================================================================

from typing import List, Dict, Any, Optional
from core.utils import fncPrintMessage

USER_FIELDS = [
    "id",
    "displayName",
    "userPrincipalName",
    "country",
    "assignedLicenses",
    "assignedPlans",
]


def odata_quote(value: str) -> str:
    """Quote a literal for a $filter expression (single quotes doubled)."""
    return "'" + str(value).replace("'", "''") + "'"


def list_subscribed_skus(client) -> List[Dict[str, Any]]:
    return client.get_all("subscribedSkus?$select=skuId,skuPartNumber,servicePlans")


def list_users(client, fields: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    fields = fields or USER_FIELDS
    return client.get_all(f"users?$select={','.join(fields)}")


def find_users_by_display_name(client, display_name: str, fields: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    """
    Exact display name match. Graph compares case-insensitively, so two
    people called 'Sam Smith' and 'sam smith' both come back.
    """
    fields = fields or USER_FIELDS
    params = {"$filter": f"displayName eq {odata_quote(display_name)}", "$select": ",".join(fields)}
    return client.get_all("users", params=params)


def get_caller_identity(client) -> Dict[str, Any]:
    """
    Who is signed in. Delegated sessions ask /me; app-only sessions look up
    the service principal behind the client id.
    """
    if getattr(client, "app_only", False):
        sp = client.get(f"servicePrincipals(appId={odata_quote(client.client_id)})?$select=id,displayName,appId")
        return {"id": sp.get("id"), "name": sp.get("displayName") or client.client_id, "kind": "servicePrincipal"}
    me = client.get("me?$select=id,displayName,userPrincipalName")
    return {"id": me.get("id"), "name": me.get("userPrincipalName") or me.get("displayName"), "kind": "user"}


def list_role_member_ids(client, role_names: List[str]) -> Dict[str, set]:
    """
    Map each activated directory role in role_names to the ids of its members.
    Roles that were never activated in the tenant are missing from /directoryRoles
    and come back as empty sets.
    """
    wanted = {n.lower(): n for n in role_names}
    out: Dict[str, set] = {n: set() for n in role_names}

    roles = client.get_all("directoryRoles?$select=id,displayName,roleTemplateId")
    for role in roles:
        name = wanted.get((role.get("displayName") or "").lower())
        if not name:
            continue
        members = client.get_all(f"directoryRoles/{role.get('id')}/members?$select=id")
        out[name] = {m.get("id") for m in members if m.get("id")}
        fncPrintMessage(f"Role '{name}' has {len(out[name])} member(s)", "debug")
    return out


def list_caller_transitive_roles(client, caller: Dict[str, Any]) -> List[str]:
    """
    Directory roles the caller holds directly or through group membership
    (role-assignable groups). Only activated roles are returned.
    """
    base = f"servicePrincipals/{caller.get('id')}" if caller.get("kind") == "servicePrincipal" else "me"
    roles = client.get_all(f"{base}/transitiveMemberOf/microsoft.graph.directoryRole?$select=id,displayName")
    return [r.get("displayName") for r in roles if r.get("displayName")]
