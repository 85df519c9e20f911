import pytest

from core.reference_data import fncBuildReferenceData


SKU_E3 = {
    "skuId": "sku-e3",
    "skuPartNumber": "ENTERPRISEPACK",
    "servicePlans": [
        {"servicePlanId": "plan-a", "servicePlanName": "svcA"},
        {"servicePlanId": "plan-b", "servicePlanName": "svcB"},
        {"servicePlanId": "plan-c", "servicePlanName": "svcC"},
    ],
}

SKU_EMS = {
    "skuId": "sku-ems",
    "skuPartNumber": "EMS",
    "servicePlans": [
        {"servicePlanId": "plan-x", "servicePlanName": "INTUNE_A"},
        {"servicePlanId": "plan-y", "servicePlanName": "AAD_PREMIUM"},
    ],
}

LICENCE_NAMES = {"ENTERPRISEPACK": "Office 365 E3"}
SERVICE_NAMES = {"svcA": "friendlyA", "svcB": "friendlyB", "svcC": "friendlyC", "INTUNE_A": "Microsoft Intune"}


def make_user(name, upn, licences, plans, country=None):
    user = {
        "id": f"id-{upn}",
        "displayName": name,
        "userPrincipalName": upn,
        "assignedLicenses": [{"skuId": s, "disabledPlans": []} for s in licences],
        "assignedPlans": [{"servicePlanId": p, "capabilityStatus": st} for p, st in plans],
    }
    if country is not None:
        user["country"] = country
    return user


class FakeGraphClient:
    """Answers the handful of Graph endpoints the report touches."""

    def __init__(self, skus=None, users=None, me=None, roles=None, role_members=None,
                 app_only=False, client_id="app-client-id", service_principal=None,
                 transitive_roles=None):
        self.skus = skus or []
        self.users = users or []
        self.me = me or {"id": "caller-id", "userPrincipalName": "admin@contoso.com"}
        self.roles = roles or []
        self.role_members = role_members or {}
        self.app_only = app_only
        self.client_id = client_id
        self.service_principal = service_principal or {"id": "sp-id", "displayName": "LicenceHound app"}
        self.transitive_roles = transitive_roles or []
        self.calls = []

    def get(self, endpoint, params=None):
        self.calls.append(endpoint)
        if endpoint.startswith("me"):
            return self.me
        if endpoint.startswith("servicePrincipals("):
            return self.service_principal
        raise AssertionError(f"unexpected GET {endpoint}")

    def get_all(self, endpoint, params=None):
        self.calls.append(endpoint)
        if "/transitiveMemberOf/" in endpoint:
            return [{"id": f"role-{n}", "displayName": n} for n in self.transitive_roles]
        if endpoint.startswith("subscribedSkus"):
            return list(self.skus)
        if endpoint == "users" and params and "$filter" in params:
            literal = params["$filter"].split(" eq ", 1)[1]
            name = literal[1:-1].replace("''", "'")
            return [u for u in self.users if (u.get("displayName") or "").lower() == name.lower()]
        if endpoint.startswith("users"):
            return list(self.users)
        if endpoint.startswith("directoryRoles/"):
            role_id = endpoint.split("/")[1].split("?")[0]
            return [{"id": m} for m in self.role_members.get(role_id, [])]
        if endpoint.startswith("directoryRoles"):
            return list(self.roles)
        raise AssertionError(f"unexpected GET (all) {endpoint}")


@pytest.fixture
def ref():
    return fncBuildReferenceData([SKU_E3, SKU_EMS], dict(LICENCE_NAMES), dict(SERVICE_NAMES))


@pytest.fixture
def sample_users():
    return [
        make_user("Alice Smith", "alice@contoso.com", ["sku-e3"],
                  [("plan-a", "Enabled"), ("plan-b", "Enabled"), ("plan-c", "Disabled")], country="GB"),
        make_user("Bob Jones", "bob@contoso.com", ["sku-e3", "sku-ems"],
                  [("plan-a", "Enabled"), ("plan-b", "Enabled"), ("plan-c", "Enabled"),
                   ("plan-x", "Enabled"), ("plan-y", "Enabled")]),
        make_user("Carol Unlicensed", "carol@contoso.com", [], []),
    ]
