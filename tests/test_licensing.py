from core.licensing import (
    ALL_SERVICES,
    STATUS_DISABLED,
    STATUS_UNKNOWN,
    fncFlattenUser,
    fncIndexAssignedPlans,
    fncIsLicensed,
    fncPlanStatus,
)
from conftest import make_user


def flatten(user, ref):
    rows = []
    summary = fncFlattenUser(user, ref, rows.append)
    return rows, summary


def test_one_disabled_plan_lists_enabled_services(ref):
    user = make_user("Alice Smith", "alice@contoso.com", ["sku-e3"],
                     [("plan-a", "Enabled"), ("plan-b", "Enabled"), ("plan-c", "Disabled")])

    rows, summary = flatten(user, ref)

    assert [(r["ServiceName"], r["ProvisioningStatus"]) for r in rows] == [
        ("svcA", "Enabled"),
        ("svcB", "Enabled"),
        ("svcC", "Disabled"),
    ]
    assert summary["LicensePlanWithEnabledService"] == "ENTERPRISEPACK[svcA,svcB]"
    assert summary["FriendlyNameOfLicensePlanAndEnabledService"] == "Office 365 E3[friendlyA,friendlyB]"


def test_detail_rows_carry_user_and_licence_columns(ref):
    user = make_user("Alice Smith", "alice@contoso.com", ["sku-e3"],
                     [("plan-a", "Enabled"), ("plan-b", "Enabled"), ("plan-c", "Disabled")])

    rows, _ = flatten(user, ref)

    assert rows[0] == {
        "DisplayName": "Alice Smith",
        "UserPrincipalName": "alice@contoso.com",
        "LicensePlan": "ENTERPRISEPACK",
        "FriendlyNameofLicensePlan": "Office 365 E3",
        "ServiceId": "plan-a",
        "ServiceName": "svcA",
        "ProvisioningStatus": "Enabled",
    }


def test_nothing_disabled_collapses_to_all_services(ref):
    user = make_user("Bob Jones", "bob@contoso.com", ["sku-e3"],
                     [("plan-a", "Enabled"), ("plan-b", "Enabled"), ("plan-c", "Enabled")])

    _, summary = flatten(user, ref)

    assert summary["LicensePlanWithEnabledService"] == f"ENTERPRISEPACK[{ALL_SERVICES}]"
    assert summary["FriendlyNameOfLicensePlanAndEnabledService"] == f"Office 365 E3[{ALL_SERVICES}]"


def test_every_plan_disabled_gives_empty_brackets(ref):
    user = make_user("Dee", "dee@contoso.com", ["sku-e3"],
                     [("plan-a", "Disabled"), ("plan-b", "Disabled"), ("plan-c", "Disabled")])

    _, summary = flatten(user, ref)

    assert summary["LicensePlanWithEnabledService"] == "ENTERPRISEPACK[]"


def test_segments_follow_licence_order(ref):
    user = make_user("Bob Jones", "bob@contoso.com", ["sku-ems", "sku-e3"],
                     [("plan-a", "Enabled"), ("plan-b", "Disabled"), ("plan-c", "Enabled"),
                      ("plan-x", "Enabled"), ("plan-y", "Enabled")])

    rows, summary = flatten(user, ref)

    raw = summary["LicensePlanWithEnabledService"].split("; ")
    friendly = summary["FriendlyNameOfLicensePlanAndEnabledService"].split("; ")
    assert raw == ["EMS[All services]", "ENTERPRISEPACK[svcA,svcC]"]
    # EMS has no friendly name in the table, so the part number is used
    assert friendly == ["EMS[All services]", "Office 365 E3[friendlyA,friendlyC]"]
    assert len(rows) == 5
    assert [r["LicensePlan"] for r in rows] == ["EMS", "EMS", "ENTERPRISEPACK", "ENTERPRISEPACK", "ENTERPRISEPACK"]


def test_one_detail_row_per_sku_and_plan(ref, sample_users):
    rows, _ = flatten(sample_users[1], ref)

    triples = [(r["UserPrincipalName"], r["LicensePlan"], r["ServiceId"]) for r in rows]
    assert len(triples) == len(set(triples)) == 5


def test_disabled_plans_on_licence_win_over_assigned_plans(ref):
    user = make_user("Eve", "eve@contoso.com", ["sku-e3"],
                     [("plan-a", "Enabled"), ("plan-b", "Enabled"), ("plan-c", "Enabled")])
    user["assignedLicenses"][0]["disabledPlans"] = ["plan-b"]

    rows, summary = flatten(user, ref)

    assert rows[1]["ProvisioningStatus"] == STATUS_DISABLED
    assert summary["LicensePlanWithEnabledService"] == "ENTERPRISEPACK[svcA,svcC]"


def test_plan_without_provisioning_record_counts_as_enabled(ref):
    user = make_user("Finn", "finn@contoso.com", ["sku-e3"],
                     [("plan-a", "Enabled"), ("plan-c", "Disabled")])

    rows, summary = flatten(user, ref)

    assert rows[1]["ProvisioningStatus"] == STATUS_UNKNOWN
    assert summary["LicensePlanWithEnabledService"] == "ENTERPRISEPACK[svcA,svcB]"
    assert summary["FriendlyNameOfLicensePlanAndEnabledService"] == "Office 365 E3[friendlyA,friendlyB]"


def test_untranslated_service_uses_raw_name(ref):
    ref.service_names.pop("svcB")
    user = make_user("Gus", "gus@contoso.com", ["sku-e3"],
                     [("plan-a", "Enabled"), ("plan-b", "Enabled"), ("plan-c", "Disabled")])

    _, summary = flatten(user, ref)

    assert summary["FriendlyNameOfLicensePlanAndEnabledService"] == "Office 365 E3[friendlyA,svcB]"


def test_sku_missing_from_tenant_falls_back_to_raw_id(ref):
    user = make_user("Hal", "hal@contoso.com", ["sku-gone"], [])

    rows, summary = flatten(user, ref)

    assert rows == []
    assert summary["LicensePlanWithEnabledService"] == "sku-gone[All services]"


def test_country_defaults_to_dash(ref):
    for country in (None, ""):
        user = make_user("Ivy", "ivy@contoso.com", ["sku-e3"], [("plan-a", "Enabled")], country=country)
        _, summary = flatten(user, ref)
        assert summary["Country"] == "-"

    user = make_user("Ivy", "ivy@contoso.com", ["sku-e3"], [("plan-a", "Enabled")], country="NZ")
    assert flatten(user, ref)[1]["Country"] == "NZ"


def test_plan_status_first_assignment_wins():
    assigned = {"plan-a": {"servicePlanId": "plan-a", "capabilityStatus": "Suspended"}}
    assert fncPlanStatus("plan-a", {"skuId": "s"}, assigned) == "Suspended"
    assert fncPlanStatus("plan-z", {"skuId": "s"}, assigned) == STATUS_UNKNOWN


def test_is_licensed():
    assert fncIsLicensed({"assignedLicenses": [{"skuId": "x"}]})
    assert not fncIsLicensed({"assignedLicenses": []})
    assert not fncIsLicensed({})


def test_enabled_entry_beats_older_deleted_duplicate(ref):
    user = make_user("Jo", "jo@contoso.com", ["sku-e3"],
                     [("plan-a", "Deleted"), ("plan-b", "Enabled"), ("plan-a", "Enabled"), ("plan-c", "Enabled")])

    assert fncIndexAssignedPlans(user)["plan-a"]["capabilityStatus"] == "Enabled"

    rows, summary = flatten(user, ref)

    assert rows[0]["ProvisioningStatus"] == "Enabled"
    assert summary["LicensePlanWithEnabledService"] == "ENTERPRISEPACK[All services]"


def test_duplicate_without_enabled_keeps_first_seen():
    user = make_user("Jo", "jo@contoso.com", ["sku-e3"], [("plan-a", "Suspended"), ("plan-a", "Deleted")])

    assert fncIndexAssignedPlans(user)["plan-a"]["capabilityStatus"] == "Suspended"
