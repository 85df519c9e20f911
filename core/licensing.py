# ================================================================
# File     : licensing.py
# Purpose  : Flatten a user's licences into per-service detail rows
#            and a one-line per-user summary
# Notes    : Pure data; no Graph calls. Detail rows are handed to
#            the caller as soon as they exist.
# ================================================================

from typing import Dict, Any, List, Callable

from core.utils import fncPrintMessage
from core.reference_data import ReferenceData

DETAILED_COLUMNS = [
    "DisplayName",
    "UserPrincipalName",
    "LicensePlan",
    "FriendlyNameofLicensePlan",
    "ServiceId",
    "ServiceName",
    "ProvisioningStatus",
]

SUMMARY_COLUMNS = [
    "DisplayName",
    "UserPrincipalName",
    "Country",
    "LicensePlanWithEnabledService",
    "FriendlyNameOfLicensePlanAndEnabledService",
]

STATUS_ENABLED = "Enabled"
STATUS_DISABLED = "Disabled"
STATUS_UNKNOWN = "Unknown"
ALL_SERVICES = "All services"
SKU_SEPARATOR = "; "
SERVICE_SEPARATOR = ","


# ================================================================
# Function: fncIsLicensed
# Purpose : User holds at least one licence
# ================================================================
def fncIsLicensed(user: Dict[str, Any]) -> bool:
    return bool(user.get("assignedLicenses"))


# ================================================================
# Function: fncIndexAssignedPlans
# Purpose : servicePlanId -> assigned plan for one user
# Notes   : Graph keeps old Deleted entries next to the live one, and a
#           plan can arrive via two SKUs. An Enabled entry wins, otherwise
#           the first seen.
# ================================================================
def fncIndexAssignedPlans(user: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    out: Dict[str, Dict[str, Any]] = {}
    for plan in user.get("assignedPlans") or []:
        plan_id = plan.get("servicePlanId")
        if not plan_id:
            continue
        current = out.get(plan_id)
        if current is None or (
            current.get("capabilityStatus") != STATUS_ENABLED and plan.get("capabilityStatus") == STATUS_ENABLED
        ):
            out[plan_id] = plan
    return out


# ================================================================
# Function: fncPlanStatus
# Purpose : Provisioning status of one service plan for one user
# Notes   : disabledPlans on the licence beat assignedPlans; no
#           record at all gives "Unknown" (counted as enabled)
# ================================================================
def fncPlanStatus(plan_id: str, licence: Dict[str, Any], assigned: Dict[str, Dict[str, Any]]) -> str:
    if plan_id in (licence.get("disabledPlans") or []):
        return STATUS_DISABLED
    match = assigned.get(plan_id)
    if match is None:
        return STATUS_UNKNOWN
    return match.get("capabilityStatus") or STATUS_UNKNOWN


# ================================================================
# Function: fncFlattenLicence
# Purpose : Expand one assigned SKU into detail rows and its two
#           summary segments
# Notes   : Returns (raw_segment, friendly_segment)
# ================================================================
def fncFlattenLicence(
    user: Dict[str, Any],
    licence: Dict[str, Any],
    ref: ReferenceData,
    assigned: Dict[str, Dict[str, Any]],
    emit_detail: Callable[[Dict[str, Any]], None],
) -> tuple:
    sku_id = licence["skuId"]
    label = ref.licence_label(sku_id)
    friendly = ref.licence_friendly(sku_id)

    enabled_raw: List[str] = []
    enabled_friendly: List[str] = []
    disabled_count = 0

    for plan in ref.service_plans(sku_id):
        plan_id = plan.get("servicePlanId")
        plan_name = plan.get("servicePlanName") or plan_id
        status = fncPlanStatus(plan_id, licence, assigned)

        if status == STATUS_DISABLED:
            disabled_count += 1
        else:
            if status == STATUS_UNKNOWN:
                fncPrintMessage(
                    f"{user.get('userPrincipalName')}: no provisioning record for {plan_name} in {label}", "debug"
                )
            enabled_raw.append(plan_name)
            enabled_friendly.append(ref.service_friendly(plan_name))

        emit_detail({
            "DisplayName": user.get("displayName"),
            "UserPrincipalName": user.get("userPrincipalName"),
            "LicensePlan": label,
            "FriendlyNameofLicensePlan": friendly,
            "ServiceId": plan_id,
            "ServiceName": plan_name,
            "ProvisioningStatus": status,
        })

    if disabled_count == 0:
        raw_services = friendly_services = ALL_SERVICES
    else:
        raw_services = SERVICE_SEPARATOR.join(enabled_raw)
        friendly_services = SERVICE_SEPARATOR.join(enabled_friendly)

    return f"{label}[{raw_services}]", f"{friendly}[{friendly_services}]"


# ================================================================
# Function: fncFlattenUser
# Purpose : All licences of one user -> detail rows + summary row
# Notes   : Detail rows go to emit_detail in SKU, then plan order;
#           the summary row is returned
# ================================================================
def fncFlattenUser(
    user: Dict[str, Any],
    ref: ReferenceData,
    emit_detail: Callable[[Dict[str, Any]], None],
) -> Dict[str, Any]:
    assigned = fncIndexAssignedPlans(user)
    raw_segments: List[str] = []
    friendly_segments: List[str] = []

    for licence in user["assignedLicenses"]:
        raw, friendly = fncFlattenLicence(user, licence, ref, assigned, emit_detail)
        raw_segments.append(raw)
        friendly_segments.append(friendly)

    return {
        "DisplayName": user.get("displayName"),
        "UserPrincipalName": user.get("userPrincipalName"),
        "Country": user.get("country") or "-",
        "LicensePlanWithEnabledService": SKU_SEPARATOR.join(raw_segments),
        "FriendlyNameOfLicensePlanAndEnabledService": SKU_SEPARATOR.join(friendly_segments),
    }
