# ================================================================
# File     : preflight.py
# Purpose  : Session bootstrap checks before any report is built
# Notes    : Local admin, client libraries present, directory role
# ================================================================

import os
import sys
import ctypes
import subprocess
import importlib
import importlib.util
from typing import Callable, Iterable, List, Optional

from core.utils import fncPrintMessage, fncPromptYesNo
from handlers.graph.graph_helpers import get_caller_identity, list_role_member_ids, list_caller_transitive_roles


class PreflightError(Exception):
    """A precondition for running the report is not met."""


# ================================================================
# Function: fncIsLocalAdmin
# Purpose : True when the process runs elevated
# Notes   : Windows asks shell32; elsewhere effective uid 0
# ================================================================
def fncIsLocalAdmin() -> bool:
    if os.name == "nt":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    return hasattr(os, "geteuid") and os.geteuid() == 0


# ================================================================
# Function: fncCheckLocalAdmin
# Purpose : Refuse to continue without elevation
# ================================================================
def fncCheckLocalAdmin(is_admin: Callable[[], bool] = fncIsLocalAdmin) -> None:
    if not is_admin():
        raise PreflightError(
            "Please run LicenceHound as an administrator (elevated prompt / root). "
            "Set \"require_local_admin\": false in the config to skip this check."
        )
    fncPrintMessage("Running with local administrator rights.", "debug")


# ================================================================
# Function: fncMissingLibraries
# Purpose : Names from required that cannot be imported
# ================================================================
def fncMissingLibraries(required: Iterable[str]) -> List[str]:
    return [name for name in required if importlib.util.find_spec(name) is None]


# ================================================================
# Function: fncEnsureLibraries
# Purpose : Make sure the Graph client libraries are importable
# Notes   : Offers a pip install; declining is fatal
# ================================================================
def fncEnsureLibraries(
    required: Iterable[str],
    prompt: Callable[[str], bool] = fncPromptYesNo,
    installer: Optional[Callable[[List[str]], None]] = None,
) -> None:
    missing = fncMissingLibraries(required)
    if not missing:
        fncPrintMessage("Client libraries present.", "debug")
        return

    fncPrintMessage(f"Required Python package(s) not found: {', '.join(missing)}", "warn")
    if not prompt(f"Install {', '.join(missing)} now?"):
        raise PreflightError(f"{', '.join(missing)} required. Install with: pip install {' '.join(missing)}")

    (installer or _pip_install)(missing)
    importlib.invalidate_caches()

    still_missing = fncMissingLibraries(missing)
    if still_missing:
        raise PreflightError(f"Installation did not provide: {', '.join(still_missing)}")
    fncPrintMessage(f"Installed {', '.join(missing)}.", "success")


def _pip_install(packages: List[str]) -> None:
    fncPrintMessage(f"Installing {' '.join(packages)} with pip...", "info")
    try:
        subprocess.check_call([sys.executable, "-m", "pip", "install", *packages])
    except subprocess.CalledProcessError as ex:
        raise PreflightError(f"pip install failed (exit {ex.returncode})") from ex


# ================================================================
# Function: fncCheckDirectoryRole
# Purpose : Caller must hold one of the required directory roles
# Notes   : Returns the first matching role name. Direct members are
#           checked first, then roles held through group membership.
# ================================================================
def fncCheckDirectoryRole(client, required_roles: List[str]) -> str:
    caller = get_caller_identity(client)
    if not caller.get("id"):
        raise PreflightError("Could not resolve the signed-in identity.")
    fncPrintMessage(f"Signed in as {caller.get('name')} ({caller.get('kind')})", "info")

    members = list_role_member_ids(client, required_roles)
    for role in required_roles:
        if caller["id"] in members.get(role, set()):
            fncPrintMessage(f"Directory role confirmed: {role}", "success")
            return role

    held = {r.lower() for r in list_caller_transitive_roles(client, caller)}
    for role in required_roles:
        if role.lower() in held:
            fncPrintMessage(f"Directory role confirmed through group membership: {role}", "success")
            return role

    raise PreflightError(
        f"{caller.get('name')} holds none of the required directory roles "
        f"({' / '.join(required_roles)})."
    )
