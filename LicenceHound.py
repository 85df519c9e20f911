#!/usr/bin/env python3
# ================================================================
# Tool     : LicenceHound
# Purpose  : Office 365 user licence reporting for Entra tenants
# Notes    : "Every licence has a scent." Two CSVs: one row per
#            user/SKU/service plan, and one summary row per user.
# ================================================================

import sys
import argparse

from core.config import fncInitConfig, fncApplyCliOverrides, fncIsDebug
from core.utils import fncPrintMessage, fncSetDebug, fncDisplayBanner, fncMask
from core.preflight import PreflightError, fncCheckLocalAdmin, fncEnsureLibraries, fncCheckDirectoryRole
from core.reference_data import ResourceFileError, fncLoadFriendlyNames
from handlers.graph.errors import GraphAuthError, GraphRequestError
from modules.entra.licence_report import UserListError, run as run_licence_report

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


# ================================================================
# Function: fncParseArguments
# Purpose  : Define and parse command-line arguments
# Notes    : Optional user list CSV + optional tenant id
# ================================================================
def fncParseArguments(argv=None):
    parser = argparse.ArgumentParser(
        prog="LicenceHound",
        description="LicenceHound — Office 365 user licence and service plan report"
    )

    parser.add_argument(
        "users_csv",
        nargs="?",
        default=None,
        help="CSV with a 'DisplayName' column; only these users are reported (default: every licensed user)"
    )

    parser.add_argument(
        "--tenant-id",
        dest="tenant_id",
        default=None,
        help="Tenant id or domain to sign in to (multi-tenant / partner accounts)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug output"
    )

    return parser.parse_args(argv)


# ================================================================
# Function: fncInitClient
# Purpose  : Sign in to Microsoft Graph
# Notes    : Imported late so a missing msal is caught by preflight first
# ================================================================
def fncInitClient(cfg: dict):
    from handlers.graph.client import GraphClient

    entra = cfg.get("entra", {})
    if entra.get("tenant_id"):
        fncPrintMessage(f"Target tenant: {fncMask(entra.get('tenant_id'))}", "debug")

    return GraphClient(
        tenant_id=entra.get("tenant_id"),
        client_id=entra.get("client_id"),
        client_secret=entra.get("client_secret"),
        public_client_id=entra.get("public_client_id"),
        authority_host=entra.get("authority") or "https://login.microsoftonline.com",
    )


# ================================================================
# Function: fncBootstrap
# Purpose  : Preflight, friendly-name tables, sign-in, role check
# Notes    : Returns (client, friendly_names); raises on any failure
# ================================================================
def fncBootstrap(cfg: dict):
    if cfg.get("require_local_admin", True):
        fncCheckLocalAdmin()

    fncEnsureLibraries(cfg.get("required_libraries") or [])

    resources = cfg.get("resources", {})
    friendly_names = (
        fncLoadFriendlyNames(resources.get("licence_names_file")),
        fncLoadFriendlyNames(resources.get("service_names_file")),
    )

    client = fncInitClient(cfg)
    fncCheckDirectoryRole(client, cfg.get("required_roles") or [])
    return client, friendly_names


# ================================================================
# Function: main
# Purpose  : Main entry point for LicenceHound execution
# ================================================================
def main(argv=None) -> int:
    args = fncParseArguments(argv)

    cfg = fncInitConfig()
    cfg = fncApplyCliOverrides(cfg, args)
    fncSetDebug(fncIsDebug(cfg))

    fncDisplayBanner("v1.0")
    if fncIsDebug(cfg):
        fncPrintMessage("Debug output enabled.", "debug")

    try:
        client, friendly_names = fncBootstrap(cfg)
    except (PreflightError, ResourceFileError) as ex:
        fncPrintMessage(str(ex), "error")
        return EXIT_FAILED
    except (GraphAuthError, GraphRequestError) as ex:
        fncPrintMessage(f"Unable to connect to Microsoft Graph: {ex}", "error")
        return EXIT_FAILED
    except KeyboardInterrupt:
        fncPrintMessage("Interrupted during sign-in.", "warn")
        return EXIT_INTERRUPTED

    try:
        run_licence_report(client, args, cfg, friendly_names)
    except UserListError as ex:
        fncPrintMessage(str(ex), "error")
        return EXIT_FAILED
    except (GraphAuthError, GraphRequestError) as ex:
        fncPrintMessage(f"Report stopped: {ex}. Rows written so far remain in the CSVs.", "error")
        return EXIT_FAILED
    except KeyboardInterrupt:
        fncPrintMessage("Interrupted — reports hold the rows written so far.", "warn")
        return EXIT_INTERRUPTED

    fncPrintMessage("Report complete. Good dog.", "success")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
