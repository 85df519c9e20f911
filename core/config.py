# ================================================================
# File     : config.py
# Purpose  : Configuration management for LicenceHound
# Notes    : Handles initial creation, loading and overrides of config
# ================================================================

import os
import pathlib
from core.utils import fncPrintMessage, fncEnsureFolder, fncReadJSON, fncWriteJSON, fncLoadEnv

RESOURCES_DIR = pathlib.Path(__file__).resolve().parent.parent / "resources"

# Microsoft Graph Command Line Tools; works for device code sign-in without an app registration
DEFAULT_PUBLIC_CLIENT_ID = "14d82eec-204b-4c2f-b7e8-296a70dab67e"


# ================================================================
# Function: fncDefaultConfigPath
# Purpose : Location of the config file
# Notes   : LICENCEHOUND_CONFIG wins over ~/.licencehound/config.json
# ================================================================
def fncDefaultConfigPath() -> pathlib.Path:
    override = fncLoadEnv("LICENCEHOUND_CONFIG")
    if override:
        return pathlib.Path(override).expanduser()
    return pathlib.Path.home() / ".licencehound" / "config.json"


# ================================================================
# Function: fncDefaultConfig
# Purpose : Return a default configuration dictionary
# Notes   : Called when config file does not exist
# ================================================================
def fncDefaultConfig() -> dict:
    return {
        "version": "1.0",
        "debug": False,
        "output_dir": "",
        "require_local_admin": True,
        "required_roles": ["Global Administrator", "Global Reader"],
        "required_libraries": ["msal", "requests"],
        "resources": {
            "licence_names_file": str(RESOURCES_DIR / "LicenseFriendlyName.txt"),
            "service_names_file": str(RESOURCES_DIR / "ServiceFriendlyName.txt"),
        },
        "entra": {
            "tenant_id": "",
            "client_id": "",
            "client_secret": "",
            "public_client_id": DEFAULT_PUBLIC_CLIENT_ID,
            "authority": "https://login.microsoftonline.com"
        }
    }


# ================================================================
# Function: fncMergeDefaults
# Purpose : Fill keys missing from an older/hand-edited config
# Notes   : Nested dicts merged one level deep
# ================================================================
def fncMergeDefaults(cfg: dict) -> dict:
    merged = fncDefaultConfig()
    for key, value in (cfg or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


# ================================================================
# Function: fncInitConfig
# Purpose : Create or load configuration file
# Notes   : Ensures base folder exists; returns full config dict
# ================================================================
def fncInitConfig(config_path: str = None) -> dict:
    path = pathlib.Path(config_path) if config_path else fncDefaultConfigPath()

    fncEnsureFolder(path.parent)

    if not path.exists():
        fncPrintMessage(f"No config found at {path}. Creating default...", "warn")
        cfg = fncDefaultConfig()
        fncWriteJSON(str(path), cfg)
        return fncApplyEnvOverrides(cfg)
    else:
        return fncLoadConfig(str(path))


# ================================================================
# Function: fncLoadConfig
# Purpose : Load configuration file and apply environment overrides
# ================================================================
def fncLoadConfig(config_path: str) -> dict:
    cfg = fncMergeDefaults(fncReadJSON(config_path))
    cfg = fncApplyEnvOverrides(cfg)
    fncPrintMessage(f"Loaded configuration from {config_path}", "debug")
    return cfg


# ================================================================
# Function: fncApplyEnvOverrides
# Purpose : Environment beats file (useful for scheduled runs)
# Notes   : LICENCEHOUND_TENANT_ID, _CLIENT_ID, _CLIENT_SECRET, _OUTPUT_DIR
# ================================================================
def fncApplyEnvOverrides(cfg: dict) -> dict:
    entra = cfg.setdefault("entra", {})
    entra["tenant_id"] = fncLoadEnv("LICENCEHOUND_TENANT_ID", entra.get("tenant_id"))
    entra["client_id"] = fncLoadEnv("LICENCEHOUND_CLIENT_ID", entra.get("client_id"))
    entra["client_secret"] = fncLoadEnv("LICENCEHOUND_CLIENT_SECRET", entra.get("client_secret"))
    cfg["output_dir"] = fncLoadEnv("LICENCEHOUND_OUTPUT_DIR", cfg.get("output_dir"))
    return cfg


# ================================================================
# Function: fncApplyCliOverrides
# Purpose : Apply command-line flags to the loaded config
# Notes   : --tenant-id and --debug
# ================================================================
def fncApplyCliOverrides(cfg: dict, args) -> dict:
    if getattr(args, "debug", None):
        cfg["debug"] = True
    tenant_id = getattr(args, "tenant_id", None)
    if tenant_id:
        cfg.setdefault("entra", {})["tenant_id"] = tenant_id
    return cfg


# ================================================================
# Function: fncIsDebug
# Purpose : Return whether debug mode is enabled in config
# ================================================================
def fncIsDebug(cfg: dict) -> bool:
    return bool(cfg.get("debug", False))


# ================================================================
# Function: fncOutputDir
# Purpose : Folder where the two reports land
# Notes   : Empty/missing means the current working directory
# ================================================================
def fncOutputDir(cfg: dict) -> pathlib.Path:
    return fncEnsureFolder(cfg.get("output_dir") or os.getcwd())
