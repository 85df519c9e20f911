# ================================================================
# File     : utils.py
# Purpose  : Common helpers for LicenceHound (console, files, time, data)
# Notes    : British English; colourful output; no network here
# ================================================================

import os
import json
import pathlib
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from colorama import Fore, Style, init as _colorama_init
from tabulate import tabulate

_colorama_init(autoreset=True)

DEBUG_ENABLED = False


# ================================================================
# Function: fncSetDebug
# Purpose : Globally enable/disable debug output
# Notes   : Called from main after parsing --debug
# ================================================================
def fncSetDebug(enabled: bool) -> None:
    global DEBUG_ENABLED
    DEBUG_ENABLED = bool(enabled)


# ================================================================
# Function: fncPrintMessage
# Purpose : Standardised console output with levels and colours
# Notes   : Levels: info, warn, error, success, debug
# ================================================================
def fncPrintMessage(message: str, level: str = "info") -> None:
    if level == "debug" and not DEBUG_ENABLED:
        return
    colours = {
        "info": Fore.CYAN,
        "warn": Fore.YELLOW,
        "error": Fore.RED,
        "success": Fore.GREEN,
        "debug": Fore.MAGENTA
    }
    prefix = {
        "info": "[•]",
        "warn": "[!]",
        "error": "[✗]",
        "success": "[✓]",
        "debug": "[∆]"
    }
    colour = colours.get(level, "")
    mark = prefix.get(level, "[ ]")
    print(f"{colour}{mark} {message}{Style.RESET_ALL}")


# ================================================================
# Function: fncDisplayBanner
# Purpose : Display LicenceHound ASCII banner in rainbow colours
# Notes   : Hound mascot sits to the right of the title
# ================================================================
def fncDisplayBanner(version: str = "v1.0"):
    banner_lines = [
        " _     _                         _   _                       _ ",
        "| |   (_) ___ ___ _ __   ___ ___| | | | ___  _   _ _ __   __| |",
        "| |   | |/ __/ _ \\ '_ \\ / __/ _ \\ |_| |/ _ \\| | | | '_ \\ / _` |",
        "| |___| | (_|  __/ | | | (_|  __/  _  | (_) | |_| | | | | (_| |",
        "|_____|_|\\___\\___|_| |_|\\___\\___|_| |_|\\___/ \\__,_|_| |_|\\__,_|",
    ]

    hound_lines = [
        "    __      ",
        " o-''|\\_____/)",
        "  \\_/|_)     )",
        "     \\  __  / ",
        "     (_/ (_/  ",
    ]

    colours = [Fore.RED, Fore.YELLOW, Fore.GREEN, Fore.BLUE]

    def rainbow(text: str) -> str:
        """Cycle through colours for a rainbow effect"""
        out = ""
        for i, ch in enumerate(text):
            out += colours[i % len(colours)] + ch
        return out + Style.RESET_ALL

    print("\n")

    max_banner_len = max(len(line) for line in banner_lines)
    for i in range(max(len(banner_lines), len(hound_lines))):
        banner_part = banner_lines[i] if i < len(banner_lines) else ""
        line = banner_part.ljust(max_banner_len + 4)
        if i < len(hound_lines):
            line += hound_lines[i]
        print(rainbow(line))

    print(f"{Fore.CYAN}\nLicenceHound {version} — 'Every licence has a scent.'{Style.RESET_ALL}\n")


# ================================================================
# Function: fncBlurb
# Purpose : Display a witty blurb describing current action
# Notes   : Ideal for transitions like report start
# ================================================================
def fncBlurb(action: str, flavour: str = None):
    blurbs = {
        "full": [
            "Rounding up every licensed user in the tenant…",
            "Following the SKU scent trail through the whole directory…",
            "Sniffing out every service plan, no kennel left unchecked…"
        ],
        "filtered": [
            "Fetching only the users on your list…",
            "Tracking a hand-picked pack of users…",
            "Nose down on a short list of names…"
        ],
        "generic": [
            "Preparing the harness…",
            "Warming up the licence sniffer…",
            "Stretching legs before the walk…"
        ]
    }

    import random
    flavour_text = flavour or random.choice(blurbs.get(action, blurbs["generic"]))
    fncPrintMessage(flavour_text, "info")


# ================================================================
# Function: fncEnsureFolder
# Purpose : Create a folder if it does not exist
# Notes   : Returns pathlib.Path object
# ================================================================
def fncEnsureFolder(path: str) -> pathlib.Path:
    p = pathlib.Path(path).expanduser().resolve()
    p.mkdir(parents=True, exist_ok=True)
    return p


# ================================================================
# Function: fncLoadEnv
# Purpose : Read environment variable with default
# Notes   : Strips quotes; returns default if unset
# ================================================================
def fncLoadEnv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name, default)
    if isinstance(val, str):
        return val.strip().strip('"').strip("'")
    return val


# ================================================================
# Function: fncReadJSON
# Purpose : Load JSON from file safely
# Notes   : Returns {} on failure when safe=True
# ================================================================
def fncReadJSON(path: str, safe: bool = True) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as ex:
        if safe:
            fncPrintMessage(f"Could not read JSON '{path}': {ex}", "warn")
            return {}
        raise


# ================================================================
# Function: fncWriteJSON
# Purpose : Write data to JSON with nice formatting
# Notes   : Ensures parent folder exists; UTF-8; 2-space indent
# ================================================================
def fncWriteJSON(path: str, data: Dict[str, Any]) -> None:
    p = pathlib.Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    fncPrintMessage(f"Saved JSON → {p}", "success")


# ================================================================
# Function: fncTimestamp
# Purpose : Return the timestamp used in report file names
# Notes   : e.g. 2024-Jan-15-Mon 10-30 AM; local time
# ================================================================
def fncTimestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%Y-%b-%d-%a %I-%M %p")


# ================================================================
# Function: fncToTable
# Purpose : Render rows as a table string
# Notes   : Supports list[dict] (keys become headers) or list[list]
# ================================================================
def fncToTable(rows: Iterable[Any], headers: Optional[List[str]] = None, max_rows: Optional[int] = None) -> str:
    rows = list(rows)
    truncated = 0
    if max_rows and len(rows) > max_rows:
        truncated = len(rows) - max_rows
        rows = rows[:max_rows]

    if not rows:
        return "(no data)"

    if isinstance(rows[0], dict):
        hdrs = headers or sorted({k for r in rows for k in r.keys()})
        table_rows = [[r.get(h, "") for h in hdrs] for r in rows]
        out = tabulate(table_rows, headers=hdrs, tablefmt="github")
    else:
        out = tabulate(rows, headers=(headers or "firstrow"), tablefmt="github")

    if truncated:
        out += f"\n… +{truncated} more"
    return out


# ================================================================
# Function: fncMask
# Purpose : Mask sensitive strings (client secrets, tenant ids)
# Notes   : Keeps start/end visible; handles short strings
# ================================================================
def fncMask(value: Optional[str], show: int = 4) -> str:
    if not value:
        return ""
    if len(value) <= show * 2:
        return "*" * len(value)
    return f"{value[:show]}{'*' * (len(value) - (show*2))}{value[-show:]}"


# ================================================================
# Function: fncPromptYesNo
# Purpose : Simple Y/N prompt for interactive flows
# Notes   : Defaults to 'n' if empty input
# ================================================================
def fncPromptYesNo(question: str, default_no: bool = True) -> bool:
    suffix = "[y/N]" if default_no else "[Y/n]"
    ans = input(f"{question} {suffix} ").strip().lower()
    if not ans:
        return not default_no
    return ans in ("y", "yes")
