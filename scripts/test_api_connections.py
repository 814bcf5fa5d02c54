#!/usr/bin/env python3
"""Test API connections for ZotMirror.

This script checks that the required environment variables are set and
tests the connection to the Zotero Web API and the Supabase storage bucket.

Usage:
    uv run python scripts/test_api_connections.py
"""

import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import requests
from dotenv import load_dotenv

from zotmirror.config.settings import ENV_FALLBACKS, Settings, load_settings
from zotmirror.core.constants import USER_AGENT, ZOTERO_API_BASE, ZOTERO_API_VERSION
from zotmirror.core.exceptions import ConfigurationError

load_dotenv()


class Status(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class CheckResult:
    name: str
    status: Status
    message: str


def print_header():
    """Print the check header."""
    print()
    print("=" * 64)
    print("            ZotMirror API Connection Test")
    print("=" * 64)
    print()


def print_section(title: str):
    """Print a section header."""
    print(f"\n{title}")
    print("-" * 40)


def format_status(status: Status, message: str) -> str:
    icons = {
        Status.SUCCESS: "✅",
        Status.FAILED: "❌",
        Status.SKIPPED: "⚠️",
    }
    return f"{icons[status]} {message}"


def check_env_vars() -> dict[str, bool]:
    """Report which credential environment variables are set (values masked)."""
    print_section("Environment Variables")

    results = {}
    for var_name in ENV_FALLBACKS.values():
        value = os.environ.get(var_name)
        is_set = bool(value and value.strip())
        results[var_name] = is_set
        if is_set:
            masked = value[:4] + "..." + value[-4:] if len(value) > 10 else "***"
            print(f"  {var_name:26} ✅ Set [{masked}]")
        else:
            print(f"  {var_name:26} ⚠️ Not set (must then come from config.yaml)")
    return results


def load_config() -> Settings:
    """Load configuration, exiting on any missing value."""
    try:
        return load_settings(Path.cwd())
    except ConfigurationError as e:
        print_section("Configuration Error")
        print(f"  ❌ {e}")
        sys.exit(1)


def check_zotero(settings: Settings) -> CheckResult:
    """List the groups visible to the configured key."""
    try:
        resp = requests.get(
            f"{ZOTERO_API_BASE}/users/{settings.zotero.user_id}/groups",
            params={"limit": 1},
            headers={
                "Zotero-API-Version": ZOTERO_API_VERSION,
                "Authorization": f"Bearer {settings.zotero.api_key}",
                "User-Agent": USER_AGENT,
            },
            timeout=30,
        )
    except requests.exceptions.Timeout:
        return CheckResult("Zotero API", Status.FAILED, "Connection timeout")
    except requests.exceptions.RequestException as e:
        return CheckResult("Zotero API", Status.FAILED, f"Connection error: {e}")

    if resp.status_code == 200:
        total = resp.headers.get("Total-Results", "unknown")
        return CheckResult("Zotero API", Status.SUCCESS, f"Connected ({total} groups visible)")
    if resp.status_code == 403:
        return CheckResult("Zotero API", Status.FAILED, "Invalid API key or insufficient permissions")
    if resp.status_code == 404:
        return CheckResult("Zotero API", Status.FAILED, f"User ID '{settings.zotero.user_id}' not found")
    return CheckResult("Zotero API", Status.FAILED, f"HTTP {resp.status_code}: {resp.text[:100]}")


def check_storage(settings: Settings) -> CheckResult:
    """List the root of the configured bucket."""
    from supabase import create_client

    try:
        client = create_client(settings.storage.url, settings.storage.service_key)
        entries = client.storage.from_(settings.storage.bucket).list()
    except Exception as e:
        return CheckResult("Supabase storage", Status.FAILED, f"{type(e).__name__}: {e}")
    return CheckResult(
        "Supabase storage",
        Status.SUCCESS,
        f"Bucket '{settings.storage.bucket}' reachable ({len(entries)} top-level entries)",
    )


def print_summary(results: list[CheckResult]) -> int:
    """Print the summary and return the exit code."""
    passed = sum(1 for r in results if r.status == Status.SUCCESS)
    failed = sum(1 for r in results if r.status == Status.FAILED)

    print()
    print("=" * 64)
    print(f"  Result: {passed} passed, {failed} failed")
    print("=" * 64)
    print()

    for r in results:
        if r.status == Status.FAILED:
            print(f"  ❌ {r.name}: {r.message}")

    return 1 if failed else 0


def main():
    print_header()
    check_env_vars()
    settings = load_config()

    print_section("API Connections")
    results = [check_zotero(settings), check_storage(settings)]
    for r in results:
        print(f"  {r.name:20} {format_status(r.status, r.message)}")

    sys.exit(print_summary(results))


if __name__ == "__main__":
    main()
