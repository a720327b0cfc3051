"""Host prerequisite checks run before installing or deploying the agent."""

import os
import shutil
import sys
from dataclasses import dataclass
from importlib import metadata
from pathlib import Path

from agent_ops.config.settings import get_settings

MIN_PYTHON = (3, 10)
MIN_MEMORY_GB = 8
MIN_DISK_GB = 10

_GB = 1024 ** 3


@dataclass
class CheckResult:
    name: str
    passed: bool
    detail: str


def _total_memory_bytes() -> int | None:
    try:
        return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
    except (AttributeError, ValueError, OSError):
        return None


def check_python(version_info=None) -> CheckResult:
    version = tuple((version_info or sys.version_info)[:3])
    passed = version[:2] >= MIN_PYTHON
    required = ".".join(map(str, MIN_PYTHON))
    return CheckResult(
        name="python",
        passed=passed,
        detail=f"Python {'.'.join(map(str, version))} (requires >= {required})",
    )


def check_memory(total_bytes: int | None = None) -> CheckResult:
    total = total_bytes if total_bytes is not None else _total_memory_bytes()
    if total is None:
        return CheckResult(name="memory", passed=True, detail="Total memory not reported; skipped")
    gb = total / _GB
    return CheckResult(
        name="memory",
        passed=gb >= MIN_MEMORY_GB,
        detail=f"{gb:.1f} GB RAM (requires >= {MIN_MEMORY_GB} GB)",
    )


def check_disk(path: str | Path = ".") -> CheckResult:
    free = shutil.disk_usage(path).free / _GB
    return CheckResult(
        name="disk",
        passed=free >= MIN_DISK_GB,
        detail=f"{free:.1f} GB free at {Path(path).resolve()} (requires >= {MIN_DISK_GB} GB)",
    )


def check_gcloud() -> CheckResult:
    location = shutil.which("gcloud")
    return CheckResult(
        name="gcloud",
        passed=location is not None,
        detail=location or "gcloud CLI not found on PATH; install the Google Cloud SDK",
    )


def check_credentials_variable() -> CheckResult:
    value = get_settings().google_application_credentials
    return CheckResult(
        name="credentials",
        passed=bool(value),
        detail=value or "GOOGLE_APPLICATION_CREDENTIALS is not set",
    )


def check_package(distribution: str) -> CheckResult:
    try:
        version = metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return CheckResult(
            name=f"package:{distribution}",
            passed=False,
            detail=f"{distribution} is not installed",
        )
    return CheckResult(name=f"package:{distribution}", passed=True, detail=f"{distribution} {version}")


def check_environment(path: str | Path = ".", packages: list[str] | None = None) -> list[CheckResult]:
    packages = packages if packages is not None else get_settings().required_packages
    results = [
        check_python(),
        check_memory(),
        check_disk(path),
        check_gcloud(),
        check_credentials_variable(),
    ]
    results.extend(check_package(p) for p in packages)
    return results


def environment_ready(results: list[CheckResult]) -> bool:
    return all(r.passed for r in results)
