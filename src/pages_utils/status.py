import json
import os
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Dict

from pages_utils.models import NO_STORE

DISTRIBUTION = "pages-version-service"

STATUS_PATH = "/_status_check/healthcheck.json"


# Resolution order: SERVICE_VERSION env var, installed package metadata, "unknown"
def service_version() -> str:
    env_version = os.getenv("SERVICE_VERSION")
    if env_version:
        return env_version
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        return "unknown"


def status_response() -> Dict[str, Any]:
    return {
        "statusCode": 200,
        "headers": {
            "Content-Type": "application/json",
            "Cache-Control": NO_STORE,
        },
        "body": json.dumps({"status": "ok", "version": service_version()}),
    }
