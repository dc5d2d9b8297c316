from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_ROOT = "https://raw.githubusercontent.com/"
VERSION_FILE = "helix-version.txt"

NO_STORE = "no-store, private, must-revalidate"
SURROGATE_CONTROL = "max-age: 30"
VARY = "X-Owner,X-Repo,X-Ref,X-Repo-Root-Path"


@dataclass(frozen=True)
class VersionRequest:
    owner: Optional[str]
    repo: Optional[str]
    ref: Optional[str]
    root: str = DEFAULT_ROOT

    def is_complete(self) -> bool:
        return bool(self.owner and self.repo and self.ref)

    @property
    def surrogate_key(self) -> str:
        return f"preflight-{self.ref}--{self.repo}--{self.owner}"


@dataclass(frozen=True)
class VersionResponse:
    status_code: int
    body: str
    headers: Dict[str, str] = field(default_factory=dict)

    def to_lambda(self) -> Dict[str, Any]:
        """Shape expected by API Gateway / Lambda proxy integrations."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
        }


def error_response(message: str, status_code: int) -> VersionResponse:
    return VersionResponse(
        status_code=status_code,
        body=message,
        headers={"Cache-Control": NO_STORE},
    )
