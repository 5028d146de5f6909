from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..core.errors import ProfileError


@dataclass(frozen=True)
class SharingProfile:
    """Credentials for one Delta Sharing server, as stored in a ``.share`` file."""

    share_credentials_version: int
    endpoint: str
    bearer_token: Optional[str] = None
    expiration_time: Optional[str] = None

    def __repr__(self) -> str:
        # never print the token
        return (
            f"SharingProfile(share_credentials_version={self.share_credentials_version}, "
            f"endpoint={self.endpoint!r}, authenticated={self.bearer_token is not None})"
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SharingProfile":
        """Validate a parsed profile document."""
        if not isinstance(data, dict):
            raise ProfileError("Invalid profile file: expected a JSON object")
        version = data.get("shareCredentialsVersion")
        if version is None:
            raise ProfileError("Invalid profile file: missing shareCredentialsVersion")
        if not data.get("endpoint"):
            raise ProfileError("Invalid profile file: missing endpoint")
        try:
            version = int(version)
        except (TypeError, ValueError) as e:
            raise ProfileError(
                f"Invalid profile file: shareCredentialsVersion must be an integer, got {version!r}"
            ) from e
        return cls(
            share_credentials_version=version,
            endpoint=str(data["endpoint"]),
            bearer_token=data.get("bearerToken"),
            expiration_time=data.get("expirationTime"),
        )

    @classmethod
    def read_from_file(cls, path: Union[str, Path]) -> "SharingProfile":
        """Load and validate a profile file."""
        profile_path = Path(path)
        if not profile_path.exists():
            raise FileNotFoundError(f"Profile file not found: {profile_path}")
        try:
            data = json.loads(profile_path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise ProfileError(f"Invalid profile file {profile_path}: {e}") from e
        return cls.from_dict(data)
