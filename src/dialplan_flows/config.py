#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional
from urllib.parse import urlparse

DEFAULT_TENANT_HEADER = "X-Tenant-ID"


@dataclass
class ClientConfig:
    """Connection settings for the dial-plan backend.

    Attributes:
        base_url: API root, e.g. "https://pbx.example.com/api"
        token: Bearer token of the signed-in user
        tenant_id: Tenant the requests act on
        tenant_header: Header carrying the tenant id

    Example:
        ClientConfig(
            base_url="https://pbx.example.com/api",
            token="eyJhbGciOi...",
            tenant_id="acme",
        )
    """

    base_url: str
    token: Optional[str] = field(default=None, repr=False)
    tenant_id: Optional[str] = None
    tenant_header: str = DEFAULT_TENANT_HEADER

    def __post_init__(self):
        """Validate configuration."""
        parsed = urlparse(self.base_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """Read settings from DIALPLAN_API_URL, DIALPLAN_API_TOKEN and DIALPLAN_TENANT_ID."""
        environ = os.environ if environ is None else environ
        if "DIALPLAN_API_URL" not in environ:
            raise ValueError("DIALPLAN_API_URL is not set")
        return cls(
            base_url=environ["DIALPLAN_API_URL"],
            token=environ.get("DIALPLAN_API_TOKEN"),
            tenant_id=environ.get("DIALPLAN_TENANT_ID"),
            tenant_header=environ.get("DIALPLAN_TENANT_HEADER", DEFAULT_TENANT_HEADER),
        )

    def headers(self) -> dict:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.tenant_id:
            headers[self.tenant_header] = self.tenant_id
        return headers
