# backend/rewrite.py
from dataclasses import dataclass
from typing import Optional

from backend import config

_SCHEMES = ("https://", "http://")
_HOST_END = ("/", "?", "#")


@dataclass(frozen=True)
class RewriteRule:
    """Sends sub-resource requests for one host to another base URL.

    ``https://assets.example.com/img/a.png`` becomes
    ``<destination_base>/img/a.png``; path and query are kept as-is.
    """

    source_host: str
    destination_base: str

    def __post_init__(self):
        object.__setattr__(self, "destination_base", self.destination_base.rstrip("/"))

    def rewrite(self, url: str) -> Optional[str]:
        for scheme in _SCHEMES:
            prefix = scheme + self.source_host
            if not url.startswith(prefix):
                continue
            rest = url[len(prefix):]
            # exact host only: assets.example.com.evil.net or :8443 do not match
            if rest and not rest.startswith(_HOST_END):
                return None
            return self.destination_base + rest
        return None

    @classmethod
    def from_config(cls) -> Optional["RewriteRule"]:
        if not config.ASSET_SOURCE_DOMAIN or not config.ASSET_REWRITE_BASE:
            return None
        return cls(config.ASSET_SOURCE_DOMAIN, config.ASSET_REWRITE_BASE)
