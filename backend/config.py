# backend/config.py
import os
from dotenv import load_dotenv

load_dotenv()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Sub-resources on ASSET_SOURCE_DOMAIN are fetched from ASSET_REWRITE_BASE instead.
# An empty source domain turns rewriting off.
ASSET_SOURCE_DOMAIN = os.getenv("ASSET_SOURCE_DOMAIN", "assets.exmeaning.com")
ASSET_REWRITE_BASE = os.getenv("ASSET_REWRITE_BASE", "http://exmeaning-image-hosting.zeabur.internal:8080")

CHROMIUM_SANDBOX = os.getenv("CHROMIUM_SANDBOX", "false").lower() in ("1", "true", "yes")
