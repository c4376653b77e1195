from __future__ import annotations

from enum import Enum


class CloudProviderId(str, Enum):
    DIGITALOCEAN = "digitalocean"
    GCP = "gcp"
