from __future__ import annotations
import os

DUMP_DIR = os.environ.get("E2E_DUMP_DIR", ".e2ejobs/logs")

# env var names read by steps.generic.LoadFlags
TAG_ENV = "E2E_TAG"
IMAGE_NAMESPACE_ENV = "E2E_IMAGE_NAMESPACE"
IMAGE_REGISTRY_ENV = "E2E_IMAGE_REGISTRY"

DEFAULT_IMAGE_NAMESPACE = os.environ.get("E2E_DEFAULT_IMAGE_NAMESPACE", "microsoft/retina")
DEFAULT_IMAGE_REGISTRY = os.environ.get("E2E_DEFAULT_IMAGE_REGISTRY", "ghcr.io")

EKSCTL = os.environ.get("E2E_EKSCTL", "eksctl")
COMMAND_TIMEOUT = float(os.environ.get("E2E_COMMAND_TIMEOUT", "3600"))
