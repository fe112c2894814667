"""Conversion of built Kubernetes objects into plain manifests."""

from typing import Any, Dict, List

from kubernetes import client

from .builder import BuildResult


def to_manifest(obj: Any) -> Dict[str, Any]:
    """Return the API wire form of a Kubernetes model object, without unset fields."""
    with client.ApiClient() as api_client:
        return api_client.sanitize_for_serialization(obj)


def build_result_to_manifests(result: BuildResult) -> Dict[str, List[Dict[str, Any]]]:
    with client.ApiClient() as api_client:
        return {
            "services": [api_client.sanitize_for_serialization(s) for s in result.services],
            "ingresses": [api_client.sanitize_for_serialization(i) for i in result.ingresses],
            "secrets": [api_client.sanitize_for_serialization(s) for s in result.secrets],
        }
