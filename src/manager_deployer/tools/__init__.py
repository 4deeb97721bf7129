"""MCP tools for deploying the cluster-api aggregate apiserver."""

from .deployment import register_deployment_tools

__all__ = [
    "register_deployment_tools",
]
