"""
Deployment tools for the MCP server.

Each tool resolves configuration, runs the blocking deployer in a worker
thread, and reports the outcome as JSON text.
"""

import asyncio
import json
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import TextContent

from ..apiserver import render_apiserver_manifest
from ..config import load_config, read_kubeconfig
from ..deployer import DeploymentResult, delete_cluster_api, deploy_cluster_api
from ..error_handling import DeployerError


def _text(payload: dict[str, Any]) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(payload, indent=2))]


def _resolve_config(kubeconfig_path: Optional[str], namespace: Optional[str]):
    config = load_config(kubeconfig_file=kubeconfig_path)
    if namespace:
        config.namespace = namespace
    config.validate()
    return config


async def deploy_cluster_api_tool(
    kubeconfig_path: Optional[str] = None,
    namespace: Optional[str] = None,
) -> list[TextContent]:
    """Deploy the cluster-api aggregate apiserver stack to a cluster.

    Issues a fresh CA and serving certificate, renders the manifest and
    applies it, retrying while the control plane is still coming up.

    Args:
        kubeconfig_path: Path to the kubeconfig (default: MANAGER_DEPLOYER_KUBECONFIG)
        namespace: Target namespace (default: "default")

    Returns:
        Deployment result as JSON.
    """
    try:
        config = _resolve_config(kubeconfig_path, namespace)
        kubeconfig = read_kubeconfig(config.kubeconfig_file)
        result = await asyncio.to_thread(deploy_cluster_api, kubeconfig, config)
    except ValueError as e:
        return _text({"error": str(e)})
    except DeployerError as e:
        return _text(DeploymentResult.failure(config, "Deployment failed", e).to_dict())

    return _text(result.to_dict())


async def delete_cluster_api_tool(
    kubeconfig_path: Optional[str] = None,
    namespace: Optional[str] = None,
    confirm: bool = False,
) -> list[TextContent]:
    """Delete the cluster-api aggregate apiserver stack from a cluster.

    WARNING: This removes the aggregate apiserver and its etcd data.

    Args:
        kubeconfig_path: Path to the kubeconfig (default: MANAGER_DEPLOYER_KUBECONFIG)
        namespace: Target namespace (default: "default")
        confirm: Must be True to confirm deletion

    Returns:
        Deletion result as JSON.
    """
    if not confirm:
        return _text({
            "error": "Deletion not confirmed",
            "message": "Set confirm=True to delete the aggregate apiserver",
        })

    try:
        config = _resolve_config(kubeconfig_path, namespace)
        kubeconfig = read_kubeconfig(config.kubeconfig_file)
        result = await asyncio.to_thread(delete_cluster_api, kubeconfig, config)
    except ValueError as e:
        return _text({"error": str(e)})
    except DeployerError as e:
        return _text(DeploymentResult.failure(config, "Deletion failed", e).to_dict())

    return _text(result.to_dict())


async def render_cluster_api_manifest_tool(
    namespace: Optional[str] = None,
) -> list[TextContent]:
    """Render the aggregate apiserver manifest without applying it.

    The manifest embeds freshly issued private key material.

    Args:
        namespace: Target namespace (default: "default")

    Returns:
        The rendered manifest as YAML text.
    """
    try:
        config = _resolve_config(None, namespace)
        manifest = await asyncio.to_thread(render_apiserver_manifest, config)
    except (ValueError, DeployerError) as e:
        return _text({"error": str(e)})

    return [TextContent(type="text", text=manifest)]


def register_deployment_tools(server: FastMCP) -> None:
    """Register deployment tools with the MCP server."""
    server.add_tool(deploy_cluster_api_tool, name="deploy_cluster_api")
    server.add_tool(delete_cluster_api_tool, name="delete_cluster_api")
    server.add_tool(render_cluster_api_manifest_tool, name="render_cluster_api_manifest")
