"""
Manager Deployer - deploys the cluster-api aggregate apiserver stack.

This package mints the TLS material for the aggregate apiserver, renders the
deployment manifest, and applies it to an existing Kubernetes cluster while
the control plane finishes coming up.
"""

__version__ = "0.1.0"
