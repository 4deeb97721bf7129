"""
Jinja2 templates for the aggregate apiserver manifest.
"""

from pathlib import Path

TEMPLATES_DIR = Path(__file__).parent

APISERVER_TEMPLATE = "clusterapi-apiserver.yaml.j2"


def get_template_path(name: str) -> Path:
    """Get the path to a template file.

    Args:
        name: Template filename

    Returns:
        Path to the template file
    """
    return TEMPLATES_DIR / name
