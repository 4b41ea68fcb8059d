"""Jinja2 templates configuration."""

from pathlib import Path

from fastapi.templating import Jinja2Templates

_templates_path = Path(__file__).parent / "templates"
templates: Jinja2Templates = Jinja2Templates(directory=_templates_path)


def role_label(role: object) -> str:
    """Render a role value such as ``ENGINEERING_MANAGER`` as "Engineering Manager".

    Args:
        role: A Role enum member or its string value.

    Returns:
        Human-readable label.
    """
    value = getattr(role, "value", role)
    return str(value).replace("_", " ").title()


# Register the role filter
templates.env.filters["role_label"] = role_label
