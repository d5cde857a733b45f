"""Template engine using string.Template for named-placeholder rendering."""

import os
from string import Template


def get_templates_dir():
    """Return the absolute path to the templates directory."""
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")


def load_template(category, template_name):
    """Load a template file and return its contents as a string."""
    templates_dir = get_templates_dir()
    path = os.path.join(templates_dir, category, template_name)
    resolved = os.path.realpath(path)
    if not resolved.startswith(os.path.realpath(templates_dir) + os.sep):
        raise ValueError(f"Template path escapes templates directory: {category}/{template_name}")
    with open(resolved, "r", encoding="utf-8") as f:
        return f.read()


def render_string(raw, variables, strict=False):
    """Render a template string.

    With strict=False unknown placeholders are left as-is (safe_substitute).
    With strict=True a missing variable raises KeyError.
    Literal dollar signs in templates are written as $$.
    """
    tmpl = Template(raw)
    if strict:
        return tmpl.substitute(variables)
    return tmpl.safe_substitute(variables)


def render_template(category, template_name, variables, strict=False):
    """Load and render a template with the given variables."""
    return render_string(load_template(category, template_name), variables, strict=strict)
