"""Naming utilities: agent names from requests, host-safe slugs."""

import re

MAX_SLUG = 48


def slugify(text, fallback="agent"):
    """Lowercase slug with only [a-z0-9._-], hyphen separated."""
    text = (text or "").lower().strip()
    text = re.sub(r"[^a-z0-9._-]", "-", text)
    text = re.sub(r"-+", "-", text)
    text = text.strip("-.")[:MAX_SLUG].strip("-.")
    return text or fallback


def agent_name_from_request(request):
    """Title-case the first three words of the request and append 'Agent'."""
    words = re.sub(r"[^\w\s-]", " ", request or "").split()[:3]
    if not words:
        return "Custom Agent"
    titled = [w[:1].upper() + w[1:] for w in words]
    return " ".join(titled) + " Agent"
