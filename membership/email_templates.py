from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape


ORGANIZATION = "Design at UCSD"
BANNER_URL = "https://i.imgur.com/OZorPOF.png"
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(["html"]),
    )


def first_name(name: str) -> str:
    parts = (name or "").split()
    return parts[0] if parts else ""


def render_welcome_email(first: str, qr_url: str, subject: str = "") -> str:
    template = _environment().get_template("welcome_email.html")
    return template.render(
        first_name=first,
        qr_url=qr_url,
        subject=subject,
        organization=ORGANIZATION,
        banner_url=BANNER_URL,
    )
