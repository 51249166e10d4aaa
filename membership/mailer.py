from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx

from .errors import DependencyError


logger = logging.getLogger(__name__)


class Mailer:
    def send(self, to: str, subject: str, html: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def add_list_member(self, list_address: str, email: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self) -> None:
        pass


class MailgunMailer(Mailer):
    def __init__(
        self,
        api_key: str,
        domain: str,
        from_email: str,
        base_url: str = "https://api.mailgun.net",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.domain = domain
        self.from_email = from_email
        self.client = httpx.Client(
            base_url=base_url,
            auth=("api", api_key),
            timeout=30,
            transport=transport,
        )

    def _post(self, path: str, data: Dict[str, str]) -> dict:
        try:
            resp = self.client.post(path, data=data)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise DependencyError(f"Mailgun request to {path} failed: {exc}") from exc
        try:
            return resp.json()
        except ValueError:
            return {}

    def send(self, to: str, subject: str, html: str) -> None:
        body = self._post(
            f"/v3/{self.domain}/messages",
            {"from": self.from_email, "to": to, "subject": subject, "html": html},
        )
        logger.debug("Mailgun accepted message %s", body.get("id"))

    def add_list_member(self, list_address: str, email: str) -> None:
        self._post(
            f"/v3/lists/{list_address}/members",
            {"address": email, "subscribed": "yes", "upsert": "yes"},
        )

    def close(self) -> None:
        self.client.close()


class FakeMailer(Mailer):
    def __init__(self) -> None:
        self.sent: List[Dict[str, str]] = []
        self.list_members: Dict[str, List[str]] = {}
        self.fail_send = False
        self.fail_list = False

    def send(self, to: str, subject: str, html: str) -> None:
        if self.fail_send:
            raise DependencyError("Fake mailer configured to fail")
        self.sent.append({"to": to, "subject": subject, "html": html})

    def add_list_member(self, list_address: str, email: str) -> None:
        if self.fail_list:
            raise DependencyError("Fake mailing list configured to fail")
        self.list_members.setdefault(list_address, []).append(email)
