"""Scripted page collaborator and document fetcher for workflow tests."""

from __future__ import annotations

from typing import Any

from copay_autofill.models import Appointment, InsuranceLevel
from copay_autofill.workflow.collaborators import NavigationTarget


class FakePage:
    """Records every page action; actions that would reload bump ``reloads``.

    Tests simulate the next page load by calling ``machine.resume()`` again.
    """

    def __init__(
        self,
        *,
        document_urls: dict[InsuranceLevel, str] | None = None,
        verifiable: tuple[InsuranceLevel, ...] = (InsuranceLevel.PRIMARY, InsuranceLevel.SECONDARY),
        labeled_values: dict[str, str] | None = None,
        appointments: list[Appointment] | None = None,
    ) -> None:
        self.document_urls = dict(document_urls or {})
        self.verifiable = set(verifiable)
        self.labeled_values = dict(labeled_values or {})
        self.appointments = list(appointments or [])
        self.actions: list[tuple[str, Any]] = []
        self.submissions: list[tuple[str, dict[str, str]]] = []
        self.statuses: list[tuple[str, str]] = []
        self.reloads = 0
        self.fail_on: str | None = None

    def _record(self, name: str, arg: Any) -> None:
        self.actions.append((name, arg))
        if self.fail_on == name:
            raise RuntimeError(f"{name} failed")

    async def trigger_verification(self, level: InsuranceLevel) -> bool:
        self._record("verify", level)
        if level not in self.verifiable:
            return False
        self.reloads += 1
        return True

    async def find_document_url(self, level: InsuranceLevel) -> str | None:
        return self.document_urls.get(level)

    async def read_labeled_value(self, label: str) -> str | None:
        return self.labeled_values.get(label)

    async def list_appointments(self) -> list[Appointment]:
        return list(self.appointments)

    async def write_fields_and_submit(self, form: str, fields: dict[str, str]) -> None:
        self._record("submit", form)
        self.submissions.append((form, dict(fields)))
        self.reloads += 1

    async def request_navigation(self, target: NavigationTarget) -> None:
        self._record("navigate", target)
        self.reloads += 1

    async def report_status(self, title: str, detail: str) -> None:
        self.statuses.append((title, detail))

    @property
    def navigations(self) -> list[NavigationTarget]:
        return [arg for name, arg in self.actions if name == "navigate"]


class FakeFetcher:
    """Returns canned document text per URL."""

    def __init__(self, texts: dict[str, str] | None = None) -> None:
        self.texts = dict(texts or {})
        self.calls: list[str] = []

    async def fetch_and_extract_text(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.texts:
            raise KeyError(f"No canned document for {url}")
        return self.texts[url]
