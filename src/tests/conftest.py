"""Shared fixtures: a scripted dnspython resolver and a recording event sink."""

import asyncio
import os

import dns.resolver
import pytest

from tor_auth.core.events import AuthEventSink


class FakeRdata:
    """Stands in for an A rdata in an answer."""

    def __init__(self, address: str):
        self.address = address

    def to_text(self) -> str:
        return self.address


class Blocked:
    """Reply step that waits for an event, then returns the next reply."""

    def __init__(self, event: asyncio.Event, then):
        self.event = event
        self.then = then


class FakeDNSResolver:
    """Scripted replacement for dns.asyncresolver.Resolver.

    Each name maps to a list of reply steps consumed in order; the last step
    repeats. A step is a list of FakeRdata, an exception to raise, or Blocked.
    Unknown names get NXDOMAIN.
    """

    def __init__(self):
        self.replies = {}
        self.default = dns.resolver.NXDOMAIN()
        self.queries = []
        self.lifetimes = []

    def answer(self, name: str, *addresses: str) -> None:
        self.replies[name] = [[FakeRdata(address) for address in addresses]]

    def fail(self, name: str, *errors: Exception) -> None:
        self.replies[name] = list(errors)

    def script(self, name: str, *steps) -> None:
        self.replies[name] = list(steps)

    def block(self, name: str, *addresses: str) -> asyncio.Event:
        event = asyncio.Event()
        self.replies[name] = [
            Blocked(event, [FakeRdata(address) for address in addresses])
        ]
        return event

    async def resolve(self, qname, rdtype="A", lifetime=None, **kwargs):
        name = str(qname).rstrip(".")
        self.queries.append(name)
        self.lifetimes.append(lifetime)

        steps = self.replies.get(name)
        if not steps:
            step = self.default
        elif len(steps) > 1:
            step = steps.pop(0)
        else:
            step = steps[0]

        if isinstance(step, Blocked):
            await step.event.wait()
            step = step.then

        if isinstance(step, BaseException):
            raise step

        return step


class RecordingSink(AuthEventSink):
    """Collects events as (kind, subject, detail) tuples."""

    def __init__(self):
        self.events = []

    def denied(self, client_address):
        self.events.append(("denied", client_address, None))

    def allowed(self, client_address, reason=None):
        self.events.append(("allowed", client_address, reason))

    def empty_reply(self, probe):
        self.events.append(("empty_reply", probe, None))

    def resolver_error(self, probe, error):
        self.events.append(("resolver_error", probe, error))

    def kinds(self):
        return [event[0] for event in self.events]


@pytest.fixture
def fake_dns():
    return FakeDNSResolver()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep TOR_AUTH_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.startswith("TOR_AUTH_"):
            monkeypatch.delenv(key)
