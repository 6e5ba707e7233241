"""Basic import tests to verify all dependencies are installed correctly."""

import pytest


def test_core_imports():
    """Test that DNS and web libraries can be imported."""
    import asyncio  # noqa: F401

    import aiohttp.web
    import dns.asyncresolver
    import dns.nameserver
    import yaml  # noqa: F401

    assert hasattr(dns.asyncresolver, "Resolver")
    assert hasattr(dns.nameserver, "Do53Nameserver")
    assert hasattr(aiohttp.web, "UnixSite")


def test_logging_imports():
    """Test that structured logging can be imported."""
    import structlog

    assert hasattr(structlog.stdlib, "ProcessorFormatter")


def test_package_imports():
    """Test that every tor_auth module imports without cycles."""
    import tor_auth.config  # noqa: F401
    from tor_auth.auth_logging import VerdictLogger
    from tor_auth.core import AuthEventSink, ExitListResolver, RequestHandler
    from tor_auth.main import TorAuthApp  # noqa: F401
    from tor_auth.web import AuthServer  # noqa: F401

    assert issubclass(VerdictLogger, AuthEventSink)
    assert ExitListResolver is not None
    assert RequestHandler is not None


@pytest.mark.asyncio
async def test_asyncio_functionality():
    """Test basic asyncio functionality."""

    async def sample_coroutine():
        return "test"

    result = await sample_coroutine()
    assert result == "test"
