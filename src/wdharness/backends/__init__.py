"""Browser connection backends for wdharness.

This module provides pluggable browser connections with a unified interface.
The default backend is "selenium".

Example:
    >>> from wdharness.backends import get_connection_factory, list_backends
    >>> print(list_backends())
    ['selenium']
    >>> factory = get_connection_factory("selenium", browser="firefox", headless=True)
    >>> connection = factory()
"""

from functools import partial
from importlib import import_module
from typing import Any

from wdharness.backends.base import BrowserConnection, ConnectionFactory, Cookie, CookieScope

# Backend registry maps names to module:class paths
# Using strings enables lazy loading - dependencies only imported when used
_BACKEND_REGISTRY: dict[str, str] = {
    "selenium": "wdharness.backends.selenium:SeleniumConnection",
}


def get_connection_factory(name: str = "selenium", **kwargs: Any) -> ConnectionFactory:
    """Get a factory creating connections of the named backend.

    Nothing is started here; the browser launches when the returned
    factory is called.

    Args:
        name: Backend identifier. Default is "selenium".
        **kwargs: Options passed to the backend's ``create()`` classmethod,
            e.g. browser, headless, remote_url, read_timeout.

    Returns:
        Zero-argument callable returning a started BrowserConnection.

    Raises:
        ValueError: If backend name is not recognized.
        ImportError: If backend dependencies are not installed.
    """
    if name not in _BACKEND_REGISTRY:
        available = ", ".join(sorted(_BACKEND_REGISTRY.keys()))
        raise ValueError(f"Unknown backend '{name}'. Available backends: {available}")

    module_path, class_name = _BACKEND_REGISTRY[name].rsplit(":", 1)

    try:
        module = import_module(module_path)
    except ImportError as exc:
        raise ImportError(
            f"Backend '{name}' requires additional dependencies. "
            f"Failed to import {module_path}: {exc}"
        ) from exc

    connection_class = getattr(module, class_name)
    return partial(connection_class.create, **kwargs)


def list_backends() -> list[str]:
    """List available backend names.

    Returns:
        Sorted list of registered backend names.
    """
    return sorted(_BACKEND_REGISTRY.keys())


def register_backend(name: str, module_class_path: str) -> None:
    """Register a custom backend.

    The class must provide a ``create(**kwargs)`` classmethod returning an
    object implementing the BrowserConnection protocol.

    Args:
        name: Backend identifier (e.g., "mybackend").
        module_class_path: Import path in format "module.path:ClassName".

    Raises:
        ValueError: If name is already registered or path format is invalid.
    """
    if name in _BACKEND_REGISTRY:
        raise ValueError(f"Backend '{name}' is already registered")

    if ":" not in module_class_path:
        raise ValueError(
            f"Invalid module_class_path '{module_class_path}'. "
            "Expected format: 'module.path:ClassName'"
        )

    _BACKEND_REGISTRY[name] = module_class_path


def describe_browser(connection: BrowserConnection) -> dict[str, str]:
    """Summarize browser and driver versions from session capabilities.

    Returns:
        Dict with browserName, browserVersion and driverVersion; values
        missing from the capabilities are reported as "unknown".
    """
    caps = connection.capabilities
    driver_version = "unknown"
    # geckodriver and chromedriver report their version under different keys
    if "moz:geckodriverVersion" in caps:
        driver_version = str(caps["moz:geckodriverVersion"])
    elif isinstance(caps.get("chrome"), dict):
        driver_version = str(caps["chrome"].get("chromedriverVersion", "unknown")).split(" ")[0]
    return {
        "browserName": str(caps.get("browserName", "unknown")),
        "browserVersion": str(caps.get("browserVersion", "unknown")),
        "driverVersion": driver_version,
    }


__all__ = [
    "BrowserConnection",
    "ConnectionFactory",
    "Cookie",
    "CookieScope",
    "describe_browser",
    "get_connection_factory",
    "list_backends",
    "register_backend",
]
