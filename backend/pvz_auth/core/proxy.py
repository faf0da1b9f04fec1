"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    ``request.remote_addr`` is bound into every refresh-token fingerprint, so
    it must be the real client address. Behind a reverse proxy that means
    trusting exactly the number of hops that proxy adds (``PROXYFIX_HOPS``,
    default 1); trusting more lets clients forge their address.

    Controlled by the ``USE_PROXYFIX`` configuration flag.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXYFIX_HOPS", 1))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops)
