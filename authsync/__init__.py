"""authsync: client-side session and real-time auth synchronization.

Keeps an authenticated identity consistent across consumers, a long-lived
duplex connection and background credential renewal.

Usage:
    from authsync.core.container import create_auth_runtime

    runtime = create_auth_runtime()
    await runtime.initialize()
    result = await runtime.session_manager.login("user@example.com", "secret")
"""

__version__ = "0.1.0"
