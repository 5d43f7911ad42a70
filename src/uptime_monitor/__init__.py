"""
Uptime monitoring engine.

Probes configured sites on independent timers, records every check, opens and
resolves incidents on availability transitions and sends templated alerts
through a messaging gateway.
"""

__version__ = "1.0.0"
