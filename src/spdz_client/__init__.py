"""
Client coordination layer for SPDZ proxies.

Connects one client to every computation party's proxy, tracks a session
per proxy and aggregates per-party results:
- Session management and status checks
- Consuming (optionally encrypted) output shares
- Sending encoded inputs to all parties
"""

__all__ = ["config", "crypto", "proxy", "utils"]
