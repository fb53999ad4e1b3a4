"""M2Web Client.

Typed client for the Talk2M M2Web REST API: stateless or session-based
authentication, eWON listing and lookup, and typed errors for every API
failure.
"""

__version__ = "0.1.0"
