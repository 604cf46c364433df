"""
Caller identity for tool calls.

Design goals:
- Credentials are opaque to the core (API keys or signed bearer tokens).
- The transport extracts the credential; this package only maps it to a User.
"""
