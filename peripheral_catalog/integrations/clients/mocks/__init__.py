"""
Mock integration clients.

These serve fake (but realistic) catalogue responses without calling any
external API. They are used when:
- no remote catalogue is configured
- we want to test the sync pipeline end-to-end without network access

Important:
- The mock plugs in at the transport level, so the HTTP client code path is
  the same one used against a real endpoint.
"""
