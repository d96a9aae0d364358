"""
Real HTTP integration clients.

These clients talk to the peripheral catalogue API via httpx.

Important:
- Must implement the PeripheralSource contract
- Must return data shaped according to peripheral_catalog/integrations/contracts/*

Switching:
The choice between the bundled mock transport and a real endpoint happens in
peripheral_catalog/api/main.py only.
"""
