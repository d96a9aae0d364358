"""
Integrations with the peripheral catalogue.

- contracts/: shared data shapes and the PeripheralSource interface
- clients/mocks/: bundled catalogue served through an httpx mock transport
- clients/real_http/: httpx client for the catalogue API
"""
