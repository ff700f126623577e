"""
zkLogin verifier service package.

Exposes the FastAPI application that checks zkLogin signatures against the
current ledger epoch and the cached identity-provider keys:

- app.main: Application entrypoint that wires routes, lifecycle and the CLI.
- app.validation: Request models and the verification pipeline.
- app.jwks: Provider key store, fetcher and background refresher.
- app.epoch: Ledger JSON-RPC client and epoch resolution.
- app.zklogin: Claim decoding and proof verification.
- app.codec: BCS wire formats (signatures, transactions, intents).

Design notes:
- Importing the package performs no network calls. All IO happens in route
  handlers or in the startup hook that starts the key refresher.
- The key store is the only shared mutable state.
- Use the shared/ utilities for logging, metrics, tracing, and errors.
"""
