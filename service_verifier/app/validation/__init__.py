"""
zkLogin request validation package.

Turns an HTTP verify request into a call to the proof verifier:

- Decoding the base64 signature and payload.
- Accepting only zkLogin authenticators.
- Rebuilding the intent message for transaction data or personal messages.
- Resolving the epoch and snapshotting the provider keys.

Every failure surfaces as a VerifyError; a rejected proof is never reported
as an unverified success.
"""
