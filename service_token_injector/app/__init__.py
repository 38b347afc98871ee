"""
Token Injector service package.

Answers Envoy external-authorization checks with an ``Authorization``
header carrying a Google identity token for the audience named in the
route metadata:

- app.main: Application entrypoint that wires routes and lifecycle.
- app.authz: Check request/response shapes and the request coordinator.
- app.cache: Audience-keyed token cache with refresh-ahead expiry.
- app.exchange: STS token exchange and IAM impersonation client.
- app.claims: Unverified ``aud``/``exp`` extraction from compact JWTs.

Module import must not perform network calls or read the token file.
All IO happens in the check path or explicit startup hooks.
"""
