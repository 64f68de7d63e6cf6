"""HTTP API layer (FastAPI).

Exposes a small, versioned `/api/v1` surface for the admin console:
- catalog lookups used to ground AI recipe generation
- the tool-using recipe agent and its per-session results

The API is intentionally thin: core behavior lives in `src/tools`,
`src/utils` and `src/agents`.
"""
