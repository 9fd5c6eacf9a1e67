"""Odds refresh backend for the two-player NFL pick'em.

Modules:
- models: games, odds records, week/usage documents, refresh request/result
- teams: provider full names <-> abbreviations
- weeks: NFL week calendar (Tuesday flip) and timestamp parsing
- policy: classify a week's games and decide what to fetch and lock
- odds_client: league-wide spreads call against The Odds API
- ratelimit: usage counter parsed from provider headers
- store / firestore_store: document store (in-memory and Firestore)
- services: refresh orchestration and week odds summaries
- api: WSGI endpoints
- scheduler: once-a-day trigger
- runner: CLI entrypoint
"""
