"""
kokosa-forward - Telegram relay bot with AI moderation

Kokosa relays direct messages between anonymous guests and a single admin
through a Telegram bot webhook. Every inbound guest message passes through a
decision pipeline before it reaches the admin.

Core Components:

- **State Store**: Key-value abstraction with per-key expiry, backed by a single
  aiosqlite connection (or an in-memory store for tests)
- **Moderation Engine**: OpenAI-compatible chat completion calls that classify
  text and static images as SAFE or UNSAFE, rotating across several API keys
  and failing open when every key fails
- **Guest State**: Moderation cache, trust ledger, fixed-window rate limiter,
  relay directory and block registry
- **Decision Pipeline**: Ordered guest routing (language, appeal, block gate,
  start, rate limit, trust, moderation, forward) and the mirrored admin reply path
- **Webhook**: aiohttp application receiving Telegram updates

Usage:
    from kokosa.main import main
    main()  # Starts the webhook server
"""
