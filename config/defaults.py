"""Default pipeline settings."""

DEFAULTS = {
    "model": "claude-sonnet-4-5-20250929",
    "max_tokens": 4096,
    "rate_limit_delay": 4.0,        # seconds between consecutive model calls, process-wide
    "rate_limit_cooldown": 60.0,    # wait before the single retry after a 429
    "deploy_timeout": 120,
    "deploy_platform": "vercel",
    "completion_key_env": "ANTHROPIC_API_KEY",
    "deploy_token_env": "VERCEL_TOKEN",
    "demo_agents": ["demo-agent-1", "demo-agent-2"],
    "fallback_agents": ["fallback-agent-1"],
    "max_runs": 50,                 # in-memory run history bound
    "run_ttl": 3600,
}
