"""modules/observability: structured JSONL event logging."""
