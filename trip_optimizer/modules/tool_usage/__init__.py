"""modules/tool_usage: pure helpers: distance, clock time, candidate and lodging ingestion."""
