"""modules/: tools, planning, validation and observability layers."""
