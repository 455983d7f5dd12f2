"""api/routes: one router module per endpoint group."""
