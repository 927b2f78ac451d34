"""Trading-signal monitor service: exchange client, storage, engine and API."""
