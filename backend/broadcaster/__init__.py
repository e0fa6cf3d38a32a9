"""FX Broadcaster: live exchange rates fanned out to many subscribers."""
