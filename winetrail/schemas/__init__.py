"""Request and response schemas for the WineTrail API."""
