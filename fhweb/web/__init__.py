"""fhw-web aiohttp application and routes."""
