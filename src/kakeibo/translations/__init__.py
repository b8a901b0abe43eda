"""Locale catalogues shared by the backend and the browser client."""
