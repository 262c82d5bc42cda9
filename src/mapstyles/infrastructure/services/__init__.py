"""Stateful services: symbol cache, image fetching and rendering."""
