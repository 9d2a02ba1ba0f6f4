"""Notion watchlist synchroniser for Radarr and Sonarr."""
