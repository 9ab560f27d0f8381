# Request models for the HTTP API.
# Created: 2026-09-05
