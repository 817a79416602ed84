"""Shared cross-cutting helpers (telemetry)."""
