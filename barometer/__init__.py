"""Emotional barometer form-session engine and service.

The engine (`barometer.logic`) keeps a long multi-section self-report form
durable across reloads: it derives conditional visibility, computes live
progress over visible fields, and drives the submission workflow. The
FastAPI application factory exposes open sessions over HTTP.
"""

from __future__ import annotations

from barometer.main import create_app

__all__ = ["create_app"]
