"""Identifier utilities."""

import uuid
from datetime import datetime


def generate_run_id(started_at: datetime) -> str:
    """Generate a sortable run ID, e.g. ``20250809_124300_3f9a1c``."""
    return f"{started_at.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:6]}"
