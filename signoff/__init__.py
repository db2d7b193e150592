"""Signoff API: approval workflows and audit trail for small-business documents."""
