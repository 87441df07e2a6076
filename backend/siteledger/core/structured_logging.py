"""
Structured logging utilities for tenant routing and access decisions.
Uses JSON format for better analysis and observability.
"""
import json
import logging
from typing import Dict, Any, Optional
from datetime import datetime

logger = logging.getLogger(__name__)


def log_tenant_event(
    event_type: str,
    tenant_key: Optional[str] = None,
    username: Optional[str] = None,
    role: Optional[str] = None,
    **kwargs
) -> None:
    """
    Log a tenant-layer event with structured JSON format.

    Args:
        event_type: Type of event (tenant_opened, access_denied, totals_calculated, etc.)
        tenant_key: Normalized tenant key, when known
        username: Acting username, when known
        role: Acting role, when known
        **kwargs: Additional context fields
    """
    log_data = {
        "timestamp": datetime.utcnow().isoformat(),
        "event_type": event_type,
        "tenant_key": tenant_key,
        "username": username,
        "role": role,
        **kwargs
    }

    # Remove None values for cleaner logs
    log_data = {k: v for k, v in log_data.items() if v is not None}

    logger.info(f"TENANT_EVENT: {json.dumps(log_data, ensure_ascii=False, default=str)}")


def log_tenant_opened(tenant_key: str, site: str, company: str, duration_ms: Optional[float] = None) -> None:
    """Log first-time creation of a tenant's handle bundle."""
    log_tenant_event(
        event_type="tenant_opened",
        tenant_key=tenant_key,
        site=site,
        company=company,
        duration_ms=duration_ms
    )


def log_access_decision(
    operation: str,
    allowed: bool,
    username: Optional[str] = None,
    role: Optional[str] = None,
    reason: Optional[str] = None,
    **kwargs
) -> None:
    """Log an authorization gate decision."""
    log_tenant_event(
        event_type="access_decision",
        username=username,
        role=role,
        operation=operation,
        allowed=allowed,
        reason=reason,
        **kwargs
    )


def log_aggregation(
    tenant_key: str,
    source: str,
    rows: int,
    summary: Dict[str, Any],
    filtered: bool,
    **kwargs
) -> None:
    """Log which ledger an aggregation was computed from."""
    log_tenant_event(
        event_type="totals_calculated",
        tenant_key=tenant_key,
        source=source,
        rows=rows,
        summary=summary,
        ownership_filtered=filtered,
        **kwargs
    )
