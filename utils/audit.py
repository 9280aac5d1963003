import json
from flask import has_request_context, request
from models.audit_log import AuditLog
from services.actor import actor_user_id, describe

def log_event(session, actor, action: str, entity=None, entity_id=None, metadata=None):
    """
    Add an audit row to the caller's session. It commits or rolls back together
    with the business change it describes.
    """
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        user_id=actor_user_id(actor),
        actor=describe(actor),
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    session.add(row)
    return row
