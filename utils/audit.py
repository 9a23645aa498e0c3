import json
from flask import request, g
from models import db
from models.audit_log import AuditLog

def log_event(action: str, identity=None, entity=None, entity_id=None, metadata=None):
    if identity is None:
        identity = getattr(g, "identity", None)
    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        actor_role=identity.role if identity else None,
        actor_id=identity.record.id if identity else None,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    db.session.add(row)
    db.session.commit()
