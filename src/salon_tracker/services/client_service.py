"""
Client Service - Business logic for salon clients.

This service provides CRUD operations for:
- Clients (the people visits are recorded for)
- Client groups (coloured tags a client list can be filtered by)

Visits copy the client's name when they are written, so renaming a client
does not change the name shown on earlier visits.

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_tracker.models import Client, ClientGroup, Visit
from salon_tracker.services.database import session_scope
from salon_tracker.services.exceptions import (
    ClientGroupNotFound,
    ClientInUse,
    ClientNotFound,
    DatabaseError,
    ValidationError,
)
from salon_tracker.services.logging_utils import get_service_logger, log_operation
from salon_tracker.utils.constants import DEFAULT_GROUP_COLOUR
from salon_tracker.utils.validators import (
    sanitize_string,
    validate_client_data,
    validate_client_group_data,
)

logger = get_service_logger(__name__)

CLIENT_FIELDS = ("first_name", "last_name", "phone", "note", "allergies", "preferences")


def _clean(data: Dict) -> Dict:
    return {key: sanitize_string(data.get(key)) for key in CLIENT_FIELDS if key in data}


def _get_client(sess: Session, owner_id: str, client_id: str) -> Client:
    client = (
        sess.query(Client)
        .filter(Client.owner_id == owner_id, Client.uuid == str(client_id))
        .first()
    )
    if client is None:
        raise ClientNotFound(client_id)
    return client


def _get_group(sess: Session, owner_id: str, group_id: str) -> ClientGroup:
    group = (
        sess.query(ClientGroup)
        .filter(ClientGroup.owner_id == owner_id, ClientGroup.uuid == str(group_id))
        .first()
    )
    if group is None:
        raise ClientGroupNotFound(group_id)
    return group


# ============================================================================
# Client CRUD Operations
# ============================================================================


def create_client(owner_id: str, data: Dict, session: Optional[Session] = None) -> Client:
    """
    Create a new client.

    Args:
        owner_id: Account that owns the record
        data: Dictionary with first_name and last_name (required) and the
            optional phone, note, allergies and preferences
        session: Optional database session

    Returns:
        Created Client instance

    Raises:
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_client_data(data)
    if not is_valid:
        raise ValidationError(errors)

    def _impl(sess: Session) -> Client:
        client = Client(owner_id=owner_id, is_active=True, **_clean(data))
        sess.add(client)
        sess.flush()
        log_operation(logger, operation="create_client", outcome="success", client_id=client.uuid)
        return client

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to create client: {str(e)}", original_error=e)


def get_client(owner_id: str, client_id: str, session: Optional[Session] = None) -> Client:
    """
    Get a client by stored id.

    Raises:
        ClientNotFound: If the owner has no such client
    """

    def _impl(sess: Session) -> Client:
        return _get_client(sess, owner_id, client_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def list_clients(
    owner_id: str,
    search: Optional[str] = None,
    include_inactive: bool = False,
    group_id: Optional[str] = None,
    session: Optional[Session] = None,
) -> List[Client]:
    """
    Get the owner's clients ordered by last name, then first name.

    Args:
        owner_id: Account that owns the records
        search: Optional partial match on first name, last name or phone
        include_inactive: Include deactivated clients
        group_id: Only clients filed under this group
        session: Optional database session

    Returns:
        List of Client instances

    Raises:
        ClientGroupNotFound: If group_id names no group of the owner
    """

    def _impl(sess: Session) -> List[Client]:
        query = sess.query(Client).filter(Client.owner_id == owner_id)

        if not include_inactive:
            query = query.filter(Client.is_active.is_(True))

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Client.first_name.ilike(pattern),
                    Client.last_name.ilike(pattern),
                    Client.phone.ilike(pattern),
                )
            )

        if group_id:
            group = _get_group(sess, owner_id, group_id)
            query = query.filter(Client.groups.contains(group))

        return query.order_by(Client.last_name, Client.first_name).all()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_client(
    owner_id: str, client_id: str, data: Dict, session: Optional[Session] = None
) -> Client:
    """
    Update a client.

    Args:
        data: Any of first_name, last_name, phone, note, allergies,
            preferences, is_active

    Raises:
        ClientNotFound: If the owner has no such client
        ValidationError: If data validation fails
    """
    unknown = set(data) - set(CLIENT_FIELDS) - {"is_active"}
    if unknown:
        raise ValidationError([f"Cannot update client field(s): {', '.join(sorted(unknown))}"])

    def _impl(sess: Session) -> Client:
        client = _get_client(sess, owner_id, client_id)

        merged = {key: getattr(client, key) for key in CLIENT_FIELDS}
        merged.update(data)
        is_valid, errors = validate_client_data(merged)
        if not is_valid:
            raise ValidationError(errors)

        changes = _clean(data)
        if "is_active" in data:
            changes["is_active"] = bool(data["is_active"])
        client.update_from_dict(changes)
        sess.flush()
        log_operation(
            logger,
            operation="update_client",
            outcome="success",
            client_id=client.uuid,
            fields=sorted(changes),
        )
        return client

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def deactivate_client(owner_id: str, client_id: str, session: Optional[Session] = None) -> Client:
    """Hide a client from lists while keeping their visits."""
    return update_client(owner_id, client_id, {"is_active": False}, session=session)


def get_client_visit_count(owner_id: str, client_id: str, session: Optional[Session] = None) -> int:
    """Number of stored visits of a client."""

    def _impl(sess: Session) -> int:
        client = _get_client(sess, owner_id, client_id)
        return sess.query(Visit).filter(Visit.client_id == client.id).count()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def delete_client(owner_id: str, client_id: str, session: Optional[Session] = None) -> None:
    """
    Delete a client that has no visits.

    Raises:
        ClientNotFound: If the owner has no such client
        ClientInUse: If visits still reference the client (deactivate instead)
    """

    def _impl(sess: Session) -> None:
        client = _get_client(sess, owner_id, client_id)
        visit_count = sess.query(Visit).filter(Visit.client_id == client.id).count()
        if visit_count:
            raise ClientInUse(client_id, {"visits": visit_count})
        sess.delete(client)
        sess.flush()
        log_operation(logger, operation="delete_client", outcome="success", client_id=client_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


# ============================================================================
# Client Groups
# ============================================================================


def _ensure_unique_group_name(
    sess: Session, owner_id: str, name: str, exclude_id: Optional[int] = None
) -> None:
    query = sess.query(ClientGroup).filter(
        ClientGroup.owner_id == owner_id,
        func.lower(ClientGroup.name) == name.strip().lower(),
    )
    if exclude_id is not None:
        query = query.filter(ClientGroup.id != exclude_id)
    if query.first() is not None:
        raise ValidationError([f"'{name.strip()}' already exists"])


def create_client_group(
    owner_id: str,
    name: str,
    colour: Optional[str] = None,
    session: Optional[Session] = None,
) -> ClientGroup:
    """
    Create a client group.

    Args:
        colour: Tag colour as ``#rrggbb``; defaults to DEFAULT_GROUP_COLOUR

    Raises:
        ValidationError: If the name is missing, taken or the colour is malformed
    """
    is_valid, errors = validate_client_group_data({"name": name, "colour": colour})
    if not is_valid:
        raise ValidationError(errors)

    def _impl(sess: Session) -> ClientGroup:
        _ensure_unique_group_name(sess, owner_id, name)
        group = ClientGroup(
            owner_id=owner_id,
            name=name.strip(),
            colour=colour.strip() if colour else DEFAULT_GROUP_COLOUR,
        )
        sess.add(group)
        sess.flush()
        log_operation(
            logger, operation="create_client_group", outcome="success", group_id=group.uuid
        )
        return group

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def list_client_groups(owner_id: str, session: Optional[Session] = None) -> List[ClientGroup]:
    """The owner's client groups ordered by name."""

    def _impl(sess: Session) -> List[ClientGroup]:
        return (
            sess.query(ClientGroup)
            .filter(ClientGroup.owner_id == owner_id)
            .order_by(ClientGroup.name)
            .all()
        )

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_client_group(
    owner_id: str, group_id: str, data: Dict, session: Optional[Session] = None
) -> ClientGroup:
    """
    Rename or recolour a client group.

    Args:
        data: Any of name, colour

    Raises:
        ClientGroupNotFound: If the owner has no such group
        ValidationError: If data validation fails
    """
    unknown = set(data) - {"name", "colour"}
    if unknown:
        raise ValidationError([f"Cannot update group field(s): {', '.join(sorted(unknown))}"])

    def _impl(sess: Session) -> ClientGroup:
        group = _get_group(sess, owner_id, group_id)

        merged = {"name": group.name, "colour": group.colour}
        merged.update(data)
        is_valid, errors = validate_client_group_data(merged)
        if not is_valid:
            raise ValidationError(errors)
        if "name" in data:
            _ensure_unique_group_name(sess, owner_id, data["name"], exclude_id=group.id)

        changes = {}
        if "name" in data:
            changes["name"] = data["name"].strip()
        if "colour" in data:
            changes["colour"] = (data["colour"] or DEFAULT_GROUP_COLOUR).strip()
        group.update_from_dict(changes)
        sess.flush()
        log_operation(
            logger,
            operation="update_client_group",
            outcome="success",
            group_id=group.uuid,
            fields=sorted(data),
        )
        return group

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def delete_client_group(owner_id: str, group_id: str, session: Optional[Session] = None) -> None:
    """
    Delete a client group. Its clients stay; they just leave the group.

    Raises:
        ClientGroupNotFound: If the owner has no such group
    """

    def _impl(sess: Session) -> None:
        group = _get_group(sess, owner_id, group_id)
        member_count = len(group.clients)
        sess.delete(group)
        sess.flush()
        log_operation(
            logger,
            operation="delete_client_group",
            outcome="success",
            group_id=group_id,
            members=member_count,
        )

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def set_client_groups(
    owner_id: str,
    client_id: str,
    group_ids: Iterable[str],
    session: Optional[Session] = None,
) -> Client:
    """
    File a client under exactly the given groups.

    Args:
        group_ids: Stored ids of the groups; an empty list removes the client
            from every group

    Raises:
        ClientNotFound: If the owner has no such client
        ClientGroupNotFound: If a group id names no group of the owner
    """

    def _impl(sess: Session) -> Client:
        client = _get_client(sess, owner_id, client_id)
        groups = []
        for group_id in group_ids:
            group = _get_group(sess, owner_id, group_id)
            if group not in groups:
                groups.append(group)
        client.groups = groups
        sess.flush()
        log_operation(
            logger,
            operation="set_client_groups",
            outcome="success",
            client_id=client.uuid,
            groups=[group.uuid for group in groups],
        )
        return client

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
