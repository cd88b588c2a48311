"""Staff account service: login, account management, and default-account bootstrap.

Credentials are opaque strings compared verbatim. There are no tokens or
sessions; a successful login just returns the account.
"""

from loguru import logger

from visitor_api.core.clock import utcnow
from visitor_api.core.errors import ConflictError, InputValidationError, NotFoundError
from visitor_api.models.app_user import AppUser, UserRole
from visitor_api.schemas.app_user import AppUserCreateRequest, AppUserPatch
from visitor_api.services.audit_service import AuditAction, append_audit
from visitor_api.storage.base import Store

DEFAULT_USERS: tuple[tuple[str, str, str, UserRole], ...] = (
    ("admin", "admin123", "Administrator", UserRole.ADMIN),
    ("user", "user123", "Staff User", UserRole.USER),
)


async def authenticate(store: Store, username: str | None, credential: str | None) -> AppUser | None:
    """Authenticate a staff account.

    Args:
        store: The active store.
        username: The login name.
        credential: The plain-text credential.

    Returns:
        The account if it exists, is active and the credential matches; None otherwise.

    Raises:
        InputValidationError: If either value is missing.
    """
    if not username or not credential:
        msg = "Username and password are required"
        raise InputValidationError(msg)
    user = await store.get_user_by_username(username)
    if user is None or not user.is_active or user.credential != credential:
        logger.info(f"Failed login for {username}")
        return None
    logger.info(f"User {username} logged in")
    await append_audit(store, action=AuditAction.USER_LOGIN, actor_id=username, details=f"{username} logged in")
    return user


async def list_app_users(store: Store) -> list[AppUser]:
    """Return all accounts, newest first."""
    return await store.list_users()


async def create_app_user(store: Store, data: AppUserCreateRequest, *, actor_id: str = "system") -> AppUser:
    """Create a staff account.

    Raises:
        ConflictError: If the username is taken.
    """
    if await store.get_user_by_username(data.username) is not None:
        msg = "Username already exists"
        raise ConflictError(msg)

    now = utcnow()
    user = AppUser(
        username=data.username,
        credential=data.password,
        name=data.name,
        role=data.role,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    try:
        created = await store.add_user(user)
    except ConflictError as e:
        msg = "Username already exists"
        raise ConflictError(msg) from e

    logger.info(f"User {created.username} created by {actor_id}")
    await append_audit(
        store,
        action=AuditAction.USER_CREATED,
        actor_id=actor_id,
        details=f"User {created.username} created with role {created.role}",
    )
    return created


async def update_app_user(store: Store, user_id: int, patch: AppUserPatch, *, actor_id: str = "system") -> AppUser:
    """Apply the provided fields to an account.

    Raises:
        NotFoundError: If the account does not exist.
    """
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if "password" in changes:
        changes["credential"] = changes.pop("password")

    if not await store.update_user(user_id, {**changes, "updated_at": utcnow()}):
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)
    user = await store.get_user(user_id)
    if user is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)

    fields = sorted("password" if k == "credential" else k for k in changes)
    logger.info(f"User {user.username} updated by {actor_id}: {fields}")
    await append_audit(
        store,
        action=AuditAction.USER_UPDATED,
        actor_id=actor_id,
        details=f"User {user.username} updated: {', '.join(fields)}" if fields else f"User {user.username} updated",
    )
    return user


async def delete_app_user(store: Store, user_id: int, *, actor_id: str = "system") -> None:
    """Delete an account. Audit entries naming it are kept.

    Raises:
        NotFoundError: If the account does not exist.
    """
    user = await store.get_user(user_id)
    if user is None or not await store.delete_user(user_id):
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)

    logger.info(f"User {user.username} deleted by {actor_id}")
    await append_audit(
        store,
        action=AuditAction.USER_DELETED,
        actor_id=actor_id,
        details=f"User {user.username} deleted",
    )


async def ensure_default_users(store: Store) -> list[AppUser]:
    """Create the default admin and staff accounts when no account exists.

    Returns:
        The accounts created; empty if any account already existed.
    """
    if await store.count_users() > 0:
        return []
    created = []
    for username, credential, name, role in DEFAULT_USERS:
        data = AppUserCreateRequest(username=username, password=credential, name=name, role=role)
        created.append(await create_app_user(store, data, actor_id="system"))
    logger.info(f"Created default users: {', '.join(u.username for u in created)}")
    return created
