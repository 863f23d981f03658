"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class NotAuthenticated(AppError):
    """Raised when an operation is attempted without a resolved actor."""

    def __init__(self, message="You must be signed in."):
        """Initialize the error."""
        super().__init__(message, 401)


class NotAuthorized(AppError):
    """Raised when the actor is not a party to the resource."""

    def __init__(self, message="You are not allowed to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotLeader(NotAuthorized):
    """Raised when a leader-only operation is attempted by a non-leader."""

    def __init__(self, message="Only the group leader can do that."):
        """Initialize the error."""
        super().__init__(message)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class GroupNotFound(NotFoundError):
    """Raised when a group is not found."""

    def __init__(self, message="Group not found."):
        """Initialize the error."""
        super().__init__(message)


class UserNotFound(NotFoundError):
    """Raised when a user document is not found."""

    def __init__(self, message="User not found."):
        """Initialize the error."""
        super().__init__(message)


class RequestNotFound(NotFoundError):
    """Raised when a request is missing or no longer pending."""

    def __init__(self, message="Request no longer exists or is not pending."):
        """Initialize the error."""
        super().__init__(message)


class ConflictError(AppError):
    """Raised when the current membership state forbids the operation."""

    def __init__(self, message="The operation conflicts with the current state."):
        """Initialize the error."""
        super().__init__(message, 409)


class AlreadyGrouped(ConflictError):
    """Raised when the user is already in a group."""

    def __init__(self, message="User is already in a group."):
        """Initialize the error."""
        super().__init__(message)


class NotInGroup(ConflictError):
    """Raised when the user is not a member of the group."""

    def __init__(self, message="User is not a member of this group."):
        """Initialize the error."""
        super().__init__(message)


class GroupFull(ConflictError):
    """Raised when the group has no free slot."""

    def __init__(self, message="Group is already at full capacity."):
        """Initialize the error."""
        super().__init__(message)


class AlreadyMember(ConflictError):
    """Raised when the user already belongs to the group."""

    def __init__(self, message="User is already in this group."):
        """Initialize the error."""
        super().__init__(message)


class DuplicateRequest(ConflictError):
    """Raised when a pending join request already exists."""

    def __init__(self, message="You already have a pending request to this group."):
        """Initialize the error."""
        super().__init__(message)


class DuplicateInvite(ConflictError):
    """Raised when a pending invite already exists."""

    def __init__(self, message="This user already has a pending invitation."):
        """Initialize the error."""
        super().__init__(message)


class StoreUnavailable(AppError):
    """Raised when Firestore rejects a transaction for infrastructure reasons."""

    def __init__(self, message="The database is unavailable. Please try again."):
        """Initialize the error."""
        super().__init__(message, 503)
